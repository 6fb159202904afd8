"""
Image Aligner Module
Brings two captures onto a common canvas before they are diffed.

Only canvas padding is performed. Content-aware registration would plug in
as another ImageAligner without touching the diff or classification code.
"""

import logging
from typing import Tuple, Union

import cv2
import numpy as np
from PIL import Image

from semantic.errors import ImageInputError

logger = logging.getLogger(__name__)

ImageInput = Union[np.ndarray, Image.Image]

WHITE = (255, 255, 255)


def to_rgb_array(image: ImageInput, source: str) -> np.ndarray:
    """
    Normalize a capture to an HxWx3 uint8 RGB array.

    Accepts Pillow images and numpy arrays that are grayscale, single-channel,
    RGB or RGBA, in any integer or float dtype. Alpha is composited over white.
    """
    if image is None:
        raise ImageInputError(source, "image is missing")
    if isinstance(image, Image.Image):
        if image.mode in ('RGBA', 'LA', 'P'):
            image = image.convert('RGBA')
        else:
            image = image.convert('RGB')
        image = np.asarray(image)
    if not isinstance(image, np.ndarray):
        raise ImageInputError(source, f"unsupported image type {type(image).__name__}")
    if image.size == 0:
        raise ImageInputError(source, "image is empty")
    if not (image.dtype == np.bool_ or np.issubdtype(image.dtype, np.integer)
            or np.issubdtype(image.dtype, np.floating)):
        raise ImageInputError(source, f"unsupported pixel dtype {image.dtype}")

    array = _to_uint8(image)
    if array.ndim == 2:
        return cv2.cvtColor(array, cv2.COLOR_GRAY2RGB)
    if array.ndim != 3:
        raise ImageInputError(source, f"expected a 2-D or 3-D array, got shape {array.shape}")

    channels = array.shape[2]
    if channels == 1:
        return cv2.cvtColor(np.ascontiguousarray(array[:, :, 0]), cv2.COLOR_GRAY2RGB)
    if channels == 2:
        gray = cv2.cvtColor(np.ascontiguousarray(array[:, :, 0]), cv2.COLOR_GRAY2RGB)
        return _composite_over_white(gray, array[:, :, 1])
    if channels == 3:
        return np.ascontiguousarray(array)
    if channels == 4:
        return _composite_over_white(array[:, :, :3], array[:, :, 3])
    raise ImageInputError(source, f"unsupported channel count {channels}")


def _to_uint8(array: np.ndarray) -> np.ndarray:
    if array.dtype == np.uint8:
        return array
    if array.dtype == np.bool_:
        return array.astype(np.uint8) * 255
    if np.issubdtype(array.dtype, np.floating):
        finite = np.nan_to_num(array, nan=0.0, posinf=255.0, neginf=0.0)
        # floats in 0-1 are treated as normalized intensities
        if finite.size and finite.max() <= 1.0:
            finite = finite * 255.0
        return np.clip(np.rint(finite), 0, 255).astype(np.uint8)
    if array.dtype == np.uint16:
        return (array // 257).astype(np.uint8)
    return np.clip(array, 0, 255).astype(np.uint8)


def _composite_over_white(rgb: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    a = alpha.astype(np.float32)[:, :, None] / 255.0
    blended = rgb.astype(np.float32) * a + 255.0 * (1.0 - a)
    return np.clip(np.rint(blended), 0, 255).astype(np.uint8)


class ImageAligner:
    """Base aligner: returns the two captures as same-sized RGB arrays."""

    def align(self, design: ImageInput, rendered: ImageInput) -> Tuple[np.ndarray, np.ndarray]:
        raise NotImplementedError


class PadAligner(ImageAligner):
    """Pads both captures onto a white canvas of the larger size, anchored top-left."""

    def __init__(self, fill: Tuple[int, int, int] = WHITE):
        self.fill = fill

    def pad(self, image: np.ndarray, width: int, height: int) -> np.ndarray:
        h, w = image.shape[:2]
        if (w, h) == (width, height):
            return image
        return cv2.copyMakeBorder(image, 0, height - h, 0, width - w,
                                  cv2.BORDER_CONSTANT, value=self.fill)

    def align(self, design: ImageInput, rendered: ImageInput) -> Tuple[np.ndarray, np.ndarray]:
        design = to_rgb_array(design, 'design')
        rendered = to_rgb_array(rendered, 'rendered')
        width = max(design.shape[1], rendered.shape[1])
        height = max(design.shape[0], rendered.shape[0])
        logger.debug(f"Aligning design {design.shape[1]}x{design.shape[0]} and rendered "
                     f"{rendered.shape[1]}x{rendered.shape[0]} to {width}x{height}")
        return self.pad(design, width, height), self.pad(rendered, width, height)
