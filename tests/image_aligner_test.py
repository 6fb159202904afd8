import sys
import os
import numpy as np
import pytest
from PIL import Image
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from semantic.errors import ImageInputError
from visual.image_aligner import PadAligner, to_rgb_array


def test_grayscale_and_single_channel():
    gray = np.full((4, 5), 10, dtype=np.uint8)
    assert to_rgb_array(gray, 'design').shape == (4, 5, 3)
    single = np.full((4, 5, 1), 10, dtype=np.uint8)
    out = to_rgb_array(single, 'design')
    assert out.shape == (4, 5, 3)
    assert (out == 10).all()


def test_alpha_composited_over_white():
    rgba = np.zeros((2, 2, 4), dtype=np.uint8)
    assert (to_rgb_array(rgba, 'rendered') == 255).all()
    rgba[..., 3] = 255
    assert (to_rgb_array(rgba, 'rendered') == 0).all()

    gray_alpha = np.zeros((2, 2, 2), dtype=np.uint8)
    assert (to_rgb_array(gray_alpha, 'rendered') == 255).all()


def test_dtype_normalization():
    assert (to_rgb_array(np.full((2, 2), 0.5), 'design') == 128).all()
    assert (to_rgb_array(np.full((2, 2), 65535, dtype=np.uint16), 'design') == 255).all()
    assert (to_rgb_array(np.ones((2, 2), dtype=bool), 'design') == 255).all()
    assert (to_rgb_array(np.full((2, 2, 3), 300, dtype=np.int32), 'design') == 255).all()


def test_pillow_images():
    rgba = Image.new('RGBA', (3, 2), (0, 0, 0, 0))
    assert (to_rgb_array(rgba, 'design') == 255).all()
    gray = Image.new('L', (3, 2), 0)
    out = to_rgb_array(gray, 'design')
    assert out.shape == (2, 3, 3)
    assert (out == 0).all()


@pytest.mark.parametrize('image', [
    None,
    np.zeros((0, 0, 3), dtype=np.uint8),
    np.zeros((2, 2, 5), dtype=np.uint8),
    np.zeros((2, 2, 3, 1), dtype=np.uint8),
    [[0, 0], [0, 0]],
])
def test_invalid_inputs(image):
    with pytest.raises(ImageInputError) as exc:
        to_rgb_array(image, 'rendered')
    assert exc.value.source == 'rendered'


def test_pad_aligner_anchors_top_left():
    design = np.zeros((10, 20, 3), dtype=np.uint8)
    rendered = np.zeros((15, 12, 3), dtype=np.uint8)
    a, b = PadAligner().align(design, rendered)
    assert a.shape == b.shape == (15, 20, 3)
    assert (a[:10, :20] == 0).all()
    assert (a[10:, :] == 255).all()
    assert (b[:, 12:] == 255).all()
    assert (b[:15, :12] == 0).all()


def test_pad_aligner_custom_fill():
    a, _ = PadAligner(fill=(0, 0, 0)).align(np.full((1, 1, 3), 9, dtype=np.uint8),
                                            np.full((2, 2, 3), 9, dtype=np.uint8))
    assert tuple(a[1, 1]) == (0, 0, 0)


@pytest.mark.parametrize('image', [
    np.array([['a', 'b'], ['c', 'd']]),
    np.empty((2, 2, 3), dtype=object),
])
def test_non_numeric_pixels_are_rejected(image):
    with pytest.raises(ImageInputError) as exc:
        to_rgb_array(image, 'design')
    assert exc.value.source == 'design'
