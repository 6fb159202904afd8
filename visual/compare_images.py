"""
Image Comparison Module
Compares a design capture with a rendered capture pixel by pixel using OpenCV
and turns the mismatch mask into classified, ranked regions.
"""

import logging
from typing import List, Optional

import cv2
import numpy as np

from semantic.config import AuditConfig, DEFAULT_CONFIG
from .diff_result import DiffRegion, DiffResult
from .image_aligner import ImageAligner, ImageInput, PadAligner
from .region_classifier import RegionClassifier

logger = logging.getLogger(__name__)


class PixelDiffEngine:
    def __init__(self, config: AuditConfig = DEFAULT_CONFIG,
                 aligner: Optional[ImageAligner] = None,
                 classifier: Optional[RegionClassifier] = None):
        self.config = config
        self.aligner = aligner or PadAligner()
        self.classifier = classifier or RegionClassifier(config.min_spacing_delta_px)

    def compare(self, design_image: ImageInput, rendered_image: ImageInput) -> DiffResult:
        design, rendered = self.aligner.align(design_image, rendered_image)

        mask = self.mismatch_mask(design, rendered)
        mismatch_pixels = int(cv2.countNonZero(mask))
        mismatch_percent = mismatch_pixels * 100.0 / mask.size

        regions = self.extract_regions(mask, mismatch_pixels)
        self.classifier.classify_regions(regions)

        result = DiffResult(
            design_image=design,
            rendered_image=rendered,
            diff_mask=mask,
            mismatch_percent=mismatch_percent,
            regions=regions,
            diff_image=self.highlight(rendered, mask),
        )
        result.observations = self.observations(regions)
        logger.info(f"Pixel diff: {mismatch_percent:.2f}% mismatch, {len(regions)} regions, "
                    f"severity {result.severity.label}")
        return result

    def mismatch_mask(self, design: np.ndarray, rendered: np.ndarray) -> np.ndarray:
        """Binary mask (0/255) of pixels whose gray-level difference exceeds the cutoff."""
        diff = cv2.absdiff(design, rendered)
        gray = cv2.cvtColor(diff, cv2.COLOR_RGB2GRAY)
        _, mask = cv2.threshold(gray, self.config.pixel_diff_threshold, 255, cv2.THRESH_BINARY)
        return mask

    def extract_regions(self, mask: np.ndarray, mismatch_pixels: int) -> List[DiffRegion]:
        """External contours of the mask, ranked by impact (largest first)."""
        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        regions = []
        for contour in contours:
            x, y, w, h = cv2.boundingRect(contour)
            area = float(self._region_pixels(mask, contour, x, y, w, h))
            impact = area / mismatch_pixels * 100.0 if mismatch_pixels else 0.0
            regions.append(DiffRegion(x=x, y=y, width=w, height=h, area=area, impact_percent=impact))
        regions.sort(key=lambda r: (-r.impact_percent, r.y, r.x))
        return regions

    @staticmethod
    def _region_pixels(mask: np.ndarray, contour: np.ndarray, x: int, y: int, w: int, h: int) -> int:
        # Mismatched pixels enclosed by the contour; contourArea undercounts thin shapes
        filled = np.zeros((h, w), dtype=np.uint8)
        cv2.drawContours(filled, [contour], -1, 255, thickness=cv2.FILLED, offset=(-x, -y))
        return int(cv2.countNonZero(cv2.bitwise_and(filled, mask[y:y + h, x:x + w])))

    def highlight(self, rendered: np.ndarray, mask: np.ndarray) -> np.ndarray:
        """Alpha-blend the overlay color onto the rendered capture wherever the mask is set."""
        alpha = self.config.overlay_alpha
        overlay = np.empty_like(rendered)
        overlay[:] = self.config.overlay_color
        blended = cv2.addWeighted(rendered, 1.0 - alpha, overlay, alpha, 0)
        return np.where(mask[:, :, None] > 0, blended, rendered)

    def observations(self, regions: List[DiffRegion]) -> List[str]:
        """
        Spacing-delta estimates from every region, followed by the classifier
        text of the highest-impact regions.
        """
        result = [r.spacing_observation for r in regions if r.spacing_observation]
        result.extend(r.observation for r in regions[:self.config.top_observations] if r.observation)
        return result
