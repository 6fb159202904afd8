"""
Region Classifier Module
Classifies diff regions into QA categories from their geometry alone.
"""

import logging
import math
from typing import Iterable, Optional

from .diff_result import DiffRegion

logger = logging.getLogger(__name__)

SPACING_MAX_AREA = 100
BAND_MIN_ASPECT = 3.0
BAND_MAX_ASPECT = 0.3
BAND_MAX_THICKNESS = 10
MISSING_MIN_AREA = 5000
MID_MIN_AREA = 500
TEXT_MIN_ASPECT = 2.0
TEXT_MAX_HEIGHT = 50

OBSERVATION_TEMPLATES = {
    'spacing': "Spacing mismatch detected at X:{x}-Y:{y} (area: {area:.0f}px²)",
    'font': "Font size or style mismatch detected in text region X:{x}-Y:{y} ({width}x{height})",
    'color': "Color mismatch detected at X:{x}-Y:{y} (region: {width}x{height})",
    'missing': "Missing or extra UI element detected at X:{x}-Y:{y} ({width}x{height})",
    'other': "Visual difference detected at X:{x}-Y:{y} ({width}x{height})",
}
HORIZONTAL_BAND = "Horizontal alignment issue detected around X:{x}-Y:{y} (width: {width}px)"
VERTICAL_BAND = "Vertical alignment issue detected around X:{x}-Y:{y} (height: {height}px)"
SPACING_DELTA = "Spacing differs by approximately {delta:.0f}px at position X:{x}-Y:{y}"


class RegionClassifier:
    def __init__(self, min_spacing_delta_px: float = 5.0):
        self.min_spacing_delta_px = min_spacing_delta_px

    def classify(self, region: DiffRegion) -> str:
        area = region.area
        aspect = region.aspect_ratio
        # Tiny regions are most likely small offsets between elements
        if area < SPACING_MAX_AREA:
            return 'spacing'
        if aspect > BAND_MIN_ASPECT and region.height < BAND_MAX_THICKNESS:
            return 'alignment'
        if aspect < BAND_MAX_ASPECT and region.width < BAND_MAX_THICKNESS:
            return 'alignment'
        if area > MISSING_MIN_AREA:
            return 'missing'
        if MID_MIN_AREA < area < MISSING_MIN_AREA:
            # wide, short blocks look like lines of text
            if aspect > TEXT_MIN_ASPECT and region.height < TEXT_MAX_HEIGHT:
                return 'font'
            return 'color'
        return 'other'

    def observation(self, region: DiffRegion, issue_type: str) -> str:
        values = dict(x=region.x, y=region.y, width=region.width, height=region.height, area=region.area)
        if issue_type == 'alignment':
            template = HORIZONTAL_BAND if region.width > region.height else VERTICAL_BAND
            return template.format(**values)
        return OBSERVATION_TEMPLATES.get(issue_type, OBSERVATION_TEMPLATES['other']).format(**values)

    def spacing_observation(self, region: DiffRegion) -> Optional[str]:
        """Estimated spacing delta (square root of the area) for spacing regions."""
        if region.issue_type != 'spacing':
            return None
        delta = math.sqrt(region.area)
        if delta <= self.min_spacing_delta_px:
            return None
        return SPACING_DELTA.format(delta=delta, x=region.x, y=region.y)

    def classify_regions(self, regions: Iterable[DiffRegion]) -> None:
        """Set issue type and observation text on each region in place."""
        for region in regions:
            region.issue_type = self.classify(region)
            region.observation = self.observation(region, region.issue_type)
            region.spacing_observation = self.spacing_observation(region)
            logger.debug(f"Region at ({region.x}, {region.y}) {region.width}x{region.height}: {region.issue_type}")
