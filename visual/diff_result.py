"""
Diff Result Module
Regions and the aggregated result of a pixel comparison.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import numpy as np


class DiffSeverity(Enum):
    MINOR = ('Minor', 'Small differences that may not affect user experience')
    MAJOR = ('Major', 'Noticeable differences that impact visual consistency')
    CRITICAL = ('Critical', 'Significant deviations that break design integrity')

    def __init__(self, label: str, description: str):
        self.label = label
        self.description = description

    @classmethod
    def from_percentage(cls, mismatch_percent: float) -> 'DiffSeverity':
        if mismatch_percent < 1.0:
            return cls.MINOR
        if mismatch_percent < 5.0:
            return cls.MAJOR
        return cls.CRITICAL


@dataclass
class DiffRegion:
    x: int
    y: int
    width: int
    height: int
    area: float
    # share of all mismatched pixels, so impacts of one result sum to at most 100
    impact_percent: float
    issue_type: Optional[str] = None  # spacing | alignment | font | color | missing | other
    observation: Optional[str] = None
    spacing_observation: Optional[str] = None

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else float('inf')

    def to_dict(self) -> Dict:
        result = {
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'area': self.area,
            'impact_percent': round(self.impact_percent, 2),
            'issue_type': self.issue_type,
            'observation': self.observation,
        }
        if self.spacing_observation:
            result['spacing_observation'] = self.spacing_observation
        return result


@dataclass
class DiffResult:
    design_image: np.ndarray
    rendered_image: np.ndarray
    diff_mask: np.ndarray
    mismatch_percent: float
    regions: List[DiffRegion] = field(default_factory=list)
    diff_image: Optional[np.ndarray] = None  # rendered capture with mismatches highlighted
    observations: List[str] = field(default_factory=list)

    @property
    def severity(self) -> DiffSeverity:
        return DiffSeverity.from_percentage(self.mismatch_percent)

    @property
    def mismatch_pixels(self) -> int:
        return int(np.count_nonzero(self.diff_mask))

    def to_dict(self) -> Dict:
        """JSON-ready summary; image buffers are left out."""
        height, width = self.diff_mask.shape[:2]
        return {
            'width': width,
            'height': height,
            'mismatch_percent': round(self.mismatch_percent, 4),
            'severity': self.severity.label,
            'regions': [r.to_dict() for r in self.regions],
            'observations': list(self.observations),
        }
