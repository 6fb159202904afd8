"""
Audit Configuration Module
Tolerances and weights shared by the semantic and pixel comparators.
"""

import logging
import math
from dataclasses import dataclass, fields, replace, asdict
from typing import Any, Dict, Mapping, Tuple

from .errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditConfig:
    # Pixel-level noise threshold (ignore differences below this)
    pixel_noise_threshold: float = 3.0
    # 0.05 = 5% difference in frame vs document dimensions
    breakpoint_tolerance_ratio: float = 0.05

    font_size_tolerance: float = 1.0
    line_height_tolerance: float = 2.0
    letter_spacing_tolerance: float = 0.2

    spacing_tolerance: float = 8.0

    # Approximate perceptual distance on a 0-100 scale
    color_distance_warn: float = 2.0
    color_distance_fail: float = 6.0

    match_text_weight: float = 1.0
    match_spatial_weight: float = 0.3
    match_type_weight: float = 0.5
    match_floors: Tuple[float, ...] = (0.8, 0.5, 0.2)
    spatial_falloff_px: float = 800.0
    containment_min_length: int = 20
    fuzzy_text_floor: float = 0.65

    # Pixel diff
    pixel_diff_threshold: int = 30
    top_observations: int = 5
    overlay_alpha: float = 0.5
    overlay_color: Tuple[int, int, int] = (255, 0, 0)
    min_spacing_delta_px: float = 5.0

    def __post_init__(self):
        self.validate()

    def validate(self) -> 'AuditConfig':
        """Raise ConfigError when a value makes the comparators meaningless."""
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                if not math.isfinite(value) or value < 0:
                    raise ConfigError(f"{f.name} must be a finite non-negative number, got {value!r}")
        if self.color_distance_warn > self.color_distance_fail:
            raise ConfigError("color_distance_warn must not exceed color_distance_fail")
        if self.match_text_weight + self.match_spatial_weight + self.match_type_weight <= 0:
            raise ConfigError("match weights must sum to a positive value")
        if not self.match_floors:
            raise ConfigError("match_floors must contain at least one floor")
        if not 0 <= self.pixel_diff_threshold <= 255:
            raise ConfigError("pixel_diff_threshold must be within 0-255")
        if not 0.0 <= self.overlay_alpha <= 1.0:
            raise ConfigError("overlay_alpha must be within 0-1")
        return self

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> 'AuditConfig':
        """Build a config from a flat mapping, e.g. a parsed JSON settings file."""
        known = {f.name: f for f in fields(cls)}
        kwargs = {}
        for key, value in (values or {}).items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue
            default = known[key].default
            try:
                if isinstance(default, tuple):
                    kwargs[key] = tuple(type(default[0])(v) for v in value)
                else:
                    kwargs[key] = type(default)(value)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid value for {key}: {value!r}") from e
        return cls(**kwargs)

    def with_overrides(self, **overrides) -> 'AuditConfig':
        return replace(self, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_CONFIG = AuditConfig()
