"""
Comparison Result Module
Issue types and the aggregated semantic comparison result.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, List, Optional


class Severity(str, Enum):
    PASS = 'PASS'
    WARN = 'WARN'
    FAIL = 'FAIL'


class TypographyStatus(str, Enum):
    MATCH = 'MATCH'
    DRIFT = 'DRIFT'
    MISMATCH = 'MISMATCH'


def _serialize(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    if hasattr(value, '__dataclass_fields__'):
        return {f.name: _serialize(getattr(value, f.name))
                for f in fields(value) if getattr(value, f.name) is not None}
    return value


@dataclass
class ScreenDimensionsResult:
    design_width: float = 0.0
    design_height: float = 0.0
    rendered_width: float = 0.0
    rendered_height: float = 0.0
    width_diff_px: float = 0.0
    height_diff_px: float = 0.0
    within_breakpoint_tolerance: bool = True
    severity: Severity = Severity.PASS
    notes: str = ''


@dataclass
class TypographySnapshot:
    text: str = ''
    font_family: str = ''
    font_size: float = 0.0
    font_weight: str = ''
    line_height: float = 0.0
    letter_spacing: float = 0.0
    color: str = ''


@dataclass
class TypographyIssue:
    element_id: str
    design: TypographySnapshot
    rendered: TypographySnapshot
    status: TypographyStatus
    severity: Severity
    confidence: float = 0.0
    color_distance: Optional[float] = None
    notes: str = ''


@dataclass
class ElementSizeIssue:
    element_id: str
    role: str
    severity: Severity
    design_width: Optional[float] = None
    design_height: Optional[float] = None
    rendered_width: Optional[float] = None
    rendered_height: Optional[float] = None
    width_diff_px: Optional[float] = None
    height_diff_px: Optional[float] = None
    notes: str = ''


@dataclass
class AlignmentIssue:
    element_id: str
    axis: str  # horizontal | vertical
    offset_px: float
    severity: Severity
    description: str = ''


@dataclass
class OrderIssue:
    expected_order: List[str]
    actual_order: List[str]
    severity: Severity
    description: str = ''


@dataclass
class ColorIssue:
    element_id: str
    role: str  # text | background
    design_color: str
    rendered_color: str
    distance: float
    severity: Severity
    notes: str = ''


@dataclass
class SpacingIssue:
    element_id: str
    between: str
    design_spacing: float
    rendered_spacing: float
    diff_px: float
    severity: Severity
    notes: str = ''


@dataclass
class MissingElement:
    element_id: str
    type: str  # text | interactive
    text: str
    severity: Severity = Severity.FAIL
    notes: str = ''


@dataclass
class ExtraElement:
    element_id: str
    type: str
    text: str
    severity: Severity = Severity.WARN
    notes: str = ''


@dataclass
class Summary:
    total_issues: int = 0
    severity: Severity = Severity.PASS


ISSUE_LISTS = (
    'text_typography',
    'element_sizes',
    'alignment',
    'order',
    'colors',
    'spacing',
    'missing_elements',
    'extra_elements',
)


@dataclass
class ComparisonResult:
    screen_dimensions: Optional[ScreenDimensionsResult] = None
    text_typography: List[TypographyIssue] = field(default_factory=list)
    element_sizes: List[ElementSizeIssue] = field(default_factory=list)
    alignment: List[AlignmentIssue] = field(default_factory=list)
    order: List[OrderIssue] = field(default_factory=list)
    colors: List[ColorIssue] = field(default_factory=list)
    spacing: List[SpacingIssue] = field(default_factory=list)
    missing_elements: List[MissingElement] = field(default_factory=list)
    extra_elements: List[ExtraElement] = field(default_factory=list)
    summary: Summary = field(default_factory=Summary)

    def all_issues(self) -> List:
        return [issue for name in ISSUE_LISTS for issue in getattr(self, name)]

    def finalize_summary(self) -> Summary:
        """Recompute totals and overall severity from the issue lists."""
        issues = self.all_issues()
        # MATCH typography entries are counted too
        total = len(issues)
        dimension_severity = self.screen_dimensions.severity if self.screen_dimensions else None

        if any(i.severity == Severity.FAIL for i in issues) or dimension_severity == Severity.FAIL:
            overall = Severity.FAIL
        elif any(i.severity != Severity.PASS for i in issues) or dimension_severity == Severity.WARN:
            overall = Severity.WARN
        else:
            overall = Severity.PASS

        self.summary = Summary(total_issues=total, severity=overall)
        return self.summary

    def to_dict(self) -> Dict:
        """Convert the result to the JSON-ready structure consumed by report renderers."""
        result = {}
        if self.screen_dimensions is not None:
            result['screen_dimensions'] = _serialize(self.screen_dimensions)
        for name in ISSUE_LISTS:
            result[name] = _serialize(getattr(self, name))
        result['summary'] = _serialize(self.summary)
        return result
