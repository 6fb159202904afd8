"""
Semantic Analyzer Module
Compares a design snapshot with a rendered snapshot using tolerances instead of
exact equality, so pixel noise is ignored and design-intent drift is reported.
"""

import logging
import re
from typing import Any, Optional, Tuple, Union

from .comparison_result import (
    AlignmentIssue,
    ColorIssue,
    ComparisonResult,
    ElementSizeIssue,
    ExtraElement,
    MissingElement,
    OrderIssue,
    ScreenDimensionsResult,
    Severity,
    SpacingIssue,
    TypographyIssue,
    TypographySnapshot,
    TypographyStatus,
)
from .config import AuditConfig, DEFAULT_CONFIG
from .errors import SnapshotError
from .matching_engine import MatchingEngine
from .snapshots import (
    SECTION_NAMES,
    DesignSnapshot,
    InteractiveNode,
    Rect,
    RenderedSnapshot,
    TextNode,
)
from utils.color_utils import color_distance, parse_color, rgb_distance, to_hex

logger = logging.getLogger(__name__)

# Adjacent landmark pairs checked for vertical gap drift
SPACING_PAIRS = (
    ('header', 'hero'),
    ('hero', 'features'),
    ('features', 'ctas'),
    ('ctas', 'footer'),
)


def normalize_text(text: Optional[str]) -> str:
    if not text:
        return ''
    return re.sub(r'\s+', ' ', text.strip())


def normalize_font_family(family: Optional[str]) -> str:
    """Primary family only, lowercased, without quotes: '"Inter", sans-serif' -> 'inter'."""
    if not family:
        return ''
    primary = family.lower().split(',', 1)[0]
    return primary.replace('"', '').replace("'", '').strip()


def diff_string(expected: float, actual: float) -> str:
    diff = actual - expected
    sign = '+' if diff > 0 else ''
    return f"{sign}{round(diff, 1):g}px"


def _coerce(snapshot: Any, cls, source: str):
    if isinstance(snapshot, cls):
        return snapshot
    if snapshot is None:
        raise SnapshotError(source, "snapshot is missing")
    return cls.from_dict(snapshot)


class SemanticAnalyzer:
    def __init__(self, config: AuditConfig = DEFAULT_CONFIG, matching_engine: Optional[MatchingEngine] = None):
        self.config = config
        self.matching_engine = matching_engine or MatchingEngine(config)

    def analyze(self, design: Union[DesignSnapshot, dict], rendered: Union[RenderedSnapshot, dict]) -> ComparisonResult:
        """Run every comparator in a fixed order and return a finalized result."""
        try:
            design = _coerce(design, DesignSnapshot, 'design')
            rendered = _coerce(rendered, RenderedSnapshot, 'rendered')
            result = ComparisonResult()
            self.analyze_screen_dimensions(design, rendered, result)
            self.analyze_section_order(design, rendered, result)
            self.analyze_typography(design, rendered, result)
            self.analyze_section_sizes_and_alignment(design, rendered, result)
            self.analyze_section_spacing(design, rendered, result)
            self.analyze_interactive_elements(design, rendered, result)
            result.finalize_summary()
        except Exception as e:
            logger.error(f"Error during semantic analysis: {str(e)}", exc_info=True)
            raise
        logger.info(f"Semantic analysis complete: {result.summary.total_issues} issues, "
                    f"severity {result.summary.severity.value}")
        return result

    # --- Screen dimensions ---

    def _within_breakpoint_tolerance(self, expected: float, actual: float) -> bool:
        if expected == 0 or actual == 0:
            return True
        return abs(expected - actual) / expected <= self.config.breakpoint_tolerance_ratio

    def analyze_screen_dimensions(self, design: DesignSnapshot, rendered: RenderedSnapshot,
                                  result: ComparisonResult) -> ScreenDimensionsResult:
        within = (self._within_breakpoint_tolerance(design.frame_width, rendered.document_width)
                  and self._within_breakpoint_tolerance(design.frame_height, rendered.document_height))
        sd = ScreenDimensionsResult(
            design_width=design.frame_width,
            design_height=design.frame_height,
            rendered_width=rendered.document_width,
            rendered_height=rendered.document_height,
            width_diff_px=abs(design.frame_width - rendered.document_width),
            height_diff_px=abs(design.frame_height - rendered.document_height),
            within_breakpoint_tolerance=within,
        )
        if within:
            sd.severity = Severity.PASS
            sd.notes = "Dimensions within breakpoint-level tolerance"
        else:
            # dimension drift is always structural
            sd.severity = Severity.FAIL
            sd.notes = "Frame vs rendered document dimensions differ beyond breakpoint tolerance"
        result.screen_dimensions = sd
        return sd

    # --- Section order ---

    def analyze_section_order(self, design: DesignSnapshot, rendered: RenderedSnapshot,
                              result: ComparisonResult) -> None:
        expected = design.sections.present()
        # sorted() is stable, so landmarks sharing a y keep canonical order
        actual = sorted(rendered.sections.present(), key=lambda name: rendered.sections.get(name).y)
        if not expected or not actual:
            logger.debug("Skipping section order check: no landmarks on one side")
            return
        if expected != actual:
            result.order.append(OrderIssue(
                expected_order=expected,
                actual_order=actual,
                severity=Severity.FAIL,
                description="Major UI sections appear in a different sequence than the design",
            ))

    # --- Typography ---

    def analyze_typography(self, design: DesignSnapshot, rendered: RenderedSnapshot,
                           result: ComparisonResult) -> None:
        design_nodes = list(design.text_nodes)
        rendered_nodes = list(rendered.text_nodes)
        pairs, unmatched_design, unmatched_rendered = self.matching_engine.match_indices(design_nodes, rendered_nodes)

        for i, j, confidence in pairs:
            element_id = design_nodes[i].name or f"text_{i}"
            issue, color_issue = self.compare_typography(element_id, design_nodes[i], rendered_nodes[j], confidence)
            result.text_typography.append(issue)
            if color_issue is not None:
                result.colors.append(color_issue)

        for i in unmatched_design:
            node = design_nodes[i]
            result.missing_elements.append(MissingElement(
                element_id=node.name or node.id or f"text_{i}",
                type='text',
                text=normalize_text(node.text),
                notes="Design text has no counterpart in the rendered page",
            ))
        for j in unmatched_rendered:
            node = rendered_nodes[j]
            result.extra_elements.append(ExtraElement(
                element_id=node.id or f"{node.tag or 'text'}_{j}",
                type='text',
                text=normalize_text(node.text),
                notes="Rendered text is not present in the design",
            ))

    def compare_typography(self, element_id: str, design: TextNode, rendered: TextNode,
                           confidence: float = 1.0) -> Tuple[TypographyIssue, Optional[ColorIssue]]:
        cfg = self.config
        d = self._typography_snapshot(design)
        r = self._typography_snapshot(rendered)

        text_matches = d.text == r.text
        family_matches = normalize_font_family(d.font_family) == normalize_font_family(r.font_family)
        font_size_diff = abs(d.font_size - r.font_size)
        line_height_diff = abs(d.line_height - r.line_height)
        letter_spacing_diff = abs(d.letter_spacing - r.letter_spacing)
        distance = color_distance(design.color, rendered.color)
        if distance is None and (design.color or rendered.color):
            logger.debug(f"Skipping text color comparison for '{element_id}': unresolvable color")

        notes = []
        if not text_matches:
            notes.append("Text differs.")
        if not family_matches:
            notes.append("Font family differs.")
        if font_size_diff > cfg.font_size_tolerance:
            notes.append(f"Font size {diff_string(d.font_size, r.font_size)}.")
        if line_height_diff > cfg.line_height_tolerance:
            notes.append(f"Line height {diff_string(d.line_height, r.line_height)}.")
        if letter_spacing_diff > cfg.letter_spacing_tolerance:
            notes.append(f"Letter spacing {diff_string(d.letter_spacing, r.letter_spacing)}.")
        color_drift = distance is not None and distance >= cfg.color_distance_warn
        color_fail = distance is not None and distance > cfg.color_distance_fail
        if color_drift:
            notes.append(f"Color differs (distance ≈ {round(distance, 1)}).")

        within_tolerance = (font_size_diff <= cfg.font_size_tolerance
                            and line_height_diff <= cfg.line_height_tolerance
                            and letter_spacing_diff <= cfg.letter_spacing_tolerance
                            and not color_drift)

        if text_matches and family_matches and within_tolerance:
            status, severity = TypographyStatus.MATCH, Severity.PASS
            notes = ["Within typography tolerance"]
        elif not text_matches or not family_matches or color_fail:
            status, severity = TypographyStatus.MISMATCH, Severity.FAIL
        else:
            status, severity = TypographyStatus.DRIFT, Severity.WARN

        issue = TypographyIssue(
            element_id=element_id,
            design=d,
            rendered=r,
            status=status,
            severity=severity,
            confidence=round(confidence, 4),
            color_distance=round(distance, 2) if distance is not None else None,
            notes=' '.join(notes),
        )
        color_issue = None
        if color_drift:
            color_issue = self.compare_color(element_id, 'text', design.color, rendered.color)
        logger.debug(f"Typography '{element_id}': {status.value}")
        return issue, color_issue

    @staticmethod
    def _typography_snapshot(node: TextNode) -> TypographySnapshot:
        return TypographySnapshot(
            text=normalize_text(node.text),
            font_family=node.font_family or '',
            font_size=node.font_size,
            font_weight=node.font_weight or '',
            line_height=node.line_height,
            letter_spacing=node.letter_spacing,
            color=node.color or '',
        )

    # --- Section sizes and alignment ---

    def analyze_section_sizes_and_alignment(self, design: DesignSnapshot, rendered: RenderedSnapshot,
                                            result: ComparisonResult) -> None:
        for name in SECTION_NAMES:
            self.compare_section(name, design.sections.get(name), rendered.sections.get(name), result)

    def compare_section(self, section_id: str, design_rect: Optional[Rect], rendered_rect: Optional[Rect],
                        result: ComparisonResult, role: str = 'section') -> None:
        cfg = self.config
        if design_rect is None or rendered_rect is None:
            if design_rect is not None or rendered_rect is not None:
                side = 'design' if design_rect is not None else 'rendered page'
                result.element_sizes.append(ElementSizeIssue(
                    element_id=section_id,
                    role=role,
                    severity=Severity.FAIL,
                    notes=f"Section present only in the {side}",
                ))
            return

        width_diff = abs(design_rect.width - rendered_rect.width)
        height_diff = abs(design_rect.height - rendered_rect.height)
        if width_diff > cfg.pixel_noise_threshold or height_diff > cfg.pixel_noise_threshold:
            result.element_sizes.append(ElementSizeIssue(
                element_id=section_id,
                role=role,
                severity=Severity.WARN,
                design_width=design_rect.width,
                design_height=design_rect.height,
                rendered_width=rendered_rect.width,
                rendered_height=rendered_rect.height,
                width_diff_px=width_diff,
                height_diff_px=height_diff,
                notes="Section size drift beyond noise threshold",
            ))

        for axis, offset in (('horizontal', abs(design_rect.x - rendered_rect.x)),
                             ('vertical', abs(design_rect.y - rendered_rect.y))):
            if offset > cfg.pixel_noise_threshold:
                result.alignment.append(AlignmentIssue(
                    element_id=section_id,
                    axis=axis,
                    offset_px=offset,
                    severity=Severity.FAIL if offset > cfg.spacing_tolerance else Severity.WARN,
                    description=f"{axis.capitalize()} alignment differs for section '{section_id}'",
                ))

    # --- Section spacing ---

    def analyze_section_spacing(self, design: DesignSnapshot, rendered: RenderedSnapshot,
                                result: ComparisonResult) -> None:
        for upper, lower in SPACING_PAIRS:
            rects = (design.sections.get(upper), design.sections.get(lower),
                     rendered.sections.get(upper), rendered.sections.get(lower))
            if any(r is None for r in rects):
                continue
            design_a, design_b, rendered_a, rendered_b = rects
            design_gap = design_b.y - design_a.bottom
            rendered_gap = rendered_b.y - rendered_a.bottom
            diff = abs(design_gap - rendered_gap)
            if diff <= self.config.pixel_noise_threshold:
                continue
            result.spacing.append(SpacingIssue(
                element_id=f"{upper}-{lower}",
                between=f"{upper} and {lower}",
                design_spacing=design_gap,
                rendered_spacing=rendered_gap,
                diff_px=diff,
                # TODO: decide whether gaps beyond spacing_tolerance should FAIL
                severity=Severity.WARN,
                notes=f"Section spacing differs by {round(diff)}px",
            ))

    # --- Interactive elements ---

    def analyze_interactive_elements(self, design: DesignSnapshot, rendered: RenderedSnapshot,
                                     result: ComparisonResult) -> None:
        remaining = list(range(len(rendered.interactive_elements)))
        for i, node in enumerate(design.interactive_nodes):
            key = normalize_text(node.text)
            match_index = None
            if key:
                match_index = next(
                    (j for j in remaining
                     if normalize_text(rendered.interactive_elements[j].text) == key),
                    None,
                )
            element_id = node.name or node.id or f"interactive_{i}"
            if match_index is None:
                result.missing_elements.append(MissingElement(
                    element_id=element_id,
                    type='interactive',
                    text=normalize_text(node.text),
                    notes="Interactive element has no counterpart with the same label",
                ))
                continue
            remaining.remove(match_index)
            self.compare_interactive(element_id, node, rendered.interactive_elements[match_index], result)

        for j in remaining:
            node = rendered.interactive_elements[j]
            result.extra_elements.append(ExtraElement(
                element_id=node.id or f"{node.tag or 'interactive'}_{j}",
                type='interactive',
                text=normalize_text(node.text),
                notes="Rendered interactive element is not present in the design",
            ))

    def compare_interactive(self, element_id: str, design: InteractiveNode, rendered: InteractiveNode,
                            result: ComparisonResult) -> None:
        if design.rect is not None and rendered.rect is not None:
            width_diff = abs(design.rect.width - rendered.rect.width)
            height_diff = abs(design.rect.height - rendered.rect.height)
            if width_diff > self.config.pixel_noise_threshold or height_diff > self.config.pixel_noise_threshold:
                result.element_sizes.append(ElementSizeIssue(
                    element_id=element_id,
                    role=(design.type or rendered.tag or 'interactive').lower(),
                    severity=Severity.WARN,
                    design_width=design.rect.width,
                    design_height=design.rect.height,
                    rendered_width=rendered.rect.width,
                    rendered_height=rendered.rect.height,
                    width_diff_px=width_diff,
                    height_diff_px=height_diff,
                    notes="Interactive element size drift beyond noise threshold",
                ))
        color_issue = self.compare_color(element_id, 'background', design.background_color, rendered.background_color)
        if color_issue is not None:
            result.colors.append(color_issue)

    # --- Colors ---

    def compare_color(self, element_id: str, role: str,
                      design_color: Optional[str], rendered_color: Optional[str]) -> Optional[ColorIssue]:
        """Return a ColorIssue, or None when the colors are close or either is unresolvable."""
        if not design_color or not rendered_color:
            return None
        design_rgb = parse_color(design_color)
        rendered_rgb = parse_color(rendered_color)
        if design_rgb is None or rendered_rgb is None:
            logger.warning(f"Skipping {role} color comparison for '{element_id}': "
                           f"cannot resolve {design_color!r} / {rendered_color!r}")
            return None
        distance = rgb_distance(design_rgb, rendered_rgb)
        if distance < self.config.color_distance_warn:
            return None
        return ColorIssue(
            element_id=element_id,
            role=role,
            design_color=to_hex(design_rgb),
            rendered_color=to_hex(rendered_rgb),
            distance=round(distance, 2),
            severity=Severity.FAIL if distance > self.config.color_distance_fail else Severity.WARN,
            notes=f"Color difference ≈ {round(distance)}",
        )
