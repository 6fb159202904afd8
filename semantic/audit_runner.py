"""
Design Audit Interface
Coordinates the semantic comparison and the pixel comparison for one or more viewports.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .comparison_result import ComparisonResult, Severity
from .config import AuditConfig, DEFAULT_CONFIG
from .semantic_analyzer import SemanticAnalyzer
from visual.compare_images import PixelDiffEngine
from visual.diff_result import DiffResult
from visual.image_aligner import ImageInput

logger = logging.getLogger(__name__)


class Viewport(Enum):
    DESKTOP = ('Desktop', 1920, 1080)
    TABLET = ('Tablet', 768, 1024)
    MOBILE = ('Mobile', 375, 667)

    def __init__(self, label: str, width: int, height: int):
        self.label = label
        self.width = width
        self.height = height

    @property
    def dimension_string(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass
class AuditReport:
    viewport: Viewport
    semantic: ComparisonResult
    visual: Optional[DiffResult] = None

    def to_dict(self) -> Dict:
        report = {
            'viewport': {
                'name': self.viewport.label,
                'width': self.viewport.width,
                'height': self.viewport.height,
            },
            'semantic': self.semantic.to_dict(),
        }
        if self.visual is not None:
            report['visual'] = self.visual.to_dict()
        return report

    def summary_text(self) -> str:
        """Human-readable one-paragraph summary."""
        semantic = self.semantic
        parts = [f"{self.viewport.label} ({self.viewport.dimension_string}): "
                 f"semantic {semantic.summary.severity.value}"]
        failing = [i for i in semantic.all_issues() if i.severity != Severity.PASS]
        if not failing:
            parts.append("no semantic discrepancies")
        else:
            if semantic.missing_elements:
                parts.append(f"{len(semantic.missing_elements)} missing element(s)")
            if semantic.extra_elements:
                parts.append(f"{len(semantic.extra_elements)} extra element(s)")
            parts.append(f"{len(failing)} finding(s) above PASS")
        if self.visual is not None:
            parts.append(f"pixel mismatch {self.visual.mismatch_percent:.2f}% ({self.visual.severity.label})")
        return "; ".join(parts)


class DesignAuditor:
    """
    One configured auditor can be reused for many independent comparisons;
    it keeps no state between calls.
    """

    def __init__(self, config: AuditConfig = DEFAULT_CONFIG):
        self.config = config
        self.semantic_analyzer = SemanticAnalyzer(config)
        self.diff_engine = PixelDiffEngine(config)

    def audit(self, design: Any, rendered: Any,
              design_image: Optional[ImageInput] = None,
              rendered_image: Optional[ImageInput] = None,
              viewport: Viewport = Viewport.DESKTOP) -> AuditReport:
        """Run the semantic comparison, and the pixel comparison when both captures are given."""
        logger.info(f"Starting audit for viewport {viewport.label} ({viewport.dimension_string})")
        semantic = self.semantic_analyzer.analyze(design, rendered)

        visual = None
        if design_image is not None or rendered_image is not None:
            # one capture without the other is an input error, raised by the aligner
            visual = self.diff_engine.compare(design_image, rendered_image)
        else:
            logger.info("Skipping pixel comparison (no captures supplied)")

        report = AuditReport(viewport=viewport, semantic=semantic, visual=visual)
        logger.info(f"Audit complete for {viewport.label}: semantic severity {semantic.summary.severity.value}"
                    + (f", visual severity {visual.severity.label}" if visual is not None else ""))
        return report

    def audit_viewports(self, inputs: Mapping[Viewport, Mapping[str, Any]]) -> Dict[Viewport, AuditReport]:
        """
        Audit several viewports. Each entry maps a viewport to keyword arguments
        for audit(): design, rendered and optionally design_image / rendered_image.
        """
        return {viewport: self.audit(viewport=viewport, **kwargs) for viewport, kwargs in inputs.items()}
