"""
Snapshot Models Module
Typed containers for the design tree and the rendered page tree.

Both trees arrive as loosely-typed JSON produced by external extraction
(a design-tool node export and an in-page inspection script). They are
ingested once here; every accessor falls back to a documented default
instead of raising on a missing or malformed field.
"""

import logging
import math
import re
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import SnapshotError

logger = logging.getLogger(__name__)

SECTION_NAMES = ('header', 'hero', 'features', 'ctas', 'footer')

HEADING_TAGS = {'h1', 'h2', 'h3', 'h4', 'h5', 'h6'}
PARAGRAPH_TAGS = {'p', 'span', 'div'}
ACTIONABLE_TAGS = {'a', 'button', 'li'}

_NUMBER_RE = re.compile(r'\s*([+-]?\d*\.?\d+(?:e[+-]?\d+)?)\s*(px)?\s*', re.IGNORECASE)


def _pick(data: Mapping, *keys, default=None):
    """Return the first present, non-null value among snake_case/camelCase aliases."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def as_number(value: Any, default: float = 0.0) -> float:
    """Coerce a JSON value to a finite float; '16px' is accepted."""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else default
    if isinstance(value, str):
        match = _NUMBER_RE.fullmatch(value)
        if match:
            number = float(match.group(1))
            return number if math.isfinite(number) else default
    return default


def as_text(value: Any, default: str = '') -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # e.g. a numeric font weight
        return str(int(value)) if float(value).is_integer() else str(value)
    return default


def as_optional_text(value: Any) -> Optional[str]:
    text = as_text(value)
    return text or None


def _as_list(data: Mapping, source: str, *keys) -> List[Mapping]:
    raw = _pick(data, *keys, default=[])
    if not isinstance(raw, (list, tuple)):
        logger.warning(f"{source} snapshot: '{keys[0]}' is not a list, treating as empty")
        return []
    items = []
    for i, item in enumerate(raw):
        if isinstance(item, Mapping):
            items.append(item)
        else:
            logger.warning(f"{source} snapshot: skipping malformed {keys[0]} entry #{i}")
    return items


@dataclass(frozen=True)
class Rect:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    padding_left: float = 0.0
    padding_right: float = 0.0
    padding_top: float = 0.0
    padding_bottom: float = 0.0
    item_spacing: float = 0.0

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @classmethod
    def from_dict(cls, data: Any) -> Optional['Rect']:
        """Parse a rect; returns None when the value is absent, a zero Rect when malformed."""
        if data is None:
            return None
        if not isinstance(data, Mapping):
            logger.warning(f"Malformed rect {data!r}, using a zero Rect")
            return cls()
        padding = data.get('padding') if isinstance(data.get('padding'), Mapping) else {}
        return cls(
            x=as_number(data.get('x')),
            y=as_number(data.get('y')),
            width=as_number(data.get('width')),
            height=as_number(data.get('height')),
            padding_left=as_number(_pick(data, 'padding_left', 'paddingLeft', default=padding.get('left'))),
            padding_right=as_number(_pick(data, 'padding_right', 'paddingRight', default=padding.get('right'))),
            padding_top=as_number(_pick(data, 'padding_top', 'paddingTop', default=padding.get('top'))),
            padding_bottom=as_number(_pick(data, 'padding_bottom', 'paddingBottom', default=padding.get('bottom'))),
            item_spacing=as_number(_pick(data, 'item_spacing', 'itemSpacing')),
        )

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class Sections:
    header: Optional[Rect] = None
    hero: Optional[Rect] = None
    features: Optional[Rect] = None
    ctas: Optional[Rect] = None
    footer: Optional[Rect] = None

    def get(self, name: str) -> Optional[Rect]:
        return getattr(self, name, None) if name in SECTION_NAMES else None

    def present(self) -> List[str]:
        """Names of the landmarks that exist, in canonical order."""
        return [name for name in SECTION_NAMES if self.get(name) is not None]

    @classmethod
    def from_dict(cls, data: Any) -> 'Sections':
        if not isinstance(data, Mapping):
            return cls()
        return cls(**{name: Rect.from_dict(data.get(name)) for name in SECTION_NAMES})

    def to_dict(self) -> Dict:
        return {name: rect.to_dict() for name in SECTION_NAMES
                if (rect := self.get(name)) is not None}


@dataclass(frozen=True)
class TextNode:
    """A text node from either side. Design nodes carry name/type, rendered nodes carry tag."""
    id: str = ''
    name: str = ''
    text: str = ''
    x: float = 0.0
    y: float = 0.0
    font_family: str = ''
    font_size: float = 0.0
    font_weight: str = ''
    line_height: float = 0.0
    letter_spacing: float = 0.0
    color: Optional[str] = None
    parent_id: Optional[str] = None
    type: Optional[str] = None
    tag: Optional[str] = None

    @property
    def role(self) -> Optional[str]:
        """Structural role of a rendered node: heading, paragraph or actionable."""
        tag = (self.tag or '').lower()
        if tag in HEADING_TAGS:
            return 'heading'
        if tag in PARAGRAPH_TAGS:
            return 'paragraph'
        if tag in ACTIONABLE_TAGS:
            return 'actionable'
        return None

    @classmethod
    def from_dict(cls, data: Mapping) -> 'TextNode':
        return cls(
            id=as_text(data.get('id')),
            name=as_text(data.get('name')),
            text=as_text(_pick(data, 'text', 'characters')),
            x=as_number(data.get('x')),
            y=as_number(data.get('y')),
            font_family=as_text(_pick(data, 'font_family', 'fontFamily')),
            font_size=as_number(_pick(data, 'font_size', 'fontSize')),
            font_weight=as_text(_pick(data, 'font_weight', 'fontWeight')),
            line_height=as_number(_pick(data, 'line_height', 'lineHeight')),
            letter_spacing=as_number(_pick(data, 'letter_spacing', 'letterSpacing')),
            color=as_optional_text(data.get('color')),
            parent_id=as_optional_text(_pick(data, 'parent_id', 'parentId')),
            type=as_optional_text(data.get('type')),
            tag=as_optional_text(data.get('tag')),
        )

    def to_dict(self) -> Dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class InteractiveNode:
    id: str = ''
    name: str = ''
    text: str = ''
    rect: Optional[Rect] = None
    background_color: Optional[str] = None
    corner_radius: float = 0.0
    parent_id: Optional[str] = None
    type: Optional[str] = None
    tag: Optional[str] = None
    color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping) -> 'InteractiveNode':
        return cls(
            id=as_text(data.get('id')),
            name=as_text(data.get('name')),
            text=as_text(data.get('text')),
            rect=Rect.from_dict(data.get('rect')),
            background_color=as_optional_text(_pick(data, 'background_color', 'backgroundColor')),
            corner_radius=as_number(_pick(data, 'corner_radius', 'cornerRadius', 'border_radius', 'borderRadius')),
            parent_id=as_optional_text(_pick(data, 'parent_id', 'parentId')),
            type=as_optional_text(data.get('type')),
            tag=as_optional_text(data.get('tag')),
            color=as_optional_text(data.get('color')),
        )

    def to_dict(self) -> Dict:
        result = {k: v for k, v in asdict(self).items() if v is not None and k != 'rect'}
        if self.rect is not None:
            result['rect'] = self.rect.to_dict()
        return result


def _require_mapping(data: Any, source: str) -> Mapping:
    if data is None:
        raise SnapshotError(source, "snapshot is missing")
    if not isinstance(data, Mapping):
        raise SnapshotError(source, f"expected a JSON object, got {type(data).__name__}")
    return data


@dataclass(frozen=True)
class DesignSnapshot:
    frame_width: float = 0.0
    frame_height: float = 0.0
    sections: Sections = field(default_factory=Sections)
    text_nodes: Tuple[TextNode, ...] = ()
    interactive_nodes: Tuple[InteractiveNode, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> 'DesignSnapshot':
        data = _require_mapping(data, 'design')
        return cls(
            frame_width=as_number(_pick(data, 'frame_width', 'frameWidth')),
            frame_height=as_number(_pick(data, 'frame_height', 'frameHeight')),
            sections=Sections.from_dict(data.get('sections')),
            text_nodes=tuple(TextNode.from_dict(n) for n in _as_list(data, 'design', 'text_nodes', 'textNodes')),
            interactive_nodes=tuple(
                InteractiveNode.from_dict(n)
                for n in _as_list(data, 'design', 'interactive_nodes', 'interactiveNodes')
            ),
        )

    def to_dict(self) -> Dict:
        return {
            'frame_width': self.frame_width,
            'frame_height': self.frame_height,
            'sections': self.sections.to_dict(),
            'text_nodes': [n.to_dict() for n in self.text_nodes],
            'interactive_nodes': [n.to_dict() for n in self.interactive_nodes],
        }


@dataclass(frozen=True)
class RenderedSnapshot:
    viewport_width: float = 0.0
    viewport_height: float = 0.0
    document_width: float = 0.0
    document_height: float = 0.0
    sections: Sections = field(default_factory=Sections)
    text_nodes: Tuple[TextNode, ...] = ()
    interactive_elements: Tuple[InteractiveNode, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> 'RenderedSnapshot':
        data = _require_mapping(data, 'rendered')
        return cls(
            viewport_width=as_number(_pick(data, 'viewport_width', 'viewportWidth')),
            viewport_height=as_number(_pick(data, 'viewport_height', 'viewportHeight')),
            document_width=as_number(_pick(data, 'document_width', 'documentWidth')),
            document_height=as_number(_pick(data, 'document_height', 'documentHeight')),
            sections=Sections.from_dict(data.get('sections')),
            text_nodes=tuple(TextNode.from_dict(n) for n in _as_list(data, 'rendered', 'text_nodes', 'textNodes')),
            interactive_elements=tuple(
                InteractiveNode.from_dict(n)
                for n in _as_list(data, 'rendered', 'interactive_elements', 'interactiveElements')
            ),
        )

    def to_dict(self) -> Dict:
        return {
            'viewport_width': self.viewport_width,
            'viewport_height': self.viewport_height,
            'document_width': self.document_width,
            'document_height': self.document_height,
            'sections': self.sections.to_dict(),
            'text_nodes': [n.to_dict() for n in self.text_nodes],
            'interactive_elements': [n.to_dict() for n in self.interactive_elements],
        }
