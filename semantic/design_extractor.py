"""
Design Extractor Module
Turns a design-tool node export (JSON) into a DesignSnapshot.
"""

import logging
from typing import Dict, Iterator, List, Mapping, Optional

from .errors import SnapshotError
from .snapshots import (
    DesignSnapshot,
    InteractiveNode,
    Rect,
    Sections,
    TextNode,
    as_number,
    as_text,
)
from utils.color_utils import to_hex

logger = logging.getLogger(__name__)

FRAME_TYPES = {'FRAME', 'COMPONENT', 'INSTANCE'}
INTERACTIVE_TYPES = {'FRAME', 'GROUP', 'INSTANCE', 'COMPONENT'}
SHAPE_TYPES = {'RECTANGLE', 'ELLIPSE'}

# Section name fragments matched case-insensitively against layer names
SECTION_NAME_HINTS = {
    'header': 'header',
    'hero': 'hero',
    'features': 'feature',
    'ctas': 'cta',
    'footer': 'footer',
}

DEFAULT_FONT_SIZE = 16.0
DEFAULT_FONT_WEIGHT = 400


def _children(node: Mapping) -> List[Mapping]:
    children = node.get('children')
    if not isinstance(children, list):
        return []
    return [c for c in children if isinstance(c, Mapping)]


def _walk(node: Mapping) -> Iterator[Mapping]:
    """Depth-first, pre-order traversal."""
    yield node
    for child in _children(node):
        yield from _walk(child)


def _is_visible(node: Mapping) -> bool:
    return node.get('visible', True) is not False


def unwrap_nodes_response(root: Mapping) -> Mapping:
    """Unwrap a {'nodes': {id: {'document': ...}}} API response to its first document."""
    nodes = root.get('nodes')
    if isinstance(nodes, Mapping):
        for node_data in nodes.values():
            if isinstance(node_data, Mapping) and isinstance(node_data.get('document'), Mapping):
                return node_data['document']
            break
    return root


def find_first_frame(root: Mapping) -> Optional[Mapping]:
    for node in _walk(root):
        if as_text(node.get('type')) in FRAME_TYPES:
            return node
    return None


def find_by_name(root: Mapping, fragment: str) -> Optional[Mapping]:
    fragment = fragment.lower()
    for node in _walk(root):
        if fragment in as_text(node.get('name')).lower():
            return node
    return None


def _box_rect(node: Mapping) -> Optional[Rect]:
    box = node.get('absoluteBoundingBox')
    if not isinstance(box, Mapping):
        return None
    return Rect(
        x=as_number(box.get('x')),
        y=as_number(box.get('y')),
        width=as_number(box.get('width')),
        height=as_number(box.get('height')),
        padding_left=as_number(node.get('paddingLeft')),
        padding_right=as_number(node.get('paddingRight')),
        padding_top=as_number(node.get('paddingTop')),
        padding_bottom=as_number(node.get('paddingBottom')),
        item_spacing=as_number(node.get('itemSpacing')),
    )


def color_from_fills(fills) -> Optional[str]:
    """Hex color of the first visible SOLID fill; channels are 0-1 floats."""
    if not isinstance(fills, list):
        return None
    for fill in fills:
        if not isinstance(fill, Mapping):
            continue
        if as_text(fill.get('type')).upper() == 'SOLID' and _is_visible(fill):
            color = fill.get('color')
            if isinstance(color, Mapping):
                return to_hex(tuple(round(as_number(color.get(c)) * 255.0) for c in ('r', 'g', 'b')))
    return None


def _text_node(node: Mapping, parent_id: Optional[str]) -> TextNode:
    box = node.get('absoluteBoundingBox') if isinstance(node.get('absoluteBoundingBox'), Mapping) else {}
    style = node.get('style') if isinstance(node.get('style'), Mapping) else {}

    font_size = as_number(style.get('fontSize'), DEFAULT_FONT_SIZE)
    if 'lineHeightPx' in style:
        line_height = as_number(style.get('lineHeightPx'))
    elif 'lineHeightPercentFontSize' in style:
        line_height = font_size * as_number(style.get('lineHeightPercentFontSize')) / 100.0
    else:
        line_height = 0.0

    return TextNode(
        id=as_text(node.get('id')),
        name=as_text(node.get('name')),
        text=as_text(node.get('characters')),
        x=as_number(box.get('x')),
        y=as_number(box.get('y')),
        font_family=as_text(style.get('fontFamily')),
        font_size=font_size,
        font_weight=str(int(as_number(style.get('fontWeight'), DEFAULT_FONT_WEIGHT))),
        line_height=line_height,
        letter_spacing=as_number(style.get('letterSpacing')),
        color=color_from_fills(node.get('fills')),
        parent_id=parent_id,
        type=as_text(node.get('type')) or None,
    )


def collect_text_nodes(root: Mapping, parent_id: Optional[str] = None) -> List[TextNode]:
    out = []
    node_id = as_text(root.get('id'))
    if as_text(root.get('type')).upper() == 'TEXT' and _is_visible(root):
        out.append(_text_node(root, parent_id))
    for child in _children(root):
        out.extend(collect_text_nodes(child, node_id))
    return out


def first_text_content(node: Mapping) -> Optional[str]:
    if as_text(node.get('type')).upper() == 'TEXT':
        return as_text(node.get('characters'))
    for child in _children(node):
        text = first_text_content(child)
        if text:
            return text
    return None


def background_color(node: Mapping) -> Optional[str]:
    color = color_from_fills(node.get('fills'))
    if color is not None:
        return color
    for child in _children(node):
        if as_text(child.get('type')) in SHAPE_TYPES:
            color = color_from_fills(child.get('fills'))
            if color is not None:
                return color
    return None


def collect_interactive_nodes(root: Mapping, parent_id: Optional[str] = None) -> List[InteractiveNode]:
    out = []
    node_id = as_text(root.get('id'))
    if as_text(root.get('type')) in INTERACTIVE_TYPES:
        label = first_text_content(root)
        if label:
            out.append(InteractiveNode(
                id=node_id,
                name=as_text(root.get('name')),
                text=label,
                rect=_box_rect(root),
                background_color=background_color(root),
                corner_radius=as_number(root.get('cornerRadius')),
                parent_id=parent_id,
                type=as_text(root.get('type')),
            ))
    for child in _children(root):
        out.extend(collect_interactive_nodes(child, node_id))
    return out


def extract_design_snapshot(root: Mapping) -> DesignSnapshot:
    """
    Build a DesignSnapshot from a node tree.

    The first FRAME/COMPONENT/INSTANCE is the page frame. Landmark sections are
    located by layer-name heuristics; a tree without a frame yields an empty
    snapshot rather than an error.
    """
    if not isinstance(root, Mapping):
        raise SnapshotError('design', f"expected a node tree object, got {type(root).__name__}")
    frame = find_first_frame(unwrap_nodes_response(root))
    if frame is None:
        logger.warning("No frame node found in design tree; returning an empty snapshot")
        return DesignSnapshot()

    box = frame.get('absoluteBoundingBox') if isinstance(frame.get('absoluteBoundingBox'), Mapping) else {}
    sections: Dict[str, Optional[Rect]] = {}
    for name, hint in SECTION_NAME_HINTS.items():
        match = find_by_name(frame, hint)
        sections[name] = _box_rect(match) if match is not None else None

    text_nodes = sorted(collect_text_nodes(frame), key=lambda n: (n.y, n.x))
    interactive_nodes = collect_interactive_nodes(frame)
    logger.info(f"Extracted design frame '{as_text(frame.get('name'))}': "
                f"{len(text_nodes)} text nodes, {len(interactive_nodes)} interactive nodes")

    return DesignSnapshot(
        frame_width=float(int(as_number(box.get('width')))),
        frame_height=float(int(as_number(box.get('height')))),
        sections=Sections(**sections),
        text_nodes=tuple(text_nodes),
        interactive_nodes=tuple(interactive_nodes),
    )
