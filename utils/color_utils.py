"""
Color Utilities Module
Parses CSS and design-tool color strings and measures approximate color distance.

The distance is a Euclidean RGB distance rescaled to 0-100. It is a cheap
stand-in for a perceptual delta, not a CIE formula.
"""

import math
import re
from typing import Optional, Tuple

RGB = Tuple[int, int, int]

MAX_RGB_DISTANCE = math.sqrt(3 * 255 * 255)

NAMED_COLORS = {
    'white': (255, 255, 255),
    'black': (0, 0, 0),
}

_HEX_RE = re.compile(r'#?([0-9a-f]{3}|[0-9a-f]{6}|[0-9a-f]{8})')
_RGB_FUNC_RE = re.compile(r'rgba?\(([^)]*)\)')


def _clamp(value: int, low: int = 0, high: int = 255) -> int:
    return max(low, min(high, value))


def parse_hex_color(value: str) -> Optional[RGB]:
    """Parse #rgb, #rrggbb or #rrggbbaa (alpha is dropped)."""
    if not isinstance(value, str):
        return None
    match = _HEX_RE.fullmatch(value.strip().lower())
    if not match:
        return None
    hexval = match.group(1)
    if len(hexval) == 3:
        hexval = ''.join(c * 2 for c in hexval)
    return (int(hexval[0:2], 16), int(hexval[2:4], 16), int(hexval[4:6], 16))


def _parse_channel(part: str) -> Optional[int]:
    part = part.strip()
    try:
        if part.endswith('%'):
            return _clamp(round(255.0 * float(part[:-1]) / 100.0))
        return _clamp(round(float(part)))
    except ValueError:
        return None


def parse_color(value: Optional[str]) -> Optional[RGB]:
    """
    Parse a color string from either snapshot side.

    Returns None for anything unresolvable, including 'transparent', so the
    caller can skip that one comparison.
    """
    if not isinstance(value, str):
        return None
    s = value.strip().lower()
    if not s:
        return None
    if s in NAMED_COLORS:
        return NAMED_COLORS[s]
    func = _RGB_FUNC_RE.fullmatch(s)
    if func:
        # rgb(1, 2, 3), rgba(1, 2, 3, 0.5) and the space separated form
        parts = [p for p in re.split(r'[,\s/]+', func.group(1).strip()) if p]
        if len(parts) < 3:
            return None
        channels = [_parse_channel(p) for p in parts[:3]]
        if any(c is None for c in channels):
            return None
        return tuple(channels)
    return parse_hex_color(s)


def to_hex(rgb: RGB) -> str:
    return '#{:02X}{:02X}{:02X}'.format(*(_clamp(int(c)) for c in rgb))


def rgb_distance(rgb1: RGB, rgb2: RGB) -> float:
    """Euclidean RGB distance rescaled to a 0-100 range."""
    dr = rgb1[0] - rgb2[0]
    dg = rgb1[1] - rgb2[1]
    db = rgb1[2] - rgb2[2]
    return math.sqrt(dr * dr + dg * dg + db * db) / MAX_RGB_DISTANCE * 100.0


def color_distance(color1: Optional[str], color2: Optional[str]) -> Optional[float]:
    """Distance between two color strings, or None if either is unresolvable."""
    rgb1 = parse_color(color1)
    rgb2 = parse_color(color2)
    if rgb1 is None or rgb2 is None:
        return None
    return rgb_distance(rgb1, rgb2)
