from __future__ import annotations

import re

from PIL import ImageColor


RGBA = tuple[int, int, int, int]
TRANSPARENT: RGBA = (0, 0, 0, 0)

_RGBA_FN_RE = re.compile(r"^rgba?\(\s*([^)]*)\)$", re.IGNORECASE)
_HSLA_FN_RE = re.compile(r"^hsla\(\s*([^,]+),([^,]+),([^,]+),([^)]+)\)$", re.IGNORECASE)


def parse_color(value: str) -> RGBA:
    """Parse a CSS color string into 8-bit RGBA.

    Function notations take CSS alpha in [0, 1]; names and hex forms go through Pillow.
    """

    if not isinstance(value, str):
        raise TypeError(f"color must be a string, got {type(value).__name__}")
    raw = value.strip()
    if not raw:
        raise ValueError("color must be non-empty")
    if raw.lower() == "transparent":
        return TRANSPARENT
    match = _RGBA_FN_RE.match(raw)
    if match:
        parts = [p.strip() for p in re.split(r"[,\s/]+", match.group(1).strip()) if p.strip()]
        if len(parts) not in (3, 4):
            raise ValueError(f"invalid color `{value}`")
        r, g, b = (_channel(p) for p in parts[:3])
        a = _alpha(parts[3]) if len(parts) == 4 else 255
        return (r, g, b, a)
    match = _HSLA_FN_RE.match(raw)
    if match:
        r, g, b = ImageColor.getrgb(f"hsl({match.group(1)},{match.group(2)},{match.group(3)})")[:3]
        return (r, g, b, _alpha(match.group(4).strip()))
    try:
        rgb = ImageColor.getrgb(raw)
    except ValueError as exc:
        raise ValueError(f"invalid color `{value}`") from exc
    if len(rgb) == 4:
        return (int(rgb[0]), int(rgb[1]), int(rgb[2]), int(rgb[3]))
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]), 255)


def is_color(value: object) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parse_color(value)
    except ValueError:
        return False
    return True


def with_opacity(color: RGBA, opacity: float) -> RGBA:
    r, g, b, a = color
    alpha = int(round(max(0.0, min(1.0, (a / 255.0) * opacity)) * 255.0))
    return (r, g, b, alpha)


def to_hex(color: RGBA) -> str:
    return "#{:02x}{:02x}{:02x}".format(color[0], color[1], color[2])


def _channel(raw: str) -> int:
    if raw.endswith("%"):
        return int(round(max(0.0, min(100.0, float(raw[:-1]))) * 2.55))
    return int(max(0, min(255, round(float(raw)))))


def _alpha(raw: str) -> int:
    if raw.endswith("%"):
        return int(round(max(0.0, min(100.0, float(raw[:-1]))) * 2.55))
    return int(round(max(0.0, min(1.0, float(raw))) * 255.0))
