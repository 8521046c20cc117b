from __future__ import annotations

from typing import Literal

from .bounding_box import Point


Centring = Literal[
    "start",
    "start-top",
    "start-bottom",
    "center",
    "center-top",
    "center-bottom",
    "end",
    "end-top",
    "end-bottom",
    "none",
]

CENTRINGS: tuple[str, ...] = (
    "start",
    "start-top",
    "start-bottom",
    "center",
    "center-top",
    "center-bottom",
    "end",
    "end-top",
    "end-bottom",
    "none",
)

# Kinds whose position names an anchor on their box rather than a literal start point.
BOX_KINDS = frozenset({"image", "morph", "clear"})


def validate_centring(anchor: str) -> Centring:
    if anchor not in CENTRINGS:
        raise ValueError(f"centring must be one of {CENTRINGS}, got `{anchor}`")
    return anchor


def align(anchor: str, kind: str, width: float, height: float, x: float, y: float) -> Point:
    """Map an anchor point to the top-left draw origin of a layer's box.

    Only box-shaped kinds shift; every other kind draws from `(x, y)` unchanged.
    """

    validate_centring(anchor)
    if kind not in BOX_KINDS or anchor == "none":
        return Point(x, y)
    column, _, row = anchor.partition("-")
    if column == "start":
        dx = 0.0
    elif column == "center":
        dx = width / 2.0
    else:
        dx = width
    if row == "top":
        dy = 0.0
    elif row == "bottom":
        dy = height
    else:
        dy = height / 2.0
    return Point(x - dx, y - dy)
