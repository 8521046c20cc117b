from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Literal, TypeAlias

import numpy as np
from PIL import Image

from .color import RGBA


GradientKind = Literal["linear", "radial", "conic"]
RepeatMode = Literal["repeat", "repeat-x", "repeat-y", "no-repeat"]


@dataclass(frozen=True)
class SolidPaint:
    color: RGBA


@dataclass(frozen=True)
class ResolvedStop:
    offset: float
    color: RGBA


@dataclass(frozen=True)
class GradientPaint:
    """Gradient in user-space pixels.

    linear: points = ((x0, y0), (x1, y1)); radial: ((x0, y0, r0), (x1, y1, r1));
    conic: points = ((cx, cy),) with `start_angle` in radians.
    """

    kind: GradientKind
    points: tuple[tuple[float, ...], ...]
    stops: tuple[ResolvedStop, ...]
    start_angle: float = 0.0


@dataclass(frozen=True)
class PatternPaint:
    image: Image.Image
    repeat: RepeatMode = "repeat"


Paint: TypeAlias = SolidPaint | GradientPaint | PatternPaint


def evaluate_paint(paint: Paint, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Sample a paint at user-space coordinates; returns straight RGBA floats in [0, 1]."""

    if isinstance(paint, SolidPaint):
        rgba = np.asarray(paint.color, dtype=np.float32) / 255.0
        return np.broadcast_to(rgba, xs.shape + (4,)).copy()
    if isinstance(paint, GradientPaint):
        return _evaluate_gradient(paint, xs, ys)
    return _evaluate_pattern(paint, xs, ys)


def _evaluate_gradient(paint: GradientPaint, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    valid = np.ones(xs.shape, dtype=bool)
    if paint.kind == "linear":
        (x0, y0), (x1, y1) = paint.points[0][:2], paint.points[1][:2]
        dx = x1 - x0
        dy = y1 - y0
        denom = dx * dx + dy * dy
        if denom == 0:
            return np.zeros(xs.shape + (4,), dtype=np.float32)
        t = ((xs - x0) * dx + (ys - y0) * dy) / denom
    elif paint.kind == "radial":
        t, valid = _radial_parameter(paint.points[0], paint.points[1], xs, ys)
    else:
        cx, cy = paint.points[0][:2]
        angle = np.arctan2(ys - cy, xs - cx) - paint.start_angle
        t = np.mod(angle, 2.0 * math.pi) / (2.0 * math.pi)
    out = _interpolate_stops(paint.stops, np.clip(t, 0.0, 1.0))
    out[~valid] = 0.0
    return out


def _radial_parameter(
    start: tuple[float, ...],
    end: tuple[float, ...],
    xs: np.ndarray,
    ys: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    x0, y0, r0 = start[0], start[1], start[2] if len(start) > 2 else 0.0
    x1, y1, r1 = end[0], end[1], end[2] if len(end) > 2 else 0.0
    cdx = x1 - x0
    cdy = y1 - y0
    dr = r1 - r0
    pdx = xs - x0
    pdy = ys - y0
    a = cdx * cdx + cdy * cdy - dr * dr
    b = pdx * cdx + pdy * cdy + r0 * dr
    c = pdx * pdx + pdy * pdy - r0 * r0
    if abs(a) < 1e-9:
        with np.errstate(divide="ignore", invalid="ignore"):
            omega = np.where(b != 0, c / (2.0 * b), -np.inf)
        valid = (r0 + omega * dr) >= 0
        return omega, valid & np.isfinite(omega)
    disc = b * b - a * c
    root = np.sqrt(np.maximum(disc, 0.0))
    hi = (b + root) / a
    lo = (b - root) / a
    big = np.maximum(hi, lo)
    small = np.minimum(hi, lo)
    omega = np.where(r0 + big * dr >= 0, big, small)
    valid = (disc >= 0) & ((r0 + omega * dr) >= 0)
    return omega, valid


def _interpolate_stops(stops: tuple[ResolvedStop, ...], t: np.ndarray) -> np.ndarray:
    if not stops:
        return np.zeros(t.shape + (4,), dtype=np.float32)
    ordered = sorted(stops, key=lambda stop: stop.offset)
    offsets = np.asarray([stop.offset for stop in ordered], dtype=np.float64)
    colors = np.asarray([stop.color for stop in ordered], dtype=np.float64) / 255.0
    out = np.empty(t.shape + (4,), dtype=np.float32)
    for channel in range(4):
        out[..., channel] = np.interp(t, offsets, colors[:, channel])
    return out


def _evaluate_pattern(paint: PatternPaint, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    tile = np.asarray(paint.image.convert("RGBA"), dtype=np.float32) / 255.0
    th, tw = tile.shape[:2]
    ix = np.floor(xs).astype(np.int64)
    iy = np.floor(ys).astype(np.int64)
    inside = np.ones(xs.shape, dtype=bool)
    if paint.repeat in ("repeat", "repeat-x"):
        ix = np.mod(ix, tw)
    else:
        inside &= (ix >= 0) & (ix < tw)
    if paint.repeat in ("repeat", "repeat-y"):
        iy = np.mod(iy, th)
    else:
        inside &= (iy >= 0) & (iy < th)
    out = tile[np.clip(iy, 0, th - 1), np.clip(ix, 0, tw - 1)]
    out[~inside] = 0.0
    return out
