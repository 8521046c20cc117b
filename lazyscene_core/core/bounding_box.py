from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np


DEFAULT_SAMPLE_STEPS = 100


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class BoundingBox:
    min: Point
    max: Point
    center: Point
    width: float
    height: float

    def to_dict(self) -> dict[str, object]:
        return {
            "min": {"x": self.min.x, "y": self.min.y},
            "max": {"x": self.max.x, "y": self.max.y},
            "center": {"x": self.center.x, "y": self.center.y},
            "width": self.width,
            "height": self.height,
        }


def bezier_bounding_box(
    points: Sequence[Point | tuple[float, float]],
    *,
    steps: int = DEFAULT_SAMPLE_STEPS,
) -> BoundingBox:
    """Approximate bounding box of a quadratic (3 points) or cubic (4 points) Bezier curve.

    The curve is sampled at `steps + 1` evenly spaced parameters over [0, 1].
    """

    if steps <= 0:
        raise ValueError("steps must be > 0")
    pts = _as_array(points)
    if pts.shape[0] not in (3, 4):
        raise ValueError(f"bezier bounding box needs 3 or 4 points, got {pts.shape[0]}")
    t = np.linspace(0.0, 1.0, steps + 1)[:, None]
    u = 1.0 - t
    if pts.shape[0] == 3:
        samples = (u**2) * pts[0] + 2.0 * u * t * pts[1] + (t**2) * pts[2]
    else:
        samples = (u**3) * pts[0] + 3.0 * (u**2) * t * pts[1] + 3.0 * u * (t**2) * pts[2] + (t**3) * pts[3]
    return _box_from_extents(samples.min(axis=0), samples.max(axis=0))


def line_bounding_box(start: Point | tuple[float, float], end: Point | tuple[float, float]) -> BoundingBox:
    """Box spanned by a line; width/height keep the sign of `end - start`."""

    pts = _as_array((start, end))
    lo = pts.min(axis=0)
    hi = pts.max(axis=0)
    return BoundingBox(
        min=Point(float(lo[0]), float(lo[1])),
        max=Point(float(hi[0]), float(hi[1])),
        center=Point(float((lo[0] + hi[0]) / 2.0), float((lo[1] + hi[1]) / 2.0)),
        width=float(pts[1][0] - pts[0][0]),
        height=float(pts[1][1] - pts[0][1]),
    )


def points_bounding_box(points: Iterable[Point | tuple[float, float]]) -> BoundingBox:
    pts = _as_array(list(points))
    if pts.shape[0] == 0:
        raise ValueError("points_bounding_box needs at least one point")
    return _box_from_extents(pts.min(axis=0), pts.max(axis=0))


def _box_from_extents(lo: np.ndarray, hi: np.ndarray) -> BoundingBox:
    return BoundingBox(
        min=Point(float(lo[0]), float(lo[1])),
        max=Point(float(hi[0]), float(hi[1])),
        center=Point(float((lo[0] + hi[0]) / 2.0), float((lo[1] + hi[1]) / 2.0)),
        width=float(hi[0] - lo[0]),
        height=float(hi[1] - lo[1]),
    )


def _as_array(points: Sequence[Point | tuple[float, float]]) -> np.ndarray:
    rows = []
    for point in points:
        if isinstance(point, Point):
            rows.append((point.x, point.y))
        elif isinstance(point, (tuple, list)) and len(point) == 2:
            rows.append((float(point[0]), float(point[1])))
        else:
            raise TypeError("points must be Point or (x, y) pairs")
    return np.asarray(rows, dtype=np.float64).reshape(-1, 2)
