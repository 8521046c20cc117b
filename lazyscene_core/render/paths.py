from __future__ import annotations

from dataclasses import dataclass
import math
import re
from typing import Iterable, Sequence

import numpy as np

from .matrix import Affine


TAU = 2.0 * math.pi

# Normalized commands: M/L (x, y), Q (cpx, cpy, x, y), C (c1x, c1y, c2x, c2y, x, y),
# E (cx, cy, rx, ry, rotation, start, sweep), Z ().
PathCommand = tuple[str, tuple[float, ...]]

_TOKEN_RE = re.compile(r"[MmLlHhVvCcSsQqTtAaZz]|[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_ARG_COUNTS = {"M": 2, "L": 2, "H": 1, "V": 1, "C": 6, "S": 4, "Q": 4, "T": 2, "A": 7, "Z": 0}


@dataclass(frozen=True)
class Subpath:
    points: tuple[tuple[float, float], ...]
    closed: bool


class PathData:
    """Recorded path geometry with canvas-style builder methods."""

    def __init__(self, commands: Iterable[PathCommand] = ()) -> None:
        self._commands: list[PathCommand] = []
        self._start: tuple[float, float] | None = None
        self._current: tuple[float, float] | None = None
        for op, args in commands:
            self._append(op, tuple(float(v) for v in args))

    @property
    def commands(self) -> list[PathCommand]:
        return list(self._commands)

    @property
    def current_point(self) -> tuple[float, float] | None:
        return self._current

    def is_empty(self) -> bool:
        return not self._commands

    def copy(self) -> "PathData":
        return PathData(self._commands)

    def move_to(self, x: float, y: float) -> "PathData":
        self._append("M", (float(x), float(y)))
        return self

    def line_to(self, x: float, y: float) -> "PathData":
        if self._current is None:
            return self.move_to(x, y)
        self._append("L", (float(x), float(y)))
        return self

    def quadratic_curve_to(self, cpx: float, cpy: float, x: float, y: float) -> "PathData":
        if self._current is None:
            self.move_to(cpx, cpy)
        self._append("Q", (float(cpx), float(cpy), float(x), float(y)))
        return self

    def bezier_curve_to(self, cp1x: float, cp1y: float, cp2x: float, cp2y: float, x: float, y: float) -> "PathData":
        if self._current is None:
            self.move_to(cp1x, cp1y)
        self._append("C", (float(cp1x), float(cp1y), float(cp2x), float(cp2y), float(x), float(y)))
        return self

    def arc(
        self,
        x: float,
        y: float,
        radius: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ) -> "PathData":
        return self.ellipse(x, y, radius, radius, 0.0, start_angle, end_angle, anticlockwise)

    def ellipse(
        self,
        x: float,
        y: float,
        radius_x: float,
        radius_y: float,
        rotation: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ) -> "PathData":
        if radius_x < 0 or radius_y < 0:
            raise ValueError("radius must be >= 0")
        sweep = _canvas_sweep(float(start_angle), float(end_angle), anticlockwise)
        start = _ellipse_point(x, y, radius_x, radius_y, rotation, start_angle)
        if self._current is None:
            self.move_to(*start)
        else:
            self._append("L", start)
        self._append("E", (float(x), float(y), float(radius_x), float(radius_y), float(rotation), float(start_angle), sweep))
        return self

    def arc_to(self, x1: float, y1: float, x2: float, y2: float, radius: float) -> "PathData":
        if radius < 0:
            raise ValueError("radius must be >= 0")
        if self._current is None:
            return self.move_to(x1, y1)
        x0, y0 = self._current
        v1 = np.array([x0 - x1, y0 - y1], dtype=np.float64)
        v2 = np.array([x2 - x1, y2 - y1], dtype=np.float64)
        n1 = float(np.hypot(*v1))
        n2 = float(np.hypot(*v2))
        cross = v1[0] * v2[1] - v1[1] * v2[0]
        if radius == 0 or n1 == 0 or n2 == 0 or abs(cross) < 1e-12:
            return self.line_to(x1, y1)
        u1 = v1 / n1
        u2 = v2 / n2
        angle = math.acos(max(-1.0, min(1.0, float(np.dot(u1, u2)))))
        tangent = radius / math.tan(angle / 2.0)
        t1 = (x1 + u1[0] * tangent, y1 + u1[1] * tangent)
        t2 = (x1 + u2[0] * tangent, y1 + u2[1] * tangent)
        bisector = u1 + u2
        bisector = bisector / float(np.hypot(*bisector))
        dist = radius / math.sin(angle / 2.0)
        cx = x1 + bisector[0] * dist
        cy = y1 + bisector[1] * dist
        a0 = math.atan2(t1[1] - cy, t1[0] - cx)
        a1 = math.atan2(t2[1] - cy, t2[0] - cx)
        return self.arc(cx, cy, radius, a0, a1, anticlockwise=cross > 0)

    def rect(self, x: float, y: float, width: float, height: float) -> "PathData":
        self.move_to(x, y)
        self._append("L", (x + width, y))
        self._append("L", (x + width, y + height))
        self._append("L", (x, y + height))
        return self.close_path()

    def round_rect(self, x: float, y: float, width: float, height: float, radius: float) -> "PathData":
        r = max(0.0, min(float(radius), abs(width) / 2.0, abs(height) / 2.0))
        if r == 0:
            return self.rect(x, y, width, height)
        if width < 0:
            x, width = x + width, -width
        if height < 0:
            y, height = y + height, -height
        self.move_to(x + r, y)
        self._append("L", (x + width - r, y))
        self.arc(x + width - r, y + r, r, -math.pi / 2.0, 0.0)
        self._append("L", (x + width, y + height - r))
        self.arc(x + width - r, y + height - r, r, 0.0, math.pi / 2.0)
        self._append("L", (x + r, y + height))
        self.arc(x + r, y + height - r, r, math.pi / 2.0, math.pi)
        self._append("L", (x, y + r))
        self.arc(x + r, y + r, r, math.pi, 1.5 * math.pi)
        return self.close_path()

    def close_path(self) -> "PathData":
        if self._current is None:
            return self
        self._append("Z", ())
        return self

    def add_path(self, other: "PathData", matrix: Affine | None = None) -> "PathData":
        if matrix is None or matrix.is_identity:
            for op, args in other.commands:
                self._append(op, args)
            return self
        for sub in other.flatten(matrix):
            if not sub.points:
                continue
            self.move_to(*sub.points[0])
            for point in sub.points[1:]:
                self._append("L", point)
            if sub.closed:
                self.close_path()
        return self

    def flatten(self, matrix: Affine | None = None) -> list[Subpath]:
        """Approximate the path by polylines, optionally mapped through `matrix`."""

        subpaths: list[Subpath] = []
        points: list[tuple[float, float]] = []
        closed = False
        current = (0.0, 0.0)
        start = (0.0, 0.0)
        for op, args in self._commands:
            if op == "M":
                if len(points) > 1:
                    subpaths.append(Subpath(tuple(points), closed))
                current = start = (args[0], args[1])
                points = [current]
                closed = False
            elif op == "L":
                current = (args[0], args[1])
                points.append(current)
            elif op == "Q":
                points.extend(_sample_quadratic(current, args))
                current = (args[2], args[3])
            elif op == "C":
                points.extend(_sample_cubic(current, args))
                current = (args[4], args[5])
            elif op == "E":
                sampled = _sample_ellipse(args)
                points.extend(sampled)
                current = sampled[-1]
            elif op == "Z":
                closed = True
                subpaths.append(Subpath(tuple(points), True))
                points = [start]
                current = start
                closed = False
        if len(points) > 1:
            subpaths.append(Subpath(tuple(points), closed))
        if matrix is None or matrix.is_identity:
            return subpaths
        return [Subpath(tuple(matrix.apply(x, y) for x, y in sub.points), sub.closed) for sub in subpaths]

    def bounds(self, matrix: Affine | None = None) -> tuple[float, float, float, float]:
        pts = [p for sub in self.flatten(matrix) for p in sub.points]
        if not pts:
            return (0.0, 0.0, 0.0, 0.0)
        arr = np.asarray(pts, dtype=np.float64)
        return (float(arr[:, 0].min()), float(arr[:, 1].min()), float(arr[:, 0].max()), float(arr[:, 1].max()))

    def to_svg(self, relative: bool = False) -> str:
        parts: list[str] = []
        current = (0.0, 0.0)
        start = (0.0, 0.0)
        for op, args in self._commands:
            if op == "Z":
                parts.append("z" if relative else "Z")
                current = start
                continue
            if op == "E":
                for end, rx, ry, rot_deg, large, sweep in _ellipse_to_svg_arcs(args):
                    ex, ey = _rel(end, current) if relative else end
                    parts.append(
                        ("a" if relative else "A")
                        + " "
                        + " ".join(_fmt(v) for v in (rx, ry, rot_deg))
                        + f" {large} {sweep} "
                        + " ".join(_fmt(v) for v in (ex, ey))
                    )
                    current = end
                continue
            coords = [(args[i], args[i + 1]) for i in range(0, len(args), 2)]
            out = [_rel(c, current) if relative else c for c in coords]
            parts.append((op.lower() if relative else op) + " " + " ".join(f"{_fmt(x)} {_fmt(y)}" for x, y in out))
            current = coords[-1]
            if op == "M":
                start = current
        return " ".join(parts)

    @staticmethod
    def from_svg(d: str) -> "PathData":
        """Parse SVG path data (absolute and relative M L H V C S Q T A Z)."""

        tokens = _TOKEN_RE.findall(d)
        path = PathData()
        i = 0
        cmd: str | None = None
        cur = (0.0, 0.0)
        start = (0.0, 0.0)
        last_cubic_ctrl: tuple[float, float] | None = None
        last_quad_ctrl: tuple[float, float] | None = None
        while i < len(tokens):
            token = tokens[i]
            if token.isalpha():
                cmd = token
                i += 1
                if cmd in "Zz":
                    path.close_path()
                    cur = start
                    last_cubic_ctrl = last_quad_ctrl = None
                    continue
            elif cmd is None:
                raise ValueError(f"path data must start with a command: `{d}`")
            upper = cmd.upper()
            count = _ARG_COUNTS[upper]
            if i + count > len(tokens):
                raise ValueError(f"path command `{cmd}` is missing arguments")
            try:
                args = [float(t) for t in tokens[i : i + count]]
            except ValueError as exc:
                raise ValueError(f"path command `{cmd}` has a non-numeric argument") from exc
            i += count
            rel = cmd.islower()
            ox, oy = cur if rel else (0.0, 0.0)
            if upper == "M":
                cur = (args[0] + ox, args[1] + oy)
                start = cur
                path.move_to(*cur)
                cmd = "l" if rel else "L"
                last_cubic_ctrl = last_quad_ctrl = None
            elif upper in ("L", "H", "V"):
                if upper == "L":
                    cur = (args[0] + ox, args[1] + oy)
                elif upper == "H":
                    cur = (args[0] + (cur[0] if rel else 0.0), cur[1])
                else:
                    cur = (cur[0], args[0] + (cur[1] if rel else 0.0))
                path.line_to(*cur)
                last_cubic_ctrl = last_quad_ctrl = None
            elif upper in ("C", "S"):
                if upper == "C":
                    c1 = (args[0] + ox, args[1] + oy)
                    c2 = (args[2] + ox, args[3] + oy)
                    end = (args[4] + ox, args[5] + oy)
                else:
                    c1 = cur if last_cubic_ctrl is None else (2 * cur[0] - last_cubic_ctrl[0], 2 * cur[1] - last_cubic_ctrl[1])
                    c2 = (args[0] + ox, args[1] + oy)
                    end = (args[2] + ox, args[3] + oy)
                path.bezier_curve_to(*c1, *c2, *end)
                last_cubic_ctrl = c2
                last_quad_ctrl = None
                cur = end
            elif upper in ("Q", "T"):
                if upper == "Q":
                    ctrl = (args[0] + ox, args[1] + oy)
                    end = (args[2] + ox, args[3] + oy)
                else:
                    ctrl = cur if last_quad_ctrl is None else (2 * cur[0] - last_quad_ctrl[0], 2 * cur[1] - last_quad_ctrl[1])
                    end = (args[0] + ox, args[1] + oy)
                path.quadratic_curve_to(*ctrl, *end)
                last_quad_ctrl = ctrl
                last_cubic_ctrl = None
                cur = end
            else:
                end = (args[5] + ox, args[6] + oy)
                _svg_arc_to(path, cur, args[0], args[1], args[2], bool(args[3]), bool(args[4]), end)
                last_cubic_ctrl = last_quad_ctrl = None
                cur = end
        return path

    def _append(self, op: str, args: tuple[float, ...]) -> None:
        self._commands.append((op, args))
        if op == "M":
            self._start = (args[0], args[1])
            self._current = self._start
        elif op == "Z":
            self._current = self._start
        elif op == "E":
            self._current = _ellipse_point(args[0], args[1], args[2], args[3], args[4], args[5] + args[6])
        else:
            self._current = (args[-2], args[-1])


def _canvas_sweep(start: float, end: float, anticlockwise: bool) -> float:
    if not anticlockwise:
        if end - start >= TAU:
            return TAU
        return (end - start) % TAU
    if start - end >= TAU:
        return -TAU
    return -((start - end) % TAU)


def _ellipse_point(cx: float, cy: float, rx: float, ry: float, rotation: float, angle: float) -> tuple[float, float]:
    px = rx * math.cos(angle)
    py = ry * math.sin(angle)
    cos = math.cos(rotation)
    sin = math.sin(rotation)
    return (cx + px * cos - py * sin, cy + px * sin + py * cos)


def _segments_for(length: float) -> int:
    return int(max(8, min(128, math.ceil(length / 3.0))))


def _sample_quadratic(p0: tuple[float, float], args: Sequence[float]) -> list[tuple[float, float]]:
    pts = np.array([p0, (args[0], args[1]), (args[2], args[3])], dtype=np.float64)
    steps = _segments_for(float(np.sum(np.hypot(*np.diff(pts, axis=0).T))))
    t = np.linspace(0.0, 1.0, steps + 1)[1:, None]
    u = 1.0 - t
    out = (u**2) * pts[0] + 2.0 * u * t * pts[1] + (t**2) * pts[2]
    return [(float(x), float(y)) for x, y in out]


def _sample_cubic(p0: tuple[float, float], args: Sequence[float]) -> list[tuple[float, float]]:
    pts = np.array([p0, (args[0], args[1]), (args[2], args[3]), (args[4], args[5])], dtype=np.float64)
    steps = _segments_for(float(np.sum(np.hypot(*np.diff(pts, axis=0).T))))
    t = np.linspace(0.0, 1.0, steps + 1)[1:, None]
    u = 1.0 - t
    out = (u**3) * pts[0] + 3.0 * (u**2) * t * pts[1] + 3.0 * u * (t**2) * pts[2] + (t**3) * pts[3]
    return [(float(x), float(y)) for x, y in out]


def _sample_ellipse(args: Sequence[float]) -> list[tuple[float, float]]:
    cx, cy, rx, ry, rotation, start, sweep = args
    steps = _segments_for(abs(sweep) * max(rx, ry))
    angles = start + np.linspace(0.0, sweep, steps + 1)
    return [_ellipse_point(cx, cy, rx, ry, rotation, float(a)) for a in angles]


def _ellipse_to_svg_arcs(args: Sequence[float]) -> list[tuple[tuple[float, float], float, float, float, int, int]]:
    cx, cy, rx, ry, rotation, start, sweep = args
    if abs(sweep) < 1e-12:
        return []
    pieces = 2 if abs(sweep) >= math.pi * 2.0 - 1e-9 else 1
    step = sweep / pieces
    out = []
    for k in range(pieces):
        end_angle = start + step * (k + 1)
        end = _ellipse_point(cx, cy, rx, ry, rotation, end_angle)
        large = 1 if abs(step) > math.pi else 0
        sweep_flag = 1 if step > 0 else 0
        out.append((end, rx, ry, math.degrees(rotation), large, sweep_flag))
    return out


def _svg_arc_to(
    path: PathData,
    start: tuple[float, float],
    rx: float,
    ry: float,
    rotation_deg: float,
    large_arc: bool,
    sweep: bool,
    end: tuple[float, float],
) -> None:
    x1, y1 = start
    x2, y2 = end
    rx = abs(rx)
    ry = abs(ry)
    if (x1, y1) == (x2, y2):
        return
    if rx == 0 or ry == 0:
        path.line_to(x2, y2)
        return
    phi = math.radians(rotation_deg % 360.0)
    cos = math.cos(phi)
    sin = math.sin(phi)
    dx = (x1 - x2) / 2.0
    dy = (y1 - y2) / 2.0
    x1p = cos * dx + sin * dy
    y1p = -sin * dx + cos * dy
    scale = (x1p**2) / (rx**2) + (y1p**2) / (ry**2)
    if scale > 1.0:
        rx *= math.sqrt(scale)
        ry *= math.sqrt(scale)
    num = rx**2 * ry**2 - rx**2 * y1p**2 - ry**2 * x1p**2
    den = rx**2 * y1p**2 + ry**2 * x1p**2
    coef = math.sqrt(max(0.0, num / den)) if den else 0.0
    if large_arc == sweep:
        coef = -coef
    cxp = coef * rx * y1p / ry
    cyp = -coef * ry * x1p / rx
    cx = cos * cxp - sin * cyp + (x1 + x2) / 2.0
    cy = sin * cxp + cos * cyp + (y1 + y2) / 2.0
    theta1 = math.atan2((y1p - cyp) / ry, (x1p - cxp) / rx)
    theta2 = math.atan2((-y1p - cyp) / ry, (-x1p - cxp) / rx)
    delta = theta2 - theta1
    if sweep and delta < 0:
        delta += TAU
    elif not sweep and delta > 0:
        delta -= TAU
    path._append("E", (cx, cy, rx, ry, phi, theta1, delta))


def _rel(point: tuple[float, float], origin: tuple[float, float]) -> tuple[float, float]:
    return (point[0] - origin[0], point[1] - origin[1])


def _fmt(value: float) -> str:
    rounded = round(float(value), 4)
    if rounded == int(rounded):
        return str(int(rounded))
    return repr(rounded)
