from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Mapping

from lazyscene_core.core.bounding_box import BoundingBox, Point, bezier_bounding_box, line_bounding_box
from lazyscene_core.core.lengths import LengthParser, LengthRequest, LengthValue
from lazyscene_core.core.render_manager import RenderContext
from lazyscene_core.render.paths import PathData

from .base import LayerProps, LengthPoint, PaintedLayer, PaintedProps
from .paint import PaintBox, resolve_paint


@dataclass
class LineProps(PaintedProps):
    centring: str = "none"
    filled: bool = False
    end_point: LengthPoint = field(default_factory=LengthPoint)

    def resize(self, ratio: float) -> None:
        super().resize(ratio)
        self.end_point.resize(ratio)


@dataclass
class CurveProps(LineProps):
    control_points: list[LengthPoint] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__post_init__()
        self.control_points = [_as_point(p) for p in self.control_points]

    def resize(self, ratio: float) -> None:
        super().resize(ratio)
        for point in self.control_points:
            point.resize(ratio)


class _CurveLayer(PaintedLayer):
    """Open curve from `(x, y)` through its control points to `end_point`."""

    required_props: ClassVar[tuple[str, ...]] = ("endPoint",)

    def set_end_position(self, x: LengthValue, y: LengthValue) -> "_CurveLayer":
        self.props.end_point = LengthPoint(x, y)
        return self

    def resolve_points(self, parser: LengthParser) -> list[Point]:
        points = [(self.props.x, self.props.y)]
        points += [(p.x, p.y) for p in getattr(self.props, "control_points", [])]
        points.append((self.props.end_point.x, self.props.end_point.y))
        entries: dict[str, object] = {}
        for index, (x, y) in enumerate(points):
            entries[f"x{index}"] = x
            entries[f"y{index}"] = LengthRequest(y, axis="vertical")
        values = parser.parse_batch(entries)
        return [Point(values[f"x{i}"], values[f"y{i}"]) for i in range(len(points))]

    def bounding_box(self, parser: LengthParser) -> BoundingBox:
        return self._box_for(self.resolve_points(parser))

    def build_path(self, points: list[Point]) -> PathData:
        raise NotImplementedError

    def draw(self, context: RenderContext) -> None:
        points = self.resolve_points(context.parser)
        box = self._box_for(points)
        with self._drawing(context, (box.center.x, box.center.y)):
            path = self.build_path(points)
            paint = resolve_paint(
                self.props.fill_style,
                context,
                PaintBox(box.min.x, box.min.y, abs(box.width), abs(box.height)),
            )
            if self.props.filled:
                context.surface.fill_path(path, paint)
            else:
                context.surface.stroke_path(path, paint, self.props.stroke.style())

    def _box_for(self, points: list[Point]) -> BoundingBox:
        if len(points) == 2:
            return line_bounding_box(points[0], points[1])
        return bezier_bounding_box(points)


class LineLayer(_CurveLayer):
    kind: ClassVar[str] = "line"
    props_type: ClassVar[type[LayerProps]] = LineProps

    def build_path(self, points: list[Point]) -> PathData:
        start, end = points
        return PathData().move_to(start.x, start.y).line_to(end.x, end.y)


class QuadraticLayer(_CurveLayer):
    kind: ClassVar[str] = "quadraticCurve"
    props_type: ClassVar[type[LayerProps]] = CurveProps
    required_props: ClassVar[tuple[str, ...]] = ("endPoint", "controlPoints")

    def set_control_point(self, x: LengthValue, y: LengthValue) -> "QuadraticLayer":
        self.props.control_points = [LengthPoint(x, y)]
        return self

    def resolve_points(self, parser: LengthParser) -> list[Point]:
        if len(self.props.control_points) != 1:
            raise ValueError("quadratic curve needs exactly one control point")
        return super().resolve_points(parser)

    def build_path(self, points: list[Point]) -> PathData:
        start, control, end = points
        return PathData().move_to(start.x, start.y).quadratic_curve_to(control.x, control.y, end.x, end.y)


class BezierLayer(_CurveLayer):
    kind: ClassVar[str] = "bezierCurve"
    props_type: ClassVar[type[LayerProps]] = CurveProps
    required_props: ClassVar[tuple[str, ...]] = ("endPoint", "controlPoints")

    def set_control_points(self, *points: LengthPoint | Mapping[str, object]) -> "BezierLayer":
        if len(points) != 2:
            raise ValueError(f"bezier curve needs exactly two control points, got {len(points)}")
        self.props.control_points = [_as_point(p) for p in points]
        return self

    def resolve_points(self, parser: LengthParser) -> list[Point]:
        if len(self.props.control_points) != 2:
            raise ValueError("bezier curve needs exactly two control points")
        return super().resolve_points(parser)

    def build_path(self, points: list[Point]) -> PathData:
        start, c1, c2, end = points
        return PathData().move_to(start.x, start.y).bezier_curve_to(c1.x, c1.y, c2.x, c2.y, end.x, end.y)


def _as_point(point: object) -> LengthPoint:
    if isinstance(point, LengthPoint):
        return point
    if isinstance(point, Mapping):
        return LengthPoint.from_dict(point)
    if isinstance(point, (tuple, list)) and len(point) == 2:
        return LengthPoint(point[0], point[1])
    raise TypeError("control points must be {x, y} objects or (x, y) pairs")
