from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import ClassVar

from lazyscene_core.core.bounding_box import Point
from lazyscene_core.core.lengths import LengthParser, LengthRequest, LengthValue, Size, scale_length
from lazyscene_core.core.render_manager import RenderContext
from lazyscene_core.render.paths import PathData

from .base import LayerProps, PaintedLayer, PaintedProps, Record
from .paint import PaintBox, resolve_paint


@dataclass
class PolygonSize(Record):
    width: LengthValue = 100
    height: LengthValue = 100
    radius: LengthValue = 0
    count: int = 3

    def __post_init__(self) -> None:
        self.count = int(self.count)
        if self.count < 3:
            raise ValueError("polygon needs at least 3 sides")

    def resize(self, ratio: float) -> None:
        self.width = scale_length(self.width, ratio)
        self.height = scale_length(self.height, ratio)
        self.radius = scale_length(self.radius, ratio)


@dataclass
class PolygonProps(PaintedProps):
    size: PolygonSize = field(default_factory=PolygonSize)

    def resize(self, ratio: float) -> None:
        super().resize(ratio)
        self.size.resize(ratio)


def polygon_vertices(x: float, y: float, width: float, height: float, count: int) -> list[Point]:
    """Regular polygon inscribed in the box at `(x, y)`, first vertex at the top."""

    cx = x + width / 2.0
    cy = y + height / 2.0
    out = []
    for i in range(count):
        angle = i / count * 2.0 * math.pi - math.pi / 2.0
        out.append(Point(cx + width / 2.0 * math.cos(angle), cy + height / 2.0 * math.sin(angle)))
    return out


def polygon_path(vertices: list[Point], radius: float) -> PathData:
    path = PathData()
    if radius <= 0:
        path.move_to(vertices[0].x, vertices[0].y)
        for vertex in vertices[1:]:
            path.line_to(vertex.x, vertex.y)
        return path.close_path()
    first, last = vertices[0], vertices[-1]
    path.move_to((last.x + first.x) / 2.0, (last.y + first.y) / 2.0)
    count = len(vertices)
    for i, vertex in enumerate(vertices):
        prev = vertices[i - 1]
        nxt = vertices[(i + 1) % count]
        corner = min(radius, math.dist((prev.x, prev.y), (vertex.x, vertex.y)) / 2.0, math.dist((vertex.x, vertex.y), (nxt.x, nxt.y)) / 2.0)
        path.arc_to(vertex.x, vertex.y, nxt.x, nxt.y, corner)
    return path.close_path()


class PolygonLayer(PaintedLayer):
    kind: ClassVar[str] = "polygon"
    props_type: ClassVar[type[LayerProps]] = PolygonProps

    def set_size(
        self,
        width: LengthValue,
        height: LengthValue,
        radius: LengthValue = 0,
        count: int = 3,
    ) -> "PolygonLayer":
        self.props.size = PolygonSize(width=width, height=height, radius=radius, count=count)
        return self

    def declared_size(self, parser: LengthParser) -> Size:
        w = parser.parse(self.props.size.width)
        h = parser.parse(self.props.size.height, axis="vertical")
        return Size(w, h)

    def draw(self, context: RenderContext) -> None:
        size = self.props.size
        values = context.parser.parse_batch(
            {
                "x": self.props.x,
                "y": LengthRequest(self.props.y, axis="vertical"),
                "w": size.width,
                "h": LengthRequest(size.height, axis="vertical"),
            }
        )
        x, y, w, h = values["x"], values["y"], values["w"], values["h"]
        radius = context.parser.parse(size.radius, local_box=Size(w / 2.0, h / 2.0), use_local_box=True)
        with self._drawing(context, (x + w / 2.0, y + h / 2.0)):
            path = polygon_path(polygon_vertices(x, y, w, h, size.count), radius)
            paint = resolve_paint(self.props.fill_style, context, PaintBox(x, y, w, h))
            if self.props.filled:
                context.surface.fill_path(path, paint)
            else:
                context.surface.stroke_path(path, paint, self.props.stroke.style())
