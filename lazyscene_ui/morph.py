from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from lazyscene_core.core.alignment import align
from lazyscene_core.core.bounding_box import Point
from lazyscene_core.core.lengths import LengthParser, LengthRequest, LengthValue, Size
from lazyscene_core.core.render_manager import RenderContext
from lazyscene_core.render.paths import PathData

from .base import BoxSize, LayerProps, PaintedLayer, PaintedProps
from .paint import PaintBox, resolve_paint


def resolve_box(parser: LengthParser, props: LayerProps, size: BoxSize, kind: str) -> tuple[Point, float, float, float]:
    """Resolve a box layer to (top-left origin, width, height, corner radius)."""

    values = parser.parse_batch(
        {
            "x": props.x,
            "y": LengthRequest(props.y, axis="vertical"),
            "w": size.width,
            "h": LengthRequest(size.height, axis="vertical"),
        }
    )
    w, h = values["w"], values["h"]
    radius = parser.parse(size.radius, local_box=Size(w / 2.0, h / 2.0), use_local_box=True)
    origin = align(props.centring, kind, w, h, values["x"], values["y"])
    return origin, w, h, radius


def declared_box_size(parser: LengthParser, size: BoxSize) -> Size:
    """Width and height of a box layer, independent of its position."""

    return Size(parser.parse(size.width), parser.parse(size.height, axis="vertical"))


def box_path(origin: Point, w: float, h: float, radius: float) -> PathData:
    if radius > 0:
        return PathData().round_rect(origin.x, origin.y, w, h, radius)
    return PathData().rect(origin.x, origin.y, w, h)


@dataclass
class MorphProps(PaintedProps):
    size: BoxSize = field(default_factory=BoxSize)

    def resize(self, ratio: float) -> None:
        super().resize(ratio)
        self.size.resize(ratio)


class MorphLayer(PaintedLayer):
    """Filled or outlined (rounded) rectangle."""

    kind: ClassVar[str] = "morph"
    props_type: ClassVar[type[LayerProps]] = MorphProps

    def set_size(self, width: LengthValue, height: LengthValue, radius: LengthValue = 0) -> "MorphLayer":
        self.props.size = BoxSize(width=width, height=height, radius=radius)
        return self

    def declared_size(self, parser: LengthParser) -> Size:
        return declared_box_size(parser, self.props.size)

    def draw(self, context: RenderContext) -> None:
        origin, w, h, radius = resolve_box(context.parser, self.props, self.props.size, self.kind)
        with self._drawing(context, (origin.x + w / 2.0, origin.y + h / 2.0)):
            path = box_path(origin, w, h, radius)
            paint = resolve_paint(self.props.fill_style, context, PaintBox(origin.x, origin.y, w, h))
            if self.props.filled:
                context.surface.fill_path(path, paint)
            else:
                context.surface.stroke_path(path, paint, self.props.stroke.style())
