from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from lazyscene_core.core.lengths import LengthParser, LengthValue, Size
from lazyscene_core.core.render_manager import RenderContext

from .base import BaseLayer, BoxSize, LayerProps
from .morph import declared_box_size, resolve_box


@dataclass
class ClearProps(LayerProps):
    centring: str = "none"
    size: BoxSize = field(default_factory=BoxSize)

    def resize(self, ratio: float) -> None:
        super().resize(ratio)
        self.size.resize(ratio)


class ClearLayer(BaseLayer):
    """Erases a rectangle of everything drawn before it."""

    kind: ClassVar[str] = "clear"
    props_type: ClassVar[type[LayerProps]] = ClearProps

    def set_size(self, width: LengthValue, height: LengthValue) -> "ClearLayer":
        self.props.size = BoxSize(width=width, height=height)
        return self

    def declared_size(self, parser: LengthParser) -> Size:
        return declared_box_size(parser, self.props.size)

    def draw(self, context: RenderContext) -> None:
        origin, w, h, _ = resolve_box(context.parser, self.props, self.props.size, self.kind)
        with self._drawing(context, (origin.x + w / 2.0, origin.y + h / 2.0)):
            context.surface.clear_rect(origin.x, origin.y, w, h)
