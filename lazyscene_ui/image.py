from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from lazyscene_core.core.lengths import LengthParser, LengthValue, Size
from lazyscene_core.core.render_manager import RenderContext

from .base import BaseLayer, BoxSize, LayerProps
from .morph import box_path, declared_box_size, resolve_box
from .paint import load_image


@dataclass
class ImageProps(LayerProps):
    src: str = ""
    size: BoxSize = field(default_factory=BoxSize)

    def resize(self, ratio: float) -> None:
        super().resize(ratio)
        self.size.resize(ratio)


class ImageLayer(BaseLayer):
    """Bitmap drawn into its box, clipped to rounded corners when a radius is set."""

    kind: ClassVar[str] = "image"
    props_type: ClassVar[type[LayerProps]] = ImageProps

    def set_src(self, src: str) -> "ImageLayer":
        if not src.strip():
            raise ValueError("image src must be non-empty")
        self.props.src = src
        return self

    def set_size(self, width: LengthValue, height: LengthValue, radius: LengthValue = 0) -> "ImageLayer":
        self.props.size = BoxSize(width=width, height=height, radius=radius)
        return self

    def declared_size(self, parser: LengthParser) -> Size:
        return declared_box_size(parser, self.props.size)

    def draw(self, context: RenderContext) -> None:
        image = load_image(self.props.src)
        origin, w, h, radius = resolve_box(context.parser, self.props, self.props.size, self.kind)
        with self._drawing(context, (origin.x + w / 2.0, origin.y + h / 2.0)):
            if radius > 0:
                context.surface.clip(box_path(origin, w, h, radius))
            context.surface.draw_image(image, origin.x, origin.y, w, h)
