from __future__ import annotations

import logging
from typing import Callable, Protocol, cast

from ..render.fonts import FontRegistry, TextMetrics
from ..render.surface import TextStyle
from .bounding_box import BoundingBox
from .errors import CyclicReferenceError
from .lengths import Link, LengthParser, Size
from .registry import LayerNode


LOGGER = logging.getLogger(__name__)

CURVE_KINDS = frozenset({"line", "quadraticCurve", "bezierCurve"})
TEXT_KINDS = frozenset({"text"})
SIZED_KINDS = frozenset({"morph", "image", "polygon", "clear"})
# No scalar geometry; references to these resolve to 0.
OPAQUE_KINDS = frozenset({"group", "path"})


class HasBoundingBox(Protocol):
    def bounding_box(self, parser: LengthParser) -> BoundingBox:
        ...


class HasMeasuredText(Protocol):
    def measure(self, parser: LengthParser, measure_text: Callable[[str, TextStyle], TextMetrics]) -> Size:
        ...


class TextMeasurer(Protocol):
    def measure_text(self, text: str, style: TextStyle) -> TextMetrics:
        ...


class HasDeclaredSize(Protocol):
    def declared_size(self, parser: LengthParser) -> Size:
        ...


class LayerLookup(Protocol):
    def get(self, layer_id: str, cross: bool = False) -> LayerNode | None:
        ...


class ReferenceResolver:
    """Resolves `Link` lengths against a layer registry.

    A resolver tracks the chain of layers currently being measured; revisiting one raises
    `CyclicReferenceError` instead of recursing without bound.
    """

    def __init__(
        self,
        registry: LayerLookup,
        viewport: Size,
        fonts: FontRegistry | None = None,
        surface: TextMeasurer | None = None,
    ) -> None:
        self._registry = registry
        self._fonts = fonts if fonts is not None else FontRegistry()
        self._surface = surface
        self._active: list[str] = []
        self.parser = LengthParser(viewport, self.resolve)

    @property
    def fonts(self) -> FontRegistry:
        return self._fonts

    def measure_text(self, text: str, style: TextStyle) -> TextMetrics:
        """Measure with the drawing surface when there is one, so references match what is drawn."""

        if self._surface is not None:
            return self._surface.measure_text(text, style)
        return self._fonts.measure(
            text,
            style.family,
            style.size,
            style.weight,
            letter_spacing=style.letter_spacing,
            word_spacing=style.word_spacing,
        )

    def resolve(self, link: Link) -> float:
        if link.source in self._active:
            start = self._active.index(link.source)
            raise CyclicReferenceError(self._active[start:] + [link.source])
        source = self._registry.get(link.source, cross=True)
        if source is None or source.kind in OPAQUE_KINDS:
            if source is None:
                LOGGER.debug("reference to unknown layer `%s` resolved to 0", link.source)
            return 0.0
        self._active.append(link.source)
        try:
            base = self._measure(source, link.type)
        finally:
            self._active.pop()
        axis = "vertical" if link.type in ("height", "y") else "horizontal"
        return base + self.parser.parse(link.additional_spacing, axis=axis)

    def _measure(self, source: LayerNode, attribute: str) -> float:
        if attribute == "x":
            return self.parser.parse(source.props.x)
        if attribute == "y":
            return self.parser.parse(source.props.y, axis="vertical")
        if source.kind in CURVE_KINDS:
            box = cast(HasBoundingBox, source).bounding_box(self.parser)
            return box.width if attribute == "width" else box.height
        if source.kind in TEXT_KINDS:
            size = cast(HasMeasuredText, source).measure(self.parser, self.measure_text)
            return size.width if attribute == "width" else size.height
        if source.kind in SIZED_KINDS:
            size = cast(HasDeclaredSize, source).declared_size(self.parser)
            return size.width if attribute == "width" else size.height
        raise ValueError(f"unknown layer kind: {source.kind}")
