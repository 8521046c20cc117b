from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterable, Protocol

from ..render.fonts import FontRegistry
from ..render.raster_surface import RasterSurface
from ..render.surface import DrawingSurface
from .animation import AnimationEncoder, AnimationOptions
from .lengths import LengthParser
from .plugins import PluginManager
from .references import ReferenceResolver


LOGGER = logging.getLogger(__name__)


@dataclass
class RenderContext:
    """Everything a layer needs while drawing itself."""

    surface: DrawingSurface
    resolver: ReferenceResolver
    fonts: FontRegistry
    debug: bool = False
    depth: int = 0

    @property
    def parser(self) -> LengthParser:
        return self.resolver.parser


class Drawable(Protocol):
    id: str
    kind: str
    z_index: int
    visible: bool

    def draw(self, context: RenderContext) -> None:
        ...


class RenderManager:
    """Sequences layers onto a surface in z-order; it knows nothing about layer geometry."""

    def __init__(self, plugins: PluginManager | None = None, *, debug: bool = False) -> None:
        self._plugins = plugins
        self._debug = debug

    def render_layer(self, layer: Drawable, context: RenderContext) -> None:
        if not layer.visible:
            return
        if layer.kind == "group":
            for child in layer.layers:
                self.render_layer(child, context)
            return
        if self._debug:
            LOGGER.debug("rendering layer %s (%s)", layer.id, layer.kind)
        props = getattr(layer, "props", None)
        context.surface.set_composite(getattr(props, "global_composite", None) or "source-over")
        layer.draw(context)
        context.surface.set_shadow(None)

    def render_static(self, layers: Iterable[Drawable], context: RenderContext) -> DrawingSurface:
        self._hook("before_render", context.surface)
        context.surface.save()
        try:
            for layer in layers:
                self.render_layer(layer, context)
        finally:
            context.surface.restore()
        self._hook("after_render", context.surface)
        return context.surface

    def render_animation(
        self,
        layers: Iterable[Drawable],
        context: RenderContext,
        options: AnimationOptions,
    ) -> bytes:
        surface = context.surface
        if not isinstance(surface, RasterSurface):
            raise TypeError("animated renders require a RasterSurface")
        encoder = AnimationEncoder(surface.width, surface.height, options)
        self._hook("before_render", surface)
        surface.save()
        try:
            for index, layer in enumerate(layers):
                self.render_layer(layer, context)
                merged = encoder.push(surface.snapshot())
                self._hook("on_animation_frame", index, merged)
                if options.clear:
                    surface.clear()
        finally:
            surface.restore()
        self._hook("after_render", surface)
        return encoder.finish()

    def _hook(self, name: str, *args: object) -> None:
        if self._plugins is not None:
            self._plugins.execute_hook(name, *args)
