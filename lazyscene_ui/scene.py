from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from pathlib import Path
from typing import Iterable, Literal

from PIL import Image

from lazyscene_core.core.animation import AnimationOptions
from lazyscene_core.core.errors import ExportError, ResourceError
from lazyscene_core.core.lengths import Size
from lazyscene_core.core.plugins import LazyPlugin, PluginManager
from lazyscene_core.core.references import ReferenceResolver
from lazyscene_core.core.registry import LayerNode, LayerRegistry
from lazyscene_core.core.render_manager import RenderContext, RenderManager
from lazyscene_core.render.fonts import FontRegistry
from lazyscene_core.render.raster_surface import RasterSurface
from lazyscene_core.render.surface import DrawingSurface
from lazyscene_core.render.svg_surface import SvgExportFlag, SvgSurface

from .documents import to_json, to_yaml


LOGGER = logging.getLogger(__name__)

SurfaceType = Literal["canvas", "svg"]
SURFACE_TYPES: tuple[str, ...] = ("canvas", "svg")
EXPORT_KINDS: tuple[str, ...] = ("ctx", "canvas", "svg", "buffer", "png", "jpeg", "jpg", "webp", "gif", "json", "yaml")
# Nested pattern scenes deeper than this are rejected.
MAX_PATTERN_DEPTH = 8


@dataclass
class SceneOptions:
    width: int = 0
    height: int = 0
    animated: bool = False
    export_type: SurfaceType = "canvas"
    flag: SvgExportFlag = SvgExportFlag.RELATIVE_PATH_ENCODING

    def __post_init__(self) -> None:
        if self.export_type not in SURFACE_TYPES:
            raise ValueError(f"export type must be one of {SURFACE_TYPES}, got `{self.export_type}`")
        self.flag = SvgExportFlag(int(self.flag))

    def to_dict(self) -> dict[str, object]:
        return {
            "width": self.width,
            "height": self.height,
            "animated": self.animated,
            "exportType": self.export_type,
            "flag": int(self.flag),
        }


class Scene:
    """A sized canvas owning its layer registry, animation options, fonts and plugins."""

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        *,
        export_type: SurfaceType = "canvas",
        animated: bool = False,
        flag: SvgExportFlag | int = SvgExportFlag.RELATIVE_PATH_ENCODING,
        plugins: PluginManager | None = None,
        fonts: FontRegistry | None = None,
        debug: bool = False,
    ) -> None:
        self.options = SceneOptions(animated=bool(animated), export_type=export_type, flag=flag)
        self.animation = AnimationOptions()
        self.fonts = fonts if fonts is not None else FontRegistry()
        self.plugins = plugins if plugins is not None else PluginManager()
        self.plugins.bind(self)
        self.debug = debug
        self.layers = self._new_registry()
        self._renderer = RenderManager(self.plugins, debug=debug)
        if width or height:
            self.create(width, height)

    @property
    def width(self) -> int:
        return self.options.width

    @property
    def height(self) -> int:
        return self.options.height

    def create(self, width: int, height: int) -> "Scene":
        if width <= 0 or height <= 0:
            raise ValueError("scene width/height must be > 0")
        self.options.width = int(width)
        self.options.height = int(height)
        self.layers = self._new_registry()
        self.plugins.execute_hook("on_canvas_created", self.options.width, self.options.height)
        return self

    def set_export_type(self, export_type: SurfaceType) -> "Scene":
        if export_type not in SURFACE_TYPES:
            raise ValueError(f"export type must be one of {SURFACE_TYPES}, got `{export_type}`")
        self.options.export_type = export_type
        return self

    def set_svg_export_flag(self, flag: SvgExportFlag | int) -> "Scene":
        if self.options.export_type != "svg":
            LOGGER.warning("svg export flag ignored for `%s` scenes", self.options.export_type)
            return self
        self.options.flag = SvgExportFlag(int(flag))
        return self

    def animated(self, enabled: bool = True) -> "Scene":
        self.options.animated = bool(enabled)
        return self

    def set_animation(self, **overrides: object) -> "Scene":
        self.animation = replace(self.animation, **overrides)
        return self

    def add(self, *layers: LayerNode | Iterable[LayerNode] | None) -> "Scene":
        self.layers.add(*layers)
        return self

    def remove(self, *layer_ids: str) -> "Scene":
        self.layers.remove(*layer_ids)
        return self

    def use(self, plugin: LazyPlugin) -> "Scene":
        self.plugins.register(plugin)
        return self

    def remove_plugin(self, name: str) -> "Scene":
        self.plugins.unregister(name)
        return self

    def get_plugin(self, name: str) -> LazyPlugin | None:
        return self.plugins.get(name)

    def list_plugins(self) -> list[str]:
        return self.plugins.list()

    def resize(self, ratio: float) -> "Scene":
        """Scale the canvas and every absolute length in it, then rebuild the registry."""

        self._check_ready()
        if ratio <= 0:
            raise ValueError("resize ratio must be > 0")
        self.options.width = max(1, int(round(self.options.width * ratio)))
        self.options.height = max(1, int(round(self.options.height * ratio)))
        layers = self.layers.to_array()
        for layer in layers:
            layer.resize(ratio)
            self.plugins.execute_hook("on_layer_modified", layer)
        self.layers = self._new_registry().from_array(layers)
        self.plugins.execute_hook("on_resize", ratio)
        return self

    def render(self, *, depth: int = 0) -> DrawingSurface | bytes:
        """Draw the scene: a surface for static scenes, GIF bytes for animated ones."""

        self._check_ready()
        if self.options.animated:
            return self._render_animation(depth)
        return self._render_surface(self.options.export_type, depth)

    def to_image(self, *, depth: int = 0) -> Image.Image:
        if depth > MAX_PATTERN_DEPTH:
            raise ResourceError(f"pattern scenes nested deeper than {MAX_PATTERN_DEPTH}")
        surface = self._render_surface("canvas", depth)
        return surface.to_image()

    def export(self, kind: str, path: str | Path | None = None) -> DrawingSurface | bytes | str:
        kind = kind.lower()
        if kind not in EXPORT_KINDS:
            raise ExportError(f"unsupported export kind: {kind}")
        self.plugins.execute_hook("before_export", kind)
        if kind in ("ctx", "canvas"):
            if path is not None:
                raise ExportError(f"`{kind}` exports cannot be written to a file")
            result: DrawingSurface | bytes | str = self._render_surface(self.options.export_type, 0)
        elif kind == "svg":
            result = self._render_surface("svg", 0).encode()
        elif kind in ("buffer", "png"):
            result = self._render_surface("canvas", 0).encode("png")
        elif kind in ("jpeg", "jpg", "webp"):
            result = self._render_surface("canvas", 0).encode(kind)
        elif kind == "gif":
            result = self._render_animation(0)
        elif kind == "json":
            result = to_json(self.to_dict())
        else:
            result = to_yaml(self.to_dict())
        if path is not None:
            _write(Path(path), result)
            LOGGER.info("exported %s to %s", kind, path)
        self.plugins.execute_hook("after_export", kind, result)
        return result

    def to_dict(self) -> dict[str, object]:
        return {
            "options": self.options.to_dict(),
            "animation": self.animation.to_dict(),
            "layers": [layer.to_dict() for layer in self.layers],
        }

    def _render_surface(self, surface_type: str, depth: int) -> RasterSurface | SvgSurface:
        self._check_ready()
        if surface_type == "svg":
            surface: RasterSurface | SvgSurface = SvgSurface(self.width, self.height, self.options.flag, fonts=self.fonts)
        else:
            surface = RasterSurface(self.width, self.height, fonts=self.fonts)
        self._renderer.render_static(self.layers, self._context(surface, depth))
        return surface

    def _render_animation(self, depth: int) -> bytes:
        self._check_ready()
        surface = RasterSurface(self.width, self.height, fonts=self.fonts)
        return self._renderer.render_animation(self.layers, self._context(surface, depth), self.animation)

    def _context(self, surface: DrawingSurface, depth: int) -> RenderContext:
        resolver = ReferenceResolver(self.layers, Size(self.width, self.height), self.fonts, surface)
        return RenderContext(surface=surface, resolver=resolver, fonts=self.fonts, debug=self.debug, depth=depth)

    def _new_registry(self) -> LayerRegistry:
        return LayerRegistry(
            on_added=lambda layer: self.plugins.execute_hook("on_layer_added", layer),
            on_removed=lambda layer_id: self.plugins.execute_hook("on_layer_removed", layer_id),
        )

    def _check_ready(self) -> None:
        if self.options.width <= 0 or self.options.height <= 0:
            raise ValueError("scene dimensions are not set; call create() first")


def _write(path: Path, payload: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(payload, str):
        path.write_text(payload, encoding="utf-8")
    else:
        path.write_bytes(payload)
