from __future__ import annotations

from dataclasses import fields
import json
import logging
from pathlib import Path
from typing import Mapping

import yaml

from lazyscene_core.core.animation import AnimationOptions
from lazyscene_core.core.errors import DocumentValidationError
from lazyscene_core.core.lengths import length_from_dict
from lazyscene_core.core.plugins import PluginManager
from lazyscene_core.core.registry import LayerNode
from lazyscene_core.render.fonts import FontRegistry
from lazyscene_core.render.paths import PathData

from .base import BaseLayer, LayerProps, LengthPoint, Record, Shadow, camel_key
from .clear import ClearLayer
from .curves import BezierLayer, LineLayer, QuadraticLayer
from .documents import load_json, load_yaml, to_json, to_yaml
from .group import Group
from .image import ImageLayer
from .morph import MorphLayer
from .paint import FillStyle, Gradient, Pattern
from .path import PathLayer
from .polygon import PolygonLayer
from .scene import MAX_PATTERN_DEPTH, SURFACE_TYPES, Scene
from .text import SubstringColor, TextLayer


LOGGER = logging.getLogger(__name__)

LAYER_KINDS: dict[str, type[BaseLayer]] = {
    cls.kind: cls
    for cls in (
        MorphLayer,
        ImageLayer,
        TextLayer,
        LineLayer,
        QuadraticLayer,
        BezierLayer,
        PolygonLayer,
        PathLayer,
        ClearLayer,
    )
}


class DocumentReader:
    """Validates a scene document and rebuilds the live layer tree from it.

    Structural problems raise `DocumentValidationError` before any scene or registry exists.
    """

    def __init__(
        self,
        *,
        plugins: PluginManager | None = None,
        fonts: FontRegistry | None = None,
        debug: bool = False,
    ) -> None:
        self._plugins = plugins
        self._fonts = fonts if fonts is not None else FontRegistry()
        self._debug = debug

    def read(self, payload: object, depth: int = 0) -> Scene:
        if not isinstance(payload, Mapping):
            raise DocumentValidationError("document must be an object")
        options = payload.get("options")
        if not isinstance(options, Mapping):
            raise DocumentValidationError("document options must be an object")
        width = options.get("width")
        height = options.get("height")
        if not _positive_number(width) or not _positive_number(height):
            raise DocumentValidationError("Invalid width or height")
        export_type = options.get("exportType")
        if export_type not in SURFACE_TYPES:
            raise DocumentValidationError("Invalid export type")
        flag = options.get("flag")
        if isinstance(flag, bool) or not isinstance(flag, int) or flag < 0 or flag > 7:
            raise DocumentValidationError("Invalid export flag")
        layers_raw = payload.get("layers")
        if not isinstance(layers_raw, list) or not layers_raw:
            raise DocumentValidationError("No layers found")
        try:
            animation = AnimationOptions.from_dict(payload.get("animation", {}))
        except (TypeError, ValueError) as exc:
            raise DocumentValidationError(f"invalid animation options: {exc}") from exc
        layers = [self.layer(item, depth=depth, where=f"layers[{i}]") for i, item in enumerate(layers_raw)]
        # A nested pattern scene gets its own plugin manager; hooks belong to the outer scene.
        scene = Scene(
            int(width),
            int(height),
            export_type=export_type,
            animated=bool(options.get("animated", False)),
            flag=flag,
            plugins=self._plugins if depth == 0 else None,
            fonts=self._fonts,
            debug=self._debug,
        )
        scene.animation = animation
        scene.add(layers)
        LOGGER.debug("decoded scene %sx%s with %d top-level layers", width, height, len(layers))
        return scene

    def layer(self, payload: object, *, depth: int = 0, where: str = "layer") -> LayerNode:
        if isinstance(payload, list):
            return Group().add([self.layer(item, depth=depth, where=f"{where}[{i}]") for i, item in enumerate(payload)])
        if not isinstance(payload, Mapping):
            raise DocumentValidationError(f"{where} must be an object")
        kind = payload.get("type")
        layer_id = payload.get("id")
        try:
            z_index = int(payload.get("zIndex", 1))
        except (TypeError, ValueError) as exc:
            raise DocumentValidationError(f"{where}: zIndex must be an integer") from exc
        visible = bool(payload.get("visible", True))
        if kind == "group":
            children = payload.get("layers", [])
            if not isinstance(children, list):
                raise DocumentValidationError(f"{where}: group layers must be an array")
            group = Group(id=None if layer_id is None else str(layer_id), z_index=z_index, visible=visible)
            return group.add([self.layer(item, depth=depth, where=f"{where}.layers[{i}]") for i, item in enumerate(children)])
        cls = LAYER_KINDS.get(str(kind))
        if cls is None:
            raise DocumentValidationError(f"{where}: unknown layer type `{kind}`")
        props_raw = payload.get("props", {})
        if not isinstance(props_raw, Mapping):
            raise DocumentValidationError(f"{where}: props must be an object")
        for required in cls.required_props:
            if required not in props_raw:
                raise DocumentValidationError(f"{where}: {kind} layer missing required field: {required}")
        try:
            props = self._props(cls.props_type, props_raw, depth)
            return cls(props, id=None if layer_id is None else str(layer_id), z_index=z_index, visible=visible)
        except DocumentValidationError:
            raise
        except (TypeError, ValueError) as exc:
            raise DocumentValidationError(f"{where}: {exc}") from exc

    def _props(self, props_type: type[LayerProps], payload: Mapping[str, object], depth: int) -> LayerProps:
        defaults = props_type()
        kwargs: dict[str, object] = {}
        for f in fields(props_type):
            key = camel_key(f.name)
            if key not in payload:
                continue
            raw = payload[key]
            current = getattr(defaults, f.name)
            if f.name == "fill_style":
                value: object = self._fill(raw, depth)
            elif f.name == "shadow":
                value = None if raw is None else Shadow.from_dict(raw)
            elif f.name == "control_points":
                value = [LengthPoint.from_dict(p) for p in _array(raw, key)]
            elif f.name == "substring_colors":
                value = [SubstringColor.from_dict(c) for c in _array(raw, key)]
            elif f.name == "path":
                value = PathData.from_svg(str(raw))
            elif isinstance(current, Record):
                value = type(current).from_dict(raw)
            else:
                value = length_from_dict(raw)
            kwargs[f.name] = value
        return props_type(**kwargs)

    def _fill(self, raw: object, depth: int) -> FillStyle:
        if isinstance(raw, str):
            return raw
        if not isinstance(raw, Mapping):
            raise TypeError("fillStyle must be a color string or an object")
        fill_type = raw.get("fillType")
        if fill_type == "gradient":
            return Gradient.from_dict(raw)
        if fill_type != "pattern":
            raise ValueError(f"unknown fillType `{fill_type}`")
        src = raw.get("src", "")
        if isinstance(src, Mapping):
            if depth + 1 > MAX_PATTERN_DEPTH:
                raise DocumentValidationError(f"pattern scenes nested deeper than {MAX_PATTERN_DEPTH}")
            src = self.read(src, depth=depth + 1)
        elif not isinstance(src, str):
            raise TypeError("pattern src must be an image locator or a scene document")
        return Pattern(type=str(raw.get("type", "repeat")), src=src)


def read_document(
    payload: object,
    *,
    plugins: PluginManager | None = None,
    fonts: FontRegistry | None = None,
    debug: bool = False,
) -> Scene:
    return DocumentReader(plugins=plugins, fonts=fonts, debug=debug).read(payload)


def read_yaml(text: str, **kwargs: object) -> Scene:
    try:
        payload = load_yaml(text)
    except yaml.YAMLError as exc:
        raise DocumentValidationError(f"invalid YAML document: {exc}") from exc
    return read_document(payload, **kwargs)


def read_json(text: str, **kwargs: object) -> Scene:
    try:
        payload = load_json(text)
    except json.JSONDecodeError as exc:
        raise DocumentValidationError(f"invalid JSON document: {exc}") from exc
    return read_document(payload, **kwargs)


def read_file(path: str | Path, **kwargs: object) -> Scene:
    doc_path = Path(path)
    if not doc_path.exists():
        raise FileNotFoundError(f"File not found: {doc_path}")
    text = doc_path.read_text(encoding="utf-8")
    suffix = doc_path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return read_yaml(text, **kwargs)
    if suffix == ".json":
        return read_json(text, **kwargs)
    raise DocumentValidationError(f"unsupported document format: `{suffix or doc_path.name}`")


def write_document(scene: Scene, path: str | Path) -> Path:
    doc_path = Path(path)
    suffix = doc_path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        text = to_yaml(scene.to_dict())
    elif suffix == ".json":
        text = to_json(scene.to_dict())
    else:
        raise DocumentValidationError(f"unsupported document format: `{suffix or doc_path.name}`")
    doc_path.parent.mkdir(parents=True, exist_ok=True)
    doc_path.write_text(text, encoding="utf-8")
    return doc_path


def _positive_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _array(value: object, key: str) -> list[object]:
    if not isinstance(value, list):
        raise TypeError(f"{key} must be an array")
    return value
