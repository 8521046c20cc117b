from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field, fields
import math
import uuid
from typing import ClassVar, Iterator, Mapping

from lazyscene_core.core.alignment import validate_centring
from lazyscene_core.core.lengths import LengthParser, LengthValue, length_from_dict, scale_length
from lazyscene_core.core.render_manager import RenderContext
from lazyscene_core.render.color import parse_color
from lazyscene_core.render.matrix import Affine
from lazyscene_core.render.paths import PathData
from lazyscene_core.render.surface import COMPOSITE_MODES, ShadowStyle, StrokeStyle


_KEY_OVERRIDES = {"substring_colors": "subStringColors"}


def camel_key(name: str) -> str:
    if name in _KEY_OVERRIDES:
        return _KEY_OVERRIDES[name]
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def encode_value(value: object) -> object:
    if isinstance(value, PathData):
        return value.to_svg()
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    return value


def new_layer_id(kind: str) -> str:
    return f"{kind}-{uuid.uuid4().hex[:12]}"


class Record:
    """camelCase dict mapping shared by props and their small value objects."""

    def to_dict(self) -> dict[str, object]:
        return {camel_key(f.name): encode_value(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]):
        if not isinstance(payload, Mapping):
            raise TypeError(f"{cls.__name__} must be an object")
        known = {camel_key(f.name): f.name for f in fields(cls)}
        return cls(**{known[key]: length_from_dict(value) for key, value in payload.items() if key in known})


@dataclass
class LengthPoint(Record):
    x: LengthValue = 0
    y: LengthValue = 0

    def resize(self, ratio: float) -> None:
        self.x = scale_length(self.x, ratio)
        self.y = scale_length(self.y, ratio)


@dataclass
class BoxSize(Record):
    width: LengthValue = 0
    height: LengthValue = 0
    radius: LengthValue = 0

    def resize(self, ratio: float) -> None:
        self.width = scale_length(self.width, ratio)
        self.height = scale_length(self.height, ratio)
        self.radius = scale_length(self.radius, ratio)


@dataclass
class Shadow(Record):
    color: str = "transparent"
    blur: float = 0.0
    offset_x: LengthValue = 0
    offset_y: LengthValue = 0

    def __post_init__(self) -> None:
        parse_color(self.color)
        if self.blur < 0:
            raise ValueError("shadow blur must be >= 0")

    def resolve(self, parser: LengthParser) -> ShadowStyle:
        return ShadowStyle(
            color=parse_color(self.color),
            blur=float(self.blur),
            offset_x=parser.parse(self.offset_x),
            offset_y=parser.parse(self.offset_y, axis="vertical"),
        )


@dataclass
class Stroke(Record):
    width: float = 1.0
    cap: str = "butt"
    join: str = "miter"
    dash: tuple[float, ...] = ()
    dash_offset: float = 0.0
    miter_limit: float = 10.0

    def __post_init__(self) -> None:
        self.dash = tuple(float(v) for v in self.dash)
        self.style()

    def style(self) -> StrokeStyle:
        return StrokeStyle(
            width=float(self.width),
            cap=self.cap,
            join=self.join,
            dash=self.dash,
            dash_offset=float(self.dash_offset),
            miter_limit=float(self.miter_limit),
        )


@dataclass
class Transform(Record):
    """Per-layer transform: translate, then rotate (degrees) about the pivot, then scale, then matrix."""

    rotate: float = 0.0
    scale: tuple[float, float] | None = None
    translate: tuple[LengthValue, LengthValue] | None = None
    matrix: tuple[float, float, float, float, float, float] | None = None

    def __post_init__(self) -> None:
        if self.scale is not None:
            self.scale = _pair(self.scale, "transform.scale")
        if self.translate is not None:
            self.translate = _pair(self.translate, "transform.translate")
        if self.matrix is not None:
            if len(self.matrix) != 6:
                raise ValueError("transform.matrix must have 6 values")
            self.matrix = tuple(float(v) for v in self.matrix)

    def is_empty(self) -> bool:
        return not self.rotate and self.scale is None and self.translate is None and self.matrix is None

    def to_affine(self, parser: LengthParser, pivot: tuple[float, float]) -> Affine:
        out = Affine()
        if self.translate is not None:
            out = out.translate(parser.parse(self.translate[0]), parser.parse(self.translate[1], axis="vertical"))
        if self.rotate:
            cx, cy = pivot
            out = out.translate(cx, cy).rotate(math.radians(self.rotate)).translate(-cx, -cy)
        if self.scale is not None:
            out = out.scale(float(self.scale[0]), float(self.scale[1]))
        if self.matrix is not None:
            out = out.multiply(Affine(*self.matrix))
        return out

    def resize(self, ratio: float) -> None:
        if self.translate is not None:
            self.translate = (scale_length(self.translate[0], ratio), scale_length(self.translate[1], ratio))
        if self.scale is not None:
            self.scale = (self.scale[0] * ratio, self.scale[1] * ratio)


@dataclass
class LayerProps(Record):
    x: LengthValue = 0
    y: LengthValue = 0
    centring: str = "center"
    opacity: float = 1.0
    filter: str | None = None
    shadow: Shadow | None = None
    transform: Transform = field(default_factory=Transform)
    global_composite: str | None = None

    def __post_init__(self) -> None:
        validate_centring(self.centring)
        _check_opacity(self.opacity)
        if self.global_composite is not None:
            _check_composite(self.global_composite)

    def resize(self, ratio: float) -> None:
        self.x = scale_length(self.x, ratio)
        self.y = scale_length(self.y, ratio)
        self.transform.resize(ratio)


@dataclass
class PaintedProps(LayerProps):
    fill_style: object = "#000000"
    filled: bool = True
    stroke: Stroke = field(default_factory=Stroke)

    def __post_init__(self) -> None:
        super().__post_init__()
        if isinstance(self.fill_style, str):
            parse_color(self.fill_style)

    def resize(self, ratio: float) -> None:
        super().resize(ratio)
        self.stroke.width = self.stroke.width * ratio


class BaseLayer:
    """Shared identity, ordering and state setters for every drawable layer kind."""

    kind: ClassVar[str] = "base"
    props_type: ClassVar[type[LayerProps]] = LayerProps
    required_props: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        props: LayerProps | None = None,
        *,
        id: str | None = None,
        z_index: int = 1,
        visible: bool = True,
    ) -> None:
        if props is not None and not isinstance(props, self.props_type):
            raise TypeError(f"{self.kind} props must be {self.props_type.__name__}")
        self.props = props if props is not None else self.props_type()
        self.id = new_layer_id(self.kind)
        if id is not None:
            self.set_id(id)
        self.z_index = int(z_index)
        self.visible = bool(visible)

    def set_id(self, layer_id: str) -> "BaseLayer":
        if not layer_id.strip():
            raise ValueError("layer id must be non-empty")
        self.id = layer_id
        return self

    def set_z_index(self, z_index: int) -> "BaseLayer":
        self.z_index = int(z_index)
        return self

    def set_visible(self, visible: bool) -> "BaseLayer":
        self.visible = bool(visible)
        return self

    def set_position(self, x: LengthValue, y: LengthValue) -> "BaseLayer":
        self.props.x = x
        self.props.y = y
        return self

    def set_opacity(self, opacity: float) -> "BaseLayer":
        _check_opacity(opacity)
        self.props.opacity = float(opacity)
        return self

    def set_centring(self, centring: str) -> "BaseLayer":
        self.props.centring = validate_centring(centring)
        return self

    def set_shadow(
        self,
        color: str,
        blur: float = 0.0,
        offset_x: LengthValue = 0,
        offset_y: LengthValue = 0,
    ) -> "BaseLayer":
        self.props.shadow = Shadow(color=color, blur=blur, offset_x=offset_x, offset_y=offset_y)
        return self

    def set_matrix(self, a: float, b: float, c: float, d: float, e: float, f: float) -> "BaseLayer":
        self.props.transform.matrix = (float(a), float(b), float(c), float(d), float(e), float(f))
        return self

    def set_scale(self, x: float, y: float) -> "BaseLayer":
        self.props.transform.scale = (float(x), float(y))
        return self

    def set_rotate(self, degrees: float) -> "BaseLayer":
        self.props.transform.rotate = float(degrees)
        return self

    def set_translate(self, x: LengthValue, y: LengthValue) -> "BaseLayer":
        self.props.transform.translate = (x, y)
        return self

    def set_filters(self, *filters: str) -> "BaseLayer":
        self.props.filter = " ".join(f.strip() for f in filters if f.strip()) or None
        return self

    def set_global_composite_operation(self, mode: str) -> "BaseLayer":
        _check_composite(mode)
        self.props.global_composite = mode
        return self

    def resize(self, ratio: float) -> "BaseLayer":
        self.props.resize(ratio)
        return self

    def draw(self, context: RenderContext) -> None:
        raise NotImplementedError

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "type": self.kind,
            "zIndex": self.z_index,
            "visible": self.visible,
            "props": self.props.to_dict(),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, z_index={self.z_index})"

    @contextmanager
    def _drawing(self, context: RenderContext, pivot: tuple[float, float]) -> Iterator[None]:
        surface = context.surface
        surface.save()
        try:
            if not self.props.transform.is_empty():
                surface.transform(self.props.transform.to_affine(context.parser, pivot))
            if self.props.shadow is not None:
                surface.set_shadow(self.props.shadow.resolve(context.parser))
            surface.set_opacity(self.props.opacity)
            surface.set_filter(self.props.filter)
            yield
        finally:
            surface.restore()


class PaintedLayer(BaseLayer):
    """Layer kinds with a fill style and an optional outline."""

    props_type: ClassVar[type[LayerProps]] = PaintedProps

    def set_color(self, fill_style: object) -> "PaintedLayer":
        if isinstance(fill_style, str):
            parse_color(fill_style)
        elif not hasattr(fill_style, "resolve"):
            raise TypeError("fill style must be a color string, Gradient or Pattern")
        self.props.fill_style = fill_style
        return self

    def set_filled(self, filled: bool) -> "PaintedLayer":
        self.props.filled = bool(filled)
        return self

    def set_stroke(
        self,
        width: float,
        cap: str = "butt",
        join: str = "miter",
        dash: tuple[float, ...] = (),
        dash_offset: float = 0.0,
        miter_limit: float = 10.0,
    ) -> "PaintedLayer":
        self.props.stroke = Stroke(
            width=width,
            cap=cap,
            join=join,
            dash=tuple(dash),
            dash_offset=dash_offset,
            miter_limit=miter_limit,
        )
        self.props.filled = False
        return self


def _pair(value: object, name: str) -> tuple[object, object]:
    if isinstance(value, Mapping):
        return (length_from_dict(value.get("x", 0)), length_from_dict(value.get("y", 0)))
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"{name} must be a pair")
    return (length_from_dict(value[0]), length_from_dict(value[1]))



def _check_opacity(opacity: float) -> None:
    if opacity < 0 or opacity > 1:
        raise ValueError("opacity must be in [0, 1]")


def _check_composite(mode: str) -> None:
    if mode not in COMPOSITE_MODES:
        raise ValueError(f"unsupported composite operation: {mode}")
