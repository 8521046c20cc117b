from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from PIL import Image

from .color import RGBA
from .fonts import TextMetrics
from .matrix import Affine
from .paint import Paint
from .paths import PathData


LineCap = Literal["butt", "round", "square"]
LineJoin = Literal["bevel", "round", "miter"]
TextAlign = Literal["left", "right", "center", "start", "end"]
TextBaseline = Literal["top", "hanging", "middle", "alphabetic", "ideographic", "bottom"]
TextDirection = Literal["ltr", "rtl", "inherit"]
FillRule = Literal["nonzero", "evenodd"]

LINE_CAPS: tuple[str, ...] = ("butt", "round", "square")
LINE_JOINS: tuple[str, ...] = ("bevel", "round", "miter")
TEXT_ALIGNS: tuple[str, ...] = ("left", "right", "center", "start", "end")
TEXT_BASELINES: tuple[str, ...] = ("top", "hanging", "middle", "alphabetic", "ideographic", "bottom")
TEXT_DIRECTIONS: tuple[str, ...] = ("ltr", "rtl", "inherit")
COMPOSITE_MODES: tuple[str, ...] = (
    "source-over",
    "source-in",
    "source-out",
    "source-atop",
    "destination-over",
    "destination-in",
    "destination-out",
    "destination-atop",
    "lighter",
    "copy",
    "xor",
    "multiply",
    "screen",
    "overlay",
    "darken",
    "lighten",
    "color-dodge",
    "color-burn",
    "hard-light",
    "soft-light",
    "difference",
    "exclusion",
    "hue",
    "saturation",
    "color",
    "luminosity",
)


@dataclass(frozen=True)
class StrokeStyle:
    width: float = 1.0
    cap: LineCap = "butt"
    join: LineJoin = "miter"
    dash: tuple[float, ...] = ()
    dash_offset: float = 0.0
    miter_limit: float = 10.0

    def __post_init__(self) -> None:
        if self.width < 0:
            raise ValueError("stroke width must be >= 0")
        if self.cap not in LINE_CAPS:
            raise ValueError(f"line cap must be one of {LINE_CAPS}")
        if self.join not in LINE_JOINS:
            raise ValueError(f"line join must be one of {LINE_JOINS}")
        if any(v < 0 for v in self.dash):
            raise ValueError("dash lengths must be >= 0")


@dataclass(frozen=True)
class ShadowStyle:
    color: RGBA
    blur: float = 0.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    @property
    def visible(self) -> bool:
        return self.color[3] > 0 and (self.blur > 0 or self.offset_x != 0 or self.offset_y != 0)


@dataclass(frozen=True)
class TextStyle:
    family: str = "Geist"
    size: float = 16.0
    weight: int = 400
    align: TextAlign = "left"
    baseline: TextBaseline = "alphabetic"
    direction: TextDirection = "inherit"
    letter_spacing: float = 0.0
    word_spacing: float = 0.0

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError("font size must be > 0")


class DrawingSurface(Protocol):
    """Immediate-mode 2D surface the render orchestrator and layers draw into."""

    width: int
    height: int

    def save(self) -> None:
        ...

    def restore(self) -> None:
        ...

    def set_composite(self, mode: str) -> None:
        ...

    def set_opacity(self, alpha: float) -> None:
        ...

    def set_shadow(self, shadow: ShadowStyle | None) -> None:
        ...

    def set_filter(self, filter: str | None) -> None:
        ...

    def transform(self, matrix: Affine) -> None:
        ...

    def fill_path(self, path: PathData, paint: Paint, rule: FillRule = "nonzero") -> None:
        ...

    def stroke_path(self, path: PathData, paint: Paint, stroke: StrokeStyle) -> None:
        ...

    def clip(self, path: PathData) -> None:
        ...

    def draw_image(self, image: Image.Image, x: float, y: float, width: float, height: float) -> None:
        ...

    def fill_text(
        self,
        text: str,
        x: float,
        y: float,
        style: TextStyle,
        paint: Paint,
        max_width: float | None = None,
    ) -> None:
        ...

    def stroke_text(
        self,
        text: str,
        x: float,
        y: float,
        style: TextStyle,
        paint: Paint,
        stroke: StrokeStyle,
        max_width: float | None = None,
    ) -> None:
        ...

    def measure_text(self, text: str, style: TextStyle) -> TextMetrics:
        ...

    def clear_rect(self, x: float, y: float, width: float, height: float) -> None:
        ...


def text_origin(
    metrics: TextMetrics,
    x: float,
    y: float,
    style: TextStyle,
) -> tuple[float, float]:
    """Top-left corner of a text run drawn at `(x, y)` under the style's align/baseline."""

    align = style.align
    if style.direction == "rtl":
        align = {"start": "end", "end": "start"}.get(align, align)
    if align in ("center",):
        left = x - metrics.width / 2.0
    elif align in ("right", "end"):
        left = x - metrics.width
    else:
        left = x
    baseline = style.baseline
    if baseline in ("top", "hanging"):
        top = y
    elif baseline == "middle":
        top = y - metrics.height / 2.0
    elif baseline in ("ideographic", "bottom"):
        top = y - metrics.height
    else:
        top = y - metrics.ascent
    return (left, top)
