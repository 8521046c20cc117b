from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, ClassVar, Mapping

from lazyscene_core.core.lengths import LengthParser, LengthRequest, LengthValue, Size, scale_length
from lazyscene_core.core.render_manager import RenderContext
from lazyscene_core.render.color import parse_color
from lazyscene_core.render.fonts import TextMetrics
from lazyscene_core.render.paint import Paint, SolidPaint
from lazyscene_core.render.surface import TEXT_ALIGNS, TEXT_BASELINES, TEXT_DIRECTIONS, DrawingSurface, TextStyle

from .base import LayerProps, PaintedLayer, PaintedProps, Record
from .paint import PaintBox, resolve_paint


@dataclass
class Font(Record):
    family: str = "Geist"
    size: float = 16.0
    weight: int = 400

    def __post_init__(self) -> None:
        if not self.family.strip():
            raise ValueError("font family must be non-empty")
        if self.size <= 0:
            raise ValueError("font size must be > 0")


@dataclass
class Multiline(Record):
    enabled: bool = False
    spacing: float = 1.1

    def __post_init__(self) -> None:
        if self.spacing <= 0:
            raise ValueError("line spacing must be > 0")


@dataclass
class TextBox(Record):
    width: LengthValue = "vw"
    height: LengthValue = 0

    def resize(self, ratio: float) -> None:
        self.width = scale_length(self.width, ratio)
        self.height = scale_length(self.height, ratio)


@dataclass
class SubstringColor(Record):
    start: int = 0
    end: int = 0
    color: str = "#000000"

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError("substring color range must satisfy 0 <= start <= end")
        parse_color(self.color)


@dataclass
class TextProps(PaintedProps):
    centring: str = "none"
    text: str = ""
    font: Font = field(default_factory=Font)
    multiline: Multiline = field(default_factory=Multiline)
    size: TextBox = field(default_factory=TextBox)
    align: str = "left"
    baseline: str = "alphabetic"
    direction: str = "inherit"
    letter_spacing: float = 0.0
    word_spacing: float = 0.0
    substring_colors: list[SubstringColor] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__post_init__()
        _check_choice(self.align, TEXT_ALIGNS, "text align")
        _check_choice(self.baseline, TEXT_BASELINES, "text baseline")
        _check_choice(self.direction, TEXT_DIRECTIONS, "text direction")
        self.substring_colors = [_as_substring(c) for c in self.substring_colors]

    def resize(self, ratio: float) -> None:
        super().resize(ratio)
        self.font.size = self.font.size * ratio
        self.size.resize(ratio)


def wrap_words(text: str, width: float, measure: Callable[[str], float]) -> list[str]:
    """Greedy word wrap: a line breaks before the word that would push it past `width`."""

    lines: list[str] = []
    line = ""
    for word in text.split(" "):
        candidate = f"{line}{word} "
        if line and measure(candidate) > width:
            lines.append(line.rstrip())
            line = f"{word} "
        else:
            line = candidate
    lines.append(line.rstrip())
    return lines


def layout_lines(
    surface: DrawingSurface,
    text: str,
    style: TextStyle,
    width: float,
    height: float,
    spacing: float,
) -> tuple[list[str], TextStyle, float]:
    """Wrap to `width`, shrinking the font one pixel at a time until the block fits `height`."""

    size = style.size
    while True:
        sized = replace(style, size=size)
        lines = wrap_words(text, width, lambda s: surface.measure_text(s, sized).width)
        line_height = size * spacing
        if height <= 0 or len(lines) * line_height <= height or size <= 1:
            return lines, sized, line_height
        size = max(1.0, size - 1.0)


def color_segments(text: str, colors: list[SubstringColor]) -> list[tuple[str, str | None]]:
    """Split text into runs; runs outside every substring range carry no color (`None`)."""

    out: list[tuple[str, str | None]] = []
    pos = 0
    for color in sorted(colors, key=lambda c: c.start):
        start = max(color.start, pos)
        end = min(color.end, len(text))
        if start >= end:
            continue
        if start > pos:
            out.append((text[pos:start], None))
        out.append((text[start:end], color.color))
        pos = end
    if pos < len(text):
        out.append((text[pos:], None))
    return out


class TextLayer(PaintedLayer):
    """Single-line or word-wrapped text with optional per-substring colors."""

    kind: ClassVar[str] = "text"
    props_type: ClassVar[type[LayerProps]] = TextProps

    def set_text(self, text: str) -> "TextLayer":
        self.props.text = str(text)
        return self

    def set_font(self, family: str, size: float, weight: int = 400) -> "TextLayer":
        self.props.font = Font(family=family, size=size, weight=weight)
        return self

    def set_multiline(self, width: LengthValue, height: LengthValue, spacing: float = 1.1) -> "TextLayer":
        self.props.multiline = Multiline(enabled=True, spacing=spacing)
        self.props.size = TextBox(width=width, height=height)
        return self

    def set_color(self, fill_style: object, *substring_colors: SubstringColor | Mapping[str, object]) -> "TextLayer":
        super().set_color(fill_style)
        self.props.substring_colors = [_as_substring(c) for c in substring_colors]
        return self

    def set_align(self, align: str) -> "TextLayer":
        self.props.align = _check_choice(align, TEXT_ALIGNS, "text align")
        return self

    def set_baseline(self, baseline: str) -> "TextLayer":
        self.props.baseline = _check_choice(baseline, TEXT_BASELINES, "text baseline")
        return self

    def set_direction(self, direction: str) -> "TextLayer":
        self.props.direction = _check_choice(direction, TEXT_DIRECTIONS, "text direction")
        return self

    def set_letter_spacing(self, spacing: float) -> "TextLayer":
        self.props.letter_spacing = float(spacing)
        return self

    def set_word_spacing(self, spacing: float) -> "TextLayer":
        self.props.word_spacing = float(spacing)
        return self

    def text_style(self) -> TextStyle:
        props = self.props
        return TextStyle(
            family=props.font.family,
            size=float(props.font.size),
            weight=int(props.font.weight),
            align=props.align,
            baseline=props.baseline,
            direction=props.direction,
            letter_spacing=float(props.letter_spacing),
            word_spacing=float(props.word_spacing),
        )

    def measure(self, parser: LengthParser, measure_text: Callable[[str, TextStyle], TextMetrics]) -> Size:
        """Multiline text reports its box; single-line text its advance width and font size."""

        props = self.props
        w = parser.parse(props.size.width)
        h = parser.parse(props.size.height, axis="vertical")
        if props.multiline.enabled:
            return Size(w, h)
        metrics = measure_text(props.text, self.text_style())
        return Size(metrics.width, float(props.font.size))

    def draw(self, context: RenderContext) -> None:
        props = self.props
        surface = context.surface
        values = context.parser.parse_batch(
            {
                "x": props.x,
                "y": LengthRequest(props.y, axis="vertical"),
                "w": props.size.width,
                "h": LengthRequest(props.size.height, axis="vertical"),
            }
        )
        x, y, w, h = values["x"], values["y"], values["w"], values["h"]
        style = self.text_style()
        max_width = w if w > 0 else None
        if props.multiline.enabled:
            pivot = (x + w / 2.0, y + h / 2.0)
        else:
            pivot = (x + _pivot_shift(style.align, surface.measure_text(props.text, style).width), y)
        with self._drawing(context, pivot):
            paint = resolve_paint(props.fill_style, context, PaintBox(x, y, w, h if h > 0 else style.size))
            if props.multiline.enabled:
                lines, sized, line_height = layout_lines(surface, props.text, style, w, h, props.multiline.spacing)
                for index, line in enumerate(lines):
                    self._draw_run(surface, line, x, y + index * line_height, sized, paint, max_width)
            elif props.substring_colors:
                self._draw_segments(surface, x, y, style, paint)
            else:
                self._draw_run(surface, props.text, x, y, style, paint, max_width)

    def _draw_segments(self, surface: DrawingSurface, x: float, y: float, style: TextStyle, paint: Paint) -> None:
        total = surface.measure_text(self.props.text, style).width
        cursor = x + _pivot_shift(style.align, total) - total / 2.0
        left_style = replace(style, align="left")
        for chunk, color in color_segments(self.props.text, self.props.substring_colors):
            chunk_paint = paint if color is None else SolidPaint(parse_color(color))
            self._draw_run(surface, chunk, cursor, y, left_style, chunk_paint, None)
            cursor += surface.measure_text(chunk, left_style).width

    def _draw_run(
        self,
        surface: DrawingSurface,
        text: str,
        x: float,
        y: float,
        style: TextStyle,
        paint: Paint,
        max_width: float | None,
    ) -> None:
        if not text:
            return
        if self.props.filled:
            surface.fill_text(text, x, y, style, paint, max_width)
        else:
            surface.stroke_text(text, x, y, style, paint, self.props.stroke.style(), max_width)


def _pivot_shift(align: str, width: float) -> float:
    """Offset from the anchor x to the horizontal centre of a run."""

    if align == "center":
        return 0.0
    if align in ("right", "end"):
        return -width / 2.0
    return width / 2.0


def _as_substring(value: object) -> SubstringColor:
    if isinstance(value, SubstringColor):
        return value
    if isinstance(value, Mapping):
        return SubstringColor.from_dict(value)
    if isinstance(value, (tuple, list)) and len(value) == 3:
        return SubstringColor(start=int(value[0]), end=int(value[1]), color=str(value[2]))
    raise TypeError("substring colors must be {start, end, color} objects")


def _check_choice(value: str, choices: tuple[str, ...], name: str) -> str:
    if value not in choices:
        raise ValueError(f"{name} must be one of {choices}, got `{value}`")
    return value
