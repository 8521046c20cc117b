from __future__ import annotations

import base64
from dataclasses import dataclass, replace
from enum import IntFlag
import io
import itertools
import logging
import math
import xml.etree.ElementTree as ET

from PIL import Image

from .color import RGBA, to_hex
from .fonts import FontRegistry, TextMetrics
from .matrix import Affine
from .paint import GradientPaint, Paint, PatternPaint, SolidPaint
from .paths import PathData
from .surface import FillRule, ShadowStyle, StrokeStyle, TextStyle


LOGGER = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
_NO_REPEAT_EXTENT = 100000
_BLEND_MODES = frozenset(
    {
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
    }
)
_TEXT_ANCHORS = {"left": "start", "start": "start", "center": "middle", "right": "end", "end": "end"}
_DOMINANT_BASELINES = {
    "top": "text-before-edge",
    "hanging": "hanging",
    "middle": "middle",
    "alphabetic": "alphabetic",
    "ideographic": "ideographic",
    "bottom": "text-after-edge",
}


class SvgExportFlag(IntFlag):
    NONE = 0
    CONVERT_TEXT_TO_PATHS = 1
    NO_PRETTY_XML = 2
    RELATIVE_PATH_ENCODING = 4


@dataclass
class _State:
    matrix: Affine = Affine()
    alpha: float = 1.0
    composite: str = "source-over"
    shadow: ShadowStyle | None = None
    filter: str | None = None
    clip_id: str | None = None


class SvgSurface:
    """Vector surface that records draw calls as an SVG element tree."""

    def __init__(
        self,
        width: int,
        height: int,
        flags: SvgExportFlag | int = SvgExportFlag.RELATIVE_PATH_ENCODING,
        fonts: FontRegistry | None = None,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("surface width/height must be > 0")
        self.width = int(width)
        self.height = int(height)
        self.flags = SvgExportFlag(int(flags))
        self.fonts = fonts if fonts is not None else FontRegistry()
        if self.flags & SvgExportFlag.CONVERT_TEXT_TO_PATHS:
            LOGGER.warning("svg text-to-path conversion is not supported; text stays as <text> elements")
        self._ids = itertools.count(1)
        self._state = _State()
        self._stack: list[_State] = []
        self._warned_modes: set[str] = set()
        self._root = ET.Element(
            "svg",
            {
                "xmlns": SVG_NS,
                "width": str(self.width),
                "height": str(self.height),
                "viewBox": f"0 0 {self.width} {self.height}",
            },
        )
        self._defs = ET.SubElement(self._root, "defs")
        self._body = ET.SubElement(self._root, "g")

    def save(self) -> None:
        self._stack.append(replace(self._state))

    def restore(self) -> None:
        if self._stack:
            self._state = self._stack.pop()

    def set_composite(self, mode: str) -> None:
        self._state.composite = mode

    def set_opacity(self, alpha: float) -> None:
        if alpha < 0.0 or alpha > 1.0:
            raise ValueError("opacity must be in [0, 1]")
        self._state.alpha = float(alpha)

    def set_shadow(self, shadow: ShadowStyle | None) -> None:
        self._state.shadow = shadow

    def set_filter(self, filter: str | None) -> None:
        self._state.filter = filter or None

    def transform(self, matrix: Affine) -> None:
        self._state.matrix = self._state.matrix.multiply(matrix)

    def reset_transform(self) -> None:
        self._state.matrix = Affine()

    def fill_path(self, path: PathData, paint: Paint, rule: FillRule = "nonzero") -> None:
        if path.is_empty():
            return
        element = ET.Element("path", {"d": self._path_data(path)})
        self._apply_paint(element, "fill", paint)
        if rule == "evenodd":
            element.set("fill-rule", "evenodd")
        self._emit(element)

    def stroke_path(self, path: PathData, paint: Paint, stroke: StrokeStyle) -> None:
        if path.is_empty() or stroke.width <= 0:
            return
        element = ET.Element("path", {"d": self._path_data(path), "fill": "none"})
        self._apply_paint(element, "stroke", paint)
        self._apply_stroke(element, stroke)
        self._emit(element)

    def clip(self, path: PathData) -> None:
        clip_id = self._next_id("clip")
        clip_path = ET.SubElement(self._defs, "clipPath", {"id": clip_id})
        if self._state.clip_id is not None:
            clip_path.set("clip-path", f"url(#{self._state.clip_id})")
        shape = ET.SubElement(clip_path, "path", {"d": self._path_data(path)})
        if not self._state.matrix.is_identity:
            shape.set("transform", self._state.matrix.to_svg())
        self._state.clip_id = clip_id

    def draw_image(self, image: Image.Image, x: float, y: float, width: float, height: float) -> None:
        if width == 0 or height == 0:
            return
        element = ET.Element(
            "image",
            {
                "x": _fmt(x),
                "y": _fmt(y),
                "width": _fmt(abs(width)),
                "height": _fmt(abs(height)),
                "preserveAspectRatio": "none",
                "href": _data_uri(image),
            },
        )
        if width < 0 or height < 0:
            element.set("x", _fmt(min(x, x + width)))
            element.set("y", _fmt(min(y, y + height)))
        self._emit(element)

    def fill_text(
        self,
        text: str,
        x: float,
        y: float,
        style: TextStyle,
        paint: Paint,
        max_width: float | None = None,
    ) -> None:
        if text == "":
            return
        element = self._text_element(text, x, y, style, max_width)
        self._apply_paint(element, "fill", paint)
        self._emit(element)

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
        if text == "":
            return
        element = self._text_element(text, x, y, style, max_width)
        element.set("fill", "none")
        self._apply_paint(element, "stroke", paint)
        self._apply_stroke(element, stroke)
        self._emit(element)

    def measure_text(self, text: str, style: TextStyle) -> TextMetrics:
        return self.fonts.measure(
            text,
            style.family,
            style.size,
            style.weight,
            letter_spacing=style.letter_spacing,
            word_spacing=style.word_spacing,
        )

    def clear_rect(self, x: float, y: float, width: float, height: float) -> None:
        if len(self._body) == 0:
            return
        mask_id = self._next_id("clear")
        mask = ET.SubElement(
            self._defs,
            "mask",
            {"id": mask_id, "maskUnits": "userSpaceOnUse", "x": "0", "y": "0", "width": str(self.width), "height": str(self.height)},
        )
        ET.SubElement(mask, "rect", {"x": "0", "y": "0", "width": str(self.width), "height": str(self.height), "fill": "#ffffff"})
        hole = ET.SubElement(
            mask,
            "rect",
            {"x": _fmt(x), "y": _fmt(y), "width": _fmt(width), "height": _fmt(height), "fill": "#000000"},
        )
        if not self._state.matrix.is_identity:
            hole.set("transform", self._state.matrix.to_svg())
        masked = ET.Element("g", {"mask": f"url(#{mask_id})"})
        for child in list(self._body):
            self._body.remove(child)
            masked.append(child)
        self._body.append(masked)

    def to_string(self) -> str:
        if not self.flags & SvgExportFlag.NO_PRETTY_XML:
            ET.indent(self._root)
        return ET.tostring(self._root, encoding="unicode")

    def encode(self) -> bytes:
        return self.to_string().encode("utf-8")

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def _path_data(self, path: PathData) -> str:
        return path.to_svg(relative=bool(self.flags & SvgExportFlag.RELATIVE_PATH_ENCODING))

    def _emit(self, element: ET.Element) -> None:
        state = self._state
        if not state.matrix.is_identity:
            element.set("transform", state.matrix.to_svg())
        if state.shadow is not None and state.shadow.visible:
            element.set("filter", f"url(#{self._shadow_filter(state.shadow)})")
        styles: list[str] = []
        if state.filter:
            styles.append(f"filter:{state.filter}")
        if state.composite in _BLEND_MODES:
            styles.append(f"mix-blend-mode:{state.composite}")
        elif state.composite != "source-over" and state.composite not in self._warned_modes:
            self._warned_modes.add(state.composite)
            LOGGER.warning("composite mode `%s` has no svg equivalent; drawing with source-over", state.composite)
        if state.clip_id is None and state.alpha >= 1.0 and not styles:
            self._body.append(element)
            return
        wrapper = ET.SubElement(self._body, "g")
        if state.clip_id is not None:
            wrapper.set("clip-path", f"url(#{state.clip_id})")
        if state.alpha < 1.0:
            wrapper.set("opacity", _fmt(state.alpha))
        if styles:
            wrapper.set("style", ";".join(styles))
        wrapper.append(element)

    def _shadow_filter(self, shadow: ShadowStyle) -> str:
        filter_id = self._next_id("shadow")
        node = ET.SubElement(
            self._defs,
            "filter",
            {"id": filter_id, "x": "-50%", "y": "-50%", "width": "200%", "height": "200%"},
        )
        ET.SubElement(
            node,
            "feDropShadow",
            {
                "dx": _fmt(shadow.offset_x),
                "dy": _fmt(shadow.offset_y),
                "stdDeviation": _fmt(shadow.blur / 2.0),
                "flood-color": to_hex(shadow.color),
                "flood-opacity": _fmt(shadow.color[3] / 255.0),
            },
        )
        return filter_id

    def _apply_paint(self, element: ET.Element, attribute: str, paint: Paint) -> None:
        if isinstance(paint, SolidPaint):
            _set_color(element, attribute, paint.color)
        elif isinstance(paint, GradientPaint):
            if paint.kind == "conic":
                LOGGER.warning("conic gradients are not supported in svg; using the first stop color")
                first = min(paint.stops, key=lambda stop: stop.offset).color if paint.stops else (0, 0, 0, 0)
                _set_color(element, attribute, first)
                return
            element.set(attribute, f"url(#{self._gradient_def(paint)})")
        else:
            element.set(attribute, f"url(#{self._pattern_def(paint)})")

    def _gradient_def(self, paint: GradientPaint) -> str:
        gradient_id = self._next_id("gradient")
        if paint.kind == "linear":
            (x0, y0), (x1, y1) = paint.points[0][:2], paint.points[1][:2]
            node = ET.SubElement(
                self._defs,
                "linearGradient",
                {"id": gradient_id, "x1": _fmt(x0), "y1": _fmt(y0), "x2": _fmt(x1), "y2": _fmt(y1)},
            )
        else:
            start, end = paint.points[0], paint.points[1]
            node = ET.SubElement(
                self._defs,
                "radialGradient",
                {
                    "id": gradient_id,
                    "fx": _fmt(start[0]),
                    "fy": _fmt(start[1]),
                    "fr": _fmt(start[2] if len(start) > 2 else 0.0),
                    "cx": _fmt(end[0]),
                    "cy": _fmt(end[1]),
                    "r": _fmt(end[2] if len(end) > 2 else 0.0),
                },
            )
        node.set("gradientUnits", "userSpaceOnUse")
        for stop in sorted(paint.stops, key=lambda stop: stop.offset):
            item = ET.SubElement(node, "stop", {"offset": _fmt(stop.offset), "stop-color": to_hex(stop.color)})
            if stop.color[3] < 255:
                item.set("stop-opacity", _fmt(stop.color[3] / 255.0))
        return gradient_id

    def _pattern_def(self, paint: PatternPaint) -> str:
        pattern_id = self._next_id("pattern")
        tile_w, tile_h = paint.image.size
        width = tile_w if paint.repeat in ("repeat", "repeat-x") else _NO_REPEAT_EXTENT
        height = tile_h if paint.repeat in ("repeat", "repeat-y") else _NO_REPEAT_EXTENT
        node = ET.SubElement(
            self._defs,
            "pattern",
            {"id": pattern_id, "patternUnits": "userSpaceOnUse", "width": str(width), "height": str(height)},
        )
        ET.SubElement(
            node,
            "image",
            {"width": str(tile_w), "height": str(tile_h), "href": _data_uri(paint.image)},
        )
        return pattern_id

    def _apply_stroke(self, element: ET.Element, stroke: StrokeStyle) -> None:
        element.set("stroke-width", _fmt(stroke.width))
        if stroke.cap != "butt":
            element.set("stroke-linecap", stroke.cap)
        if stroke.join != "miter":
            element.set("stroke-linejoin", stroke.join)
        if stroke.miter_limit != 10.0:
            element.set("stroke-miterlimit", _fmt(stroke.miter_limit))
        if stroke.dash:
            element.set("stroke-dasharray", " ".join(_fmt(v) for v in stroke.dash))
            if stroke.dash_offset:
                element.set("stroke-dashoffset", _fmt(stroke.dash_offset))

    def _text_element(
        self,
        text: str,
        x: float,
        y: float,
        style: TextStyle,
        max_width: float | None,
    ) -> ET.Element:
        element = ET.Element(
            "text",
            {
                "x": _fmt(x),
                "y": _fmt(y),
                "font-family": style.family,
                "font-size": _fmt(style.size),
                "font-weight": str(style.weight),
            },
        )
        anchor = _TEXT_ANCHORS.get(style.align, "start")
        if anchor != "start":
            element.set("text-anchor", anchor)
        if style.baseline != "alphabetic":
            element.set("dominant-baseline", _DOMINANT_BASELINES[style.baseline])
        if style.direction == "rtl":
            element.set("direction", "rtl")
        if style.letter_spacing:
            element.set("letter-spacing", _fmt(style.letter_spacing))
        if style.word_spacing:
            element.set("word-spacing", _fmt(style.word_spacing))
        if max_width is not None and max_width > 0:
            measured = self.measure_text(text, style).width
            if measured > max_width:
                element.set("textLength", _fmt(max_width))
                element.set("lengthAdjust", "spacingAndGlyphs")
        element.text = text
        return element


def _set_color(element: ET.Element, attribute: str, color: RGBA) -> None:
    element.set(attribute, to_hex(color))
    if color[3] < 255:
        element.set(f"{attribute}-opacity", _fmt(color[3] / 255.0))


def _data_uri(image: Image.Image) -> str:
    buffer = io.BytesIO()
    image.convert("RGBA").save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


def _fmt(value: float) -> str:
    if not math.isfinite(value):
        return "0"
    rounded = round(float(value), 4)
    if rounded == int(rounded):
        return str(int(rounded))
    return repr(rounded)
