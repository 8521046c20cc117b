from .color import RGBA, TRANSPARENT, is_color, parse_color, to_hex, with_opacity
from .compositing import SUPPORTED_MODES, composite, over, to_float, to_u8
from .fonts import FontFace, FontRegistry, TextMetrics
from .matrix import Affine
from .paint import GradientPaint, Paint, PatternPaint, ResolvedStop, SolidPaint, evaluate_paint
from .paths import PathData, Subpath
from .raster_surface import RasterSurface
from .surface import (
    COMPOSITE_MODES,
    LINE_CAPS,
    LINE_JOINS,
    TEXT_ALIGNS,
    TEXT_BASELINES,
    TEXT_DIRECTIONS,
    DrawingSurface,
    ShadowStyle,
    StrokeStyle,
    TextStyle,
    text_origin,
)
from .svg_surface import SvgExportFlag, SvgSurface

__all__ = [
    "Affine",
    "COMPOSITE_MODES",
    "DrawingSurface",
    "FontFace",
    "FontRegistry",
    "GradientPaint",
    "LINE_CAPS",
    "LINE_JOINS",
    "Paint",
    "PathData",
    "PatternPaint",
    "RGBA",
    "RasterSurface",
    "ResolvedStop",
    "SUPPORTED_MODES",
    "ShadowStyle",
    "SolidPaint",
    "StrokeStyle",
    "Subpath",
    "SvgExportFlag",
    "SvgSurface",
    "TEXT_ALIGNS",
    "TEXT_BASELINES",
    "TEXT_DIRECTIONS",
    "TRANSPARENT",
    "TextMetrics",
    "TextStyle",
    "composite",
    "evaluate_paint",
    "is_color",
    "over",
    "parse_color",
    "text_origin",
    "to_float",
    "to_hex",
    "to_u8",
    "with_opacity",
]
