from .base import BaseLayer, BoxSize, LayerProps, LengthPoint, PaintedLayer, PaintedProps, Shadow, Stroke, Transform
from .clear import ClearLayer, ClearProps
from .codec import LAYER_KINDS, DocumentReader, read_document, read_file, read_json, read_yaml, write_document
from .curves import BezierLayer, CurveProps, LineLayer, LineProps, QuadraticLayer
from .documents import to_json, to_yaml
from .group import Group
from .image import ImageLayer, ImageProps
from .morph import MorphLayer, MorphProps
from .paint import ColorStop, Gradient, GradientPoint, PaintBox, Pattern, load_image, resolve_paint
from .path import PathLayer, PathProps
from .polygon import PolygonLayer, PolygonProps, PolygonSize, polygon_vertices
from .scene import EXPORT_KINDS, MAX_PATTERN_DEPTH, SURFACE_TYPES, Scene, SceneOptions
from .text import Font, Multiline, SubstringColor, TextBox, TextLayer, TextProps, color_segments, wrap_words

__all__ = [
    "BaseLayer",
    "BezierLayer",
    "BoxSize",
    "ClearLayer",
    "ClearProps",
    "ColorStop",
    "CurveProps",
    "DocumentReader",
    "EXPORT_KINDS",
    "Font",
    "Gradient",
    "GradientPoint",
    "Group",
    "ImageLayer",
    "ImageProps",
    "LAYER_KINDS",
    "LayerProps",
    "LengthPoint",
    "LineLayer",
    "LineProps",
    "MAX_PATTERN_DEPTH",
    "MorphLayer",
    "MorphProps",
    "Multiline",
    "PaintBox",
    "PaintedLayer",
    "PaintedProps",
    "PathLayer",
    "PathProps",
    "Pattern",
    "PolygonLayer",
    "PolygonProps",
    "PolygonSize",
    "QuadraticLayer",
    "SURFACE_TYPES",
    "Scene",
    "SceneOptions",
    "Shadow",
    "Stroke",
    "SubstringColor",
    "TextBox",
    "TextLayer",
    "TextProps",
    "Transform",
    "color_segments",
    "load_image",
    "polygon_vertices",
    "read_document",
    "read_file",
    "read_json",
    "read_yaml",
    "resolve_paint",
    "to_json",
    "to_yaml",
    "wrap_words",
    "write_document",
]
