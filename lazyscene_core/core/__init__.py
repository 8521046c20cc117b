from .alignment import BOX_KINDS, CENTRINGS, Centring, align, validate_centring
from .animation import COLOR_SPACES, AnimationEncoder, AnimationOptions, merge_frames, quantize_frame, reduce_color_space
from .bounding_box import BoundingBox, Point, bezier_bounding_box, line_bounding_box, points_bounding_box
from .config import AnimationConfig, FontConfig, RenderConfig, load_render_config
from .errors import (
    CyclicReferenceError,
    DocumentValidationError,
    DuplicateLayerError,
    ExportError,
    LazySceneError,
    PluginError,
    ResourceError,
)
from .lengths import (
    LengthParser,
    LengthRequest,
    Link,
    Size,
    length_from_dict,
    length_to_dict,
    parse_length,
    resolve_batch,
    resolve_length,
    scale_length,
)
from .plugins import HOOK_NAMES, LazyPlugin, PluginManager, ScenePlugin
from .references import ReferenceResolver
from .registry import LayerRegistry
from .render_manager import RenderContext, RenderManager

__all__ = [
    "AnimationConfig",
    "AnimationEncoder",
    "AnimationOptions",
    "BOX_KINDS",
    "BoundingBox",
    "CENTRINGS",
    "COLOR_SPACES",
    "Centring",
    "CyclicReferenceError",
    "DocumentValidationError",
    "DuplicateLayerError",
    "ExportError",
    "FontConfig",
    "HOOK_NAMES",
    "LayerRegistry",
    "LazyPlugin",
    "LazySceneError",
    "LengthParser",
    "LengthRequest",
    "Link",
    "PluginError",
    "PluginManager",
    "Point",
    "ReferenceResolver",
    "RenderConfig",
    "RenderContext",
    "RenderManager",
    "ResourceError",
    "ScenePlugin",
    "Size",
    "align",
    "bezier_bounding_box",
    "length_from_dict",
    "length_to_dict",
    "line_bounding_box",
    "load_render_config",
    "merge_frames",
    "parse_length",
    "points_bounding_box",
    "quantize_frame",
    "reduce_color_space",
    "resolve_batch",
    "resolve_length",
    "scale_length",
    "validate_centring",
]
