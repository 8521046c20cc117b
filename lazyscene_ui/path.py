from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from lazyscene_core.core.lengths import LengthRequest
from lazyscene_core.core.render_manager import RenderContext
from lazyscene_core.render.matrix import Affine
from lazyscene_core.render.paths import PathData

from .base import LayerProps, PaintedLayer, PaintedProps
from .paint import PaintBox, resolve_paint


FILL_RULES: tuple[str, ...] = ("nonzero", "evenodd")


@dataclass
class PathProps(PaintedProps):
    centring: str = "none"
    path: PathData = field(default_factory=PathData)
    clip_path: bool = False
    fill_rule: str = "nonzero"

    def __post_init__(self) -> None:
        super().__post_init__()
        if isinstance(self.path, str):
            self.path = PathData.from_svg(self.path)
        if self.fill_rule not in FILL_RULES:
            raise ValueError(f"fill rule must be one of {FILL_RULES}")

    def resize(self, ratio: float) -> None:
        # Raw path geometry is left as authored.
        return None


class PathLayer(PaintedLayer):
    """Arbitrary path geometry offset by `(x, y)`; can act as a clip for later layers."""

    kind: ClassVar[str] = "path"
    props_type: ClassVar[type[LayerProps]] = PathProps

    def set_path(self, path: PathData | str) -> "PathLayer":
        self.props.path = PathData.from_svg(path) if isinstance(path, str) else path.copy()
        return self

    def set_clip_path(self, clip: bool = True) -> "PathLayer":
        self.props.clip_path = bool(clip)
        return self

    def set_fill_rule(self, rule: str) -> "PathLayer":
        if rule not in FILL_RULES:
            raise ValueError(f"fill rule must be one of {FILL_RULES}")
        self.props.fill_rule = rule
        return self

    def move_to(self, x: float, y: float) -> "PathLayer":
        self.props.path.move_to(x, y)
        return self

    def line_to(self, x: float, y: float) -> "PathLayer":
        self.props.path.line_to(x, y)
        return self

    def quadratic_curve_to(self, cpx: float, cpy: float, x: float, y: float) -> "PathLayer":
        self.props.path.quadratic_curve_to(cpx, cpy, x, y)
        return self

    def bezier_curve_to(self, cp1x: float, cp1y: float, cp2x: float, cp2y: float, x: float, y: float) -> "PathLayer":
        self.props.path.bezier_curve_to(cp1x, cp1y, cp2x, cp2y, x, y)
        return self

    def arc(
        self,
        x: float,
        y: float,
        radius: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ) -> "PathLayer":
        self.props.path.arc(x, y, radius, start_angle, end_angle, anticlockwise)
        return self

    def arc_to(self, x1: float, y1: float, x2: float, y2: float, radius: float) -> "PathLayer":
        self.props.path.arc_to(x1, y1, x2, y2, radius)
        return self

    def ellipse(
        self,
        x: float,
        y: float,
        radius_x: float,
        radius_y: float,
        rotation: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ) -> "PathLayer":
        self.props.path.ellipse(x, y, radius_x, radius_y, rotation, start_angle, end_angle, anticlockwise)
        return self

    def rect(self, x: float, y: float, width: float, height: float) -> "PathLayer":
        self.props.path.rect(x, y, width, height)
        return self

    def round_rect(self, x: float, y: float, width: float, height: float, radius: float) -> "PathLayer":
        self.props.path.round_rect(x, y, width, height, radius)
        return self

    def close_path(self) -> "PathLayer":
        self.props.path.close_path()
        return self

    def add_path(self, path: PathData, matrix: Affine | None = None) -> "PathLayer":
        self.props.path.add_path(path, matrix)
        return self

    def draw(self, context: RenderContext) -> None:
        path = self.props.path
        if path.is_empty():
            return
        values = context.parser.parse_batch({"x": self.props.x, "y": LengthRequest(self.props.y, axis="vertical")})
        offset = Affine.translation(values["x"], values["y"])
        left, top, right, bottom = path.bounds(offset)
        pivot = ((left + right) / 2.0, (top + bottom) / 2.0)
        if self.props.clip_path:
            # Outside save/restore: the clip stays active for the rest of the pass.
            matrix = self.props.transform.to_affine(context.parser, pivot).multiply(offset)
            context.surface.clip(PathData().add_path(path, matrix))
            return
        with self._drawing(context, pivot):
            context.surface.transform(offset)
            l0, t0, r0, b0 = path.bounds()
            paint = resolve_paint(self.props.fill_style, context, PaintBox(l0, t0, r0 - l0, b0 - t0))
            if self.props.filled:
                context.surface.fill_path(path, paint, self.props.fill_rule)
            else:
                context.surface.stroke_path(path, paint, self.props.stroke.style())
