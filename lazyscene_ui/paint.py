from __future__ import annotations

import base64
from dataclasses import dataclass, field
import io
import logging
import math
from pathlib import Path
from typing import Literal, Mapping, Protocol

from PIL import Image, UnidentifiedImageError

from lazyscene_core.core.errors import LazySceneError, ResourceError
from lazyscene_core.core.lengths import LengthValue, PercentLength, Size, parse_length
from lazyscene_core.core.render_manager import RenderContext
from lazyscene_core.render.color import parse_color
from lazyscene_core.render.paint import GradientPaint, Paint, PatternPaint, ResolvedStop, SolidPaint

from .base import Record


LOGGER = logging.getLogger(__name__)

GradientType = Literal["linear", "radial", "conic"]
PatternType = Literal["repeat", "repeat-x", "repeat-y", "no-repeat"]

GRADIENT_TYPES: tuple[str, ...] = ("linear", "radial", "conic")
PATTERN_TYPES: tuple[str, ...] = ("repeat", "repeat-x", "repeat-y", "no-repeat")


class PatternScene(Protocol):
    def to_image(self, *, depth: int = 0) -> Image.Image:
        ...

    def to_dict(self) -> dict[str, object]:
        ...


@dataclass(frozen=True)
class PaintBox:
    """Layer box that gradient points and percentages resolve against."""

    x: float
    y: float
    width: float
    height: float


@dataclass
class GradientPoint(Record):
    x: LengthValue = 0
    y: LengthValue = 0
    r: float | None = None
    start_angle: float | None = None


@dataclass
class ColorStop(Record):
    color: str = "#000000"
    offset: float = 0.0

    def __post_init__(self) -> None:
        parse_color(self.color)
        if self.offset < 0 or self.offset > 1:
            raise ValueError("color stop offset must be in [0, 1]")


@dataclass
class Gradient:
    """Linear, radial or conic fill.

    Point coordinates are canvas lengths; percentages are taken from the drawing layer's box and
    measured from its top-left corner. Conic gradients start at `angle` degrees.
    """

    type: GradientType = "linear"
    points: list[GradientPoint] = field(default_factory=list)
    stops: list[ColorStop] = field(default_factory=list)
    angle: float = 0.0

    def __post_init__(self) -> None:
        _check_gradient_type(self.type)

    def set_type(self, type: GradientType) -> "Gradient":
        _check_gradient_type(type)
        self.type = type
        return self

    def add_points(self, *points: GradientPoint | Mapping[str, object]) -> "Gradient":
        for point in points:
            self.points.append(point if isinstance(point, GradientPoint) else GradientPoint.from_dict(point))
        return self

    def add_stops(self, *stops: ColorStop | Mapping[str, object]) -> "Gradient":
        for stop in stops:
            self.stops.append(stop if isinstance(stop, ColorStop) else ColorStop.from_dict(stop))
        return self

    def set_angle(self, degrees: float) -> "Gradient":
        self.angle = float(degrees)
        return self

    def resolve(self, context: RenderContext, box: PaintBox) -> GradientPaint:
        needed = 1 if self.type == "conic" else 2
        if len(self.points) < needed:
            raise ValueError(f"{self.type} gradient needs at least {needed} point(s), got {len(self.points)}")
        stops = tuple(ResolvedStop(offset=float(s.offset), color=parse_color(s.color)) for s in self.stops)
        resolved = [self._point(context, box, p) for p in self.points]
        if self.type == "linear":
            points = (resolved[0][:2], resolved[1][:2])
        elif self.type == "radial":
            points = (resolved[0], resolved[1])
        else:
            points = (resolved[0][:2],)
        angle = self.angle
        if self.type == "conic" and self.points[0].start_angle is not None:
            angle = float(self.points[0].start_angle)
        return GradientPaint(kind=self.type, points=points, stops=stops, start_angle=math.radians(angle))

    def to_dict(self) -> dict[str, object]:
        return {
            "fillType": "gradient",
            "type": self.type,
            "points": [p.to_dict() for p in self.points],
            "stops": [s.to_dict() for s in self.stops],
            "angle": self.angle,
        }

    @staticmethod
    def from_dict(payload: Mapping[str, object]) -> "Gradient":
        if not isinstance(payload, Mapping):
            raise TypeError("gradient must be an object")
        points = payload.get("points", [])
        stops = payload.get("stops", [])
        if not isinstance(points, list) or not isinstance(stops, list):
            raise TypeError("gradient points/stops must be arrays")
        return Gradient(
            type=str(payload.get("type", "linear")),
            points=[GradientPoint.from_dict(p) for p in points],
            stops=[ColorStop.from_dict(s) for s in stops],
            angle=float(payload.get("angle", 0.0)),
        )

    @staticmethod
    def _point(context: RenderContext, box: PaintBox, point: GradientPoint) -> tuple[float, float, float]:
        local = Size(box.width, box.height)
        x = context.parser.parse(point.x, local_box=local, use_local_box=True)
        y = context.parser.parse(point.y, local_box=local, axis="vertical", use_local_box=True)
        if isinstance(parse_length(point.x), PercentLength):
            x += box.x
        if isinstance(parse_length(point.y), PercentLength):
            y += box.y
        return (x, y, float(point.r or 0.0))


@dataclass
class Pattern:
    """Repeating image fill; the source is an image locator or a nested scene."""

    type: PatternType = "repeat"
    src: str | PatternScene = ""

    def __post_init__(self) -> None:
        _check_pattern_type(self.type)

    def set_type(self, type: PatternType) -> "Pattern":
        _check_pattern_type(type)
        self.type = type
        return self

    def set_src(self, src: str | PatternScene) -> "Pattern":
        self.src = src
        return self

    def resolve(self, context: RenderContext, box: PaintBox) -> PatternPaint:
        if isinstance(self.src, str):
            return PatternPaint(image=load_image(self.src), repeat=self.type)
        try:
            image = self.src.to_image(depth=context.depth + 1)
        except ResourceError:
            raise
        except (LazySceneError, ValueError, TypeError) as exc:
            raise ResourceError(f"pattern scene failed to render: {exc}") from exc
        return PatternPaint(image=image, repeat=self.type)

    def to_dict(self) -> dict[str, object]:
        src = self.src if isinstance(self.src, str) else self.src.to_dict()
        return {"fillType": "pattern", "type": self.type, "src": src}


FillStyle = str | Gradient | Pattern


def resolve_paint(fill_style: FillStyle, context: RenderContext, box: PaintBox) -> Paint:
    if isinstance(fill_style, str):
        return SolidPaint(parse_color(fill_style))
    if isinstance(fill_style, (Gradient, Pattern)):
        return fill_style.resolve(context, box)
    raise TypeError(f"unsupported fill style: {type(fill_style).__name__}")


def load_image(src: str) -> Image.Image:
    """Load a file path or `data:` URI into an RGBA Pillow image."""

    if not src:
        raise ResourceError("image source is empty")
    try:
        if src.startswith("data:"):
            _, _, encoded = src.partition(",")
            image = Image.open(io.BytesIO(base64.b64decode(encoded)))
        else:
            path = Path(src)
            if not path.exists():
                raise ResourceError(f"image not found: {src}")
            image = Image.open(path)
        image.load()
    except (OSError, UnidentifiedImageError, ValueError) as exc:
        raise ResourceError(f"image could not be decoded: {src[:64]}") from exc
    LOGGER.debug("loaded image %s (%dx%d)", src[:64], image.width, image.height)
    return image.convert("RGBA")


def _check_gradient_type(type: str) -> None:
    if type not in GRADIENT_TYPES:
        raise ValueError(f"gradient type must be one of {GRADIENT_TYPES}, got `{type}`")


def _check_pattern_type(type: str) -> None:
    if type not in PATTERN_TYPES:
        raise ValueError(f"pattern type must be one of {PATTERN_TYPES}, got `{type}`")
