from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Callable, Literal, Mapping, TypeAlias


Axis = Literal["horizontal", "vertical"]
LinkAttribute = Literal["width", "height", "x", "y"]
ViewportKeyword = Literal["vw", "vh", "vmin", "vmax"]

LINK_ATTRIBUTES: tuple[str, ...] = ("width", "height", "x", "y")
VIEWPORT_KEYWORDS: tuple[str, ...] = ("vw", "vh", "vmin", "vmax")

_PERCENT_RE = re.compile(r"^(-?\d+(?:\.\d+)?)%$")
_PIXELS_RE = re.compile(r"^(-?\d+(?:\.\d+)?)px$")
_VIEWPORT_RE = re.compile(r"^(vw|vh|vmin|vmax)$")
_LINK_RE = re.compile(r"^link-(w|h|x|y)-([A-Za-z0-9_]+)-(\d+(?:\.\d+)?)$")
_LINK_SHORT = {"w": "width", "h": "height", "x": "x", "y": "y"}


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass
class Link:
    """Length taken from another layer's resolved geometry plus an offset."""

    source: str
    type: LinkAttribute = "width"
    additional_spacing: "LengthValue" = 0

    def __post_init__(self) -> None:
        if not str(self.source).strip():
            raise ValueError("link source must be non-empty")
        if self.type not in LINK_ATTRIBUTES:
            raise ValueError(f"link type must be one of {LINK_ATTRIBUTES}, got `{self.type}`")

    def set_source(self, source: str) -> "Link":
        if not source.strip():
            raise ValueError("link source must be non-empty")
        self.source = source
        return self

    def set_type(self, type: LinkAttribute) -> "Link":
        if type not in LINK_ATTRIBUTES:
            raise ValueError(f"link type must be one of {LINK_ATTRIBUTES}, got `{type}`")
        self.type = type
        return self

    def set_spacing(self, spacing: "LengthValue") -> "Link":
        self.additional_spacing = spacing
        return self

    def to_dict(self) -> dict[str, object]:
        return {
            "source": self.source,
            "type": self.type,
            "additionalSpacing": length_to_dict(self.additional_spacing),
        }

    @staticmethod
    def from_dict(payload: Mapping[str, object]) -> "Link":
        return Link(
            source=str(payload["source"]),
            type=str(payload.get("type", "width")),
            additional_spacing=length_from_dict(payload.get("additionalSpacing", 0)),
        )


LengthValue: TypeAlias = "int | float | str | Link"


@dataclass(frozen=True)
class NumberLength:
    value: float


@dataclass(frozen=True)
class PercentLength:
    value: float


@dataclass(frozen=True)
class PixelLength:
    value: float


@dataclass(frozen=True)
class ViewportLength:
    keyword: ViewportKeyword


@dataclass(frozen=True)
class ReferenceLength:
    link: Link


@dataclass(frozen=True)
class UnknownLength:
    raw: object


ParsedLength: TypeAlias = NumberLength | PercentLength | PixelLength | ViewportLength | ReferenceLength | UnknownLength
ReferenceLookup: TypeAlias = Callable[[Link], float]


def parse_length(value: object) -> ParsedLength:
    if isinstance(value, bool):
        return UnknownLength(value)
    if isinstance(value, (int, float)):
        return NumberLength(float(value))
    if isinstance(value, Link):
        return ReferenceLength(value)
    if isinstance(value, Mapping) and "source" in value:
        return ReferenceLength(Link.from_dict(value))
    if not isinstance(value, str):
        return UnknownLength(value)
    raw = value.strip()
    match = _PERCENT_RE.match(raw)
    if match:
        return PercentLength(float(match.group(1)))
    match = _PIXELS_RE.match(raw)
    if match:
        return PixelLength(float(match.group(1)))
    match = _VIEWPORT_RE.match(raw)
    if match:
        return ViewportLength(match.group(1))
    match = _LINK_RE.match(raw)
    if match:
        return ReferenceLength(
            Link(
                source=match.group(2),
                type=_LINK_SHORT[match.group(1)],
                additional_spacing=_number(match.group(3)),
            )
        )
    return UnknownLength(value)


def resolve_length(
    value: object,
    viewport: Size,
    *,
    local_box: Size | None = None,
    axis: Axis = "horizontal",
    use_local_box: bool = False,
    references: ReferenceLookup | None = None,
) -> float:
    """Resolve a symbolic length to a concrete number.

    Unrecognized values resolve to 0 and never raise. References resolve to 0 when
    no `references` lookup is supplied.
    """

    if axis not in ("horizontal", "vertical"):
        raise ValueError(f"axis must be `horizontal` or `vertical`, got `{axis}`")
    if use_local_box and local_box is None:
        raise ValueError("local_box is required when use_local_box is set")
    parsed = parse_length(value)
    box = local_box if use_local_box and local_box is not None else viewport
    if isinstance(parsed, NumberLength):
        return parsed.value
    if isinstance(parsed, PixelLength):
        return parsed.value
    if isinstance(parsed, PercentLength):
        base = box.width if axis == "horizontal" else box.height
        return parsed.value / 100.0 * base
    if isinstance(parsed, ViewportLength):
        if parsed.keyword == "vw":
            return float(box.width)
        if parsed.keyword == "vh":
            return float(box.height)
        if parsed.keyword == "vmin":
            return float(min(box.width, box.height))
        return float(max(box.width, box.height))
    if isinstance(parsed, ReferenceLength):
        if references is None:
            return 0.0
        return float(references(parsed.link))
    return 0.0


@dataclass(frozen=True)
class LengthRequest:
    value: object
    local_box: Size | None = None
    axis: Axis = "horizontal"
    use_local_box: bool = False


def resolve_batch(
    entries: Mapping[str, LengthRequest | object],
    viewport: Size,
    *,
    references: ReferenceLookup | None = None,
) -> dict[str, float]:
    """Resolve several named lengths in one call, each with its own axis/box override."""

    out: dict[str, float] = {}
    for name, entry in entries.items():
        request = entry if isinstance(entry, LengthRequest) else LengthRequest(entry)
        out[name] = resolve_length(
            request.value,
            viewport,
            local_box=request.local_box,
            axis=request.axis,
            use_local_box=request.use_local_box,
            references=references,
        )
    return out


class LengthParser:
    """Viewport-bound resolver handed to layers while they draw."""

    def __init__(self, viewport: Size, references: ReferenceLookup | None = None) -> None:
        self.viewport = viewport
        self._references = references

    def parse(
        self,
        value: object,
        *,
        local_box: Size | None = None,
        axis: Axis = "horizontal",
        use_local_box: bool = False,
    ) -> float:
        return resolve_length(
            value,
            self.viewport,
            local_box=local_box,
            axis=axis,
            use_local_box=use_local_box,
            references=self._references,
        )

    def parse_batch(self, entries: Mapping[str, LengthRequest | object]) -> dict[str, float]:
        return resolve_batch(entries, self.viewport, references=self._references)


def scale_length(value: object, ratio: float) -> object:
    """Multiply the absolute components of a length, leaving relative ones as they are."""

    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value * ratio
    if isinstance(value, Link):
        return Link(
            source=value.source,
            type=value.type,
            additional_spacing=scale_length(value.additional_spacing, ratio),
        )
    if isinstance(value, str):
        match = _PIXELS_RE.match(value.strip())
        if match:
            return f"{_format_number(float(match.group(1)) * ratio)}px"
        match = _LINK_RE.match(value.strip())
        if match:
            return f"link-{match.group(1)}-{match.group(2)}-{_format_number(float(match.group(3)) * ratio)}"
    return value


def length_to_dict(value: object) -> object:
    if isinstance(value, Link):
        return value.to_dict()
    return value


def length_from_dict(value: object) -> object:
    if isinstance(value, Mapping) and "source" in value:
        return Link.from_dict(value)
    return value


def _number(raw: str) -> float | int:
    value = float(raw)
    return int(value) if value == int(value) else value


def _format_number(value: float) -> str:
    if value == int(value):
        return str(int(value))
    return repr(value)
