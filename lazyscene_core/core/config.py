from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from pathlib import Path
import tomllib

from .animation import AnimationOptions


LOGGER = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_ANIMATION_KEYS = frozenset(
    {"frame_rate", "max_colors", "color_space", "loop", "transparency", "clear", "buffer_size"}
)


@dataclass(frozen=True)
class FontConfig:
    family: str
    path: str
    weight: int = 400


@dataclass(frozen=True)
class AnimationConfig:
    """Overrides applied on top of a scene's own animation options."""

    overrides: dict[str, object] = field(default_factory=dict)

    def apply(self, options: AnimationOptions) -> AnimationOptions:
        return replace(options, **self.overrides)


@dataclass(frozen=True)
class RenderConfig:
    output_dir: Path = Path(".")
    export: str | None = None
    svg_flags: int | None = None
    debug: bool = False
    log_level: str = "WARNING"
    animation: AnimationConfig = field(default_factory=AnimationConfig)
    fonts: tuple[FontConfig, ...] = ()

    def __post_init__(self) -> None:
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"log level must be one of {_LOG_LEVELS}")
        if self.svg_flags is not None and (self.svg_flags < 0 or self.svg_flags > 7):
            raise ValueError("svg_flags must be in [0, 7]")


def load_render_config(path: str | Path) -> RenderConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"render config not found: {config_path}")
    with config_path.open("rb") as f:
        raw = tomllib.load(f)
    render = _section(raw, "render")
    animation = _section(raw, "animation")
    logging_section = _section(raw, "logging")
    unknown = sorted(set(animation) - _ANIMATION_KEYS)
    if unknown:
        raise ValueError(f"unknown animation settings: {unknown}")
    fonts_raw = raw.get("fonts", [])
    if not isinstance(fonts_raw, list):
        raise ValueError("fonts must be an array of tables")
    fonts: list[FontConfig] = []
    for entry in fonts_raw:
        if not isinstance(entry, dict):
            raise ValueError("fonts entries must be tables")
        try:
            family = str(entry["family"])
            font_path = entry["path"]
        except KeyError as exc:
            raise ValueError(f"config missing required field: fonts.{exc.args[0]}") from exc
        resolved = Path(font_path)
        if not resolved.is_absolute():
            resolved = (config_path.parent / resolved).resolve()
        fonts.append(FontConfig(family=family, path=str(resolved), weight=int(entry.get("weight", 400))))
    config = RenderConfig(
        output_dir=Path(str(render.get("output_dir", "."))),
        export=_optional_str(render.get("export"), "render.export"),
        svg_flags=None if render.get("svg_flags") is None else int(render["svg_flags"]),
        debug=bool(render.get("debug", False)),
        log_level=str(logging_section.get("level", "WARNING")).upper(),
        animation=AnimationConfig(overrides=dict(animation)),
        fonts=tuple(fonts),
    )
    LOGGER.debug("loaded render config from %s", config_path)
    return config


def _section(raw: dict[str, object], name: str) -> dict[str, object]:
    value = raw.get(name, {})
    if not isinstance(value, dict):
        raise ValueError(f"[{name}] must be a table")
    return value


def _optional_str(value: object, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string if provided")
    return value
