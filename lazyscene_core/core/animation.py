from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import io
import logging
from typing import Literal, Mapping

import numpy as np
from PIL import Image
import torch

from ..render.compositing import over, to_float, to_u8


LOGGER = logging.getLogger(__name__)

ColorSpace = Literal["rgb565", "rgba4444", "rgba444"]
COLOR_SPACES: tuple[str, ...] = ("rgb565", "rgba4444", "rgba444")


@dataclass
class AnimationOptions:
    """Scene-scoped animation settings; setters validate and return the same instance."""

    frame_rate: float = 30.0
    max_colors: int = 256
    color_space: ColorSpace = "rgb565"
    loop: bool = True
    transparency: bool = True
    clear: bool = True
    buffer_size: int = 0

    def __post_init__(self) -> None:
        _check_frame_rate(self.frame_rate)
        _check_max_colors(self.max_colors)
        _check_color_space(self.color_space)
        _check_buffer_size(self.buffer_size)

    @property
    def delay_ms(self) -> float:
        return 1000.0 / self.frame_rate

    @property
    def buffer_depth(self) -> int:
        return max(1, self.buffer_size)

    def set_frame_rate(self, frame_rate: float) -> "AnimationOptions":
        _check_frame_rate(frame_rate)
        self.frame_rate = frame_rate
        return self

    def set_loop(self, loop: bool) -> "AnimationOptions":
        self.loop = bool(loop)
        return self

    def set_transparent(self, transparency: bool) -> "AnimationOptions":
        self.transparency = bool(transparency)
        return self

    def set_rgb_format(self, color_space: ColorSpace) -> "AnimationOptions":
        _check_color_space(color_space)
        self.color_space = color_space
        return self

    def set_max_colors(self, max_colors: int) -> "AnimationOptions":
        _check_max_colors(max_colors)
        self.max_colors = max_colors
        return self

    def set_clear(self, clear: bool, buffer_size: int | None = None) -> "AnimationOptions":
        self.clear = bool(clear)
        if buffer_size is not None:
            _check_buffer_size(buffer_size)
            self.buffer_size = buffer_size
        return self

    def to_dict(self) -> dict[str, object]:
        return {
            "frameRate": self.frame_rate,
            "maxColors": self.max_colors,
            "colorSpace": self.color_space,
            "loop": self.loop,
            "transparency": self.transparency,
            "utils": {"clear": self.clear, "buffer": {"size": self.buffer_size}},
        }

    @staticmethod
    def from_dict(payload: Mapping[str, object]) -> "AnimationOptions":
        if not isinstance(payload, Mapping):
            raise TypeError("animation must be an object")
        utils = payload.get("utils", {})
        if not isinstance(utils, Mapping):
            raise TypeError("animation.utils must be an object")
        buffer = utils.get("buffer", {})
        if not isinstance(buffer, Mapping):
            raise TypeError("animation.utils.buffer must be an object")
        return AnimationOptions(
            frame_rate=float(payload.get("frameRate", 30)),
            max_colors=int(payload.get("maxColors", 256)),
            color_space=str(payload.get("colorSpace", "rgb565")),
            loop=bool(payload.get("loop", True)),
            transparency=bool(payload.get("transparency", True)),
            clear=bool(utils.get("clear", True)),
            buffer_size=int(buffer.get("size", 0)),
        )


class AnimationEncoder:
    """Rolling-buffer GIF encoder fed with one raster snapshot per drawn layer."""

    def __init__(self, width: int, height: int, options: AnimationOptions) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("animation width/height must be > 0")
        self.width = int(width)
        self.height = int(height)
        self.options = options
        self._buffer: deque[torch.Tensor] = deque(maxlen=options.buffer_depth)
        self._frames: list[Image.Image] = []
        self.merged_frames: list[torch.Tensor] = []

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    def push(self, snapshot: torch.Tensor) -> torch.Tensor:
        if snapshot.dtype != torch.uint8:
            raise ValueError("snapshot must be torch.uint8")
        if tuple(snapshot.shape) != (self.height, self.width, 4):
            raise ValueError(f"snapshot must have shape ({self.height}, {self.width}, 4), got {tuple(snapshot.shape)}")
        self._buffer.append(snapshot.clone())
        merged = merge_frames(list(self._buffer))
        self.merged_frames.append(merged)
        self._frames.append(quantize_frame(merged, self.options))
        return merged

    def finish(self) -> bytes:
        if not self._frames:
            raise ValueError("animation has no frames")
        first, *rest = self._frames
        save_kwargs: dict[str, object] = {
            "format": "GIF",
            "save_all": True,
            "append_images": rest,
            "duration": int(round(self.options.delay_ms)),
            "disposal": 2 if self.options.clear else 1,
            "optimize": False,
        }
        if self.options.loop:
            save_kwargs["loop"] = 0
        if self.options.transparency:
            save_kwargs["transparency"] = first.info["transparency"]
        out = io.BytesIO()
        first.save(out, **save_kwargs)
        LOGGER.debug("encoded %d animation frames (%dx%d)", len(self._frames), self.width, self.height)
        return out.getvalue()


def merge_frames(frames: list[torch.Tensor]) -> torch.Tensor:
    """Composite buffered uint8 frames oldest-first with "over"."""

    if not frames:
        raise ValueError("merge_frames requires at least one frame")
    merged = to_float(frames[0])
    for frame in frames[1:]:
        merged = over(merged, to_float(frame))
    return to_u8(merged)


def reduce_color_space(frame: torch.Tensor, color_space: ColorSpace) -> torch.Tensor:
    _check_color_space(color_space)
    out = frame.clone()
    if color_space == "rgb565":
        out[:, :, 0] &= 0xF8
        out[:, :, 1] &= 0xFC
        out[:, :, 2] &= 0xF8
    elif color_space == "rgba4444":
        out &= 0xF0
    else:
        out[:, :, :3] &= 0xF0
        out[:, :, 3] = (out[:, :, 3] >= 128).to(torch.uint8) * 255
    return out


def quantize_frame(frame: torch.Tensor, options: AnimationOptions) -> Image.Image:
    """Map a uint8 RGBA frame onto a palette image; transparent pixels take the last index."""

    reduced = reduce_color_space(frame, options.color_space).cpu().numpy()
    colors = options.max_colors - 1 if options.transparency else options.max_colors
    rgb = Image.fromarray(np.ascontiguousarray(reduced[:, :, :3]))
    paletted = rgb.quantize(colors=colors, method=Image.Quantize.MEDIANCUT, dither=Image.Dither.NONE)
    palette = list(paletted.getpalette() or [])[: colors * 3]
    palette += [0] * (colors * 3 - len(palette))
    if not options.transparency:
        paletted.putpalette(palette)
        return paletted
    indices = np.asarray(paletted, dtype=np.uint8).copy()
    indices[reduced[:, :, 3] < 128] = colors
    out = Image.frombytes("P", (indices.shape[1], indices.shape[0]), indices.tobytes())
    out.putpalette(palette + [0, 0, 0])
    out.info["transparency"] = colors
    return out


def _check_frame_rate(frame_rate: float) -> None:
    if frame_rate <= 0:
        raise ValueError("frame rate must be > 0")


def _check_max_colors(max_colors: int) -> None:
    if max_colors < 2 or max_colors > 256:
        raise ValueError("max colors must be in [2, 256]")


def _check_color_space(color_space: str) -> None:
    if color_space not in COLOR_SPACES:
        raise ValueError(f"color space must be one of {COLOR_SPACES}, got `{color_space}`")


def _check_buffer_size(buffer_size: int) -> None:
    if buffer_size < 0:
        raise ValueError("buffer size must be >= 0")
