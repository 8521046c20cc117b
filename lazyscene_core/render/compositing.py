from __future__ import annotations

import logging
from typing import Callable

import torch


LOGGER = logging.getLogger(__name__)

# (source factor, destination factor) as functions of (src_alpha, dst_alpha).
_PORTER_DUFF: dict[str, Callable[[torch.Tensor, torch.Tensor], tuple[torch.Tensor, torch.Tensor]]] = {
    "source-over": lambda sa, da: (torch.ones_like(sa), 1.0 - sa),
    "source-in": lambda sa, da: (da, torch.zeros_like(sa)),
    "source-out": lambda sa, da: (1.0 - da, torch.zeros_like(sa)),
    "source-atop": lambda sa, da: (da, 1.0 - sa),
    "destination-over": lambda sa, da: (1.0 - da, torch.ones_like(sa)),
    "destination-in": lambda sa, da: (torch.zeros_like(sa), sa),
    "destination-out": lambda sa, da: (torch.zeros_like(sa), 1.0 - sa),
    "destination-atop": lambda sa, da: (1.0 - da, sa),
    "copy": lambda sa, da: (torch.ones_like(sa), torch.zeros_like(sa)),
    "xor": lambda sa, da: (1.0 - da, 1.0 - sa),
    "lighter": lambda sa, da: (torch.ones_like(sa), torch.ones_like(sa)),
}


def _soft_light(cb: torch.Tensor, cs: torch.Tensor) -> torch.Tensor:
    d = torch.where(cb <= 0.25, ((16.0 * cb - 12.0) * cb + 4.0) * cb, torch.sqrt(cb))
    return torch.where(cs <= 0.5, cb - (1.0 - 2.0 * cs) * cb * (1.0 - cb), cb + (2.0 * cs - 1.0) * (d - cb))


def _hard_light(cb: torch.Tensor, cs: torch.Tensor) -> torch.Tensor:
    return torch.where(cs <= 0.5, cb * 2.0 * cs, 1.0 - (1.0 - cb) * (1.0 - (2.0 * cs - 1.0)))


_BLEND: dict[str, Callable[[torch.Tensor, torch.Tensor], torch.Tensor]] = {
    "multiply": lambda cb, cs: cb * cs,
    "screen": lambda cb, cs: cb + cs - cb * cs,
    "overlay": lambda cb, cs: _hard_light(cs, cb),
    "darken": torch.minimum,
    "lighten": torch.maximum,
    "color-dodge": lambda cb, cs: torch.where(
        cb <= 0, torch.zeros_like(cb), torch.where(cs >= 1, torch.ones_like(cb), torch.clamp(cb / (1.0 - cs).clamp_min(1e-6), max=1.0))
    ),
    "color-burn": lambda cb, cs: torch.where(
        cb >= 1, torch.ones_like(cb), torch.where(cs <= 0, torch.zeros_like(cb), 1.0 - torch.clamp((1.0 - cb) / cs.clamp_min(1e-6), max=1.0))
    ),
    "hard-light": _hard_light,
    "soft-light": _soft_light,
    "difference": lambda cb, cs: torch.abs(cb - cs),
    "exclusion": lambda cb, cs: cb + cs - 2.0 * cb * cs,
}

SUPPORTED_MODES: tuple[str, ...] = tuple(_PORTER_DUFF) + tuple(_BLEND)


def to_float(frame: torch.Tensor) -> torch.Tensor:
    return frame.to(torch.float32) / 255.0


def to_u8(frame: torch.Tensor) -> torch.Tensor:
    return torch.clamp(torch.round(frame * 255.0), 0, 255).to(torch.uint8)


def composite(dst: torch.Tensor, src: torch.Tensor, mode: str = "source-over") -> torch.Tensor:
    """Composite straight-alpha float HxWx4 `src` onto `dst` with a canvas composite mode."""

    if mode not in _PORTER_DUFF and mode not in _BLEND:
        LOGGER.warning("composite mode `%s` is not supported on raster surfaces; using source-over", mode)
        mode = "source-over"
    sa = src[:, :, 3:4]
    da = dst[:, :, 3:4]
    cs = src[:, :, :3]
    cb = dst[:, :, :3]
    if mode in _BLEND:
        blended = _BLEND[mode](cb, cs)
        out_a = sa + da * (1.0 - sa)
        num = sa * (1.0 - da) * cs + sa * da * blended + da * (1.0 - sa) * cb
    else:
        fa, fb = _PORTER_DUFF[mode](sa, da)
        out_a = torch.clamp(sa * fa + da * fb, 0.0, 1.0)
        num = cs * sa * fa + cb * da * fb
    safe = torch.where(out_a > 1e-6, out_a, torch.ones_like(out_a))
    out_rgb = torch.clamp(num / safe, 0.0, 1.0)
    return torch.cat([out_rgb, out_a], dim=2)


def over(dst: torch.Tensor, src: torch.Tensor) -> torch.Tensor:
    """Standard "over" merge of two straight-alpha float frames."""

    return composite(dst, src, "source-over")
