from __future__ import annotations

from dataclasses import dataclass, replace
import io
import logging
import math
import re

import numpy as np
from PIL import Image, ImageDraw, ImageFilter
import torch

from .compositing import composite, to_float, to_u8
from .fonts import FontRegistry, TextMetrics, line_advance
from .matrix import Affine
from .paint import Paint, evaluate_paint
from .paths import PathData, Subpath
from .surface import FillRule, ShadowStyle, StrokeStyle, TextStyle, text_origin


LOGGER = logging.getLogger(__name__)

SUPERSAMPLE = 2
_FILTER_RE = re.compile(r"([a-z-]+)\(([^)]*)\)")


@dataclass
class _State:
    matrix: Affine = Affine()
    alpha: float = 1.0
    composite: str = "source-over"
    shadow: ShadowStyle | None = None
    filter: str | None = None
    clip: np.ndarray | None = None


class RasterSurface:
    """Pillow-rasterized, torch-composited RGBA surface.

    Shapes become coverage masks, paints are sampled in user space, and every draw call is
    composited into a uint8 HxWx4 tensor with the current composite mode.
    """

    def __init__(self, width: int, height: int, fonts: FontRegistry | None = None) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("surface width/height must be > 0")
        self.width = int(width)
        self.height = int(height)
        self.fonts = fonts if fonts is not None else FontRegistry()
        self._frame = torch.zeros((self.height, self.width, 4), dtype=torch.uint8)
        self._state = _State()
        self._stack: list[_State] = []
        ys, xs = np.mgrid[0 : self.height, 0 : self.width].astype(np.float64)
        self._xs = xs + 0.5
        self._ys = ys + 0.5

    @property
    def matrix(self) -> Affine:
        return self._state.matrix

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
        coverage = self._fill_coverage(path.flatten(self._state.matrix), rule)
        self._paint_coverage(coverage, paint)

    def stroke_path(self, path: PathData, paint: Paint, stroke: StrokeStyle) -> None:
        if stroke.width <= 0:
            return
        coverage = self._stroke_coverage(path.flatten(self._state.matrix), stroke)
        self._paint_coverage(coverage, paint)

    def clip(self, path: PathData) -> None:
        coverage = self._fill_coverage(path.flatten(self._state.matrix), "nonzero")
        self._state.clip = coverage if self._state.clip is None else self._state.clip * coverage

    def draw_image(self, image: Image.Image, x: float, y: float, width: float, height: float) -> None:
        if width == 0 or height == 0 or image.width == 0 or image.height == 0:
            return
        matrix = self._state.matrix.translate(x, y).scale(width / image.width, height / image.height)
        warped = self._warp(image.convert("RGBA"), matrix)
        if warped is None:
            return
        rgba = np.asarray(warped, dtype=np.float32) / 255.0
        self._commit(np.ones((self.height, self.width), dtype=np.float32), rgba)

    def fill_text(
        self,
        text: str,
        x: float,
        y: float,
        style: TextStyle,
        paint: Paint,
        max_width: float | None = None,
    ) -> None:
        coverage = self._text_coverage(text, x, y, style, None, max_width)
        if coverage is not None:
            self._paint_coverage(coverage, paint)

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
        coverage = self._text_coverage(text, x, y, style, stroke, max_width)
        if coverage is not None:
            self._paint_coverage(coverage, paint)

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
        coverage = self._fill_coverage(PathData().rect(x, y, width, height).flatten(self._state.matrix), "nonzero")
        if self._state.clip is not None:
            coverage = coverage * self._state.clip
        keep = torch.from_numpy(1.0 - coverage).unsqueeze(-1)
        self._frame = to_u8(to_float(self._frame) * keep)

    def clear(self) -> None:
        self._frame.zero_()

    def snapshot(self) -> torch.Tensor:
        return self._frame.clone()

    def to_image(self) -> Image.Image:
        return Image.fromarray(self._frame.cpu().numpy())

    def encode(self, format: str = "png", *, quality: int = 90) -> bytes:
        fmt = format.lower()
        image = self.to_image()
        buffer = io.BytesIO()
        if fmt in ("jpeg", "jpg"):
            image.convert("RGB").save(buffer, format="JPEG", quality=quality)
        elif fmt == "webp":
            image.save(buffer, format="WEBP", quality=quality)
        elif fmt == "png":
            image.save(buffer, format="PNG")
        else:
            raise ValueError(f"unsupported raster format: {format}")
        return buffer.getvalue()

    def _paint_coverage(self, coverage: np.ndarray, paint: Paint) -> None:
        if not np.any(coverage > 0):
            return
        try:
            inv = self._state.matrix.inverse()
        except ValueError:
            return
        ux = inv.a * self._xs + inv.c * self._ys + inv.e
        uy = inv.b * self._xs + inv.d * self._ys + inv.f
        self._commit(coverage, evaluate_paint(paint, ux, uy))

    def _commit(self, coverage: np.ndarray, rgba: np.ndarray) -> None:
        state = self._state
        alpha = rgba[:, :, 3] * coverage * state.alpha
        src = np.concatenate([rgba[:, :, :3], alpha[:, :, None]], axis=2).astype(np.float32)
        if state.filter:
            src = _apply_filters(src, state.filter)
        dst = to_float(self._frame)
        out = dst
        if state.shadow is not None and state.shadow.visible:
            out = composite(out, torch.from_numpy(_shadow_layer(src[:, :, 3], state.shadow)), state.composite)
        out = composite(out, torch.from_numpy(src), state.composite)
        if state.clip is not None:
            clip = torch.from_numpy(state.clip.astype(np.float32)).unsqueeze(-1)
            out = dst + (out - dst) * clip
        self._frame = to_u8(out)

    def _warp(self, image: Image.Image, matrix: Affine) -> Image.Image | None:
        try:
            coefficients = matrix.pil_coefficients()
        except ValueError:
            return None
        return image.transform(
            (self.width, self.height),
            Image.Transform.AFFINE,
            coefficients,
            resample=Image.Resampling.BILINEAR,
        )

    def _blank_mask(self) -> Image.Image:
        return Image.new("L", (self.width * SUPERSAMPLE, self.height * SUPERSAMPLE), 0)

    def _reduce(self, mask: Image.Image) -> np.ndarray:
        return np.asarray(mask.reduce(SUPERSAMPLE), dtype=np.float32) / 255.0

    def _fill_coverage(self, subpaths: list[Subpath], rule: FillRule) -> np.ndarray:
        if rule == "evenodd":
            acc: np.ndarray | None = None
            for sub in subpaths:
                if len(sub.points) < 3:
                    continue
                single = self._blank_mask()
                ImageDraw.Draw(single).polygon(_scaled(sub.points), fill=255)
                bits = np.asarray(single) > 127
                acc = bits if acc is None else (acc ^ bits)
            if acc is None:
                return np.zeros((self.height, self.width), dtype=np.float32)
            return self._reduce(Image.fromarray(acc.astype(np.uint8) * 255))
        mask = self._blank_mask()
        draw = ImageDraw.Draw(mask)
        for sub in subpaths:
            if len(sub.points) >= 3:
                draw.polygon(_scaled(sub.points), fill=255)
        return self._reduce(mask)

    def _stroke_coverage(self, subpaths: list[Subpath], stroke: StrokeStyle) -> np.ndarray:
        scale = self._state.matrix.scale_factor
        width_px = max(1, int(round(stroke.width * scale * SUPERSAMPLE)))
        dash = tuple(v * scale for v in stroke.dash)
        mask = self._blank_mask()
        draw = ImageDraw.Draw(mask)
        joint = None if stroke.join == "bevel" else "curve"
        for sub in subpaths:
            points = list(sub.points)
            if sub.closed and points and points[0] != points[-1]:
                points.append(points[0])
            for run in _dash_polyline(points, dash, stroke.dash_offset * scale):
                if len(run) < 2:
                    continue
                open_run = not (sub.closed and not dash)
                if open_run and stroke.cap == "square":
                    run = _extend_ends(run, stroke.width * scale / 2.0)
                scaled = _scaled(run)
                draw.line(scaled, fill=255, width=width_px, joint=joint)
                if open_run and stroke.cap == "round":
                    radius = width_px / 2.0
                    for cx, cy in (scaled[0], scaled[-1]):
                        draw.ellipse((cx - radius, cy - radius, cx + radius, cy + radius), fill=255)
        return self._reduce(mask)

    def _text_coverage(
        self,
        text: str,
        x: float,
        y: float,
        style: TextStyle,
        stroke: StrokeStyle | None,
        max_width: float | None,
    ) -> np.ndarray | None:
        if text == "":
            return None
        font = self.fonts.load(style.family, style.size, style.weight)
        metrics = self.measure_text(text, style)
        left, top = text_origin(metrics, x, y, style)
        stroke_px = 0 if stroke is None else max(1, int(round(stroke.width / 2.0)))
        pad = stroke_px + 2
        tile = Image.new("L", (int(math.ceil(metrics.width)) + 2 * pad, int(math.ceil(metrics.height)) + 2 * pad), 0)
        _draw_run(ImageDraw.Draw(tile), font, text, pad, pad, style, stroke_px=0)
        if stroke is not None:
            outlined = Image.new("L", tile.size, 0)
            _draw_run(ImageDraw.Draw(outlined), font, text, pad, pad, style, stroke_px=stroke_px)
            ring = np.clip(np.asarray(outlined, dtype=np.int16) - np.asarray(tile, dtype=np.int16), 0, 255)
            tile = Image.fromarray(ring.astype(np.uint8))
        matrix = self._state.matrix
        if max_width is not None and 0 < max_width < metrics.width:
            matrix = matrix.translate(left, 0.0).scale(max_width / metrics.width, 1.0).translate(-left, 0.0)
        warped = self._warp(tile, matrix.translate(left - pad, top - pad))
        if warped is None:
            return None
        return np.asarray(warped, dtype=np.float32) / 255.0


def _draw_run(
    draw: ImageDraw.ImageDraw,
    font,
    text: str,
    x: float,
    y: float,
    style: TextStyle,
    *,
    stroke_px: int,
) -> None:
    if style.letter_spacing == 0 and style.word_spacing == 0:
        draw.text((x, y), text, font=font, fill=255, stroke_width=stroke_px, stroke_fill=255)
        return
    cursor = float(x)
    for i, ch in enumerate(text):
        if i > 0:
            cursor += style.letter_spacing
        draw.text((cursor, y), ch, font=font, fill=255, stroke_width=stroke_px, stroke_fill=255)
        cursor += line_advance(font, ch)
        if ch == " ":
            cursor += style.word_spacing


def _scaled(points) -> list[tuple[float, float]]:
    return [(px * SUPERSAMPLE, py * SUPERSAMPLE) for px, py in points]


def _extend_ends(points: list[tuple[float, float]], amount: float) -> list[tuple[float, float]]:
    out = list(points)
    for idx, nxt in ((0, 1), (-1, -2)):
        x0, y0 = out[idx]
        x1, y1 = out[nxt]
        length = math.hypot(x0 - x1, y0 - y1)
        if length == 0:
            continue
        out[idx] = (x0 + (x0 - x1) / length * amount, y0 + (y0 - y1) / length * amount)
    return out


def _dash_polyline(
    points: list[tuple[float, float]],
    dash: tuple[float, ...],
    offset: float,
) -> list[list[tuple[float, float]]]:
    if not dash or sum(dash) <= 0:
        return [points]
    pattern = list(dash) if len(dash) % 2 == 0 else list(dash) * 2
    total = sum(pattern)
    position = offset % total
    index = 0
    while position >= pattern[index]:
        position -= pattern[index]
        index = (index + 1) % len(pattern)
    remaining = pattern[index] - position
    drawing = index % 2 == 0
    runs: list[list[tuple[float, float]]] = []
    current: list[tuple[float, float]] = [points[0]] if drawing else []
    for (x0, y0), (x1, y1) in zip(points, points[1:]):
        seg = math.hypot(x1 - x0, y1 - y0)
        travelled = 0.0
        while seg - travelled > remaining:
            travelled += remaining
            t = travelled / seg
            split = (x0 + (x1 - x0) * t, y0 + (y1 - y0) * t)
            if drawing:
                current.append(split)
                runs.append(current)
                current = []
            else:
                current = [split]
            drawing = not drawing
            index = (index + 1) % len(pattern)
            remaining = pattern[index]
        remaining -= seg - travelled
        if drawing:
            current.append((x1, y1))
    if drawing and len(current) > 1:
        runs.append(current)
    return runs


def _shadow_layer(alpha: np.ndarray, shadow: ShadowStyle) -> np.ndarray:
    height, width = alpha.shape
    source = Image.fromarray(np.clip(alpha * 255.0, 0, 255).astype(np.uint8))
    shifted = Image.new("L", (width, height), 0)
    shifted.paste(source, (int(round(shadow.offset_x)), int(round(shadow.offset_y))))
    if shadow.blur > 0:
        shifted = shifted.filter(ImageFilter.GaussianBlur(shadow.blur / 2.0))
    out = np.empty((height, width, 4), dtype=np.float32)
    out[:, :, :3] = np.asarray(shadow.color[:3], dtype=np.float32) / 255.0
    out[:, :, 3] = np.asarray(shifted, dtype=np.float32) / 255.0 * (shadow.color[3] / 255.0)
    return out


def _apply_filters(src: np.ndarray, spec: str) -> np.ndarray:
    out = src
    for name, raw in _FILTER_RE.findall(spec.strip().lower()):
        amount = _filter_amount(raw)
        if name == "blur":
            out = _blur(out, amount)
        elif name == "opacity":
            out = out.copy()
            out[:, :, 3] *= np.clip(amount, 0.0, 1.0)
        elif name == "grayscale":
            k = np.clip(amount, 0.0, 1.0)
            lum = out[:, :, 0] * 0.2126 + out[:, :, 1] * 0.7152 + out[:, :, 2] * 0.0722
            out = out.copy()
            out[:, :, :3] = out[:, :, :3] * (1.0 - k) + lum[:, :, None] * k
        elif name == "invert":
            k = np.clip(amount, 0.0, 1.0)
            out = out.copy()
            out[:, :, :3] = out[:, :, :3] * (1.0 - k) + (1.0 - out[:, :, :3]) * k
        elif name == "brightness":
            out = out.copy()
            out[:, :, :3] = np.clip(out[:, :, :3] * amount, 0.0, 1.0)
        else:
            LOGGER.warning("filter `%s` is not supported on raster surfaces; ignoring", name)
    return out


def _filter_amount(raw: str) -> float:
    value = raw.strip()
    if value.endswith("px"):
        return float(value[:-2])
    if value.endswith("%"):
        return float(value[:-1]) / 100.0
    return float(value) if value else 1.0


def _blur(src: np.ndarray, radius: float) -> np.ndarray:
    if radius <= 0:
        return src
    premultiplied = src.copy()
    premultiplied[:, :, :3] *= premultiplied[:, :, 3:4]
    image = Image.fromarray(np.clip(premultiplied * 255.0, 0, 255).astype(np.uint8))
    blurred = np.asarray(image.filter(ImageFilter.GaussianBlur(radius)), dtype=np.float32) / 255.0
    alpha = blurred[:, :, 3:4]
    safe = np.where(alpha > 1e-6, alpha, 1.0)
    blurred[:, :, :3] = np.clip(blurred[:, :, :3] / safe, 0.0, 1.0)
    return blurred
