from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import io
import logging
from pathlib import Path

from PIL import ImageFont


LOGGER = logging.getLogger(__name__)

PilFont = ImageFont.FreeTypeFont | ImageFont.ImageFont

_FALLBACK_PATTERNS = (
    "dejavusans",
    "liberationsans",
    "arial",
    "helvetica",
    "notosans",
)
_FONT_DIRS = (
    Path.home() / "Library/Fonts",
    Path("/Library/Fonts"),
    Path("/System/Library/Fonts"),
    Path("/System/Library/Fonts/Supplemental"),
    Path("/usr/share/fonts"),
    Path("/usr/local/share/fonts"),
    Path("C:/Windows/Fonts"),
)


@dataclass(frozen=True)
class FontFace:
    """A registered font file (or in-memory font bytes) for one family/weight."""

    family: str
    weight: int = 400
    path: str | None = None
    data: bytes | None = None

    def __post_init__(self) -> None:
        if not self.family.strip():
            raise ValueError("font family must be non-empty")
        if self.weight < 1 or self.weight > 1000:
            raise ValueError("font weight must be in [1, 1000]")
        if (self.path is None) == (self.data is None):
            raise ValueError("font face requires exactly one of `path` or `data`")


@dataclass(frozen=True)
class TextMetrics:
    width: float
    ascent: float
    descent: float

    @property
    def height(self) -> float:
        return self.ascent + self.descent


class FontRegistry:
    """Explicit family/weight -> font source mapping, scoped to whoever constructs it."""

    def __init__(self) -> None:
        self._faces: dict[tuple[str, int], FontFace] = {}
        self._warned: set[str] = set()

    def register(self, family: str, source: str | Path | bytes, weight: int = 400) -> FontFace:
        if isinstance(source, bytes):
            face = FontFace(family=family, weight=weight, data=source)
        else:
            path = Path(source)
            if not path.exists():
                raise FileNotFoundError(f"font file not found: {path}")
            face = FontFace(family=family, weight=weight, path=str(path.resolve()))
        self._faces[(_family_key(family), weight)] = face
        return face

    def unregister(self, family: str, weight: int | None = None) -> None:
        key = _family_key(family)
        for registered in list(self._faces):
            if registered[0] == key and (weight is None or registered[1] == weight):
                del self._faces[registered]

    def resolve(self, family: str, weight: int = 400) -> FontFace | None:
        key = _family_key(family)
        candidates = [face for (fam, _), face in self._faces.items() if fam == key]
        if not candidates:
            return None
        return min(candidates, key=lambda face: abs(face.weight - weight))

    def load(self, family: str, size: float, weight: int = 400) -> PilFont:
        if size <= 0:
            raise ValueError("font size must be > 0")
        size_px = max(1, int(round(size)))
        face = self.resolve(family, weight)
        if face is not None:
            return _load_font(face.path or face.data, size_px)
        system_path = _resolve_system_font_path(family)
        if system_path:
            return _load_font(system_path, size_px)
        if family not in self._warned:
            self._warned.add(family)
            LOGGER.warning("font family `%s` not found; using the default font", family)
        return ImageFont.load_default(size=size_px)

    def measure(
        self,
        text: str,
        family: str,
        size: float,
        weight: int = 400,
        *,
        letter_spacing: float = 0.0,
        word_spacing: float = 0.0,
    ) -> TextMetrics:
        font = self.load(family, size, weight)
        ascent, descent = font_metrics(font, size)
        return TextMetrics(
            width=line_advance(font, text, letter_spacing=letter_spacing, word_spacing=word_spacing),
            ascent=float(ascent),
            descent=float(descent),
        )


def line_advance(font: PilFont, text: str, *, letter_spacing: float = 0.0, word_spacing: float = 0.0) -> float:
    if text == "":
        return 0.0
    if letter_spacing == 0 and word_spacing == 0:
        return float(font.getlength(text))
    total = 0.0
    for i, ch in enumerate(text):
        total += float(font.getlength(ch))
        if i > 0:
            total += letter_spacing
        if ch == " ":
            total += word_spacing
    return total


def font_metrics(font: PilFont, size: float) -> tuple[int, int]:
    if isinstance(font, ImageFont.FreeTypeFont):
        ascent, descent = font.getmetrics()
        return int(max(1, ascent)), int(max(0, descent))
    return int(max(1, size * 0.8)), int(max(0, size * 0.2))


@lru_cache(maxsize=64)
def _load_font(source: str | bytes, size_px: int) -> PilFont:
    if isinstance(source, bytes):
        return ImageFont.truetype(io.BytesIO(source), size=size_px)
    return ImageFont.truetype(source, size=size_px)


@lru_cache(maxsize=32)
def _resolve_system_font_path(family: str) -> str:
    wanted = family.strip().lower().replace(" ", "")
    candidates: list[Path] = []
    for base in _FONT_DIRS:
        if not base.exists():
            continue
        for ext in ("*.ttf", "*.otf", "*.ttc"):
            candidates.extend(base.rglob(ext))
    patterns = ((wanted,) if wanted else ()) + _FALLBACK_PATTERNS
    for pattern in patterns:
        for path in candidates:
            stem = path.stem.lower().replace(" ", "")
            if stem == pattern or stem.startswith(pattern):
                return str(path)
    return ""


def _family_key(family: str) -> str:
    return family.strip().lower()
