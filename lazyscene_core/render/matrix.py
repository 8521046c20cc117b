from __future__ import annotations

from dataclasses import dataclass
import math


@dataclass(frozen=True)
class Affine:
    """2D affine matrix in canvas order: x' = a*x + c*y + e, y' = b*x + d*y + f."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @staticmethod
    def identity() -> "Affine":
        return Affine()

    @staticmethod
    def translation(tx: float, ty: float) -> "Affine":
        return Affine(e=tx, f=ty)

    @staticmethod
    def scaling(sx: float, sy: float) -> "Affine":
        return Affine(a=sx, d=sy)

    @staticmethod
    def rotation(radians: float) -> "Affine":
        cos = math.cos(radians)
        sin = math.sin(radians)
        return Affine(a=cos, b=sin, c=-sin, d=cos)

    def multiply(self, other: "Affine") -> "Affine":
        """Return `self x other`: `other` applies to points first."""

        return Affine(
            a=self.a * other.a + self.c * other.b,
            b=self.b * other.a + self.d * other.b,
            c=self.a * other.c + self.c * other.d,
            d=self.b * other.c + self.d * other.d,
            e=self.a * other.e + self.c * other.f + self.e,
            f=self.b * other.e + self.d * other.f + self.f,
        )

    def translate(self, tx: float, ty: float) -> "Affine":
        return self.multiply(Affine.translation(tx, ty))

    def scale(self, sx: float, sy: float) -> "Affine":
        return self.multiply(Affine.scaling(sx, sy))

    def rotate(self, radians: float) -> "Affine":
        return self.multiply(Affine.rotation(radians))

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return (self.a * x + self.c * y + self.e, self.b * x + self.d * y + self.f)

    @property
    def determinant(self) -> float:
        return self.a * self.d - self.b * self.c

    @property
    def is_identity(self) -> bool:
        return self == Affine()

    @property
    def scale_factor(self) -> float:
        return math.sqrt(abs(self.determinant))

    def inverse(self) -> "Affine":
        det = self.determinant
        if abs(det) < 1e-12:
            raise ValueError("matrix is singular")
        return Affine(
            a=self.d / det,
            b=-self.b / det,
            c=-self.c / det,
            d=self.a / det,
            e=(self.c * self.f - self.d * self.e) / det,
            f=(self.b * self.e - self.a * self.f) / det,
        )

    def pil_coefficients(self) -> tuple[float, float, float, float, float, float]:
        """Coefficients for `Image.transform(..., Image.Transform.AFFINE, ...)` (output -> input)."""

        inv = self.inverse()
        return (inv.a, inv.c, inv.e, inv.b, inv.d, inv.f)

    def to_svg(self) -> str:
        return "matrix({})".format(" ".join(_fmt(v) for v in (self.a, self.b, self.c, self.d, self.e, self.f)))


def _fmt(value: float) -> str:
    rounded = round(value, 6)
    if rounded == int(rounded):
        return str(int(rounded))
    return repr(rounded)
