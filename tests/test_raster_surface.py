from __future__ import annotations

import io
import unittest

from PIL import Image

from lazyscene_core.render.matrix import Affine
from lazyscene_core.render.paint import GradientPaint, PatternPaint, ResolvedStop, SolidPaint
from lazyscene_core.render.paths import PathData
from lazyscene_core.render.raster_surface import RasterSurface
from lazyscene_core.render.surface import ShadowStyle, StrokeStyle

RED = SolidPaint((255, 0, 0, 255))


def _rect(x: float, y: float, w: float, h: float) -> PathData:
    return PathData().rect(x, y, w, h)


class RasterSurfaceTests(unittest.TestCase):
    def test_fill_rect_covers_only_its_pixels(self) -> None:
        surface = RasterSurface(20, 20)
        surface.fill_path(_rect(0, 0, 10, 10), RED)
        frame = surface.snapshot()
        self.assertEqual(frame[5, 5].tolist(), [255, 0, 0, 255])
        self.assertEqual(frame[15, 15].tolist(), [0, 0, 0, 0])

    def test_opacity_scales_alpha(self) -> None:
        surface = RasterSurface(10, 10)
        surface.set_opacity(0.5)
        surface.fill_path(_rect(0, 0, 10, 10), RED)
        self.assertIn(surface.snapshot()[5, 5, 3].item(), (127, 128))
        with self.assertRaises(ValueError):
            surface.set_opacity(1.5)

    def test_transform_and_save_restore(self) -> None:
        surface = RasterSurface(20, 20)
        surface.save()
        surface.transform(Affine.translation(10, 10))
        surface.fill_path(_rect(0, 0, 5, 5), RED)
        surface.restore()
        self.assertTrue(surface.matrix.is_identity)
        frame = surface.snapshot()
        self.assertEqual(frame[12, 12, 0].item(), 255)
        self.assertEqual(frame[2, 2, 3].item(), 0)

    def test_clip_limits_later_draws(self) -> None:
        surface = RasterSurface(20, 20)
        surface.clip(_rect(0, 0, 10, 20))
        surface.fill_path(_rect(0, 0, 20, 20), RED)
        frame = surface.snapshot()
        self.assertEqual(frame[5, 5, 3].item(), 255)
        self.assertEqual(frame[5, 15, 3].item(), 0)

    def test_clear_rect_and_clear(self) -> None:
        surface = RasterSurface(20, 20)
        surface.fill_path(_rect(0, 0, 20, 20), RED)
        surface.clear_rect(0, 0, 10, 10)
        frame = surface.snapshot()
        self.assertEqual(frame[5, 5, 3].item(), 0)
        self.assertEqual(frame[15, 15, 3].item(), 255)
        surface.clear()
        self.assertEqual(int(surface.snapshot().sum().item()), 0)

    def test_destination_out_composite(self) -> None:
        surface = RasterSurface(10, 10)
        surface.fill_path(_rect(0, 0, 10, 10), RED)
        surface.set_composite("destination-out")
        surface.fill_path(_rect(0, 0, 10, 10), SolidPaint((0, 0, 255, 255)))
        self.assertEqual(surface.snapshot()[5, 5, 3].item(), 0)

    def test_stroke_draws_outline_not_interior(self) -> None:
        surface = RasterSurface(40, 40)
        surface.stroke_path(_rect(5, 5, 30, 30), RED, StrokeStyle(width=2))
        frame = surface.snapshot()
        self.assertGreater(frame[5, 20, 3].item(), 0)
        self.assertEqual(frame[20, 20, 3].item(), 0)

    def test_linear_gradient_varies_along_axis(self) -> None:
        paint = GradientPaint(
            kind="linear",
            points=((0.0, 0.0), (20.0, 0.0)),
            stops=(ResolvedStop(0.0, (0, 0, 0, 255)), ResolvedStop(1.0, (255, 255, 255, 255))),
        )
        surface = RasterSurface(20, 4)
        surface.fill_path(_rect(0, 0, 20, 4), paint)
        frame = surface.snapshot()
        self.assertLess(frame[2, 1, 0].item(), frame[2, 18, 0].item())

    def test_pattern_repeats_tile(self) -> None:
        tile = Image.new("RGBA", (2, 2), (0, 0, 255, 255))
        surface = RasterSurface(8, 8)
        surface.fill_path(_rect(0, 0, 8, 8), PatternPaint(tile, "repeat"))
        self.assertEqual(surface.snapshot()[7, 7].tolist(), [0, 0, 255, 255])

    def test_pattern_no_repeat_stays_in_tile(self) -> None:
        tile = Image.new("RGBA", (2, 2), (0, 0, 255, 255))
        surface = RasterSurface(8, 8)
        surface.fill_path(_rect(0, 0, 8, 8), PatternPaint(tile, "no-repeat"))
        frame = surface.snapshot()
        self.assertEqual(frame[0, 0, 3].item(), 255)
        self.assertEqual(frame[6, 6, 3].item(), 0)

    def test_shadow_paints_offset_copy(self) -> None:
        surface = RasterSurface(30, 30)
        surface.set_shadow(ShadowStyle(color=(0, 0, 0, 255), blur=0, offset_x=10, offset_y=10))
        surface.fill_path(_rect(0, 0, 10, 10), RED)
        frame = surface.snapshot()
        self.assertGreater(frame[15, 15, 3].item(), 0)
        self.assertEqual(frame[15, 15, 0].item(), 0)

    def test_draw_image_scales_into_box(self) -> None:
        image = Image.new("RGBA", (1, 1), (0, 255, 0, 255))
        surface = RasterSurface(10, 10)
        surface.draw_image(image, 0, 0, 10, 10)
        self.assertEqual(surface.snapshot()[5, 5, 1].item(), 255)

    def test_encode_formats(self) -> None:
        surface = RasterSurface(4, 4)
        surface.fill_path(_rect(0, 0, 4, 4), RED)
        png = surface.encode("png")
        self.assertTrue(png.startswith(b"\x89PNG"))
        self.assertEqual(Image.open(io.BytesIO(png)).size, (4, 4))
        self.assertTrue(surface.encode("jpeg").startswith(b"\xff\xd8"))
        with self.assertRaisesRegex(ValueError, "unsupported raster format"):
            surface.encode("tiff")

    def test_rejects_empty_dimensions(self) -> None:
        with self.assertRaises(ValueError):
            RasterSurface(0, 10)


if __name__ == "__main__":
    unittest.main()
