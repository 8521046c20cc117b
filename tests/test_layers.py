from __future__ import annotations

import base64
import io
from pathlib import Path
import tempfile
import unittest

from PIL import Image
import torch

from lazyscene_core.core.errors import ResourceError
from lazyscene_core.core.lengths import Size
from lazyscene_core.core.references import ReferenceResolver
from lazyscene_core.core.registry import LayerRegistry
from lazyscene_core.core.render_manager import RenderContext, RenderManager
from lazyscene_core.render.fonts import FontRegistry, TextMetrics
from lazyscene_core.render.raster_surface import RasterSurface
from lazyscene_core.render.surface import TextStyle
from lazyscene_ui import (
    BezierLayer,
    ClearLayer,
    ColorStop,
    Gradient,
    GradientPoint,
    Group,
    ImageLayer,
    LineLayer,
    MorphLayer,
    PathLayer,
    PolygonLayer,
    PolygonSize,
    QuadraticLayer,
    SubstringColor,
    TextLayer,
    color_segments,
    load_image,
    polygon_vertices,
    wrap_words,
)
from lazyscene_ui.text import layout_lines


def _render(width: int, height: int, *layers: object) -> torch.Tensor:
    fonts = FontRegistry()
    surface = RasterSurface(width, height, fonts)
    registry = LayerRegistry().add(*layers)
    context = RenderContext(surface, ReferenceResolver(registry, Size(width, height), fonts), fonts)
    RenderManager().render_static(registry, context)
    return surface.snapshot()


def _png_bytes(color: tuple[int, int, int, int]) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (2, 2), color).save(buffer, format="PNG")
    return buffer.getvalue()


class _FixedWidthSurface:
    def measure_text(self, text: str, style: TextStyle) -> TextMetrics:
        return TextMetrics(width=len(text) * style.size / 2.0, ascent=style.size, descent=0.0)


class LayerSetterTests(unittest.TestCase):
    def test_setters_chain_and_validate(self) -> None:
        layer = MorphLayer(id="box").set_position(10, "50%").set_size(20, 10, 2).set_opacity(0.5)
        self.assertEqual((layer.props.x, layer.props.y), (10, "50%"))
        self.assertEqual(layer.props.size.radius, 2)
        with self.assertRaisesRegex(ValueError, "opacity"):
            layer.set_opacity(1.5)
        with self.assertRaisesRegex(ValueError, "centring"):
            layer.set_centring("middle")
        with self.assertRaisesRegex(ValueError, "composite"):
            layer.set_global_composite_operation("blend")
        with self.assertRaisesRegex(ValueError, "non-empty"):
            layer.set_id(" ")
        with self.assertRaises(ValueError):
            layer.set_color("nope")

    def test_filters_and_transform_setters(self) -> None:
        layer = MorphLayer().set_filters("blur(2px)", " ", "grayscale(1)").set_rotate(45).set_scale(2, 3)
        self.assertEqual(layer.props.filter, "blur(2px) grayscale(1)")
        self.assertEqual(layer.props.transform.scale, (2.0, 3.0))
        self.assertFalse(layer.props.transform.is_empty())
        self.assertIsNone(MorphLayer().set_filters().props.filter)

    def test_matrix_and_text_spacing_setters(self) -> None:
        layer = MorphLayer().set_matrix(1, 0, 0, 1, 5, 6)
        self.assertEqual(layer.props.transform.matrix, (1.0, 0.0, 0.0, 1.0, 5.0, 6.0))
        text = TextLayer().set_direction("rtl").set_letter_spacing(2).set_word_spacing(4)
        style = text.text_style()
        self.assertEqual((style.direction, style.letter_spacing, style.word_spacing), ("rtl", 2.0, 4.0))
        with self.assertRaisesRegex(ValueError, "text direction"):
            text.set_direction("up")

    def test_group_children_are_sorted_by_z_index(self) -> None:
        group = Group(id="g").add(MorphLayer(id="b", z_index=2), MorphLayer(id="a"))
        self.assertEqual([layer.id for layer in group.get_all()], ["a", "b"])
        self.assertEqual(group.length(), 2)
        self.assertIs(group.get("b"), group.get_all()[1])
        self.assertEqual(group.remove("a").length(), 1)

    def test_gradient_angle_is_encoded(self) -> None:
        gradient = Gradient("conic").add_points(GradientPoint(x=5, y=5)).set_angle(90)
        self.assertEqual(gradient.to_dict()["angle"], 90.0)

    def test_stroke_turns_fill_off(self) -> None:
        layer = MorphLayer().set_stroke(3, cap="round", dash=(2, 1))
        self.assertFalse(layer.props.filled)
        self.assertEqual(layer.props.stroke.dash, (2.0, 1.0))
        with self.assertRaises(ValueError):
            MorphLayer().set_stroke(1, cap="pointy")

    def test_generated_ids_are_unique_and_prefixed(self) -> None:
        first, second = MorphLayer(), MorphLayer()
        self.assertTrue(first.id.startswith("morph-"))
        self.assertNotEqual(first.id, second.id)

    def test_wrong_props_type_is_rejected(self) -> None:
        with self.assertRaises(TypeError):
            MorphLayer(TextLayer().props)

    def test_to_dict_uses_camel_case(self) -> None:
        payload = TextLayer(id="t", z_index=3).set_text("hi").set_color("#112233", SubstringColor(0, 1, "red")).to_dict()
        self.assertEqual(payload["type"], "text")
        self.assertEqual(payload["zIndex"], 3)
        self.assertEqual(payload["props"]["subStringColors"], [{"start": 0, "end": 1, "color": "red"}])
        self.assertIn("fillStyle", payload["props"])
        self.assertIn("letterSpacing", payload["props"])

    def test_resize_scales_absolute_lengths(self) -> None:
        layer = MorphLayer().set_position(10, "50%").set_size(100, "20px").set_stroke(2)
        layer.set_translate(4, 0)
        layer.resize(2)
        self.assertEqual((layer.props.x, layer.props.y), (20, "50%"))
        self.assertEqual((layer.props.size.width, layer.props.size.height), (200, "40px"))
        self.assertEqual(layer.props.stroke.width, 4)
        self.assertEqual(layer.props.transform.translate, (8, 0))
        text = TextLayer().set_font("Geist", 10)
        text.resize(1.5)
        self.assertEqual(text.props.font.size, 15)

    def test_curve_validation(self) -> None:
        with self.assertRaisesRegex(ValueError, "two control points"):
            BezierLayer().set_control_points((1, 1))
        parser = ReferenceResolver(LayerRegistry(), Size(10, 10)).parser
        with self.assertRaisesRegex(ValueError, "one control point"):
            QuadraticLayer().set_end_position(5, 5).bounding_box(parser)
        with self.assertRaisesRegex(ValueError, "at least 3"):
            PolygonSize(count=2)

    def test_bezier_bounding_box_uses_all_points(self) -> None:
        parser = ReferenceResolver(LayerRegistry(), Size(200, 200)).parser
        layer = BezierLayer().set_position(0, 0).set_end_position(100, 0)
        layer.set_control_points({"x": 0, "y": 100}, (100, 100))
        box = layer.bounding_box(parser)
        self.assertAlmostEqual(box.max.y, 75.0, places=3)

    def test_text_choices(self) -> None:
        layer = TextLayer()
        with self.assertRaisesRegex(ValueError, "text align"):
            layer.set_align("middle")
        with self.assertRaisesRegex(ValueError, "text baseline"):
            layer.set_baseline("center")
        layer.set_multiline(100, 40, 1.5)
        self.assertTrue(layer.props.multiline.enabled)
        self.assertEqual(layer.text_style().family, "Geist")

    def test_image_src_must_be_set(self) -> None:
        with self.assertRaisesRegex(ValueError, "src"):
            ImageLayer().set_src("")


class TextLayoutTests(unittest.TestCase):
    def test_wrap_words(self) -> None:
        self.assertEqual(wrap_words("aa bb cc", 6, len), ["aa bb", "cc"])
        self.assertEqual(wrap_words("averyveryverylongword", 3, len), ["averyveryverylongword"])
        self.assertEqual(wrap_words("", 10, len), [""])

    def test_layout_shrinks_until_lines_fit(self) -> None:
        lines, style, line_height = layout_lines(_FixedWidthSurface(), "a b c d", TextStyle(size=10), 10, 20, 1.0)
        self.assertEqual(lines, ["a b", "c d"])
        self.assertEqual(style.size, 5)
        self.assertEqual(line_height, 5)

    def test_layout_without_height_keeps_size(self) -> None:
        _, style, _ = layout_lines(_FixedWidthSurface(), "a b c d", TextStyle(size=10), 10, 0, 1.1)
        self.assertEqual(style.size, 10)

    def test_color_segments(self) -> None:
        segments = color_segments("hello world", [SubstringColor(0, 5, "red")])
        self.assertEqual(segments, [("hello", "red"), (" world", None)])
        overlapping = color_segments("hello world", [SubstringColor(3, 8, "blue"), SubstringColor(0, 5, "red")])
        self.assertEqual(overlapping, [("hello", "red"), (" wo", "blue"), ("rld", None)])
        self.assertEqual(color_segments("hi", [SubstringColor(5, 9, "red")]), [("hi", None)])

    def test_substring_range_is_validated(self) -> None:
        with self.assertRaises(ValueError):
            SubstringColor(4, 2, "red")


class PolygonTests(unittest.TestCase):
    def test_square_vertices_start_at_top(self) -> None:
        top, right, bottom, left = polygon_vertices(0, 0, 100, 100, 4)
        self.assertAlmostEqual(top.x, 50.0)
        self.assertAlmostEqual(top.y, 0.0)
        self.assertAlmostEqual(right.x, 100.0)
        self.assertAlmostEqual(bottom.y, 100.0)
        self.assertAlmostEqual(left.x, 0.0)

    def test_draw_fills_center(self) -> None:
        frame = _render(40, 40, PolygonLayer().set_position(0, 0).set_size(40, 40, 4, 6).set_color("#00ff00"))
        self.assertEqual(frame[20, 20].tolist(), [0, 255, 0, 255])
        self.assertEqual(frame[0, 0, 3].item(), 0)


class LayerDrawTests(unittest.TestCase):
    def test_morph_fill_is_centred_on_position(self) -> None:
        frame = _render(20, 20, MorphLayer().set_position(10, 10).set_size(10, 10).set_color("#ff0000"))
        self.assertEqual(frame[10, 10].tolist(), [255, 0, 0, 255])
        self.assertEqual(frame[1, 1, 3].item(), 0)
        self.assertEqual(frame[18, 18, 3].item(), 0)

    def test_morph_stroke_leaves_interior_empty(self) -> None:
        frame = _render(40, 40, MorphLayer().set_position(20, 20).set_size(30, 30).set_stroke(2))
        self.assertEqual(frame[20, 20, 3].item(), 0)
        self.assertGreater(frame[5, 20, 3].item(), 0)

    def test_hidden_layers_are_skipped(self) -> None:
        frame = _render(10, 10, MorphLayer(visible=False).set_position(5, 5).set_size(10, 10))
        self.assertEqual(int(frame.sum().item()), 0)

    def test_translate_moves_layer(self) -> None:
        layer = MorphLayer().set_centring("start-top").set_position(0, 0).set_size(5, 5).set_translate(10, 10)
        frame = _render(20, 20, layer)
        self.assertEqual(frame[12, 12, 3].item(), 255)
        self.assertEqual(frame[2, 2, 3].item(), 0)

    def test_gradient_fill_is_relative_to_the_box(self) -> None:
        gradient = Gradient().add_points(GradientPoint("0%", 0), GradientPoint("100%", 0))
        gradient.add_stops(ColorStop("#000000", 0), ColorStop("#ffffff", 1))
        layer = MorphLayer().set_centring("start-top").set_position(10, 0).set_size(10, 4).set_color(gradient)
        frame = _render(30, 4, layer)
        self.assertLess(frame[2, 10, 0].item(), 40)
        self.assertGreater(frame[2, 19, 0].item(), 215)

    def test_clear_layer_erases_earlier_layers(self) -> None:
        base = MorphLayer(z_index=1).set_position(10, 10).set_size(20, 20)
        hole = ClearLayer(z_index=2).set_position(0, 0).set_size(10, 10)
        frame = _render(20, 20, hole, base)
        self.assertEqual(frame[5, 5, 3].item(), 0)
        self.assertEqual(frame[15, 15, 3].item(), 255)

    def test_line_stroke(self) -> None:
        frame = _render(20, 10, LineLayer().set_position(0, 5).set_end_position(20, 5).set_stroke(4))
        self.assertGreater(frame[5, 10, 3].item(), 0)
        self.assertEqual(frame[0, 10, 3].item(), 0)

    def test_quadratic_fill(self) -> None:
        layer = QuadraticLayer().set_position(0, 0).set_end_position(40, 0).set_control_point(20, 40).set_filled(True)
        frame = _render(40, 40, layer)
        self.assertGreater(frame[5, 20, 3].item(), 0)
        self.assertEqual(frame[30, 20, 3].item(), 0)

    def test_path_layer_offsets_geometry(self) -> None:
        layer = PathLayer().set_path("M 0 0 L 5 0 L 5 5 L 0 5 Z").set_position(10, 10).set_color("#0000ff")
        frame = _render(20, 20, layer)
        self.assertEqual(frame[12, 12].tolist(), [0, 0, 255, 255])
        self.assertEqual(frame[2, 2, 3].item(), 0)

    def test_path_clip_applies_to_later_layers(self) -> None:
        clip = PathLayer(z_index=1).rect(0, 0, 10, 20).set_clip_path()
        fill = MorphLayer(z_index=2).set_position(10, 10).set_size(20, 20)
        frame = _render(20, 20, fill, clip)
        self.assertEqual(frame[15, 5, 3].item(), 255)
        self.assertEqual(frame[15, 15, 3].item(), 0)

    def test_empty_path_draws_nothing(self) -> None:
        frame = _render(10, 10, PathLayer())
        self.assertEqual(int(frame.sum().item()), 0)

    def test_image_from_file_and_data_uri(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "green.png"
            path.write_bytes(_png_bytes((0, 255, 0, 255)))
            layer = ImageLayer().set_src(str(path)).set_centring("start-top").set_position(0, 0).set_size(10, 10)
            frame = _render(20, 20, layer)
        self.assertEqual(frame[5, 5, 1].item(), 255)
        self.assertEqual(frame[15, 15, 3].item(), 0)
        uri = "data:image/png;base64," + base64.b64encode(_png_bytes((0, 0, 255, 255))).decode("ascii")
        self.assertEqual(load_image(uri).getpixel((0, 0)), (0, 0, 255, 255))

    def test_missing_image_is_a_resource_error(self) -> None:
        with self.assertRaisesRegex(ResourceError, "image not found"):
            load_image("/nonexistent/picture.png")
        with self.assertRaisesRegex(ResourceError, "could not be decoded"):
            load_image("data:image/png;base64," + base64.b64encode(b"not a png").decode("ascii"))
        layer = ImageLayer().set_src("/nonexistent/picture.png").set_size(5, 5)
        with self.assertRaises(ResourceError):
            _render(10, 10, layer)

    def test_text_draws_pixels(self) -> None:
        frame = _render(60, 30, TextLayer().set_text("Hi").set_font("Geist", 20).set_position(5, 22))
        self.assertGreater(int(frame[:, :, 3].sum().item()), 0)

    def test_multiline_text_draws_pixels(self) -> None:
        layer = TextLayer().set_text("one two three four").set_multiline(40, 40).set_font("Geist", 12)
        layer.set_position(0, 12).set_color("#ff0000", SubstringColor(0, 3, "blue"))
        frame = _render(60, 60, layer)
        self.assertGreater(int(frame[:, :, 3].sum().item()), 0)


if __name__ == "__main__":
    unittest.main()
