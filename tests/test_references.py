from __future__ import annotations

import unittest

from lazyscene_core.core.errors import CyclicReferenceError
from lazyscene_core.core.lengths import Link, Size
from lazyscene_core.core.references import ReferenceResolver
from lazyscene_core.core.registry import LayerRegistry
from lazyscene_core.render.fonts import TextMetrics
from lazyscene_core.render.surface import TextStyle
from lazyscene_ui import ClearLayer, Group, ImageLayer, LineLayer, MorphLayer, PathLayer, QuadraticLayer, TextLayer


VIEWPORT = Size(400, 300)


def _resolver(*layers) -> ReferenceResolver:
    return ReferenceResolver(LayerRegistry().add(*layers), VIEWPORT)


class _FixedMeasureSurface:
    def __init__(self, width: float) -> None:
        self.width = width
        self.calls: list[tuple[str, float, float]] = []

    def measure_text(self, text: str, style: TextStyle) -> TextMetrics:
        self.calls.append((text, style.size, style.letter_spacing))
        return TextMetrics(width=self.width, ascent=15.0, descent=5.0)


class ReferenceResolverTests(unittest.TestCase):
    def test_width_reference_adds_offset(self) -> None:
        a = MorphLayer(id="a").set_size(100, 50)
        b = MorphLayer(id="b").set_position(Link("a", "width", 10), 0).set_size(10, 10)
        resolver = _resolver(a, b)
        self.assertEqual(resolver.parser.parse(b.props.x), 110.0)

    def test_string_reference_form(self) -> None:
        a = MorphLayer(id="a").set_size("25%", "10%")
        resolver = _resolver(a)
        self.assertEqual(resolver.parser.parse("link-w-a-5"), 105.0)
        self.assertEqual(resolver.parser.parse("link-h-a-0"), 30.0)

    def test_position_reference_reads_source_coordinates(self) -> None:
        a = MorphLayer(id="a").set_position(20, "50%").set_size(1, 1)
        resolver = _resolver(a)
        self.assertEqual(resolver.parser.parse(Link("a", "x", 0)), 20.0)
        self.assertEqual(resolver.parser.parse(Link("a", "y", 0)), 150.0)

    def test_curve_reference_uses_bounding_box(self) -> None:
        curve = QuadraticLayer(id="q").set_position(0, 0).set_control_point(50, 100).set_end_position(100, 0)
        line = LineLayer(id="l").set_position(10, 10).set_end_position(70, 50)
        resolver = _resolver(curve, line)
        self.assertAlmostEqual(resolver.parser.parse(Link("q", "height")), 50.0, places=2)
        self.assertAlmostEqual(resolver.parser.parse(Link("q", "width")), 100.0, places=6)
        self.assertEqual(resolver.parser.parse(Link("l", "width")), 60.0)
        self.assertEqual(resolver.parser.parse(Link("l", "height")), 40.0)

    def test_multiline_text_reference_uses_declared_box(self) -> None:
        text = TextLayer(id="t").set_text("hello world").set_multiline(120, 40)
        resolver = _resolver(text)
        self.assertEqual(resolver.parser.parse(Link("t", "width")), 120.0)
        self.assertEqual(resolver.parser.parse(Link("t", "height")), 40.0)

    def test_single_line_text_height_is_font_size(self) -> None:
        text = TextLayer(id="t").set_text("hello").set_font("Geist", 24)
        resolver = _resolver(text)
        self.assertEqual(resolver.parser.parse(Link("t", "height")), 24.0)
        self.assertGreater(resolver.parser.parse(Link("t", "width")), 0.0)

    def test_text_width_is_measured_by_the_drawing_surface(self) -> None:
        text = TextLayer(id="t").set_text("hello").set_font("Geist", 20).set_letter_spacing(3)
        surface = _FixedMeasureSurface(77.0)
        resolver = ReferenceResolver(LayerRegistry().add(text), VIEWPORT, surface=surface)
        self.assertEqual(resolver.parser.parse(Link("t", "width", 3)), 80.0)
        self.assertEqual(surface.calls, [("hello", 20.0, 3.0)])

    def test_missing_group_and_path_sources_resolve_to_zero(self) -> None:
        group = Group(id="g")
        path = PathLayer(id="p").set_path("M 0 0 L 10 10")
        resolver = _resolver(group, path)
        self.assertEqual(resolver.parser.parse(Link("nope", "width", 7)), 0.0)
        self.assertEqual(resolver.parser.parse(Link("g", "width", 7)), 0.0)
        self.assertEqual(resolver.parser.parse(Link("p", "height", 7)), 0.0)

    def test_references_find_layers_inside_groups(self) -> None:
        inner = MorphLayer(id="inner").set_size(64, 32)
        resolver = _resolver(Group(id="g").add(inner))
        self.assertEqual(resolver.parser.parse(Link("inner", "width", 1)), 65.0)

    def test_mutual_position_references_to_sizes_are_not_cycles(self) -> None:
        a = MorphLayer(id="a").set_position(Link("b", "width"), 0).set_size(100, 10)
        b = MorphLayer(id="b").set_position(Link("a", "width"), 0).set_size(40, 10)
        resolver = _resolver(a, b)
        self.assertEqual(resolver.parser.parse(a.props.x), 40.0)
        self.assertEqual(resolver.parser.parse(b.props.x), 100.0)

    def test_box_sizes_ignore_centring(self) -> None:
        for layer in (
            MorphLayer(id="m").set_centring("end-bottom").set_size(30, 20),
            ClearLayer(id="c").set_size(30, 20),
            ImageLayer(id="i").set_centring("center").set_size(30, 20),
        ):
            resolver = _resolver(layer)
            self.assertEqual(resolver.parser.parse(Link(layer.id, "width")), 30.0)
            self.assertEqual(resolver.parser.parse(Link(layer.id, "height")), 20.0)

    def test_cycles_raise_instead_of_recursing(self) -> None:
        a = MorphLayer(id="a").set_size(Link("b", "width"), 10)
        b = MorphLayer(id="b").set_size(Link("a", "width"), 10)
        resolver = _resolver(a, b)
        with self.assertRaises(CyclicReferenceError) as ctx:
            resolver.parser.parse(Link("a", "width"))
        self.assertEqual(ctx.exception.trail, ["a", "b", "a"])

    def test_self_reference_is_a_cycle(self) -> None:
        a = MorphLayer(id="a").set_size(Link("a", "height"), 10)
        resolver = _resolver(a)
        with self.assertRaisesRegex(CyclicReferenceError, "a -> a"):
            resolver.parser.parse(Link("a", "width"))


if __name__ == "__main__":
    unittest.main()
