from __future__ import annotations

import math
import unittest

from lazyscene_core.render.matrix import Affine
from lazyscene_core.render.paths import PathData


class PathDataTests(unittest.TestCase):
    def test_svg_round_trip_absolute_and_relative(self) -> None:
        path = PathData.from_svg("M 0 0 L 10 0 L 10 10 Z")
        self.assertEqual(path.to_svg(), "M 0 0 L 10 0 L 10 10 Z")
        self.assertEqual(path.to_svg(relative=True), "m 0 0 l 10 0 l 0 10 z")

    def test_relative_and_shorthand_commands_parse(self) -> None:
        path = PathData.from_svg("m 5 5 h 10 v 10 H 5 z")
        self.assertEqual(path.to_svg(), "M 5 5 L 15 5 L 15 15 L 5 15 Z")

    def test_curves_keep_their_commands(self) -> None:
        path = PathData.from_svg("M0,0 Q50,100 100,0 C120,20 140,20 160,0")
        self.assertEqual([op for op, _ in path.commands], ["M", "Q", "C"])
        self.assertEqual(path.current_point, (160.0, 0.0))

    def test_malformed_data_is_rejected(self) -> None:
        with self.assertRaisesRegex(ValueError, "must start with a command"):
            PathData.from_svg("10 10")
        with self.assertRaisesRegex(ValueError, "missing arguments"):
            PathData.from_svg("M 0 0 L 10")

    def test_bounds_and_transformed_bounds(self) -> None:
        path = PathData().rect(10, 20, 30, 40)
        self.assertEqual(path.bounds(), (10.0, 20.0, 40.0, 60.0))
        self.assertEqual(path.bounds(Affine.translation(5, -5)), (15.0, 15.0, 45.0, 55.0))
        self.assertEqual(PathData().bounds(), (0.0, 0.0, 0.0, 0.0))

    def test_arc_bounds_cover_full_circle(self) -> None:
        path = PathData().arc(50, 50, 10, 0, 2 * math.pi)
        minx, miny, maxx, maxy = path.bounds()
        self.assertAlmostEqual(minx, 40.0, delta=0.5)
        self.assertAlmostEqual(maxy, 60.0, delta=0.5)

    def test_add_path_with_matrix_and_copy(self) -> None:
        base = PathData().move_to(0, 0).line_to(1, 0)
        combined = PathData().add_path(base, Affine.scaling(10, 10))
        self.assertEqual(combined.bounds(), (0.0, 0.0, 10.0, 0.0))
        clone = base.copy()
        clone.line_to(1, 1)
        self.assertEqual(len(base.commands), 2)
        self.assertTrue(PathData().is_empty())

    def test_line_to_without_current_point_moves(self) -> None:
        path = PathData().line_to(3, 4)
        self.assertEqual(path.to_svg(), "M 3 4")

    def test_fractional_coordinates_are_rounded(self) -> None:
        self.assertEqual(PathData().move_to(1.123456, 2.5).to_svg(), "M 1.1235 2.5")


class AffineTests(unittest.TestCase):
    def test_multiply_applies_right_operand_first(self) -> None:
        matrix = Affine.translation(10, 0).multiply(Affine.scaling(2, 2))
        self.assertEqual(matrix.apply(1, 1), (12.0, 2.0))

    def test_rotation_and_inverse(self) -> None:
        matrix = Affine().rotate(math.pi / 2)
        x, y = matrix.apply(1, 0)
        self.assertAlmostEqual(x, 0.0)
        self.assertAlmostEqual(y, 1.0)
        back = matrix.inverse().apply(x, y)
        self.assertAlmostEqual(back[0], 1.0)
        self.assertAlmostEqual(back[1], 0.0)

    def test_singular_matrix_has_no_inverse(self) -> None:
        with self.assertRaisesRegex(ValueError, "singular"):
            Affine.scaling(0, 1).inverse()
        self.assertTrue(Affine.identity().is_identity)


if __name__ == "__main__":
    unittest.main()
