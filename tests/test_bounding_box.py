from __future__ import annotations

import unittest

from lazyscene_core.core.bounding_box import Point, bezier_bounding_box, line_bounding_box, points_bounding_box


class BoundingBoxTests(unittest.TestCase):
    def test_quadratic_box(self) -> None:
        box = bezier_bounding_box([Point(0, 0), Point(50, 100), Point(100, 0)])
        self.assertAlmostEqual(box.min.y, 0.0)
        self.assertAlmostEqual(box.max.y, 50.0, places=3)
        self.assertAlmostEqual(box.center.y, 25.0, places=3)
        self.assertAlmostEqual(box.center.x, 50.0)
        self.assertAlmostEqual(box.width, 100.0)
        self.assertAlmostEqual(box.height, 50.0, places=3)

    def test_cubic_box(self) -> None:
        box = bezier_bounding_box([(0, 0), (0, 100), (100, 100), (100, 0)])
        self.assertAlmostEqual(box.max.y, 75.0, places=3)
        self.assertAlmostEqual(box.width, 100.0)

    def test_sampling_density_is_configurable(self) -> None:
        coarse = bezier_bounding_box([(0, 0), (50, 100), (100, 0)], steps=3)
        self.assertLess(coarse.max.y, 50.0)
        with self.assertRaises(ValueError):
            bezier_bounding_box([(0, 0), (1, 1), (2, 2)], steps=0)

    def test_rejects_wrong_point_count(self) -> None:
        with self.assertRaisesRegex(ValueError, "3 or 4 points"):
            bezier_bounding_box([(0, 0), (1, 1)])
        with self.assertRaises(TypeError):
            bezier_bounding_box([(0, 0), (1, 1), "x"])

    def test_line_box_keeps_direction_in_extent(self) -> None:
        box = line_bounding_box((100, 50), (20, 90))
        self.assertEqual((box.min.x, box.min.y, box.max.x, box.max.y), (20.0, 50.0, 100.0, 90.0))
        self.assertEqual((box.width, box.height), (-80.0, 40.0))

    def test_points_box_and_dict(self) -> None:
        box = points_bounding_box([(0, 0), (4, -2), (1, 3)])
        self.assertEqual(box.to_dict()["min"], {"x": 0.0, "y": -2.0})
        self.assertEqual(box.height, 5.0)


if __name__ == "__main__":
    unittest.main()
