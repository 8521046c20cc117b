from __future__ import annotations

import unittest

from lazyscene_core.core.alignment import CENTRINGS, align, validate_centring
from lazyscene_core.core.bounding_box import Point


class AlignmentTests(unittest.TestCase):
    def test_box_kinds_shift_to_top_left(self) -> None:
        self.assertEqual(align("center", "morph", 200, 200, 300, 300), Point(200, 200))
        self.assertEqual(align("start-top", "morph", 200, 200, 300, 300), Point(300, 300))
        self.assertEqual(align("end-bottom", "image", 200, 100, 300, 300), Point(100, 200))
        self.assertEqual(align("center-top", "clear", 200, 100, 300, 300), Point(200, 300))
        self.assertEqual(align("start", "morph", 200, 100, 300, 300), Point(300, 250))
        self.assertEqual(align("end", "morph", 200, 100, 300, 300), Point(100, 250))
        self.assertEqual(align("center-bottom", "morph", 200, 100, 300, 300), Point(200, 200))

    def test_none_never_shifts(self) -> None:
        self.assertEqual(align("none", "morph", 200, 200, 300, 300), Point(300, 300))

    def test_line_like_kinds_never_shift(self) -> None:
        for kind in ("line", "quadraticCurve", "bezierCurve", "text", "polygon", "path"):
            for anchor in CENTRINGS:
                self.assertEqual(align(anchor, kind, 200, 200, 300, 300), Point(300, 300), (kind, anchor))

    def test_unknown_anchor_is_rejected(self) -> None:
        with self.assertRaisesRegex(ValueError, "centring must be one of"):
            align("middle", "morph", 1, 1, 0, 0)
        self.assertEqual(validate_centring("end-top"), "end-top")


if __name__ == "__main__":
    unittest.main()
