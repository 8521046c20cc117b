from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from lazyscene_core.core.animation import AnimationOptions
from lazyscene_core.core.config import RenderConfig, load_render_config


def _write(tmp: str, text: str) -> Path:
    path = Path(tmp) / "render.toml"
    path.write_text(text, encoding="utf-8")
    return path


class RenderConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        config = RenderConfig()
        self.assertEqual(config.log_level, "WARNING")
        self.assertIsNone(config.export)
        self.assertEqual(config.animation.apply(AnimationOptions()), AnimationOptions())

    def test_load_full_config(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / "fonts").mkdir()
            (Path(tmp) / "fonts" / "Inter.ttf").write_bytes(b"")
            path = _write(
                tmp,
                """
[render]
output_dir = "out"
export = "png"
svg_flags = 6
debug = true

[animation]
frame_rate = 12
clear = false

[logging]
level = "debug"

[[fonts]]
family = "Inter"
path = "fonts/Inter.ttf"
weight = 700
""",
            )
            config = load_render_config(path)
            self.assertEqual(config.output_dir, Path("out"))
            self.assertEqual(config.export, "png")
            self.assertEqual(config.svg_flags, 6)
            self.assertTrue(config.debug)
            self.assertEqual(config.log_level, "DEBUG")
            self.assertEqual(config.fonts[0].path, str((Path(tmp) / "fonts" / "Inter.ttf").resolve()))
            self.assertEqual(config.fonts[0].weight, 700)
            options = config.animation.apply(AnimationOptions())
            self.assertEqual((options.frame_rate, options.clear), (12, False))

    def test_rejects_bad_settings(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaisesRegex(ValueError, "unknown animation settings"):
                load_render_config(_write(tmp, "[animation]\nspeed = 2\n"))
            with self.assertRaisesRegex(ValueError, r"\[render\] must be a table"):
                load_render_config(_write(tmp, "render = 1\n"))
            with self.assertRaisesRegex(ValueError, "fonts.path"):
                load_render_config(_write(tmp, '[[fonts]]\nfamily = "x"\n'))
            with self.assertRaisesRegex(ValueError, "svg_flags"):
                load_render_config(_write(tmp, "[render]\nsvg_flags = 9\n"))
            with self.assertRaisesRegex(ValueError, "log level"):
                load_render_config(_write(tmp, '[logging]\nlevel = "loud"\n'))
            with self.assertRaisesRegex(ValueError, "render.export"):
                load_render_config(_write(tmp, "[render]\nexport = 3\n"))

    def test_missing_file(self) -> None:
        with self.assertRaisesRegex(FileNotFoundError, "render config not found"):
            load_render_config("/nonexistent/render.toml")


if __name__ == "__main__":
    unittest.main()
