from __future__ import annotations

import contextlib
import io
import json
from pathlib import Path
import tempfile
import unittest

from PIL import Image

from main import main


def _write_document(directory: Path, name: str = "scene.json", **options: object) -> Path:
    document = {
        "options": {"width": 16, "height": 8, "animated": False, "exportType": "canvas", "flag": 4, **options},
        "layers": [{"id": "box", "type": "morph", "props": {"x": 8, "y": 4, "size": {"width": 16, "height": 8}}}],
    }
    path = directory / name
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def _run(argv: list[str]) -> str:
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        main(argv)
    return out.getvalue()


class ValidateCommandTests(unittest.TestCase):
    def test_valid_document(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_document(Path(tmp))
            self.assertEqual(_run(["validate", str(path)]).strip(), "ok: 16x8, 1 top-level layers")

    def test_invalid_document_exits_nonzero(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_document(Path(tmp), width=0)
            err = io.StringIO()
            with contextlib.redirect_stderr(err), self.assertRaises(SystemExit) as ctx:
                main(["validate", str(path)])
            self.assertEqual(ctx.exception.code, 1)
            self.assertIn("Invalid width or height", err.getvalue())

    def test_missing_document_exits_nonzero(self) -> None:
        err = io.StringIO()
        with contextlib.redirect_stderr(err), self.assertRaises(SystemExit):
            main(["validate", "/nonexistent/scene.json"])
        self.assertIn("File not found", err.getvalue())


class RenderCommandTests(unittest.TestCase):
    def test_render_png_to_explicit_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_document(Path(tmp))
            out = Path(tmp) / "render.png"
            printed = _run(["render", str(path), "--out", str(out)])
            self.assertIn("wrote png", printed)
            self.assertEqual(Image.open(out).size, (16, 8))

    def test_render_svg_scene_defaults_to_svg(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_document(Path(tmp), exportType="svg")
            out = Path(tmp) / "render.svg"
            _run(["render", str(path), "--out", str(out)])
            self.assertIn("<svg", out.read_text(encoding="utf-8"))

    def test_render_uses_config_output_dir_and_export(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            path = _write_document(root, name="poster.yaml")
            config = root / "render.toml"
            config.write_text(f'[render]\noutput_dir = "{(root / "build").as_posix()}"\nexport = "jpeg"\n', encoding="utf-8")
            printed = _run(["render", str(path), "--config", str(config)])
            target = root / "build" / "poster.jpg"
            self.assertTrue(target.exists())
            self.assertIn(str(target), printed)

    def test_export_flag_overrides_config(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_document(Path(tmp))
            out = Path(tmp) / "scene.yaml"
            _run(["render", str(path), "--export", "yaml", "--out", str(out)])
            self.assertIn("exportType: canvas", out.read_text(encoding="utf-8"))


if __name__ == "__main__":
    unittest.main()
