from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from lazyscene_core.core import DocumentValidationError, RenderConfig, load_render_config
from lazyscene_core.render import FontRegistry
from lazyscene_ui import EXPORT_KINDS, Scene, read_file


_EXTENSIONS = {"buffer": "png", "jpg": "jpg", "jpeg": "jpg", "yaml": "yaml"}
_FILE_KINDS = tuple(kind for kind in EXPORT_KINDS if kind not in ("ctx", "canvas"))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="lazyscene")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render a scene document (.json/.yaml) to a file.")
    render.add_argument("document", type=Path)
    render.add_argument("--out", type=Path, default=None, help="Output path. Default: <output_dir>/<document>.<ext>.")
    render.add_argument("--export", choices=_FILE_KINDS, default=None)
    render.add_argument("--config", type=Path, default=None, help="TOML render config.")

    validate = sub.add_parser("validate", help="Check a scene document without rendering it.")
    validate.add_argument("document", type=Path)

    args = parser.parse_args(argv)
    config = load_render_config(args.config) if getattr(args, "config", None) else RenderConfig()
    logging.basicConfig(
        level=args.log_level or config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "render":
        fonts = FontRegistry()
        for font in config.fonts:
            fonts.register(font.family, font.path, font.weight)
        scene = read_file(args.document, fonts=fonts, debug=config.debug)
        scene.animation = config.animation.apply(scene.animation)
        if config.svg_flags is not None and scene.options.export_type == "svg":
            scene.set_svg_export_flag(config.svg_flags)
        kind = args.export or config.export or _default_kind(scene)
        out = args.out or config.output_dir / f"{args.document.stem}.{_EXTENSIONS.get(kind, kind)}"
        scene.export(kind, out)
        print(f"wrote {kind} to {out}")
        return

    if args.command == "validate":
        try:
            scene = read_file(args.document)
        except (DocumentValidationError, FileNotFoundError) as exc:
            print(f"invalid: {exc}", file=sys.stderr)
            raise SystemExit(1) from exc
        print(f"ok: {scene.width}x{scene.height}, {len(scene.layers)} top-level layers")
        return

    raise RuntimeError(f"unsupported command: {args.command}")


def _default_kind(scene: Scene) -> str:
    if scene.options.animated:
        return "gif"
    if scene.options.export_type == "svg":
        return "svg"
    return "png"


if __name__ == "__main__":
    main()
