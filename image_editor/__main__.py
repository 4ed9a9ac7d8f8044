"""Headless command line: apply edits to one image file and export it.

    python -m image_editor photo.jpg -o out.webp --rotate 90 --aspect 16:9 --width 1280 --height 720
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from image_editor.app.editor import EditorSession
from image_editor.crop.session import seed_rect
from image_editor.geometry import ASPECT_RATIOS, Rect
from image_editor.image_engine.encoder import EXPORT_FORMATS, ExportOptions
from image_editor.logger import get_logger, setup_logger
from image_editor.settings_manager import SettingsManager

_logger = get_logger("main")

EXIT_OK = 0
EXIT_FAILED = 1
_SUFFIX_FORMATS = {".png": "png", ".jpg": "jpeg", ".jpeg": "jpeg", ".webp": "webp"}


def _parse_crop(value: str) -> Rect:
    parts = [p.strip() for p in value.split(",")]
    if len(parts) != 4:  # noqa: PLR2004
        raise argparse.ArgumentTypeError("expected X,Y,W,H")
    try:
        x, y, w, h = (float(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not numeric: {value!r}") from None
    return Rect(x, y, w, h)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="image_editor", description="Image Editor")
    parser.add_argument("input", help="Source image file")
    parser.add_argument("-o", "--output", required=True, help="Destination file")

    adjust = parser.add_argument_group("adjustments")
    adjust.add_argument("--brightness", type=int, default=100, help="Brightness percent (0-200)")
    adjust.add_argument("--contrast", type=int, default=100, help="Contrast percent (0-200)")
    adjust.add_argument("--saturation", type=int, default=100, help="Saturation percent (0-200)")
    adjust.add_argument("--rotate", type=int, default=0, help="Clockwise rotation in degrees")
    adjust.add_argument("--flip-h", action="store_true", help="Mirror horizontally")
    adjust.add_argument("--flip-v", action="store_true", help="Mirror vertically")

    crop = parser.add_argument_group("crop").add_mutually_exclusive_group()
    crop.add_argument("--crop", type=_parse_crop, help="X,Y,W,H in rotated image pixels")
    crop.add_argument("--aspect", choices=[a for a in ASPECT_RATIOS if ASPECT_RATIOS[a]], help="Centered crop")

    out = parser.add_argument_group("output")
    out.add_argument("--width", type=int, help="Output width (needs --height)")
    out.add_argument("--height", type=int, help="Output height (needs --width)")
    out.add_argument("--format", choices=[*EXPORT_FORMATS, "jpg"], help="Defaults to the output suffix")
    out.add_argument("--quality", type=float, help="Lossy quality 0..1")
    out.add_argument("--settings", help="Settings JSON with export defaults")

    log = parser.add_argument_group("logging")
    log.add_argument("--log-level", help="Set log level")
    log.add_argument("--log-cats", help="Set log categories")
    return parser


def _apply_cli_logging_options(args: argparse.Namespace) -> None:
    # Mirrored into the environment so every later setup_logger() call sees them.
    if args.log_level:
        os.environ["IMAGE_EDITOR_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        os.environ["IMAGE_EDITOR_LOG_CATS"] = args.log_cats
    setup_logger()


def _resolve_format(args: argparse.Namespace, settings: SettingsManager | None) -> str:
    if args.format:
        return args.format
    suffix_fmt = _SUFFIX_FORMATS.get(Path(args.output).suffix.lower())
    if suffix_fmt:
        return suffix_fmt
    return settings.export_format if settings is not None else "png"


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _apply_cli_logging_options(args)

    if (args.width is None) != (args.height is None):
        parser.error("--width and --height must be given together")
    if args.width is not None and (args.width <= 0 or args.height <= 0):
        parser.error("--width and --height must be positive")

    settings = SettingsManager(args.settings) if args.settings else None
    session = EditorSession(settings=settings)
    if not session.load_file(args.input):
        print(f"error: could not decode {args.input}", file=sys.stderr)
        return EXIT_FAILED

    session.set_brightness(args.brightness)
    session.set_contrast(args.contrast)
    session.set_saturation(args.saturation)
    session.set_rotation(args.rotate)
    if args.flip_h:
        session.flip_horizontal()
    if args.flip_v:
        session.flip_vertical()

    rect = args.crop
    if rect is None and args.aspect:
        w, h = session.baked_dimensions()
        rect = seed_rect(args.aspect, Rect(0, 0, w, h))
    if rect is not None and not session.crop_to(rect):
        print(f"error: crop {rect.as_tuple()} is degenerate", file=sys.stderr)
        return EXIT_FAILED

    quality = args.quality
    if quality is None:
        quality = settings.export_quality if settings is not None else 0.9
    options = ExportOptions(
        format=_resolve_format(args, settings),
        quality=quality,
        width=args.width,
        height=args.height,
    )
    data = session.export(options)
    if data is None:
        return EXIT_FAILED
    try:
        Path(args.output).write_bytes(data)
    except OSError as e:
        _logger.error("write failed: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FAILED
    _logger.info("wrote %s (%d bytes)", args.output, len(data))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
