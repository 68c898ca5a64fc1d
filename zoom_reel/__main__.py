"""Command line interface for zoom_reel."""
from __future__ import annotations

import argparse
import logging
import sys

from .builder import make_video
from .config import (
    IMG_HEIGHT,
    IMG_WIDTH,
    MAX_ZOOM_SCALE,
    ImportConfig,
    RenderConfig,
    load_presets,
    parse_ratio,
)
from .errors import ZoomReelError
from .importer import import_images
from .rates import NO_SWITCH
from .validate import validate_import_args, validate_render_args


def _ratio_type(x: str) -> float:
    try:
        v = parse_ratio(x)
    except (ValueError, ZeroDivisionError):
        raise argparse.ArgumentTypeError(f"invalid ratio: {x!r}")
    if v <= 0:
        raise argparse.ArgumentTypeError("ratio must be > 0")
    return v


def _positive_int(x: str) -> int:
    v = int(x)
    if v <= 0:
        raise argparse.ArgumentTypeError("value must be > 0")
    return v


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--preset", action="append", default=[], help="Path to YAML preset overriding defaults")
    parser.add_argument("--magick", help="Path to ImageMagick binary")
    parser.add_argument("--width", type=_positive_int, default=IMG_WIDTH, help="Source image width")
    parser.add_argument("--height", type=_positive_int, default=IMG_HEIGHT, help="Source image height")
    parser.add_argument(
        "--backend",
        choices=["magick", "pillow"],
        default="magick",
        help="Image processing backend",
    )
    parser.add_argument("--validate", action="store_true", help="Validate arguments and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def build_parser() -> argparse.ArgumentParser:
    """Return the CLI parser; subcommand parsers are kept in ``parser.commands``."""
    parser = argparse.ArgumentParser(
        prog="zoom_reel", description="Build a zooming video from numbered images"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render frames and encode the video")
    _add_common(render)
    render.add_argument("--images", dest="image_dir", default="./images", help="Folder with 0.jpg, 1.jpg, ...")
    render.add_argument("--audio", dest="audio_path", default="./audio.mp3", help="Audio track")
    render.add_argument("--output", dest="output_path", default="./video.mp4", help="Output video path")
    render.add_argument("--frames", dest="frame_dir", default="./frames", help="Frame staging folder")
    render.add_argument("--images-per-batch", type=_positive_int, default=5, help="Images sharing one zoom")
    render.add_argument(
        "--max-zoom",
        dest="max_zoom_scale",
        type=_ratio_type,
        default=MAX_ZOOM_SCALE,
        help="Zoom reached over a batch, e.g. 600/448",
    )
    render.add_argument("--input-fps", type=_positive_int, default=2, help="Source images per second")
    render.add_argument("--output-fps", type=_positive_int, default=24, help="Video frame rate")
    render.add_argument(
        "--rate-switch-index",
        type=int,
        default=NO_SWITCH,
        help="Image index where input fps and batch size double (-1 disables)",
    )
    render.add_argument("--encoder", choices=["ffmpeg", "moviepy"], default="ffmpeg")
    render.add_argument("--ffmpeg", help="Path to ffmpeg binary")
    render.add_argument(
        "--profile",
        choices=["preview", "social", "quality"],
        default="quality",
        help="Export profile for the moviepy encoder",
    )
    render.add_argument("--jobs", type=int, default=1, help="Parallel compositing workers")
    render.add_argument("--clean-frames", action="store_true", help="Delete stale frames first")

    imp = sub.add_parser("import", help="Number downloaded images and build the seed image")
    _add_common(imp)
    imp.add_argument("--downloads", dest="download_dir", default="~/Downloads", help="Folder with new downloads")
    imp.add_argument("--images", dest="sorted_dir", default="./images", help="Folder with numbered images")
    imp.add_argument("--seed-dir", default=".", help="Folder for the scaled seed image")
    imp.add_argument("--scale", type=_ratio_type, default=MAX_ZOOM_SCALE, help="Seed zoom, e.g. 600/448")
    parser.commands = {"render": render, "import": imp}
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    prelim, _ = parser.parse_known_args(argv)
    if prelim.preset:
        data = load_presets(prelim.preset)
        parser.commands[prelim.command].set_defaults(**data)
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    _configure_logging(args.verbose)

    validator = validate_render_args if args.command == "render" else validate_import_args
    errs = validator(args)
    if errs:
        for e in errs:
            print(f"validation error: {e}", file=sys.stderr)
        raise SystemExit(1)
    if args.validate:
        return

    try:
        if args.command == "render":
            make_video(RenderConfig.from_namespace(args))
        else:
            result = import_images(ImportConfig.from_namespace(args))
            logging.info(
                "imported %d images, last index %d", len(result.imported), result.last_index
            )
    except (ZoomReelError, FileNotFoundError) as exc:
        logging.error("%s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
