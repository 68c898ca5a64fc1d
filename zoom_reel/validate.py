"""Argument validation helpers for the zoom_reel CLI."""
from __future__ import annotations

from argparse import Namespace
from typing import List

from .errors import ConfigError
from .rates import BatchRateModel


def validate_render_args(args: Namespace) -> List[str]:
    """Validate parsed ``render`` arguments.

    Returns a list of human readable error messages. The caller should abort
    if the list is non-empty.
    """
    errors: List[str] = []
    if args.width <= 0 or args.height <= 0:
        errors.append("--width/--height must be > 0")
    if args.max_zoom_scale <= 0:
        errors.append("--max-zoom must be > 0")
    if args.jobs < 1:
        errors.append("--jobs must be >= 1")
    if args.rate_switch_index < -1:
        errors.append("--rate-switch-index must be >= 0, or -1 to disable")
    try:
        BatchRateModel(
            args.output_fps,
            args.max_zoom_scale,
            args.input_fps,
            args.images_per_batch,
            args.rate_switch_index,
        ).validate()
    except ConfigError as exc:
        errors.append(str(exc))
    return errors


def validate_import_args(args: Namespace) -> List[str]:
    errors: List[str] = []
    if args.width <= 0 or args.height <= 0:
        errors.append("--width/--height must be > 0")
    if args.scale <= 0:
        errors.append("--scale must be > 0")
    return errors
