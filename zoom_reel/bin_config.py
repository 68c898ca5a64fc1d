"""Helpers to resolve external binary paths.

This module centralizes discovery of the ImageMagick and ffmpeg executables
without requiring hard coded paths. Detection honors an explicit CLI
argument, environment variables and finally a search on ``PATH``.
"""
from __future__ import annotations

import os
import shutil
from typing import Optional

import imageio_ffmpeg


def _validate_binary(path: str | None) -> Optional[str]:
    """Return *path* if it points to an existing executable."""
    if not path:
        return None
    if os.path.isfile(path) or shutil.which(path):
        return path
    return None


def resolve_imagemagick(cli_path: str | None = None) -> Optional[str]:
    """Resolve path to the ImageMagick executable.

    Resolution order:
    1. explicit ``cli_path`` argument (e.g. ``--magick``)
    2. ``IMAGEMAGICK_BINARY`` environment variable
    3. ``magick`` (ImageMagick 7) discovered on ``PATH``
    4. ``convert`` (ImageMagick 6) discovered on ``PATH``
    The returned path is validated and stored in ``os.environ``. Returns
    ``None`` if no candidate is found.
    """
    candidates = [
        cli_path,
        os.environ.get("IMAGEMAGICK_BINARY"),
        shutil.which("magick"),
        shutil.which("convert"),
    ]
    for cand in candidates:
        path = _validate_binary(cand)
        if path:
            os.environ["IMAGEMAGICK_BINARY"] = path
            return path
    return None


def _bundled_ffmpeg() -> Optional[str]:
    try:
        return imageio_ffmpeg.get_ffmpeg_exe()
    except RuntimeError:
        return None


def resolve_ffmpeg(cli_path: str | None = None) -> Optional[str]:
    """Resolve path to the ffmpeg binary.

    Resolution order mirrors :func:`resolve_imagemagick` (``--ffmpeg``,
    ``FFMPEG_BINARY``, ``PATH``) and falls back to the executable shipped
    with ``imageio-ffmpeg``. The discovered path is stored in
    ``FFMPEG_BINARY``.
    """
    candidates = [
        cli_path,
        os.environ.get("FFMPEG_BINARY"),
        shutil.which("ffmpeg"),
    ]
    for cand in candidates:
        path = _validate_binary(cand)
        if path:
            os.environ["FFMPEG_BINARY"] = path
            return path
    path = _validate_binary(_bundled_ffmpeg())
    if path:
        os.environ["FFMPEG_BINARY"] = path
    return path
