"""Import freshly downloaded images into the numbered sequence.

Downloaded ``.jpg`` files are numbered by creation time and moved next to
the existing ``{index}.jpg`` images. The newest image is then scaled and
centre cropped into ``{index}_scaled.jpg``, the seed for the next batch.
"""
from __future__ import annotations

import logging
import math
import os
import re
import shutil
from dataclasses import dataclass, field
from typing import List, Optional

from PIL import Image

from .bin_config import resolve_imagemagick
from .compositor import run_tool
from .config import SEED_SUFFIX, ImportConfig
from .errors import ConfigError, ExternalToolError, IntegrityError
from .utils import fmt_dim, source_path

LABELED_PATTERN = re.compile(r"^[0-9]+\.jpg$")


@dataclass
class ImportResult:
    last_index: int
    imported: List[str] = field(default_factory=list)
    seed_path: Optional[str] = None


def seed_path(seed_dir: str, index: int) -> str:
    return os.path.join(seed_dir, f"{index}{SEED_SUFFIX}")


def creation_time(path: str) -> float:
    """Creation timestamp of *path*; modification time where unavailable."""
    st = os.stat(path)
    return getattr(st, "st_birthtime", None) or st.st_mtime


def scan_sorted(sorted_dir: str, seed_dir: str) -> int:
    """Return the last contiguous image index, removing stale seed images."""
    last = -1
    while os.path.exists(source_path(sorted_dir, last + 1)):
        old_seed = seed_path(seed_dir, last + 1)
        if os.path.exists(old_seed):
            logging.info("Removing last scaled input file %s", old_seed)
            os.remove(old_seed)
        last += 1
    return last


def find_unlabeled(download_dir: str) -> List[str]:
    """``.jpg`` files in *download_dir* that are not yet numbered."""
    found = []
    for name in sorted(os.listdir(download_dir)):
        if os.path.splitext(name)[1] != ".jpg":
            continue
        if LABELED_PATTERN.match(name):
            continue
        logging.info("Found unsorted image: %s", name)
        found.append(os.path.join(download_dir, name))
    return found


def label_images(paths: List[str], sorted_dir: str, last_index: int) -> int:
    """Move *paths* to the next free indices in creation order.

    Raises :class:`IntegrityError` before touching a target that already
    exists. Returns the new last index.
    """
    if not paths:
        return last_index
    logging.info("Labelling %d images by creation time", len(paths))
    for path in sorted(paths, key=creation_time):
        last_index += 1
        target = source_path(sorted_dir, last_index)
        if os.path.exists(target):
            raise IntegrityError(f"Something went wrong, {target} already exists!")
        shutil.move(path, target)
    return last_index


def seed_geometry(width: int, height: int, scale: float):
    """Return ``(scaled_w, scaled_h, x_off, y_off)`` for the seed crop."""
    sw, sh = width * scale, height * scale
    return sw, sh, math.floor((sw - width) / 2), math.floor((sh - height) / 2)


def build_seed_command(binary: str, src: str, dst: str, width: int, height: int, scale: float) -> List[str]:
    sw, sh, x_off, y_off = seed_geometry(width, height, scale)
    return [
        binary,
        src,
        "-resize", f"{fmt_dim(sw)}x{fmt_dim(sh)}^",
        "-gravity", "center",
        "-crop", f"{width}x{height}+{x_off}+{y_off}",
        "+repage",
        dst,
    ]


def make_seed_pillow(src: str, dst: str, width: int, height: int, scale: float) -> str:
    sw, sh, x_off, y_off = seed_geometry(width, height, scale)
    with Image.open(src) as img:
        scaled = img.convert("RGB").resize(
            (max(1, int(round(sw))), max(1, int(round(sh)))), Image.LANCZOS
        )
    scaled.crop((x_off, y_off, x_off + width, y_off + height)).save(dst, quality=92)
    return dst


def make_seed(cfg: ImportConfig, index: int) -> str:
    src = source_path(cfg.sorted_dir, index)
    dst = seed_path(cfg.seed_dir, index)
    logging.info("Creating %s", os.path.basename(dst))
    os.makedirs(cfg.seed_dir or ".", exist_ok=True)
    if cfg.backend == "pillow":
        return make_seed_pillow(src, dst, cfg.width, cfg.height, cfg.scale)
    if cfg.backend != "magick":
        raise ConfigError(f"unknown seed backend: {cfg.backend}")
    binary = resolve_imagemagick(cfg.magick)
    if not binary:
        raise ExternalToolError("ImageMagick not found. Install it or pass --magick.")
    run_tool(build_seed_command(binary, src, dst, cfg.width, cfg.height, cfg.scale))
    return dst


def import_images(cfg: ImportConfig) -> ImportResult:
    """Number new downloads and build the seed for the latest image."""
    download_dir = os.path.expanduser(cfg.download_dir)
    os.makedirs(cfg.sorted_dir, exist_ok=True)
    last = scan_sorted(cfg.sorted_dir, cfg.seed_dir)
    unlabeled = find_unlabeled(download_dir)
    start = last
    last = label_images(unlabeled, cfg.sorted_dir, last)
    result = ImportResult(
        last_index=last,
        imported=[source_path(cfg.sorted_dir, i) for i in range(start + 1, last + 1)],
    )
    if last < 0:
        logging.warning("No numbered images in %s, skipping seed image", cfg.sorted_dir)
        return result
    result.seed_path = make_seed(cfg, last)
    return result
