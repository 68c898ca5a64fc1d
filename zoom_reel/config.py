"""Configuration helpers for zoom_reel."""
from __future__ import annotations

from dataclasses import dataclass, fields
from fractions import Fraction
from typing import Any, Dict, Iterable

import yaml

from .rates import NO_SWITCH

IMG_WIDTH = 448
IMG_HEIGHT = 336
MAX_ZOOM_SCALE = 600 / 448

SEED_SUFFIX = "_scaled.jpg"


def parse_ratio(value) -> float:
    """Parse ``1.34``, ``"600/448"`` or ``Fraction`` into a float."""
    if isinstance(value, (int, float)):
        return float(value)
    return float(Fraction(str(value).strip()))


@dataclass
class RenderConfig:
    width: int = IMG_WIDTH
    height: int = IMG_HEIGHT
    images_per_batch: int = 5
    max_zoom_scale: float = MAX_ZOOM_SCALE
    input_fps: int = 2
    output_fps: int = 24
    rate_switch_index: int = NO_SWITCH
    image_dir: str = "./images"
    audio_path: str = "./audio.mp3"
    output_path: str = "./video.mp4"
    frame_dir: str = "./frames"
    backend: str = "magick"
    encoder: str = "ffmpeg"
    profile: str = "quality"
    jobs: int = 1
    clean_frames: bool = False
    magick: str | None = None
    ffmpeg: str | None = None

    @classmethod
    def from_namespace(cls, args) -> "RenderConfig":
        """Build a config from an ``argparse`` namespace, ignoring extras."""
        values = {f.name: getattr(args, f.name) for f in fields(cls) if hasattr(args, f.name)}
        return cls(**values)


@dataclass
class ImportConfig:
    download_dir: str = "~/Downloads"
    sorted_dir: str = "./images"
    seed_dir: str = "."
    scale: float = MAX_ZOOM_SCALE
    width: int = IMG_WIDTH
    height: int = IMG_HEIGHT
    backend: str = "magick"
    magick: str | None = None

    @classmethod
    def from_namespace(cls, args) -> "ImportConfig":
        values = {f.name: getattr(args, f.name) for f in fields(cls) if hasattr(args, f.name)}
        return cls(**values)


def load_presets(paths: Iterable[str]) -> Dict[str, Any]:
    """Merge YAML preset files in order; later files win.

    Keys may use dashes (``max-zoom-scale``) or underscores.
    """
    merged: Dict[str, Any] = {}
    for path in paths:
        with open(path, "r", encoding="utf8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError(f"preset {path} must contain a mapping")
        merged.update({str(k).replace("-", "_"): v for k, v in data.items()})
    if "max_zoom_scale" in merged:
        merged["max_zoom_scale"] = parse_ratio(merged["max_zoom_scale"])
    if "scale" in merged:
        merged["scale"] = parse_ratio(merged["scale"])
    return merged
