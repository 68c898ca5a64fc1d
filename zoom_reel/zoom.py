"""Zoom schedule: per-frame scale and crop geometry.

Every batch of images shares one continuous zoom. The zoom starts at ``1.0``
on the first frame of a batch and compounds by a constant factor per frame
so that the last frame of the batch reaches ``max_zoom_scale``. Images that
open a new batch were generated from a zoomed-in seed, so when they fade in
over the previous batch they are zoomed *out* instead (a transition frame).
"""
from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class FrameGeometry:
    """Resize target and crop origin for one source image in one frame."""

    resize_width: float
    resize_height: float
    crop_x: int = 0
    crop_y: int = 0
    transition: bool = False


def zoom_scale_per_frame(
    max_zoom_scale: float, images_per_batch: int, frames_per_image: int
) -> float:
    """Per-frame multiplier that compounds to *max_zoom_scale* over a batch."""
    max_scale_idx = images_per_batch * frames_per_image
    return math.pow(max_zoom_scale, 1 / max_scale_idx)


def is_start_of_batch(image_index: int, images_per_batch: int) -> bool:
    return image_index % images_per_batch == 0


def scale_index(
    image_index: int,
    frame_index: int,
    transition: bool,
    frames_per_image: int,
    images_per_batch: int,
) -> int:
    if transition:
        return frames_per_image - frame_index
    return (image_index % images_per_batch) * frames_per_image + frame_index


def frame_geometry(
    image_index: int,
    frame_index: int,
    transition: bool,
    frames_per_image: int,
    images_per_batch: int,
    max_zoom_scale: float,
    width: int,
    height: int,
) -> FrameGeometry:
    """Compute the geometry of image *image_index* in one of its frames.

    Normal frames scale the image up and crop a ``width x height`` window
    centred on it; the crop offset is ``floor((scaled - base) / 2)`` and is
    always ``(0, 0)`` on the first frame of a batch. Transition frames scale
    the image down by the inverse factor and carry no crop.
    """
    zspf = zoom_scale_per_frame(max_zoom_scale, images_per_batch, frames_per_image)
    idx = scale_index(
        image_index, frame_index, transition, frames_per_image, images_per_batch
    )
    scale = math.pow(zspf, idx + 1)

    if transition:
        return FrameGeometry(width / scale, height / scale, transition=True)

    sx, sy = width * scale, height * scale
    if idx == 0:
        x_off = y_off = 0
    else:
        x_off = math.floor((sx - width) / 2)
        y_off = math.floor((sy - height) / 2)
    return FrameGeometry(sx, sy, x_off, y_off)
