"""Utility helpers shared by the frame pipeline."""
from __future__ import annotations

import os
from typing import Tuple

import cv2
import numpy as np

FRAME_DIGITS = 6
MAX_FRAME_INDEX = 10 ** FRAME_DIGITS - 1
FRAME_PATTERN = f"%0{FRAME_DIGITS}d.jpg"


def frame_name(index: int) -> str:
    """Return the zero padded file name for output frame *index*."""
    if index < 0 or index > MAX_FRAME_INDEX:
        raise ValueError(
            f"frame index {index} outside [0, {MAX_FRAME_INDEX}]"
        )
    return f"{index:0{FRAME_DIGITS}d}.jpg"


def frame_path(frame_dir: str, index: int) -> str:
    return os.path.join(frame_dir, frame_name(index))


def source_path(image_dir: str, index: int) -> str:
    """Path of numbered source image *index* (``{index}.jpg``)."""
    return os.path.join(image_dir, f"{index}.jpg")


def fmt_dim(value: float) -> str:
    """Format a dimension for a tool argument (``448`` rather than ``448.0``)."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def gaussian_blur(
    img: np.ndarray,
    ksize: Tuple[int, int] = (0, 0),
    sigma: float = 0,
) -> np.ndarray:
    """Apply Gaussian blur with validated kernel parameters.

    Parameters
    ----------
    img:
        Input image array.
    ksize:
        Kernel width and height. Each dimension will be forced odd and
        clamped to ``min(width, height)`` of *img*.
    sigma:
        Standard deviation for Gaussian kernel. When ``ksize`` is ``(0, 0)``,
        ``sigma`` must be ``> 0``.
    """

    h, w = img.shape[:2]
    limit = min(w, h)
    kw, kh = ksize
    if kw <= 0 or kh <= 0:
        if sigma <= 0:
            raise ValueError("sigma must be > 0 when kernel size is (0,0)")
        k = (0, 0)
    else:
        kw = min(kw, limit)
        kh = min(kh, limit)
        if kw % 2 == 0:
            kw = max(1, kw - 1)
        if kh % 2 == 0:
            kh = max(1, kh - 1)
        k = (kw, kh)
    return cv2.GaussianBlur(img, k, sigma)


def feather_mask(width: int, height: int, strength: float = 0.5) -> np.ndarray:
    """Return a float32 ``(height, width)`` elliptical alpha mask in [0, 1].

    The ellipse fills the frame and its edge is softened with a Gaussian of
    ``strength * min(width, height) / 2`` pixels, similar to ImageMagick's
    ``-vignette 0xN`` treatment.
    """
    mask = np.zeros((height, width), dtype=np.float32)
    sigma = max(1.0, strength * min(width, height) / 2.0)
    axes = (
        max(1, int(width / 2 - sigma)),
        max(1, int(height / 2 - sigma)),
    )
    cv2.ellipse(mask, (width // 2, height // 2), axes, 0, 0, 360, 1.0, -1)
    return np.clip(gaussian_blur(mask, sigma=sigma), 0.0, 1.0)
