"""Frame compositing backends.

A compositor turns a :class:`~zoom_reel.sequencer.FrameSpec` into a JPEG on
disk. The ImageMagick backend shells out once per frame; the Pillow backend
does the same resize/crop/vignette/blend work in-process.
"""
from __future__ import annotations

import logging
import subprocess
from typing import List, Optional

import numpy as np
from PIL import Image

from .bin_config import resolve_imagemagick
from .errors import ConfigError, ExternalToolError
from .sequencer import FrameSpec
from .utils import feather_mask, fmt_dim
from .zoom import FrameGeometry

VIGNETTE = "100x50"
JPEG_QUALITY = 92


def geometry_args(geom: FrameGeometry, width: int, height: int) -> List[str]:
    """ImageMagick arguments that apply *geom* to the current image."""
    resize = f"{fmt_dim(geom.resize_width)}x{fmt_dim(geom.resize_height)}^"
    if geom.transition:
        return [
            "-resize", resize,
            "-gravity", "SouthEast",
            "-alpha", "Set",
            "-background", "none",
            "-vignette", VIGNETTE,
            "+repage",
        ]
    return [
        "-resize", resize,
        "-gravity", "center",
        "-crop", f"{width}x{height}+{geom.crop_x}+{geom.crop_y}",
        "+repage",
    ]


def build_magick_command(binary: str, spec: FrameSpec, width: int, height: int) -> List[str]:
    """Return the argv that renders *spec* with ImageMagick."""
    cmd = [binary, spec.base_image, *geometry_args(spec.base, width, height)]
    if spec.has_overlay:
        cmd += [
            "(",
            spec.overlay_image,
            "-alpha", "set",
            "-channel", "a",
            "-evaluate", "set", f"{spec.overlay_opacity}%",
            "+channel",
            *geometry_args(spec.overlay, width, height),
            ")",
            "-compose", "over",
            "-composite",
        ]
    cmd.append(spec.output_path)
    return cmd


def run_tool(cmd: List[str]) -> None:
    """Run *cmd*, translating failures into :class:`ExternalToolError`."""
    logging.debug("running %s", " ".join(cmd))
    try:
        subprocess.run(
            cmd,
            check=True,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except FileNotFoundError as exc:
        raise ExternalToolError(f"{cmd[0]} not found", cmd=cmd) from exc
    except subprocess.CalledProcessError as exc:
        raise ExternalToolError(
            f"{cmd[0]} exited with status {exc.returncode}: {(exc.stderr or '').strip()}",
            cmd=cmd,
            stderr=exc.stderr,
        ) from exc


class MagickCompositor:
    """Render frames by invoking ImageMagick."""

    name = "magick"

    def __init__(self, width: int, height: int, binary: str | None = None) -> None:
        self.width = width
        self.height = height
        self.binary = resolve_imagemagick(binary)
        if not self.binary:
            raise ExternalToolError(
                "ImageMagick not found. Install it or pass --magick / IMAGEMAGICK_BINARY."
            )

    def command(self, spec: FrameSpec) -> List[str]:
        return build_magick_command(self.binary, spec, self.width, self.height)

    def render(self, spec: FrameSpec) -> str:
        run_tool(self.command(spec))
        return spec.output_path


def _resize(img: Image.Image, geom: FrameGeometry) -> Image.Image:
    w = max(1, int(round(geom.resize_width)))
    h = max(1, int(round(geom.resize_height)))
    return img.resize((w, h), Image.LANCZOS)


class PillowCompositor:
    """Render frames in-process with Pillow, NumPy and OpenCV.

    Crop offsets are taken from the top-left corner of the scaled image and
    transition overlays are centred, so frames only approximate the
    ImageMagick backend, which offsets from its gravity point.
    """

    name = "pillow"

    def __init__(self, width: int, height: int, vignette_strength: float = 0.5) -> None:
        self.width = width
        self.height = height
        self.vignette_strength = vignette_strength

    def _place(self, img: Image.Image, geom: FrameGeometry) -> Image.Image:
        """Return an RGBA ``width x height`` layer for *img* under *geom*."""
        scaled = _resize(img.convert("RGBA"), geom)
        if not geom.transition:
            box = (geom.crop_x, geom.crop_y, geom.crop_x + self.width, geom.crop_y + self.height)
            return scaled.crop(box)

        arr = np.asarray(scaled).astype(np.float32)
        sh, sw = arr.shape[:2]
        arr[..., 3] *= feather_mask(sw, sh, self.vignette_strength)
        layer = Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))
        x0 = (self.width - sw) // 2
        y0 = (self.height - sh) // 2
        patch = Image.fromarray(np.clip(arr, 0, 255).astype(np.uint8), "RGBA")
        layer.paste(patch, (x0, y0))
        return layer

    def compose(self, spec: FrameSpec) -> Image.Image:
        with Image.open(spec.base_image) as src:
            frame = self._place(src, spec.base)
        if spec.has_overlay:
            with Image.open(spec.overlay_image) as src:
                top = self._place(src, spec.overlay)
            alpha = np.asarray(top.getchannel("A")).astype(np.float32)
            alpha *= spec.overlay_opacity / 100.0
            top.putalpha(Image.fromarray(alpha.astype(np.uint8), "L"))
            frame = Image.alpha_composite(frame, top)
        return frame.convert("RGB")

    def render(self, spec: FrameSpec) -> str:
        self.compose(spec).save(spec.output_path, quality=JPEG_QUALITY)
        return spec.output_path


def make_compositor(
    name: str, width: int, height: int, magick: Optional[str] = None
):
    """Return a compositor for backend *name* (``magick`` or ``pillow``)."""
    if name == "magick":
        return MagickCompositor(width, height, magick)
    if name == "pillow":
        return PillowCompositor(width, height)
    raise ConfigError(f"unknown compositor backend: {name}")
