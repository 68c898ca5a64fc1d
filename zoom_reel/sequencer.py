"""Frame sequencing: which images, geometry and opacity make up each frame."""
from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import Iterator, Optional

from .rates import BatchRateModel
from .utils import frame_path, source_path
from .zoom import FrameGeometry, frame_geometry, is_start_of_batch

PROGRESS_EVERY = 100


@dataclass(frozen=True)
class FrameSpec:
    """Declarative description of one output frame."""

    index: int
    image_index: int
    base_image: str
    base: FrameGeometry
    output_path: str
    overlay_image: Optional[str] = None
    overlay: Optional[FrameGeometry] = None
    overlay_opacity: int = 0

    @property
    def has_overlay(self) -> bool:
        return self.overlay_image is not None


def report_progress(frames_done: int, image_index: int, image_count: int) -> None:
    logging.info(
        "%d frames created, processed %d/%d images", frames_done, image_index, image_count
    )


def next_frame_opacity(next_frame_index: int, frames_per_image: int) -> int:
    """Opacity (0-99) of the following image in frame *next_frame_index*.

    The fade is keyed on the absolute frame counter, not on the frame's
    position within its own image.
    """
    return math.floor((next_frame_index % frames_per_image) / frames_per_image * 100)


class FrameSequencer:
    """Produce :class:`FrameSpec` objects for a numbered image sequence.

    The sequencer owns the output frame counter. Frame indices are handed
    out strictly in image-then-frame order; a second call to :meth:`run`
    continues numbering where the previous one stopped.
    """

    def __init__(
        self,
        image_dir: str,
        frame_dir: str,
        rates: BatchRateModel,
        width: int,
        height: int,
        max_zoom_scale: float,
        log_progress: bool = True,
    ) -> None:
        self.image_dir = image_dir
        self.frame_dir = frame_dir
        self.rates = rates
        self.width = width
        self.height = height
        self.max_zoom_scale = max_zoom_scale
        self.log_progress = log_progress
        self._next_frame_index = 0

    @property
    def next_frame_index(self) -> int:
        return self._next_frame_index

    def _allocate_path(self) -> tuple[int, str]:
        idx = self._next_frame_index
        path = frame_path(self.frame_dir, idx)
        self._next_frame_index += 1
        return idx, path

    def _geometry(self, image_index: int, frame_index: int, transition: bool) -> FrameGeometry:
        epoch = self.rates.epoch
        return frame_geometry(
            image_index,
            frame_index,
            transition,
            epoch.frames_per_image,
            epoch.images_per_batch,
            self.max_zoom_scale,
            self.width,
            self.height,
        )

    def run(self, image_count: int) -> Iterator[FrameSpec]:
        for i in range(image_count):
            if self.rates.maybe_switch_epoch(i):
                epoch = self.rates.epoch
                logging.info(
                    "rate switch at image %d: input_fps=%d images_per_batch=%d frames_per_image=%d",
                    i,
                    epoch.input_fps,
                    epoch.images_per_batch,
                    epoch.frames_per_image,
                )
            base_image = source_path(self.image_dir, i)
            next_image = source_path(self.image_dir, i + 1)
            has_next = os.path.exists(next_image)
            fpi = self.rates.epoch.frames_per_image

            for frame_index in range(fpi):
                base = self._geometry(i, frame_index, False)
                overlay_image = None
                overlay = None
                opacity = 0
                if has_next:
                    opacity = next_frame_opacity(self._next_frame_index, fpi)
                    if opacity > 0:
                        transition = is_start_of_batch(
                            i + 1, self.rates.epoch.images_per_batch
                        )
                        overlay_image = next_image
                        overlay = self._geometry(i, frame_index, transition)

                idx, out = self._allocate_path()
                yield FrameSpec(
                    index=idx,
                    image_index=i,
                    base_image=base_image,
                    base=base,
                    output_path=out,
                    overlay_image=overlay_image,
                    overlay=overlay,
                    overlay_opacity=opacity,
                )
                if self.log_progress and self._next_frame_index % PROGRESS_EVERY == 0:
                    report_progress(self._next_frame_index, i, image_count)
