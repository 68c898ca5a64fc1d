"""Frame rate and batch size model.

The source images were produced in batches; partway through a project the
generator may start delivering twice as many frames per batch. The model
keeps the rates that apply to the image currently being sequenced and swaps
them for the doubled set exactly once, at a configured image index.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .errors import ConfigError
from .zoom import zoom_scale_per_frame

NO_SWITCH = -1


@dataclass(frozen=True)
class RateEpoch:
    input_fps: int
    images_per_batch: int
    frames_per_image: int
    zoom_scale_per_frame: float

    @classmethod
    def derive(
        cls,
        input_fps: int,
        images_per_batch: int,
        output_fps: int,
        max_zoom_scale: float,
    ) -> "RateEpoch":
        """Build an epoch, deriving frames per image and the zoom rate.

        Raises :class:`ConfigError` unless ``output_fps`` is an exact
        multiple of ``input_fps``.
        """
        if input_fps <= 0 or output_fps <= 0:
            raise ConfigError(
                f"frame rates must be positive (input={input_fps}, output={output_fps})"
            )
        if images_per_batch <= 0:
            raise ConfigError(f"images per batch must be positive, got {images_per_batch}")
        if max_zoom_scale <= 0:
            raise ConfigError(f"max zoom scale must be positive, got {max_zoom_scale}")
        if output_fps % input_fps != 0:
            raise ConfigError(
                f"output fps {output_fps} is not a multiple of input fps {input_fps}"
            )
        frames_per_image = output_fps // input_fps
        return cls(
            input_fps=input_fps,
            images_per_batch=images_per_batch,
            frames_per_image=frames_per_image,
            zoom_scale_per_frame=zoom_scale_per_frame(
                max_zoom_scale, images_per_batch, frames_per_image
            ),
        )

    def doubled(self, output_fps: int, max_zoom_scale: float) -> "RateEpoch":
        return RateEpoch.derive(
            self.input_fps * 2, self.images_per_batch * 2, output_fps, max_zoom_scale
        )


class BatchRateModel:
    """Owns the active :class:`RateEpoch` and the one-time switch."""

    def __init__(
        self,
        output_fps: int,
        max_zoom_scale: float,
        input_fps: int,
        images_per_batch: int,
        switch_index: int = NO_SWITCH,
    ) -> None:
        self.output_fps = output_fps
        self.max_zoom_scale = max_zoom_scale
        self.switch_index = switch_index
        self.epoch = RateEpoch.derive(
            input_fps, images_per_batch, output_fps, max_zoom_scale
        )
        self.switched = False

    @property
    def switch_enabled(self) -> bool:
        return self.switch_index >= 0

    def validate(self) -> List[RateEpoch]:
        """Derive every epoch the run can reach, raising on bad ratios."""
        epochs = [self.epoch]
        if self.switch_enabled and not self.switched:
            epochs.append(self.epoch.doubled(self.output_fps, self.max_zoom_scale))
        return epochs

    def maybe_switch_epoch(self, image_index: int) -> bool:
        """Swap in the doubled epoch if *image_index* is the switch index.

        Returns ``True`` when the switch happened. The switch fires at most
        once per model.
        """
        if self.switched or not self.switch_enabled or image_index != self.switch_index:
            return False
        self.epoch = self.epoch.doubled(self.output_fps, self.max_zoom_scale)
        self.switched = True
        return True

    def planned_frame_count(self, image_count: int) -> int:
        """Number of frames a fresh run over *image_count* images produces."""
        epochs = self.validate()
        if len(epochs) == 1 or self.switch_index >= image_count:
            return image_count * epochs[0].frames_per_image
        before, after = epochs
        return (
            self.switch_index * before.frames_per_image
            + (image_count - self.switch_index) * after.frames_per_image
        )
