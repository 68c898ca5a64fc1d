"""Core building logic: numbered images + audio -> zooming video."""
from __future__ import annotations

import glob
import logging
import os
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Deque, Optional, Tuple

from .audio import warn_if_short
from .compositor import make_compositor
from .config import RenderConfig
from .encoder import encode_with_backup, make_encoder, video_duration
from .errors import ConfigError
from .rates import BatchRateModel
from .sequencer import PROGRESS_EVERY, FrameSequencer, FrameSpec, report_progress
from .utils import MAX_FRAME_INDEX, source_path


def count_source_images(image_dir: str) -> int:
    """Number of contiguous ``{i}.jpg`` images starting at ``0.jpg``."""
    count = 0
    while os.path.exists(source_path(image_dir, count)):
        count += 1
    return count


def clean_frame_dir(frame_dir: str) -> int:
    stale = glob.glob(os.path.join(frame_dir, "[0-9]" * 6 + ".jpg"))
    for path in stale:
        os.remove(path)
    if stale:
        logging.info("removed %d stale frames from %s", len(stale), frame_dir)
    return len(stale)


def rate_model(cfg: RenderConfig) -> BatchRateModel:
    model = BatchRateModel(
        cfg.output_fps,
        cfg.max_zoom_scale,
        cfg.input_fps,
        cfg.images_per_batch,
        cfg.rate_switch_index,
    )
    model.validate()
    return model


def render_frames(cfg: RenderConfig, compositor=None, image_count: Optional[int] = None) -> int:
    """Render every frame into ``cfg.frame_dir``; returns the frame count.

    With ``cfg.jobs > 1`` compositing runs on a bounded thread pool while
    frame numbering stays sequential on the calling thread.
    """
    if image_count is None:
        image_count = count_source_images(cfg.image_dir)
    if image_count == 0:
        raise FileNotFoundError(f"No numbered images (0.jpg, 1.jpg, ...) in {cfg.image_dir}")

    rates = rate_model(cfg)
    planned = rates.planned_frame_count(image_count)
    if planned > MAX_FRAME_INDEX + 1:
        raise ConfigError(
            f"{planned} frames exceed the {MAX_FRAME_INDEX + 1} six-digit frame names"
        )
    if compositor is None:
        compositor = make_compositor(cfg.backend, cfg.width, cfg.height, cfg.magick)

    os.makedirs(cfg.frame_dir, exist_ok=True)
    if cfg.clean_frames:
        clean_frame_dir(cfg.frame_dir)

    sequencer = FrameSequencer(
        cfg.image_dir,
        cfg.frame_dir,
        rates,
        cfg.width,
        cfg.height,
        cfg.max_zoom_scale,
        log_progress=cfg.jobs <= 1,
    )
    report_progress(0, 0, image_count)

    if cfg.jobs <= 1:
        for spec in sequencer.run(image_count):
            compositor.render(spec)
    else:
        pending: Deque[Tuple[Future, FrameSpec]] = deque()
        done = 0

        def finish_one() -> None:
            nonlocal done
            fut, spec = pending.popleft()
            fut.result()
            done += 1
            if done % PROGRESS_EVERY == 0:
                report_progress(done, spec.image_index, image_count)

        with ThreadPoolExecutor(max_workers=cfg.jobs) as pool:
            try:
                for spec in sequencer.run(image_count):
                    pending.append((pool.submit(compositor.render, spec), spec))
                    while len(pending) >= 2 * cfg.jobs:
                        finish_one()
                while pending:
                    finish_one()
            except BaseException:
                for fut, _ in pending:
                    fut.cancel()
                raise

    total = sequencer.next_frame_index
    logging.info("Generated %d image frames.", total)
    return total


def make_video(cfg: RenderConfig, compositor=None, encoder=None) -> str:
    """Render frames for ``cfg.image_dir`` and mux them with the audio track."""
    if not os.path.exists(cfg.audio_path):
        raise FileNotFoundError(f"Audio track not found: {cfg.audio_path}")
    if encoder is None:
        encoder = make_encoder(cfg.encoder, cfg.ffmpeg, cfg.profile)

    total = render_frames(cfg, compositor)
    warn_if_short(cfg.audio_path, video_duration(total, cfg.output_fps))

    logging.info("Starting video generation for %s...", cfg.output_path)
    out_dir = os.path.dirname(cfg.output_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    return encode_with_backup(
        cfg.output_path,
        lambda: encoder.encode(
            cfg.frame_dir, cfg.audio_path, cfg.output_path, cfg.output_fps, total
        ),
    )
