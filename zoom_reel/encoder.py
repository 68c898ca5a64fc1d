"""Video encoding backends and output backup handling."""
from __future__ import annotations

import glob
import logging
import os
from typing import Callable, Dict, List, Optional

from .bin_config import resolve_ffmpeg
from .compositor import run_tool
from .errors import ConfigError, ExternalToolError
from .utils import FRAME_PATTERN

BACKUP_SUFFIX = ".backup"


def video_duration(total_frames: int, output_fps: int) -> int:
    """Whole seconds of video covered by *total_frames* frames."""
    return total_frames // output_fps


def build_ffmpeg_command(
    binary: str,
    frame_dir: str,
    audio_path: str,
    output_path: str,
    output_fps: int,
    duration: int,
) -> List[str]:
    return [
        binary,
        "-framerate", str(output_fps),
        "-i", os.path.join(frame_dir, FRAME_PATTERN),
        "-i", audio_path,
        "-ss", "0",
        "-t", str(duration),
        output_path,
    ]


class FfmpegEncoder:
    """Mux the numbered frames and the audio track with ffmpeg."""

    name = "ffmpeg"

    def __init__(self, binary: str | None = None) -> None:
        self.binary = resolve_ffmpeg(binary)
        if not self.binary:
            raise ExternalToolError(
                "ffmpeg not found. Install it or pass --ffmpeg / FFMPEG_BINARY."
            )

    def command(self, frame_dir, audio_path, output_path, output_fps, total_frames) -> List[str]:
        return build_ffmpeg_command(
            self.binary,
            frame_dir,
            audio_path,
            output_path,
            output_fps,
            video_duration(total_frames, output_fps),
        )

    def encode(
        self,
        frame_dir: str,
        audio_path: str,
        output_path: str,
        output_fps: int,
        total_frames: int,
    ) -> str:
        run_tool(self.command(frame_dir, audio_path, output_path, output_fps, total_frames))
        return output_path


def export_profile(profile: str) -> Dict[str, object]:
    """Return moviepy export settings for *profile*."""
    base = {
        "preview": {"crf": "31", "preset": "veryfast", "audio_bitrate": "96k"},
        "social": {"crf": "26", "preset": "medium", "audio_bitrate": "128k"},
        "quality": {"crf": "21", "preset": "slow", "audio_bitrate": "192k"},
    }[profile]
    return {
        "codec": "libx264",
        "audio_codec": "aac",
        "audio_bitrate": base["audio_bitrate"],
        "preset": base["preset"],
        "ffmpeg_params": ["-movflags", "+faststart", "-crf", base["crf"], "-pix_fmt", "yuv420p"],
    }


def _subclip(clip, start, end):
    """Compat helper for moviepy 1.x/2.x subclip API."""
    if hasattr(clip, "subclipped"):
        return clip.subclipped(start, end)
    return clip.subclip(start, end)


def _set_audio(clip, audio):
    return clip.with_audio(audio) if hasattr(clip, "with_audio") else clip.set_audio(audio)


class MoviepyEncoder:
    """Encode through moviepy's image sequence clip."""

    name = "moviepy"

    def __init__(self, profile: str = "quality") -> None:
        self.profile = profile

    def encode(
        self,
        frame_dir: str,
        audio_path: str,
        output_path: str,
        output_fps: int,
        total_frames: int,
    ) -> str:
        try:
            from moviepy.editor import AudioFileClip, ImageSequenceClip
        except ModuleNotFoundError:  # moviepy >=2.0
            from moviepy import AudioFileClip, ImageSequenceClip

        duration = video_duration(total_frames, output_fps)
        frames = sorted(glob.glob(os.path.join(frame_dir, "[0-9]" * 6 + ".jpg")))[:total_frames]
        if not frames:
            raise ExternalToolError(f"no frames found in {frame_dir}")
        prof = export_profile(self.profile)
        clip = audio = None
        try:
            clip = _subclip(ImageSequenceClip(frames, fps=output_fps), 0, duration)
            audio = AudioFileClip(audio_path)
            audio = _subclip(audio, 0, min(duration, audio.duration))
            clip = _set_audio(clip, audio)
            clip.write_videofile(output_path, fps=output_fps, logger=None, **prof)
        except (OSError, ValueError) as exc:
            raise ExternalToolError(f"moviepy failed to write {output_path}: {exc}") from exc
        finally:
            if audio is not None:
                audio.close()
            if clip is not None:
                clip.close()
        return output_path


def make_encoder(name: str, ffmpeg: Optional[str] = None, profile: str = "quality"):
    if name == "ffmpeg":
        return FfmpegEncoder(ffmpeg)
    if name == "moviepy":
        return MoviepyEncoder(profile)
    raise ConfigError(f"unknown encoder backend: {name}")


def _restore(backup_path: str, output_path: str) -> None:
    if os.path.exists(backup_path):
        logging.info("Restoring previous file version")
        os.replace(backup_path, output_path)


def encode_with_backup(output_path: str, encode: Callable[[], object]) -> str:
    """Run *encode* while keeping any previous *output_path* recoverable.

    An existing file is moved to ``<output_path>.backup`` first. The backup
    is deleted once the new file exists and restored when *encode* raises or
    leaves no file behind; in both failure cases :class:`ExternalToolError`
    is raised.
    """
    backup_path = output_path + BACKUP_SUFFIX
    if os.path.exists(output_path):
        os.replace(output_path, backup_path)

    try:
        encode()
    except Exception as exc:
        logging.error("Failed to create %s", output_path)
        if os.path.exists(output_path):
            os.remove(output_path)
        _restore(backup_path, output_path)
        if isinstance(exc, ExternalToolError):
            raise
        raise ExternalToolError(f"encoding {output_path} failed: {exc}") from exc

    if not os.path.exists(output_path):
        logging.error("Failed to create %s", output_path)
        _restore(backup_path, output_path)
        raise ExternalToolError(f"encoder produced no file at {output_path}")

    logging.info("Successfully generated %s", output_path)
    if os.path.exists(backup_path):
        os.remove(backup_path)
    return output_path
