"""Audio track helpers."""
from __future__ import annotations

import logging

import librosa


def audio_duration(audio_path: str) -> float:
    """Return the duration of *audio_path* in seconds."""
    return float(librosa.get_duration(path=audio_path))


def warn_if_short(audio_path: str, video_seconds: float) -> bool:
    """Log a warning when the audio ends before the video. Returns ``True`` if so."""
    seconds = audio_duration(audio_path)
    if seconds < video_seconds:
        logging.warning(
            "audio %s lasts %.2fs, shorter than the %ss video", audio_path, seconds, video_seconds
        )
        return True
    return False
