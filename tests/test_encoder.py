import logging

import numpy as np
import pytest
import soundfile as sf
from PIL import Image

from zoom_reel import encoder
from zoom_reel.bin_config import resolve_ffmpeg
from zoom_reel.encoder import (
    FfmpegEncoder,
    MoviepyEncoder,
    build_ffmpeg_command,
    encode_with_backup,
    export_profile,
    make_encoder,
    video_duration,
)
from zoom_reel.errors import ConfigError, ExternalToolError


def test_duration_is_floored():
    assert video_duration(1000, 24) == 41
    assert video_duration(23, 24) == 0
    assert video_duration(48, 24) == 2


def test_ffmpeg_command():
    cmd = build_ffmpeg_command("ffmpeg", "frames", "song.mp3", "out.mp4", 24, 41)
    assert cmd == [
        "ffmpeg",
        "-framerate", "24",
        "-i", "frames/%06d.jpg",
        "-i", "song.mp3",
        "-ss", "0",
        "-t", "41",
        "out.mp4",
    ]


def test_ffmpeg_encoder_runs_command(monkeypatch):
    calls = []
    monkeypatch.setattr(encoder, "resolve_ffmpeg", lambda path=None: "/usr/bin/ffmpeg")
    monkeypatch.setattr(encoder, "run_tool", calls.append)
    enc = FfmpegEncoder()
    assert enc.encode("frames", "a.mp3", "v.mp4", 24, 1000) == "v.mp4"
    assert calls[0][0] == "/usr/bin/ffmpeg"
    assert calls[0][calls[0].index("-t") + 1] == "41"


def test_missing_ffmpeg(monkeypatch):
    monkeypatch.setattr(encoder, "resolve_ffmpeg", lambda path=None: None)
    with pytest.raises(ExternalToolError):
        FfmpegEncoder()


def test_unknown_encoder():
    with pytest.raises(ConfigError):
        make_encoder("vlc")


def test_success_removes_backup(tmp_path, caplog):
    out = tmp_path / "video.mp4"
    out.write_text("old")

    def encode():
        assert not out.exists()
        assert (tmp_path / "video.mp4.backup").read_text() == "old"
        out.write_text("new")

    with caplog.at_level(logging.INFO):
        encode_with_backup(str(out), encode)
    assert out.read_text() == "new"
    assert not (tmp_path / "video.mp4.backup").exists()
    assert "Successfully generated" in caplog.text


def test_failed_encode_restores_previous_file(tmp_path, caplog):
    out = tmp_path / "video.mp4"
    out.write_text("old")

    def encode():
        out.write_text("partial")
        raise ExternalToolError("ffmpeg exited with status 1")

    with caplog.at_level(logging.INFO):
        with pytest.raises(ExternalToolError):
            encode_with_backup(str(out), encode)
    assert out.read_text() == "old"
    assert not (tmp_path / "video.mp4.backup").exists()
    assert "Failed to create" in caplog.text
    assert "Restoring previous file version" in caplog.text


def test_missing_output_counts_as_failure(tmp_path):
    out = tmp_path / "video.mp4"
    out.write_text("old")
    with pytest.raises(ExternalToolError):
        encode_with_backup(str(out), lambda: None)
    assert out.read_text() == "old"


def test_failure_without_previous_file(tmp_path):
    out = tmp_path / "video.mp4"
    with pytest.raises(ExternalToolError):
        encode_with_backup(str(out), lambda: None)
    assert not out.exists()
    assert not (tmp_path / "video.mp4.backup").exists()


def test_unexpected_error_restores_previous_file(tmp_path, caplog):
    out = tmp_path / "video.mp4"
    out.write_text("old")

    def encode():
        out.write_text("partial")
        raise OSError("broken audio stream")

    with caplog.at_level(logging.INFO):
        with pytest.raises(ExternalToolError) as excinfo:
            encode_with_backup(str(out), encode)
    assert isinstance(excinfo.value.__cause__, OSError)
    assert out.read_text() == "old"
    assert not (tmp_path / "video.mp4.backup").exists()
    assert "Failed to create" in caplog.text
    assert "Restoring previous file version" in caplog.text


def test_export_profiles():
    preview = export_profile("preview")
    quality = export_profile("quality")
    assert preview["codec"] == "libx264"
    assert preview["preset"] == "veryfast"
    assert quality["audio_bitrate"] == "192k"
    assert "-crf" in quality["ffmpeg_params"]
    assert quality["ffmpeg_params"][quality["ffmpeg_params"].index("-crf") + 1] == "21"


def test_clip_compat_helpers():
    class OldClip:
        def subclip(self, start, end):
            return ("subclip", start, end)

        def set_audio(self, audio):
            return ("set_audio", audio)

    class NewClip:
        def subclipped(self, start, end):
            return ("subclipped", start, end)

        def with_audio(self, audio):
            return ("with_audio", audio)

    assert encoder._subclip(OldClip(), 0, 2) == ("subclip", 0, 2)
    assert encoder._subclip(NewClip(), 0, 2) == ("subclipped", 0, 2)
    assert encoder._set_audio(OldClip(), "a") == ("set_audio", "a")
    assert encoder._set_audio(NewClip(), "a") == ("with_audio", "a")


def test_make_moviepy_encoder():
    enc = make_encoder("moviepy", profile="preview")
    assert isinstance(enc, MoviepyEncoder)
    assert enc.profile == "preview"


def test_moviepy_without_frames(tmp_path):
    with pytest.raises(ExternalToolError):
        MoviepyEncoder().encode(str(tmp_path), "a.wav", str(tmp_path / "v.mp4"), 4, 8)


@pytest.mark.skipif(resolve_ffmpeg() is None, reason="requires ffmpeg")
def test_moviepy_encode(tmp_path):
    frames = tmp_path / "frames"
    frames.mkdir()
    for i in range(8):
        Image.new("RGB", (32, 24), (i * 30, 0, 0)).save(frames / f"{i:06d}.jpg")
    audio = tmp_path / "audio.wav"
    sr = 22050
    sf.write(audio, np.zeros(sr * 2, dtype=np.float32), sr)
    out = tmp_path / "video.mp4"

    result = MoviepyEncoder("preview").encode(str(frames), str(audio), str(out), 4, 8)

    assert result == str(out)
    assert out.stat().st_size > 0
