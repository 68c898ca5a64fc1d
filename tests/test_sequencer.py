import logging
import os

import pytest

from zoom_reel.rates import BatchRateModel
from zoom_reel.sequencer import FrameSequencer, next_frame_opacity
from zoom_reel.utils import frame_name

MAX_ZOOM = 600 / 448


def make_images(folder, count):
    folder.mkdir(exist_ok=True)
    for i in range(count):
        (folder / f"{i}.jpg").write_bytes(b"")
    return str(folder)


def make_sequencer(tmp_path, count, input_fps=2, output_fps=24, images_per_batch=5, switch=-1):
    image_dir = make_images(tmp_path / "images", count)
    rates = BatchRateModel(output_fps, MAX_ZOOM, input_fps, images_per_batch, switch)
    return FrameSequencer(image_dir, str(tmp_path / "frames"), rates, 448, 336, MAX_ZOOM)


def test_frame_count_constant_rates(tmp_path):
    seq = make_sequencer(tmp_path, 7)
    specs = list(seq.run(7))
    assert len(specs) == 7 * 12
    assert seq.next_frame_index == 84
    assert [s.index for s in specs] == list(range(84))
    assert os.path.basename(specs[0].output_path) == "000000.jpg"
    assert os.path.basename(specs[-1].output_path) == "000083.jpg"


def test_frame_count_with_rate_switch(tmp_path):
    seq = make_sequencer(tmp_path, 6, switch=3)
    specs = list(seq.run(6))
    assert len(specs) == 3 * 12 + 3 * 6
    assert len(specs) == BatchRateModel(24, MAX_ZOOM, 2, 5, 3).planned_frame_count(6)
    assert [s.image_index for s in specs].count(2) == 12
    assert [s.image_index for s in specs].count(3) == 6


def test_opacity_rises_within_window(tmp_path):
    seq = make_sequencer(tmp_path, 3)
    specs = [s for s in seq.run(3) if s.image_index == 0]
    opacities = [s.overlay_opacity for s in specs]
    assert opacities == [0, 8, 16, 25, 33, 41, 50, 58, 66, 75, 83, 91]
    assert not specs[0].has_overlay
    assert all(s.has_overlay for s in specs[1:])
    assert max(opacities) <= 99


def test_opacity_follows_absolute_frame_counter():
    assert next_frame_opacity(0, 12) == 0
    assert next_frame_opacity(11, 12) == 91
    assert next_frame_opacity(12, 12) == 0
    assert next_frame_opacity(15, 6) == 50
    for idx in range(12 * 4):
        assert 0 <= next_frame_opacity(idx, 12) <= 99


def test_last_image_never_fades(tmp_path):
    seq = make_sequencer(tmp_path, 2)
    last = [s for s in seq.run(2) if s.image_index == 1]
    assert len(last) == 12
    assert not any(s.has_overlay for s in last)
    assert all(s.overlay_opacity == 0 for s in last)


def test_overlay_inside_batch_reuses_base_geometry(tmp_path):
    seq = make_sequencer(tmp_path, 5)
    for spec in seq.run(5):
        if spec.image_index == 2 and spec.has_overlay:
            assert spec.overlay_image.endswith("3.jpg")
            assert spec.overlay == spec.base
            assert not spec.overlay.transition


def test_batch_boundary_uses_transition_overlay(tmp_path):
    seq = make_sequencer(tmp_path, 7)
    specs = [s for s in seq.run(7) if s.image_index == 4]
    last = specs[11]
    assert last.index == 4 * 12 + 11
    assert last.overlay_image.endswith("5.jpg")
    assert last.overlay.transition
    assert last.overlay_opacity == 91
    assert (last.base.crop_x, last.base.crop_y) != (0, 0)
    assert all(s.overlay.transition for s in specs if s.has_overlay)


def test_first_frame_of_each_batch_has_zero_offset(tmp_path):
    seq = make_sequencer(tmp_path, 11)
    for spec in seq.run(11):
        if spec.image_index % 5 == 0 and spec.index % 12 == 0:
            assert (spec.base.crop_x, spec.base.crop_y) == (0, 0)


def test_batch_size_after_switch(tmp_path):
    seq = make_sequencer(tmp_path, 25, switch=5)
    specs = list(seq.run(25))
    at_14 = [s for s in specs if s.image_index == 14 and s.has_overlay]
    at_19 = [s for s in specs if s.image_index == 19 and s.has_overlay]
    # after the switch batches hold 10 images: 20 opens a batch, 15 does not
    assert at_14 and not any(s.overlay.transition for s in at_14)
    assert at_19 and all(s.overlay.transition for s in at_19)


def test_second_run_continues_numbering(tmp_path):
    seq = make_sequencer(tmp_path, 2)
    list(seq.run(1))
    spec = next(iter(seq.run(1)))
    assert spec.index == 12
    assert spec.output_path.endswith("000012.jpg")


def test_progress_logged_every_hundred_frames(tmp_path, caplog):
    seq = make_sequencer(tmp_path, 9)
    with caplog.at_level(logging.INFO):
        list(seq.run(9))
    assert "100 frames created, processed 8/9 images" in caplog.text


def test_frame_names_are_six_digits():
    assert frame_name(0) == "000000.jpg"
    assert frame_name(41) == "000041.jpg"
    assert frame_name(999999) == "999999.jpg"
    for bad in (-1, 1_000_000):
        with pytest.raises(ValueError):
            frame_name(bad)


def test_progress_can_be_left_to_the_caller(tmp_path, caplog):
    image_dir = make_images(tmp_path / "images", 9)
    rates = BatchRateModel(24, MAX_ZOOM, 2, 5, -1)
    seq = FrameSequencer(
        image_dir, str(tmp_path / "frames"), rates, 448, 336, MAX_ZOOM, log_progress=False
    )
    with caplog.at_level(logging.INFO):
        list(seq.run(9))
    assert "frames created" not in caplog.text
