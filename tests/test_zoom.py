import math

import pytest

from zoom_reel.zoom import (
    frame_geometry,
    is_start_of_batch,
    scale_index,
    zoom_scale_per_frame,
)

MAX_ZOOM = 600 / 448


@pytest.mark.parametrize(
    "images_per_batch,frames_per_image,max_zoom",
    [(5, 12, MAX_ZOOM), (10, 6, MAX_ZOOM), (1, 1, 2.0), (3, 8, 1.5)],
)
def test_zoom_rate_compounds_to_max(images_per_batch, frames_per_image, max_zoom):
    z = zoom_scale_per_frame(max_zoom, images_per_batch, frames_per_image)
    assert math.isclose(z ** (images_per_batch * frames_per_image), max_zoom, rel_tol=1e-9)


def test_batch_boundaries():
    assert [i for i in range(12) if is_start_of_batch(i, 5)] == [0, 5, 10]


def test_first_frame_of_batch_is_never_offset():
    for image_index in (0, 5, 10, 15):
        g = frame_geometry(image_index, 0, False, 12, 5, MAX_ZOOM, 448, 336)
        assert (g.crop_x, g.crop_y) == (0, 0)
        assert g.resize_width > 448
        assert not g.transition


def test_normal_frames_zoom_in_with_centered_floor_offsets():
    prev = 0.0
    for image_index in range(5):
        for frame_index in range(12):
            g = frame_geometry(image_index, frame_index, False, 12, 5, MAX_ZOOM, 448, 336)
            assert g.resize_width > prev
            prev = g.resize_width
            if image_index or frame_index:
                assert g.crop_x == math.floor((g.resize_width - 448) / 2)
                assert g.crop_y == math.floor((g.resize_height - 336) / 2)
    assert math.isclose(prev, 600.0, rel_tol=1e-9)


def test_offsets_floor_instead_of_round():
    # 11 * 1.69 = 18.59 -> (18.59 - 11) / 2 = 3.795
    g = frame_geometry(0, 1, False, 2, 1, 1.69, 11, 11)
    assert g.crop_x == 3
    assert g.crop_y == 3


def test_zoom_restarts_each_batch():
    a = frame_geometry(0, 3, False, 12, 5, MAX_ZOOM, 448, 336)
    b = frame_geometry(5, 3, False, 12, 5, MAX_ZOOM, 448, 336)
    assert a == b


def test_transition_frame_zooms_out_without_crop():
    g = frame_geometry(4, 3, True, 12, 5, MAX_ZOOM, 448, 336)
    z = zoom_scale_per_frame(MAX_ZOOM, 5, 12)
    assert scale_index(4, 3, True, 12, 5) == 9
    assert math.isclose(g.resize_width, 448 / z ** 10)
    assert math.isclose(g.resize_height, 336 / z ** 10)
    assert g.resize_width < 448
    assert (g.crop_x, g.crop_y) == (0, 0)
    assert g.transition


def test_transition_frames_shrink_less_as_the_fade_advances():
    widths = [
        frame_geometry(4, f, True, 12, 5, MAX_ZOOM, 448, 336).resize_width
        for f in range(12)
    ]
    assert widths == sorted(widths)
