from __future__ import annotations

import numpy as np
import pytest

from checkerdetect.sim.render import (
    CheckerboardSpec,
    add_gaussian_noise_u8,
    board_corners_xy,
    gaussian_blur_u8,
    render_board_image,
    render_checkerboard,
)


def test_spec_properties() -> None:
    spec = CheckerboardSpec(squares_x=8, squares_y=6, square_px=25.0)
    assert spec.inner_corners_xy == (7, 5)
    assert spec.size_px == (200.0, 150.0)


def test_board_corners_row_major_one_based() -> None:
    spec = CheckerboardSpec(squares_x=4, squares_y=3, square_px=10.0)
    gt = board_corners_xy(spec, (5.0, 7.0))
    assert gt.shape == (6, 2)
    assert gt[0].tolist() == [15.5, 17.5]
    assert gt[1].tolist() == [25.5, 17.5]
    assert gt[3].tolist() == [15.5, 27.5]


def test_board_corners_rotation() -> None:
    spec = CheckerboardSpec(squares_x=3, squares_y=3, square_px=10.0)
    gt = board_corners_xy(spec, (50.0, 50.0), angle_deg=90.0)
    # +90 degrees maps the board x axis onto the image y axis.
    assert gt[0].tolist() == pytest.approx([40.5, 60.5])
    assert gt[1].tolist() == pytest.approx([40.5, 70.5])


def test_render_checkerboard_colors() -> None:
    spec = CheckerboardSpec(squares_x=4, squares_y=3, square_px=10.0, dark=10, light=200)
    img = render_checkerboard(60, 50, spec, (10.0, 10.0), supersample=2)
    assert img.shape == (50, 60)
    assert img.dtype == np.uint8
    assert img[0, 0] == 200  # background
    assert img[15, 15] == 10  # top-left square
    assert img[15, 25] == 200
    assert img[25, 25] == 10
    # Pixel straddling a square edge is averaged.
    img2 = render_checkerboard(60, 50, spec, (10.5, 10.0), supersample=2)
    assert img2[15, 20] == 105


def test_render_light_top_left() -> None:
    spec = CheckerboardSpec(squares_x=2, squares_y=2, square_px=10.0, top_left_dark=False)
    img = render_checkerboard(20, 20, spec, (0.0, 0.0), supersample=1)
    assert img[5, 5] == spec.light
    assert img[5, 15] == spec.dark


def test_blur_and_noise_helpers() -> None:
    img = np.zeros((20, 20), dtype=np.uint8)
    img[:, 10:] = 200
    assert gaussian_blur_u8(img, 0.0) is img
    blurred = gaussian_blur_u8(img, 1.5)
    assert 0 < blurred[10, 9] < 200

    rng = np.random.default_rng(0)
    assert add_gaussian_noise_u8(img, 0.0, rng) is img
    noisy = add_gaussian_noise_u8(img, 5.0, rng)
    assert noisy.dtype == np.uint8
    assert not np.array_equal(noisy, img)


def test_render_board_image_is_seeded() -> None:
    spec = CheckerboardSpec(squares_x=5, squares_y=4, square_px=12.0)
    a, gt_a = render_board_image(100, 80, spec, (10.0, 10.0), blur_sigma=0.8, noise_std=2.0, seed=3)
    b, gt_b = render_board_image(100, 80, spec, (10.0, 10.0), blur_sigma=0.8, noise_std=2.0, seed=3)
    c, _ = render_board_image(100, 80, spec, (10.0, 10.0), blur_sigma=0.8, noise_std=2.0, seed=4)
    assert np.array_equal(a, b)
    assert np.array_equal(gt_a, gt_b)
    assert not np.array_equal(a, c)
    assert gt_a.shape == (12, 2)
