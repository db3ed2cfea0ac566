from __future__ import annotations

import math
from dataclasses import dataclass

import cv2
import numpy as np


@dataclass(frozen=True)
class CheckerboardSpec:
    squares_x: int
    squares_y: int
    square_px: float
    dark: int = 30
    light: int = 220
    top_left_dark: bool = True

    @property
    def inner_corners_xy(self) -> tuple[int, int]:
        return (self.squares_x - 1, self.squares_y - 1)

    @property
    def size_px(self) -> tuple[float, float]:
        return (self.squares_x * self.square_px, self.squares_y * self.square_px)


def gaussian_blur_u8(img_u8: np.ndarray, sigma: float) -> np.ndarray:
    if sigma <= 0:
        return img_u8
    return cv2.GaussianBlur(img_u8, ksize=(0, 0), sigmaX=float(sigma), sigmaY=float(sigma), borderType=cv2.BORDER_REFLECT)


def add_gaussian_noise_u8(img_u8: np.ndarray, std: float, rng: np.random.Generator) -> np.ndarray:
    """Additive Gaussian noise, `std` in intensity levels (0..255)."""
    if std <= 0:
        return img_u8
    noisy = img_u8.astype(np.float64) + rng.normal(0.0, float(std), size=img_u8.shape)
    return np.clip(np.rint(noisy), 0, 255).astype(np.uint8)


def board_corners_xy(spec: CheckerboardSpec, origin_xy: tuple[float, float], angle_deg: float = 0.0) -> np.ndarray:
    """
    Ground-truth interior corners as (K,2) 1-based (x, y) pixel-center coordinates,
    row by row (board y outer, board x inner).

    `origin_xy` is the outer top-left corner of the board in continuous pixel-edge
    coordinates (pixel k spans [k, k+1)).
    """
    nx, ny = spec.inner_corners_xy
    ca = math.cos(math.radians(angle_deg))
    sa = math.sin(math.radians(angle_deg))
    bj, bi = np.meshgrid(np.arange(1, ny + 1), np.arange(1, nx + 1), indexing="ij")
    bx = bi.reshape(-1).astype(np.float64) * spec.square_px
    by = bj.reshape(-1).astype(np.float64) * spec.square_px
    u = origin_xy[0] + ca * bx - sa * by
    v = origin_xy[1] + sa * bx + ca * by
    return np.stack([u + 0.5, v + 0.5], axis=-1)


def render_checkerboard(
    width: int,
    height: int,
    spec: CheckerboardSpec,
    origin_xy: tuple[float, float],
    angle_deg: float = 0.0,
    supersample: int = 4,
    background: int | None = None,
) -> np.ndarray:
    """
    Anti-aliased uint8 rendering of a checkerboard on a uniform background.

    Each output pixel averages `supersample**2` point samples. The board is
    rotated by `angle_deg` around its outer top-left corner `origin_xy`; positive
    angles turn clockwise on screen since y points down.
    """
    ss = int(max(1, supersample))
    background = spec.light if background is None else int(background)

    offs = (np.arange(ss, dtype=np.float64) + 0.5) / ss
    us = (np.arange(width, dtype=np.float64)[:, None] + offs[None, :]).reshape(-1)
    vs = (np.arange(height, dtype=np.float64)[:, None] + offs[None, :]).reshape(-1)
    uu, vv = np.meshgrid(us - origin_xy[0], vs - origin_xy[1])

    ca = math.cos(math.radians(angle_deg))
    sa = math.sin(math.radians(angle_deg))
    bx = ca * uu + sa * vv
    by = -sa * uu + ca * vv

    i = np.floor(bx / spec.square_px).astype(np.int64)
    j = np.floor(by / spec.square_px).astype(np.int64)
    inside = (i >= 0) & (i < spec.squares_x) & (j >= 0) & (j < spec.squares_y)
    parity_dark = ((i + j) % 2 == 0) == bool(spec.top_left_dark)

    samples = np.full(uu.shape, float(background), dtype=np.float32)
    samples[inside & parity_dark] = float(spec.dark)
    samples[inside & ~parity_dark] = float(spec.light)

    img = samples.reshape(height, ss, width, ss).mean(axis=(1, 3))
    return np.clip(np.rint(img), 0, 255).astype(np.uint8)


def render_board_image(
    width: int,
    height: int,
    spec: CheckerboardSpec,
    origin_xy: tuple[float, float],
    angle_deg: float = 0.0,
    blur_sigma: float = 0.0,
    noise_std: float = 0.0,
    seed: int = 0,
    supersample: int = 4,
) -> tuple[np.ndarray, np.ndarray]:
    """Rendered (blurred, noisy) board image and its ground-truth interior corners."""
    rng = np.random.default_rng(seed)
    img = render_checkerboard(width, height, spec, origin_xy, angle_deg=angle_deg, supersample=supersample)
    img = gaussian_blur_u8(img, blur_sigma)
    img = add_gaussian_noise_u8(img, noise_std, rng)
    return img, board_corners_xy(spec, origin_xy, angle_deg=angle_deg)
