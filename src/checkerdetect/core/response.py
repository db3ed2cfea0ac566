from __future__ import annotations

import math
from dataclasses import dataclass

import cv2
import numpy as np


_DERIV_X = np.array([[-1.0, 0.0, 1.0]], dtype=np.float32)
_DERIV_Y = _DERIV_X.T.copy()


@dataclass(frozen=True)
class CornerMetric:
    """
    Output of the second-derivative corner filter bank (all (H,W) float32).

    `cxy` responds to axis-aligned checkerboard saddles, `c45` to saddles of a
    board rotated by 45 degrees. The derivative maps are kept for orientation
    estimation and sub-pixel refinement.
    """

    cxy: np.ndarray
    c45: np.ndarray
    Ix: np.ndarray
    Iy: np.ndarray
    Ixy: np.ndarray
    I_45_45: np.ndarray


def gaussian_kernel_size(sigma: float) -> int:
    k = int(math.ceil(7.0 * float(sigma)))
    if k % 2 == 0:
        k += 1
    return max(k, 1)


def _dx(img: np.ndarray) -> np.ndarray:
    return cv2.filter2D(img, cv2.CV_32F, _DERIV_X, borderType=cv2.BORDER_REPLICATE)


def _dy(img: np.ndarray) -> np.ndarray:
    return cv2.filter2D(img, cv2.CV_32F, _DERIV_Y, borderType=cv2.BORDER_REPLICATE)


def second_deriv_corner_metric(img: np.ndarray, sigma: float) -> CornerMetric:
    """
    Compute the axis-aligned and 45-degree checkerboard corner responses.

    `img` is a normalized float image in [0, 1]. The subtracted first-derivative
    terms cancel the response of isolated square corners, which have a strong edge
    in one steered direction, so only 4-way saddles survive.
    """
    img = np.asarray(img, dtype=np.float32)
    sigma = float(sigma)
    k = gaussian_kernel_size(sigma)
    Ig = cv2.GaussianBlur(img, ksize=(k, k), sigmaX=sigma, sigmaY=sigma, borderType=cv2.BORDER_REPLICATE)

    Ix = _dx(Ig)
    Iy = _dy(Ig)

    c = math.cos(math.pi / 4.0)
    s = math.sin(math.pi / 4.0)
    I_45 = Ix * c + Iy * s
    I_n45 = Ix * c - Iy * s

    Ixy = _dy(Ix)

    I_45_x = _dx(I_45)
    I_45_y = _dy(I_45)
    I_45_45 = I_45_x * c - I_45_y * s

    sigma2 = sigma * sigma
    cxy = sigma2 * np.abs(Ixy) - 1.5 * sigma * (np.abs(I_45) + np.abs(I_n45))
    cxy = np.maximum(cxy, 0.0).astype(np.float32)

    c45 = sigma2 * np.abs(I_45_45) - 1.5 * sigma * (np.abs(Ix) + np.abs(Iy))
    c45 = np.maximum(c45, 0.0).astype(np.float32)

    return CornerMetric(cxy=cxy, c45=c45, Ix=Ix, Iy=Iy, Ixy=Ixy, I_45_45=I_45_45.astype(np.float32))


def structure_tensor_entries(
    Ix: np.ndarray,
    Iy: np.ndarray,
    filter_size: int = 7,
    sigma: float = 1.5,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Gaussian-smoothed (Ix^2, Iy^2, Ix*Iy), the entries of the local structure tensor.

    Products are zero-padded outside the image.
    """
    Ix = np.asarray(Ix, dtype=np.float32)
    Iy = np.asarray(Iy, dtype=np.float32)
    ksize = (int(filter_size), int(filter_size))

    def _blur(a: np.ndarray) -> np.ndarray:
        return cv2.GaussianBlur(a, ksize=ksize, sigmaX=float(sigma), sigmaY=float(sigma), borderType=cv2.BORDER_CONSTANT)

    return _blur(Ix * Ix), _blur(Iy * Iy), _blur(Ix * Iy)
