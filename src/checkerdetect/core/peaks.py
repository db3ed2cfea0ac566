from __future__ import annotations

import numpy as np
from scipy import ndimage


def find_peaks(metric: np.ndarray, quality: float) -> np.ndarray:
    """
    Local maxima of a response map above `quality * max(metric)`.

    Returns (N,2) float64 1-based (x, y) pixel locations in raster order. Border
    pixels are never reported since they lack a full 3x3 neighbourhood.
    """
    quality = float(quality)
    if not 0.0 <= quality <= 1.0:
        raise ValueError("quality must be in [0, 1]")

    metric = np.asarray(metric, dtype=np.float64)
    if metric.ndim != 2:
        raise ValueError(f"metric must be 2-D, got shape {metric.shape}")
    if metric.shape[0] < 3 or metric.shape[1] < 3:
        return np.zeros((0, 2), dtype=np.float64)

    max_metric = float(np.max(metric))
    if not np.isfinite(max_metric) or max_metric <= 0.0:
        return np.zeros((0, 2), dtype=np.float64)

    threshold = quality * max_metric
    local_max = ndimage.maximum_filter(metric, size=3, mode="nearest")
    mask = (metric >= local_max) & (metric >= threshold) & (metric > 0.0)

    # Plateaus: keep only the first pixel in raster order.
    padded = np.pad(metric, 1, mode="constant", constant_values=-np.inf)
    h, w = metric.shape
    for dr, dc in ((-1, -1), (-1, 0), (-1, 1), (0, -1)):
        mask &= metric > padded[1 + dr : 1 + dr + h, 1 + dc : 1 + dc + w]

    mask[0, :] = False
    mask[-1, :] = False
    mask[:, 0] = False
    mask[:, -1] = False

    rows, cols = np.nonzero(mask)
    return np.stack([cols + 1, rows + 1], axis=-1).astype(np.float64)


def peak_scores(metric: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Metric values at integer 1-based (x, y) locations."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if points.shape[0] == 0:
        return np.zeros((0,), dtype=np.float64)
    cols = np.rint(points[:, 0]).astype(np.int64) - 1
    rows = np.rint(points[:, 1]).astype(np.int64) - 1
    return np.asarray(metric, dtype=np.float64)[rows, cols]
