from __future__ import annotations

import numpy as np


def subpixel_location(metric: np.ndarray, points: np.ndarray) -> np.ndarray:
    """
    Refine integer 1-based (x, y) locations by fitting a bivariate quadratic to the
    3x3 neighbourhood of `metric` around each point.

    The offset is kept only when it stays strictly inside the neighbourhood
    (|dx| < 1 and |dy| < 1); otherwise, and for points on the image border, the
    input location is returned unchanged.
    """
    metric = np.asarray(metric, dtype=np.float64)
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    out = pts.copy()
    if pts.shape[0] == 0:
        return out

    H, W = metric.shape[:2]
    cols = np.rint(pts[:, 0]).astype(np.int64) - 1
    rows = np.rint(pts[:, 1]).astype(np.int64) - 1
    inside = (cols >= 1) & (cols <= W - 2) & (rows >= 1) & (rows <= H - 2)
    if not np.any(inside):
        return out

    c = cols[inside]
    r = rows[inside]
    # p[i][j]: row offset i-1, column offset j-1.
    p = [[metric[r + di, c + dj] for dj in (-1, 0, 1)] for di in (-1, 0, 1)]

    dx2 = (p[0][0] - 2 * p[0][1] + p[0][2] + 2 * p[1][0] - 4 * p[1][1] + 2 * p[1][2] + p[2][0] - 2 * p[2][1] + p[2][2]) / 8.0
    dy2 = ((p[0][0] + 2 * p[0][1] + p[0][2]) - 2 * (p[1][0] + 2 * p[1][1] + p[1][2]) + (p[2][0] + 2 * p[2][1] + p[2][2])) / 8.0
    dxy = (p[0][0] - p[0][2] - p[2][0] + p[2][2]) / 4.0
    dx = (-p[0][0] - 2 * p[1][0] - p[2][0] + p[0][2] + 2 * p[1][2] + p[2][2]) / 8.0
    dy = (-p[0][0] - 2 * p[0][1] - p[0][2] + p[2][0] + 2 * p[2][1] + p[2][2]) / 8.0

    det = dx2 * dy2 - 0.25 * dxy * dxy
    with np.errstate(divide="ignore", invalid="ignore"):
        off_x = -0.5 * (dy2 * dx - 0.5 * dxy * dy) / det
        off_y = -0.5 * (dx2 * dy - 0.5 * dxy * dx) / det

    valid = np.isfinite(off_x) & np.isfinite(off_y) & (np.abs(off_x) < 1.0) & (np.abs(off_y) < 1.0)
    off_x = np.where(valid, off_x, 0.0)
    off_y = np.where(valid, off_y, 0.0)

    out[inside, 0] = pts[inside, 0] + off_x
    out[inside, 1] = pts[inside, 1] + off_y
    return out
