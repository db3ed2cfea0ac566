from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace

import numpy as np

from checkerdetect.config import ConfigValidationError, DetectorConfig, validate_detector_params
from checkerdetect.core.board import Checkerboard
from checkerdetect.core.image_io import DetectorInputError, check_image, normalize_image
from checkerdetect.core.orientation import corner_orientations, orientation_matches
from checkerdetect.core.peaks import find_peaks, peak_scores
from checkerdetect.core.response import second_deriv_corner_metric, structure_tensor_entries
from checkerdetect.core.subpixel import subpixel_location


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckerboardDetection:
    """
    Detected checkerboard for one image.

    `points` are the interior corners (K,2) as 1-based (x, y) pixel coordinates,
    walked row by row over the canonical board. `board_size` counts squares,
    (rows, cols); (0, 0) with no points means no board was found.
    """

    points: np.ndarray
    board_size: tuple[int, int]
    energy: float = math.inf
    orientation_deg: int | None = None

    @property
    def found(self) -> bool:
        return self.points.shape[0] > 0

    def to_dict(self) -> dict[str, object]:
        return {
            "found": self.found,
            "board_size": [int(self.board_size[0]), int(self.board_size[1])],
            "num_points": int(self.points.shape[0]),
            "energy": float(self.energy) if math.isfinite(self.energy) else None,
            "orientation_deg": self.orientation_deg,
            "points_xy": np.asarray(self.points, dtype=np.float64).tolist(),
        }


def _not_found() -> CheckerboardDetection:
    return CheckerboardDetection(points=np.zeros((0, 2), dtype=np.float64), board_size=(0, 0))


def select_seeds(scores: np.ndarray, max_seeds: int = 2000) -> np.ndarray:
    """
    Seed indices ranked by score, best first (stable, so ties keep raster order).
    Dense point sets are cut to min(max_seeds, round(N / 2)) seeds.
    """
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    order = np.argsort(-scores, kind="stable")
    if order.size > max_seeds:
        # Halves round up.
        keep = min(int(max_seeds), int(math.floor(order.size / 2.0 + 0.5)))
        order = order[:keep]
    return order


def grow_checkerboard(
    points: np.ndarray,
    scores: np.ndarray,
    Ix2: np.ndarray,
    Iy2: np.ndarray,
    IxIy: np.ndarray,
    theta: float,
    config: DetectorConfig | None = None,
) -> Checkerboard:
    """
    Best board (lowest energy) grown from the seeds compatible with the board
    orientation `theta` (0 or pi/4). Returns an invalid board when nothing grows.
    """
    config = config or DetectorConfig()
    best = Checkerboard(config.max_initial_energy)
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if points.shape[0] == 0:
        return best

    seeds = select_seeds(scores, config.max_seeds)
    n_tried = 0
    for seed in seeds.tolist():
        p = np.rint(points[seed]).astype(np.int64)
        v1, v2 = corner_orientations(Ix2, Iy2, IxIy, p)
        if not orientation_matches(v1, v2, theta, config.angle_threshold):
            continue
        n_tried += 1

        board = Checkerboard(config.max_initial_energy)
        board.initialize(seed, points, v1, v2)
        board.expand_fully()
        if board.energy < best.energy:
            best = board

    logger.debug(
        "theta=%.3f: %d points, %d seeds grown, best energy %s shape %s",
        theta,
        points.shape[0],
        n_tried,
        best.energy,
        best.shape,
    )
    return best


def _rect_mask_mean(img: np.ndarray, xs: list[float], ys: list[float]) -> float:
    """
    Mean intensity over the axis-aligned rectangle spanned by the 2nd and 3rd
    smallest x and y of a square's four corners (1-based inclusive bounds).
    """
    xs_sorted = sorted(xs)
    ys_sorted = sorted(ys)
    H, W = img.shape[:2]
    x1 = max(int(round(xs_sorted[1])), 1)
    x2 = min(int(round(xs_sorted[2])), W)
    y1 = max(int(round(ys_sorted[1])), 1)
    y2 = min(int(round(ys_sorted[2])), H)
    region = img[y1 - 1 : y2, x1 - 1 : x2]
    if region.size == 0:
        return math.nan
    return float(np.mean(region))


def is_upper_left_black(board: Checkerboard, img: np.ndarray) -> bool:
    """True when the upper-left square is darker than the square to its right."""
    bc = board.board_coords
    upper_left = _rect_mask_mean(
        img,
        [bc[0, 0, 0], bc[0, 1, 0], bc[1, 1, 0], bc[1, 0, 0]],
        [bc[0, 0, 1], bc[0, 1, 1], bc[1, 1, 1], bc[1, 0, 1]],
    )
    next_square = _rect_mask_mean(
        img,
        [bc[0, 1, 0], bc[0, 2, 0], bc[1, 2, 0], bc[1, 1, 0]],
        [bc[0, 1, 1], bc[0, 2, 1], bc[1, 2, 1], bc[1, 1, 1]],
    )
    # NaN compares False: an undecidable board gets rotated like a light one.
    return upper_left < next_square


def orient_board(board: Checkerboard, img: np.ndarray) -> Checkerboard:
    """
    Canonical orientation, in place: long side along the board rows, dark
    upper-left square and, when both sides have the same parity, the first corner
    not beyond the last one in any coordinate.
    """
    if not math.isfinite(board.energy):
        return board

    rows, cols = board.shape
    if rows < cols:
        board.rotate90(1)

    if not is_upper_left_black(board, img):
        board.rotate90(2)

    rows, cols = board.shape
    if (rows % 2 == 0) == (cols % 2 == 0):
        if np.any(board.board_coords[0, 0] > board.board_coords[-1, -1]):
            board.rotate90(2)
    return board


def _resolve_config(sigma: float | None, quality: float | None, config: DetectorConfig | None) -> DetectorConfig:
    base = config or DetectorConfig()
    sigma = base.sigma if sigma is None else sigma
    quality = base.quality if quality is None else quality
    try:
        validate_detector_params(sigma, quality)
    except ConfigValidationError as e:
        raise DetectorInputError(str(e)) from e
    return replace(base, sigma=float(sigma), quality=float(quality))


def detect_checkerboard(
    image: np.ndarray,
    sigma: float | None = None,
    quality: float | None = None,
    *,
    config: DetectorConfig | None = None,
) -> CheckerboardDetection:
    """
    Detect the checkerboard in a 2-D grayscale image.

    `sigma` is the smoothing scale of the corner filter and `quality` the peak
    threshold as a fraction of the strongest corner response; both default to the
    values of `config`. Failing to find a board is not an error: the result has no
    points and a (0, 0) board size.
    """
    check_image(image)
    cfg = _resolve_config(sigma, quality, config)
    img = normalize_image(image)

    metric = second_deriv_corner_metric(img, cfg.sigma)
    Ix2, Iy2, IxIy = structure_tensor_entries(
        metric.Ix, metric.Iy, filter_size=cfg.jacobian_filter_size, sigma=cfg.jacobian_sigma
    )

    points0 = find_peaks(metric.cxy, cfg.quality)
    board0 = grow_checkerboard(points0, peak_scores(metric.cxy, points0), Ix2, Iy2, IxIy, 0.0, cfg)

    points45 = find_peaks(metric.c45, cfg.quality)
    board45 = grow_checkerboard(points45, peak_scores(metric.c45, points45), Ix2, Iy2, IxIy, math.pi / 4.0, cfg)

    if board0.is_valid and board0.energy <= board45.energy:
        board, refine_map, orientation_deg = board0, metric.Ixy, 0
    elif board45.is_valid:
        board, refine_map, orientation_deg = board45, metric.I_45_45, 45
    else:
        logger.info("no checkerboard found (%d / %d candidate corners)", points0.shape[0], points45.shape[0])
        return _not_found()

    orient_board(board, img)
    points, board_size = board.to_points()
    if points.shape[0] == 0:
        return _not_found()

    points = subpixel_location(refine_map, points)
    logger.info("checkerboard %dx%d squares found (orientation %d deg)", board_size[0], board_size[1], orientation_deg)
    return CheckerboardDetection(
        points=points,
        board_size=board_size,
        energy=float(board.energy),
        orientation_deg=orientation_deg,
    )
