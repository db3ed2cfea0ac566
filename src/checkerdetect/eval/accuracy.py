from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from scipy.spatial import cKDTree

from checkerdetect.api.detection import CheckerboardDetection, detect_checkerboard
from checkerdetect.config import DetectorConfig
from checkerdetect.sim.render import CheckerboardSpec, render_board_image


@dataclass(frozen=True)
class ErrorStats:
    n_matched: int
    rms_px: float
    mean_px: float
    p50_px: float
    p95_px: float
    max_px: float
    mean_dx_px: float
    mean_dy_px: float


def stats_to_dict(stats: ErrorStats | None) -> dict[str, float]:
    if stats is None:
        return {
            "n_matched": 0,
            "rms_px": float("nan"),
            "mean_px": float("nan"),
            "p50_px": float("nan"),
            "p95_px": float("nan"),
            "max_px": float("nan"),
            "mean_dx_px": float("nan"),
            "mean_dy_px": float("nan"),
        }
    return {
        "n_matched": stats.n_matched,
        "rms_px": stats.rms_px,
        "mean_px": stats.mean_px,
        "p50_px": stats.p50_px,
        "p95_px": stats.p95_px,
        "max_px": stats.max_px,
        "mean_dx_px": stats.mean_dx_px,
        "mean_dy_px": stats.mean_dy_px,
    }


def summarize(dxy: np.ndarray) -> ErrorStats | None:
    dxy = np.asarray(dxy, dtype=np.float64).reshape(-1, 2)
    if dxy.shape[0] == 0:
        return None
    e = np.hypot(dxy[:, 0], dxy[:, 1])
    return ErrorStats(
        n_matched=int(e.size),
        rms_px=float(np.sqrt(np.mean(e**2))),
        mean_px=float(np.mean(e)),
        p50_px=float(np.quantile(e, 0.50)),
        p95_px=float(np.quantile(e, 0.95)),
        max_px=float(np.max(e)),
        mean_dx_px=float(np.mean(dxy[:, 0])),
        mean_dy_px=float(np.mean(dxy[:, 1])),
    )


def match_points(detected_xy: np.ndarray, gt_xy: np.ndarray, max_dist_px: float = 3.0) -> np.ndarray:
    """
    Residuals (detected - gt) for ground-truth points whose nearest detection lies
    within `max_dist_px`. Order-independent, so it works on any board orientation.
    """
    detected_xy = np.asarray(detected_xy, dtype=np.float64).reshape(-1, 2)
    gt_xy = np.asarray(gt_xy, dtype=np.float64).reshape(-1, 2)
    if detected_xy.shape[0] == 0 or gt_xy.shape[0] == 0:
        return np.zeros((0, 2), dtype=np.float64)

    tree = cKDTree(detected_xy)
    dist, idx = tree.query(gt_xy, k=1)
    ok = np.isfinite(dist) & (dist <= float(max_dist_px))
    return detected_xy[idx[ok]] - gt_xy[ok]


def evaluate_detection(detection: CheckerboardDetection, gt_xy: np.ndarray, max_dist_px: float = 3.0) -> dict[str, object]:
    gt_xy = np.asarray(gt_xy, dtype=np.float64).reshape(-1, 2)
    stats = summarize(match_points(detection.points, gt_xy, max_dist_px=max_dist_px))
    return {
        "found": detection.found,
        "board_size": [int(detection.board_size[0]), int(detection.board_size[1])],
        "num_points": int(detection.points.shape[0]),
        "num_gt": int(gt_xy.shape[0]),
        **stats_to_dict(stats),
    }


def eval_synthetic(
    spec: CheckerboardSpec,
    width: int,
    height: int,
    origin_xy: tuple[float, float],
    angle_deg: float = 0.0,
    blur_sigma: float = 0.0,
    noise_std: float = 0.0,
    seed: int = 0,
    config: DetectorConfig | None = None,
    out_json: Path | None = None,
) -> dict[str, object]:
    """Render one synthetic board, detect it and report the corner errors."""
    img, gt_xy = render_board_image(
        width,
        height,
        spec,
        origin_xy,
        angle_deg=angle_deg,
        blur_sigma=blur_sigma,
        noise_std=noise_std,
        seed=seed,
    )
    detection = detect_checkerboard(img, config=config)
    report = evaluate_detection(detection, gt_xy)
    report["expected_board_size"] = sorted([spec.squares_x, spec.squares_y], reverse=True)

    if out_json is not None:
        out_json = Path(out_json)
        out_json.parent.mkdir(parents=True, exist_ok=True)
        out_json.write_text(json.dumps(report, indent=2, sort_keys=True), encoding="utf-8")
    return report
