from __future__ import annotations

import json
import math
from pathlib import Path

import numpy as np
import pytest

from checkerdetect.api.detection import CheckerboardDetection
from checkerdetect.eval.accuracy import evaluate_detection, match_points, stats_to_dict, summarize


def test_summarize() -> None:
    dxy = np.array([[3.0, 4.0], [0.0, 0.0], [-3.0, 4.0]])
    s = summarize(dxy)
    assert s is not None
    assert s.n_matched == 3
    assert s.mean_px == pytest.approx(10.0 / 3.0)
    assert s.max_px == pytest.approx(5.0)
    assert s.rms_px == pytest.approx(math.sqrt(50.0 / 3.0))
    assert s.mean_dx_px == pytest.approx(0.0)
    assert summarize(np.zeros((0, 2))) is None
    assert stats_to_dict(None)["n_matched"] == 0


def test_match_points_is_order_independent() -> None:
    gt = np.array([[10.0, 10.0], [20.0, 10.0], [30.0, 10.0]])
    det = np.array([[30.2, 10.0], [10.1, 9.9], [100.0, 100.0]])
    dxy = match_points(det, gt, max_dist_px=1.0)
    assert dxy.shape == (2, 2)
    assert dxy[0].tolist() == pytest.approx([0.1, -0.1])
    assert dxy[1].tolist() == pytest.approx([0.2, 0.0])
    assert match_points(np.zeros((0, 2)), gt).shape == (0, 2)


def test_evaluate_detection_is_json_serializable(tmp_path: Path) -> None:
    gt = np.array([[10.0, 10.0], [20.0, 10.0]])
    det = CheckerboardDetection(points=gt + 0.25, board_size=(2, 3), energy=-2.0, orientation_deg=0)
    report = evaluate_detection(det, gt)
    assert report["found"] is True
    assert report["board_size"] == [2, 3]
    assert report["n_matched"] == 2
    assert report["mean_px"] == pytest.approx(math.hypot(0.25, 0.25))
    (tmp_path / "r.json").write_text(json.dumps(report), encoding="utf-8")


@pytest.mark.integration
def test_eval_synthetic_writes_report(tmp_path: Path) -> None:
    from checkerdetect.eval.accuracy import eval_synthetic
    from checkerdetect.sim.render import CheckerboardSpec

    spec = CheckerboardSpec(squares_x=8, squares_y=6, square_px=32.7)
    out = tmp_path / "eval" / "report.json"
    report = eval_synthetic(spec, 320, 256, (29.1, 30.4), blur_sigma=0.8, noise_std=1.5, seed=0, out_json=out)
    assert out.exists()
    assert report["expected_board_size"] == [8, 6]
    assert json.loads(out.read_text(encoding="utf-8"))["num_gt"] == 35
