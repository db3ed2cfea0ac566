from __future__ import annotations

import json
from pathlib import Path

import pytest

from checkerdetect.cli.main import main


def test_render_board_writes_image_and_ground_truth(tmp_path: Path, capsys) -> None:
    out = tmp_path / "board.png"
    rc = main(["render-board", "--out", str(out), "--width", "200", "--height", "160", "--square-px", "20"])
    assert rc == 0
    assert out.exists()

    gt = json.loads(out.with_suffix(".json").read_text(encoding="utf-8"))
    assert gt["squares_x"] == 8
    assert len(gt["corners_xy"]) == 35
    assert "Wrote" in capsys.readouterr().out


def test_detect_prints_summary(tmp_path: Path, capsys) -> None:
    img = tmp_path / "board.png"
    main(["render-board", "--out", str(img), "--width", "320", "--height", "256", "--square-px", "32"])
    capsys.readouterr()

    out_json = tmp_path / "det" / "det.json"
    rc = main(["detect", str(img), "--sigma", "2", "--quality", "0.2", "--out-json", str(out_json)])
    assert rc == 0

    summary = json.loads(capsys.readouterr().out)
    assert summary["image"] == str(img)
    assert "points_xy" not in summary
    assert {"found", "board_size", "num_points", "energy", "orientation_deg"} <= set(summary)

    full = json.loads(out_json.read_text(encoding="utf-8"))
    assert len(full["points_xy"]) == full["num_points"]


def test_detect_reads_config(tmp_path: Path, capsys) -> None:
    img = tmp_path / "board.png"
    main(["render-board", "--out", str(img), "--width", "160", "--height", "128", "--square-px", "16"])
    capsys.readouterr()

    cfg = tmp_path / "cfg.json"
    cfg.write_text(json.dumps({"schema_version": "checkerdetect.config.v0", "sigma": 1.5}), encoding="utf-8")
    assert main(["detect", str(img), "--config", str(cfg)]) == 0
    assert "board_size" in json.loads(capsys.readouterr().out)


def test_detect_missing_image(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        main(["detect", str(tmp_path / "nope.png")])


def test_eval_synthetic_prints_report(capsys) -> None:
    rc = main(["eval-synthetic", "--width", "320", "--height", "256", "--square-px", "32.7", "--noise-std", "1.5"])
    assert rc == 0
    report = json.loads(capsys.readouterr().out)
    assert report["num_gt"] == 35
    assert report["expected_board_size"] == [8, 6]
