from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path

from checkerdetect.api.detection import detect_checkerboard
from checkerdetect.config import DetectorConfig, load_detector_config
from checkerdetect.core.image_io import load_gray_u8, save_gray_u8
from checkerdetect.eval.accuracy import eval_synthetic
from checkerdetect.sim.render import CheckerboardSpec, render_board_image


logger = logging.getLogger("checkerdetect")


def _add_board_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--width", type=int, default=640)
    p.add_argument("--height", type=int, default=480)
    p.add_argument("--squares-x", type=int, default=8, help="Squares along the board x axis.")
    p.add_argument("--squares-y", type=int, default=6, help="Squares along the board y axis.")
    p.add_argument("--square-px", type=float, default=50.0, help="Square side in output pixels.")
    p.add_argument("--origin-x", type=float, default=None, help="Outer top-left board corner x (default: centered).")
    p.add_argument("--origin-y", type=float, default=None, help="Outer top-left board corner y (default: centered).")
    p.add_argument("--angle-deg", type=float, default=0.0, help="In-plane board rotation.")
    p.add_argument("--blur-sigma", type=float, default=0.8, help="Gaussian blur sigma in pixels (0 disables).")
    p.add_argument("--noise-std", type=float, default=1.0, help="Additive Gaussian noise in intensity levels.")
    p.add_argument("--seed", type=int, default=0)


def _board_from_args(args: argparse.Namespace) -> tuple[CheckerboardSpec, tuple[float, float]]:
    spec = CheckerboardSpec(squares_x=args.squares_x, squares_y=args.squares_y, square_px=args.square_px)
    board_w, board_h = spec.size_px
    ox = args.origin_x if args.origin_x is not None else 0.5 * (args.width - board_w)
    oy = args.origin_y if args.origin_y is not None else 0.5 * (args.height - board_h)
    return spec, (float(ox), float(oy))


def _config_from_args(args: argparse.Namespace) -> DetectorConfig:
    config = load_detector_config(args.config) if args.config else DetectorConfig()
    if args.sigma is not None or args.quality is not None:
        config = replace(
            config,
            sigma=config.sigma if args.sigma is None else float(args.sigma),
            quality=config.quality if args.quality is None else float(args.quality),
        )
    return config


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="checkerdetect")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="cmd", required=True)

    det = sub.add_parser("detect", help="Detect checkerboard corners in a grayscale image.")
    det.add_argument("image", type=Path)
    det.add_argument("--sigma", type=float, default=None, help="Corner filter smoothing scale (default 2).")
    det.add_argument("--quality", type=float, default=None, help="Peak threshold as a fraction of the max response.")
    det.add_argument("--config", type=Path, default=None, help="Detector config JSON (checkerdetect.config.v0).")
    det.add_argument("--out-json", type=Path, default=None)
    det.add_argument("--plot", type=Path, default=None, help="Write a PNG overlay of the detection (matplotlib).")

    render = sub.add_parser("render-board", help="Render a synthetic checkerboard image with ground truth.")
    render.add_argument("--out", type=Path, required=True, help="Output PNG; ground truth goes to <out>.json.")
    _add_board_args(render)

    ev = sub.add_parser("eval-synthetic", help="Render a synthetic board, detect it and report corner errors.")
    ev.add_argument("--sigma", type=float, default=None)
    ev.add_argument("--quality", type=float, default=None)
    ev.add_argument("--config", type=Path, default=None)
    ev.add_argument("--out-json", type=Path, default=None)
    _add_board_args(ev)

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    if args.cmd == "detect":
        config = _config_from_args(args)
        img = load_gray_u8(args.image)
        detection = detect_checkerboard(img, config=config)
        summary = {"image": str(args.image), **detection.to_dict()}
        if args.out_json:
            args.out_json.parent.mkdir(parents=True, exist_ok=True)
            args.out_json.write_text(json.dumps(summary, indent=2), encoding="utf-8")
            logger.info("wrote %s", args.out_json)
        if args.plot:
            from checkerdetect.eval.plot import plot_detection  # noqa: PLC0415

            plot_detection(img, detection, args.plot)
            logger.info("wrote %s", args.plot)
        summary.pop("points_xy")
        print(json.dumps(summary, sort_keys=True))
        return 0

    if args.cmd == "render-board":
        spec, origin = _board_from_args(args)
        img, gt_xy = render_board_image(
            args.width,
            args.height,
            spec,
            origin,
            angle_deg=args.angle_deg,
            blur_sigma=args.blur_sigma,
            noise_std=args.noise_std,
            seed=args.seed,
        )
        save_gray_u8(args.out, img)
        gt_path = args.out.with_suffix(".json")
        gt = {
            "squares_x": spec.squares_x,
            "squares_y": spec.squares_y,
            "square_px": spec.square_px,
            "origin_xy": list(origin),
            "angle_deg": args.angle_deg,
            "corners_xy": gt_xy.tolist(),
        }
        gt_path.write_text(json.dumps(gt, indent=2), encoding="utf-8")
        print(f"Wrote {args.out}")
        print(f"Wrote {gt_path}")
        return 0

    if args.cmd == "eval-synthetic":
        spec, origin = _board_from_args(args)
        report = eval_synthetic(
            spec,
            args.width,
            args.height,
            origin,
            angle_deg=args.angle_deg,
            blur_sigma=args.blur_sigma,
            noise_std=args.noise_std,
            seed=args.seed,
            config=_config_from_args(args),
            out_json=args.out_json,
        )
        print(json.dumps(report, sort_keys=True))
        return 0

    raise AssertionError(f"Unhandled cmd: {args.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
