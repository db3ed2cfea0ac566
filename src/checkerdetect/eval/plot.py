from __future__ import annotations

from pathlib import Path

import numpy as np

from checkerdetect.api.detection import CheckerboardDetection


def plot_detection(img: np.ndarray, detection: CheckerboardDetection, out_path: Path) -> Path:
    """
    Save an overlay of the detected corners, joined in output order, with the
    origin corner labelled (0,0).
    """
    import matplotlib  # type: ignore

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt  # type: ignore

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(8, 6))
    h, w = img.shape[:2]
    # 1-based pixel centers: pixel (1,1) spans [0.5, 1.5].
    ax.imshow(img, cmap="gray", extent=(0.5, w + 0.5, h + 0.5, 0.5))
    if detection.found:
        pts = detection.points
        ax.plot(pts[:, 0], pts[:, 1], "r*-", markersize=4, linewidth=0.6)
        ax.text(pts[0, 0], pts[0, 1], "(0,0)", color="red")
        rows, cols = detection.board_size
        ax.set_title(f"{rows}x{cols} squares, {pts.shape[0]} corners")
    else:
        ax.set_title("no checkerboard found")
    ax.set_axis_off()
    fig.tight_layout()
    fig.savefig(out_path, dpi=120)
    plt.close(fig)
    return out_path
