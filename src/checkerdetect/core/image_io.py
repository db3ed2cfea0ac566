from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
from PIL import Image


class DetectorInputError(ValueError):
    pass


def load_gray_u8(path: str | Path) -> np.ndarray:
    """
    Load an image as grayscale uint8.

    OpenCV decodes first; Pillow handles the formats the local OpenCV build
    cannot read (it returns None instead of raising).
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing {p}")

    img = cv2.imread(str(p), cv2.IMREAD_GRAYSCALE)
    if img is not None:
        if img.dtype != np.uint8:
            img = np.clip(img, 0, 255).astype(np.uint8)
        return img

    with Image.open(p) as im:
        im = im.convert("L")
        arr = np.asarray(im, dtype=np.uint8)
    return arr


def save_gray_u8(path: str | Path, img_u8: np.ndarray) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(np.asarray(img_u8, dtype=np.uint8)).save(p)
    return p


def check_image(image: np.ndarray) -> np.ndarray:
    arr = np.asarray(image)
    if arr.ndim != 2:
        raise DetectorInputError(f"image must be 2-D grayscale, got shape {arr.shape}")
    if arr.size == 0:
        raise DetectorInputError("image is empty")
    if not (np.issubdtype(arr.dtype, np.number) or arr.dtype == np.bool_):
        raise DetectorInputError(f"image must be numeric, got dtype {arr.dtype}")
    if np.iscomplexobj(arr):
        raise DetectorInputError("image must be real-valued")
    if np.issubdtype(arr.dtype, np.floating) and not np.all(np.isfinite(arr)):
        raise DetectorInputError("image contains non-finite values")
    return arr


def normalize_image(image: np.ndarray) -> np.ndarray:
    """
    Convert an image to float32 intensities in [0, 1] without touching the input.

    Integer images are scaled by their dtype range; float images already in [0, 1]
    are kept, other float images are min/max stretched.
    """
    arr = check_image(image)
    if arr.dtype == np.bool_:
        return arr.astype(np.float32)
    if np.issubdtype(arr.dtype, np.integer):
        info = np.iinfo(arr.dtype)
        out = (arr.astype(np.float64) - info.min) / float(info.max - info.min)
        return out.astype(np.float32)

    out = arr.astype(np.float64)
    lo = float(out.min())
    hi = float(out.max())
    if lo < 0.0 or hi > 1.0:
        span = hi - lo
        out = (out - lo) / span if span > 0.0 else np.zeros_like(out)
    return out.astype(np.float32)
