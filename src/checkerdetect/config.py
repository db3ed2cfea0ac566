from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any


SCHEMA_VERSION = "checkerdetect.config.v0"


class ConfigValidationError(ValueError):
    pass


@dataclass(frozen=True)
class DetectorConfig:
    """
    Tuning knobs for single-image checkerboard detection.

    `angle_threshold` and `max_initial_energy` are empirical constants: a seed is
    kept when one of its edge directions is within `angle_threshold` radians of the
    tested board orientation, and a 3x3 start board is accepted when its energy is
    below `max_initial_energy` (a perfect one scores -9).
    """

    sigma: float = 2.0
    quality: float = 0.15
    max_seeds: int = 2000
    angle_threshold: float = 3.0 * math.pi / 16.0
    max_initial_energy: float = -7.0
    jacobian_filter_size: int = 7
    jacobian_sigma: float = 1.5

    def to_dict(self) -> dict[str, Any]:
        return {"schema_version": SCHEMA_VERSION, **asdict(self)}


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigValidationError(msg)


def validate_detector_params(sigma: float, quality: float) -> None:
    _require(math.isfinite(float(sigma)) and float(sigma) > 0.0, "sigma must be > 0")
    _require(0.0 <= float(quality) <= 1.0, "quality must be in [0, 1]")


def load_detector_config(path: Path) -> DetectorConfig:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return parse_detector_config(data)


def parse_detector_config(data: dict[str, Any]) -> DetectorConfig:
    _require(isinstance(data, dict), "detector config must be a JSON object")
    schema_version = data.get("schema_version", SCHEMA_VERSION)
    _require(schema_version == SCHEMA_VERSION, f"schema_version must be {SCHEMA_VERSION}")

    known = {"schema_version", *DetectorConfig.__dataclass_fields__}
    unknown = sorted(set(data) - known)
    _require(not unknown, f"unknown config keys: {unknown}")

    defaults = DetectorConfig()
    sigma = float(data.get("sigma", defaults.sigma))
    quality = float(data.get("quality", defaults.quality))
    validate_detector_params(sigma, quality)

    max_seeds = int(data.get("max_seeds", defaults.max_seeds))
    _require(max_seeds >= 1, "max_seeds must be >= 1")

    angle_threshold = float(data.get("angle_threshold", defaults.angle_threshold))
    _require(0.0 < angle_threshold <= math.pi, "angle_threshold must be in (0, pi]")

    max_initial_energy = float(data.get("max_initial_energy", defaults.max_initial_energy))
    _require(-9.0 < max_initial_energy <= 0.0, "max_initial_energy must be in (-9, 0]")

    filter_size = int(data.get("jacobian_filter_size", defaults.jacobian_filter_size))
    _require(filter_size >= 1 and filter_size % 2 == 1, "jacobian_filter_size must be a positive odd integer")
    jacobian_sigma = float(data.get("jacobian_sigma", defaults.jacobian_sigma))
    _require(jacobian_sigma > 0.0, "jacobian_sigma must be > 0")

    return DetectorConfig(
        sigma=sigma,
        quality=quality,
        max_seeds=max_seeds,
        angle_threshold=angle_threshold,
        max_initial_energy=max_initial_energy,
        jacobian_filter_size=filter_size,
        jacobian_sigma=jacobian_sigma,
    )
