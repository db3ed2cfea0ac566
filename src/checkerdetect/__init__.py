from checkerdetect.api import CheckerboardDetection, detect_checkerboard
from checkerdetect.config import ConfigValidationError, DetectorConfig, load_detector_config, parse_detector_config
from checkerdetect.core.board import Checkerboard
from checkerdetect.core.image_io import DetectorInputError

__all__ = [
    "Checkerboard",
    "CheckerboardDetection",
    "ConfigValidationError",
    "DetectorConfig",
    "DetectorInputError",
    "detect_checkerboard",
    "load_detector_config",
    "parse_detector_config",
]
