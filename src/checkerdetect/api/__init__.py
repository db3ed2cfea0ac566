from checkerdetect.api.detection import CheckerboardDetection, detect_checkerboard, grow_checkerboard, orient_board

__all__ = [
    "CheckerboardDetection",
    "detect_checkerboard",
    "grow_checkerboard",
    "orient_board",
]
