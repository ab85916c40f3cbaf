"""Shared data contracts for calibration and disparity."""

from .types import (
    DISPARITY_SCALE,
    CalibrationSample,
    CameraIntrinsics,
    CornerSet,
    DetectionResult,
    DisparityMap,
    FieldOfView,
    Frame,
    PatternSpec,
)

__all__ = [
    "DISPARITY_SCALE",
    "CalibrationSample",
    "CameraIntrinsics",
    "CornerSet",
    "DetectionResult",
    "DisparityMap",
    "FieldOfView",
    "Frame",
    "PatternSpec",
]
