"""Custom exception classes for the dual-camera stereo pipeline."""

from __future__ import annotations

from typing import Optional, Tuple


class StereoCamError(Exception):
    """Base exception for all stereo camera pipeline errors."""

    pass


class CalibrationError(StereoCamError):
    """Base exception for calibration-related errors."""

    def __init__(self, message: str, camera_id: Optional[str] = None):
        self.camera_id = camera_id
        super().__init__(message)


class PatternNotFoundError(CalibrationError):
    """Raised when the checkerboard pattern cannot be located in a frame."""

    pass


class InsufficientSamplesError(CalibrationError):
    """Raised when too few calibration samples were collected to solve."""

    def __init__(
        self,
        message: str,
        camera_id: Optional[str] = None,
        required: int = 0,
        available: int = 0,
    ):
        self.required = required
        self.available = available
        super().__init__(message, camera_id=camera_id)


class DegenerateGeometryError(CalibrationError):
    """Raised when sample poses are too similar to constrain the intrinsics."""

    def __init__(self, message: str, camera_id: Optional[str] = None, conditioning: float = 0.0):
        self.conditioning = conditioning
        super().__init__(message, camera_id=camera_id)


class NonConvergenceError(CalibrationError):
    """Raised when the calibration optimizer fails to reach the error tolerance."""

    def __init__(
        self,
        message: str,
        camera_id: Optional[str] = None,
        reprojection_error_px: Optional[float] = None,
    ):
        self.reprojection_error_px = reprojection_error_px
        super().__init__(message, camera_id=camera_id)


class SampleMismatchError(CalibrationError):
    """Raised when calibration samples do not belong to the same camera setup."""

    pass


class InvalidIntrinsicsError(CalibrationError):
    """Raised when intrinsics that are not well-formed are used for correction."""

    pass


class CalibrationInProgressError(CalibrationError):
    """Raised when a solve is requested while one is already running."""

    pass


class StereoError(StereoCamError):
    """Base exception for stereo-related errors."""

    pass


class DimensionMismatchError(StereoError):
    """Raised when two images that must share a size do not."""

    def __init__(
        self,
        message: str,
        left_shape: Optional[Tuple[int, ...]] = None,
        right_shape: Optional[Tuple[int, ...]] = None,
    ):
        self.left_shape = left_shape
        self.right_shape = right_shape
        super().__init__(message)


class ConfigError(StereoCamError):
    """Base exception for configuration errors."""

    pass


class InvalidConfigError(ConfigError):
    """Raised when configuration file is invalid or corrupted."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration fails schema validation."""

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        self.validation_errors = validation_errors or []
        super().__init__(message)
