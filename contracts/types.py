"""Core data contracts for calibration, alignment, and disparity."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

import numpy as np

# OpenCV stereo matchers return disparities as fixed point with 4 fractional bits.
DISPARITY_SCALE = 16


def _readonly(array: np.ndarray) -> np.ndarray:
    owned = np.array(array, copy=True)
    owned.setflags(write=False)
    return owned


def pixfmt_for(image: np.ndarray) -> str:
    """Name the pixel format of an image array."""
    channels = 1 if image.ndim == 2 else image.shape[2]
    if image.dtype == np.uint8:
        return {1: "GRAY8", 3: "BGR24", 4: "BGRA32"}.get(channels, f"U8C{channels}")
    if image.dtype == np.uint16:
        return "GRAY16" if channels == 1 else f"U16C{channels}"
    if image.dtype == np.int16:
        return "S16" if channels == 1 else f"S16C{channels}"
    if image.dtype == np.float32:
        return "FLOAT32" if channels == 1 else f"F32C{channels}"
    return f"{image.dtype.name}C{channels}"


@dataclass(frozen=True)
class Frame:
    camera_id: str
    frame_index: int
    t_capture_monotonic_ns: int
    image: np.ndarray
    width: int
    height: int
    pixfmt: str

    @classmethod
    def from_image(
        cls,
        image: np.ndarray,
        camera_id: str = "",
        frame_index: int = 0,
        t_capture_monotonic_ns: int = 0,
    ) -> "Frame":
        """Wrap an image array, taking a read-only copy of the pixels."""
        image = np.asarray(image)
        if image.ndim not in (2, 3) or image.size == 0:
            raise ValueError(f"Frame image must be a non-empty 2-D or 3-D array, got shape {image.shape}")
        return cls(
            camera_id=camera_id,
            frame_index=frame_index,
            t_capture_monotonic_ns=t_capture_monotonic_ns,
            image=_readonly(image),
            width=int(image.shape[1]),
            height=int(image.shape[0]),
            pixfmt=pixfmt_for(image),
        )

    def derive(self, image: np.ndarray) -> "Frame":
        """Build a new frame from a transformed image, keeping identity and timestamp."""
        return Frame.from_image(
            image,
            camera_id=self.camera_id,
            frame_index=self.frame_index,
            t_capture_monotonic_ns=self.t_capture_monotonic_ns,
        )

    @property
    def channels(self) -> int:
        return 1 if self.image.ndim == 2 else int(self.image.shape[2])

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height), the order OpenCV expects for sizes."""
        return (self.width, self.height)


@dataclass(frozen=True)
class PatternSpec:
    """Checkerboard geometry: interior corner counts and physical square size."""

    rows: int = 6
    cols: int = 9
    square_size: float = 1.0

    def __post_init__(self) -> None:
        if self.rows < 2 or self.cols < 2:
            raise ValueError(f"Pattern needs at least 2x2 interior corners, got {self.rows}x{self.cols}")
        if self.square_size <= 0:
            raise ValueError(f"square_size must be positive, got {self.square_size}")

    @property
    def corner_count(self) -> int:
        return self.rows * self.cols

    @property
    def opencv_size(self) -> Tuple[int, int]:
        """Pattern size as (points per row, points per column)."""
        return (self.cols, self.rows)

    def reference_points(self) -> np.ndarray:
        """Row-major (col * square, row * square, 0) points, shape (rows * cols, 3)."""
        points = np.zeros((self.corner_count, 3), np.float32)
        points[:, :2] = np.mgrid[0 : self.cols, 0 : self.rows].T.reshape(-1, 2)
        points[:, :2] *= float(self.square_size)
        points.setflags(write=False)
        return points


@dataclass(frozen=True)
class CornerSet:
    points: np.ndarray
    image_size: Tuple[int, int]
    pattern: PatternSpec

    def __post_init__(self) -> None:
        points = np.asarray(self.points, dtype=np.float32).reshape(-1, 2)
        if points.shape[0] != self.pattern.corner_count:
            raise ValueError(
                f"Expected {self.pattern.corner_count} corners for a "
                f"{self.pattern.rows}x{self.pattern.cols} pattern, got {points.shape[0]}"
            )
        object.__setattr__(self, "points", _readonly(points))

    def __len__(self) -> int:
        return int(self.points.shape[0])


@dataclass(frozen=True)
class CalibrationSample:
    camera_id: str
    corners: CornerSet
    reference_points: np.ndarray

    @classmethod
    def from_corners(cls, camera_id: str, corners: CornerSet) -> "CalibrationSample":
        return cls(
            camera_id=camera_id,
            corners=corners,
            reference_points=corners.pattern.reference_points(),
        )

    @property
    def image_size(self) -> Tuple[int, int]:
        return self.corners.image_size


@dataclass(frozen=True)
class CameraIntrinsics:
    camera_id: str
    camera_matrix: np.ndarray
    distortion_coeffs: np.ndarray
    image_size: Tuple[int, int]
    reprojection_error_px: float = 0.0
    sample_count: int = 0
    per_sample_errors_px: Tuple[float, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        matrix = np.asarray(self.camera_matrix, dtype=np.float64)
        if matrix.shape != (3, 3):
            raise ValueError(f"camera_matrix must be 3x3, got {matrix.shape}")
        object.__setattr__(self, "camera_matrix", _readonly(matrix))
        dist = np.asarray(self.distortion_coeffs, dtype=np.float64).reshape(-1)
        object.__setattr__(self, "distortion_coeffs", _readonly(dist))
        object.__setattr__(self, "image_size", (int(self.image_size[0]), int(self.image_size[1])))

    @property
    def fx(self) -> float:
        return float(self.camera_matrix[0, 0])

    @property
    def fy(self) -> float:
        return float(self.camera_matrix[1, 1])

    @property
    def cx(self) -> float:
        return float(self.camera_matrix[0, 2])

    @property
    def cy(self) -> float:
        return float(self.camera_matrix[1, 2])

    @property
    def is_valid(self) -> bool:
        """Positive focal lengths and a principal point inside the image."""
        if not (np.all(np.isfinite(self.camera_matrix)) and np.all(np.isfinite(self.distortion_coeffs))):
            return False
        width, height = self.image_size
        return (
            self.fx > 0
            and self.fy > 0
            and 0.0 <= self.cx < width
            and 0.0 <= self.cy < height
        )

    def scaled_to(self, image_size: Tuple[int, int]) -> "CameraIntrinsics":
        """Rescale the matrix for frames captured at a different resolution."""
        if tuple(image_size) == self.image_size:
            return self
        sx = image_size[0] / self.image_size[0]
        sy = image_size[1] / self.image_size[1]
        matrix = np.array(self.camera_matrix, copy=True)
        matrix[0, :] *= sx
        matrix[1, :] *= sy
        return replace(self, camera_matrix=matrix, image_size=tuple(image_size))


@dataclass(frozen=True)
class FieldOfView:
    horizontal_deg: float
    vertical_deg: float

    def __post_init__(self) -> None:
        for name, value in (("horizontal_deg", self.horizontal_deg), ("vertical_deg", self.vertical_deg)):
            if not 0.0 < value < 180.0:
                raise ValueError(f"{name} must be in (0, 180) degrees, got {value}")

    @classmethod
    def from_sensor(
        cls,
        sensor_width_mm: float,
        sensor_height_mm: float,
        focal_length_mm: float,
    ) -> "FieldOfView":
        """Angular extent of a pinhole camera from its physical sensor and focal length."""
        if focal_length_mm <= 0:
            raise ValueError(f"focal_length_mm must be positive, got {focal_length_mm}")
        horizontal = math.degrees(2.0 * math.atan((sensor_width_mm / 2.0) / focal_length_mm))
        vertical = math.degrees(2.0 * math.atan((sensor_height_mm / 2.0) / focal_length_mm))
        return cls(horizontal_deg=horizontal, vertical_deg=vertical)


@dataclass(frozen=True)
class DisparityMap:
    values: np.ndarray
    min_disparity: int = 0
    num_disparities: int = 0

    def __post_init__(self) -> None:
        values = np.asarray(self.values)
        if values.ndim != 2:
            raise ValueError(f"Disparity map must be 2-D, got shape {values.shape}")
        object.__setattr__(self, "values", _readonly(values))

    @property
    def width(self) -> int:
        return int(self.values.shape[1])

    @property
    def height(self) -> int:
        return int(self.values.shape[0])

    def to_pixels(self) -> np.ndarray:
        """Disparity in pixels as float32."""
        return self.values.astype(np.float32) / DISPARITY_SCALE

    def invalid_mask(self) -> np.ndarray:
        """Pixels the matcher could not resolve (below the minimum disparity)."""
        return self.values < self.min_disparity * DISPARITY_SCALE


@dataclass(frozen=True)
class DetectionResult:
    found: bool
    corners: Optional[CornerSet] = None
