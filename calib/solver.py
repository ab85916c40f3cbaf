"""Intrinsic calibration from accumulated checkerboard samples."""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import cv2
import numpy as np

from contracts import CalibrationSample, CameraIntrinsics
from exceptions import (
    DegenerateGeometryError,
    InsufficientSamplesError,
    NonConvergenceError,
    SampleMismatchError,
)
from log_config.logger import get_logger, log_performance

logger = get_logger(__name__)

# Quality thresholds
EXCELLENT_RMS = 0.5
GOOD_RMS = 1.0
ACCEPTABLE_RMS = 2.0
MIN_SAMPLES_GOOD = 10
MIN_SAMPLES_ACCEPTABLE = 5


@dataclass(frozen=True)
class SolverConfig:
    min_samples: int = 5
    max_iterations: int = 30
    epsilon: float = sys.float_info.epsilon
    max_reprojection_error_px: float = 1.0
    min_pose_conditioning: float = 1e-3
    flags: int = 0

    def __post_init__(self) -> None:
        if self.min_samples < 3:
            raise ValueError(f"min_samples must be at least 3, got {self.min_samples}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")


@dataclass(frozen=True)
class CalibrationQuality:
    rating: str
    description: str
    rms_error_px: float
    num_samples: int
    recommendations: List[str] = field(default_factory=list)


def rate_calibration_quality(rms_error: float, num_samples: int) -> CalibrationQuality:
    """Rate calibration quality and provide recommendations.

    Args:
        rms_error: Overall RMS reprojection error in pixels
        num_samples: Number of samples used for calibration

    Returns:
        CalibrationQuality with rating, description, and recommendations
    """
    recommendations = []

    if rms_error < EXCELLENT_RMS and num_samples >= MIN_SAMPLES_GOOD:
        rating = "EXCELLENT"
        description = "Outstanding calibration. Ready for disparity estimation."
    elif rms_error < GOOD_RMS and num_samples >= MIN_SAMPLES_GOOD:
        rating = "GOOD"
        description = "Good calibration. Suitable for most scenes."
    elif rms_error < ACCEPTABLE_RMS and num_samples >= MIN_SAMPLES_ACCEPTABLE:
        rating = "ACCEPTABLE"
        description = "Acceptable calibration. Consider recalibrating for better accuracy."
        recommendations.append("Capture more frames (aim for 10-20)")
        recommendations.append("Tilt the board in different directions between captures")
    else:
        rating = "POOR"
        description = "Poor calibration. Please recalibrate before computing disparity."

    if rms_error > GOOD_RMS:
        recommendations.extend([
            "Hold the checkerboard steady during capture",
            "Ensure the checkerboard is perfectly flat",
            "Check that the camera focus is sharp",
        ])

    if num_samples < MIN_SAMPLES_ACCEPTABLE:
        recommendations.append(f"Need at least {MIN_SAMPLES_ACCEPTABLE} frames (have {num_samples})")
    elif num_samples < MIN_SAMPLES_GOOD:
        recommendations.append(f"Capture {MIN_SAMPLES_GOOD - num_samples} more frames for better quality")

    return CalibrationQuality(
        rating=rating,
        description=description,
        rms_error_px=float(rms_error),
        num_samples=num_samples,
        recommendations=recommendations,
    )


def _constraint_row(h: np.ndarray, i: int, j: int) -> np.ndarray:
    hi, hj = h[:, i], h[:, j]
    return np.array([
        hi[0] * hj[0],
        hi[0] * hj[1] + hi[1] * hj[0],
        hi[1] * hj[1],
        hi[2] * hj[0] + hi[0] * hj[2],
        hi[2] * hj[1] + hi[1] * hj[2],
        hi[2] * hj[2],
    ])


def pose_conditioning(samples: Sequence[CalibrationSample]) -> float:
    """Relative fifth singular value of the closed-form intrinsic system.

    Each sample's plane homography contributes two linear constraints on the
    image of the absolute conic; the system needs rank five. Image points are
    normalised first so the ratio is independent of resolution. Values near
    zero mean the poses do not constrain the intrinsics.
    """
    width, height = samples[0].image_size
    scale = 2.0 / float(width + height)
    normalise = np.array([
        [scale, 0.0, -scale * width / 2.0],
        [0.0, scale, -scale * height / 2.0],
        [0.0, 0.0, 1.0],
    ])
    rows = []
    for sample in samples:
        plane = sample.reference_points[:, :2].astype(np.float64)
        image = sample.corners.points.astype(np.float64)
        homography, _ = cv2.findHomography(plane, image, 0)
        if homography is None:
            return 0.0
        homography = normalise @ homography
        homography /= np.linalg.norm(homography)
        rows.append(_constraint_row(homography, 0, 1))
        rows.append(_constraint_row(homography, 0, 0) - _constraint_row(homography, 1, 1))
    singular = np.linalg.svd(np.vstack(rows), compute_uv=False)
    if singular.size < 5 or singular[0] <= 0:
        return 0.0
    return float(singular[4] / singular[0])


def per_sample_errors(
    samples: Sequence[CalibrationSample],
    camera_matrix: np.ndarray,
    distortion: np.ndarray,
    rvecs: Sequence[np.ndarray],
    tvecs: Sequence[np.ndarray],
) -> Tuple[float, ...]:
    """RMS reprojection error in pixels for each sample."""
    errors = []
    for sample, rvec, tvec in zip(samples, rvecs, tvecs):
        projected, _ = cv2.projectPoints(
            sample.reference_points.astype(np.float32), rvec, tvec, camera_matrix, distortion
        )
        residual = sample.corners.points - projected.reshape(-1, 2)
        errors.append(float(np.sqrt(np.mean(np.sum(residual ** 2, axis=1)))))
    return tuple(errors)


class CalibrationSolver:
    """Fits a camera matrix and distortion coefficients to checkerboard samples.

    The solver is stateless apart from its configuration. Solving is
    CPU-bound and should run off any interactive thread.
    """

    def __init__(self, config: SolverConfig | None = None) -> None:
        self.config = config or SolverConfig()

    def solve(self, samples: Sequence[CalibrationSample]) -> CameraIntrinsics:
        """Calibrate one camera.

        Raises:
            InsufficientSamplesError: fewer than ``min_samples`` samples
            SampleMismatchError: samples from different cameras or setups
            DegenerateGeometryError: poses too similar to constrain the solve
            NonConvergenceError: optimizer failed or residual above tolerance
        """
        samples = list(samples)
        camera_id = samples[0].camera_id if samples else None
        if len(samples) < self.config.min_samples:
            logger.error(
                f"Calibration for {camera_id} needs {self.config.min_samples} samples, have {len(samples)}"
            )
            raise InsufficientSamplesError(
                f"Need at least {self.config.min_samples} samples, got {len(samples)}",
                camera_id=camera_id,
                required=self.config.min_samples,
                available=len(samples),
            )

        image_size = self._check_consistent(samples)

        conditioning = pose_conditioning(samples)
        logger.debug(f"Pose conditioning for {camera_id}: {conditioning:.3e}")
        if conditioning < self.config.min_pose_conditioning:
            logger.error(
                f"Calibration poses for {camera_id} are degenerate "
                f"(conditioning {conditioning:.3e} < {self.config.min_pose_conditioning:.3e})"
            )
            raise DegenerateGeometryError(
                "Calibration poses are not varied enough; tilt the board between captures",
                camera_id=camera_id,
                conditioning=conditioning,
            )

        object_points = [sample.reference_points.astype(np.float32) for sample in samples]
        image_points = [sample.corners.points.reshape(-1, 1, 2).astype(np.float32) for sample in samples]
        criteria = (
            cv2.TERM_CRITERIA_COUNT + cv2.TERM_CRITERIA_EPS,
            self.config.max_iterations,
            self.config.epsilon,
        )

        logger.info(f"Calibrating {camera_id} from {len(samples)} samples at {image_size[0]}x{image_size[1]}")
        start = time.perf_counter()
        try:
            rms, camera_matrix, distortion, rvecs, tvecs = cv2.calibrateCamera(
                object_points,
                image_points,
                image_size,
                None,
                None,
                flags=self.config.flags,
                criteria=criteria,
            )
        except cv2.error as e:
            logger.error(f"Calibration optimizer failed for {camera_id}: {e}")
            raise NonConvergenceError(f"Calibration optimizer failed: {e}", camera_id=camera_id) from e
        log_performance(f"calibrate {camera_id}", (time.perf_counter() - start) * 1000.0, threshold_ms=5000.0)

        if not np.isfinite(rms) or rms > self.config.max_reprojection_error_px:
            logger.error(
                f"Calibration for {camera_id} did not converge: RMS {rms:.3f}px "
                f"(tolerance {self.config.max_reprojection_error_px}px)"
            )
            raise NonConvergenceError(
                f"Reprojection error {rms:.3f}px exceeds tolerance {self.config.max_reprojection_error_px}px",
                camera_id=camera_id,
                reprojection_error_px=float(rms),
            )

        intrinsics = CameraIntrinsics(
            camera_id=camera_id,
            camera_matrix=camera_matrix,
            distortion_coeffs=distortion,
            image_size=image_size,
            reprojection_error_px=float(rms),
            sample_count=len(samples),
            per_sample_errors_px=per_sample_errors(samples, camera_matrix, distortion, rvecs, tvecs),
        )
        if not intrinsics.is_valid:
            logger.error(f"Calibration for {camera_id} produced a malformed camera matrix:\n{camera_matrix}")
            raise NonConvergenceError(
                "Calibration produced a camera matrix with non-positive focal length "
                "or a principal point outside the image",
                camera_id=camera_id,
                reprojection_error_px=float(rms),
            )

        quality = rate_calibration_quality(intrinsics.reprojection_error_px, intrinsics.sample_count)
        logger.info(
            f"Calibrated {camera_id}: fx={intrinsics.fx:.1f} fy={intrinsics.fy:.1f} "
            f"cx={intrinsics.cx:.1f} cy={intrinsics.cy:.1f} RMS={rms:.3f}px ({quality.rating})"
        )
        return intrinsics

    def solve_pair(
        self,
        primary: Sequence[CalibrationSample],
        secondary: Sequence[CalibrationSample],
    ) -> Tuple[CameraIntrinsics, CameraIntrinsics]:
        """Calibrate both cameras of the rig, primary first."""
        return self.solve(primary), self.solve(secondary)

    @staticmethod
    def _check_consistent(samples: List[CalibrationSample]) -> Tuple[int, int]:
        first = samples[0]
        for sample in samples[1:]:
            if sample.camera_id != first.camera_id:
                raise SampleMismatchError(
                    f"Samples mix cameras {first.camera_id!r} and {sample.camera_id!r}",
                    camera_id=first.camera_id,
                )
            if sample.image_size != first.image_size:
                raise SampleMismatchError(
                    f"Samples mix image sizes {first.image_size} and {sample.image_size}",
                    camera_id=first.camera_id,
                )
            if sample.corners.pattern.opencv_size != first.corners.pattern.opencv_size:
                raise SampleMismatchError("Samples mix checkerboard patterns", camera_id=first.camera_id)
        return first.image_size
