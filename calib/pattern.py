"""Checkerboard corner detection with sub-pixel refinement."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np

from contracts import CornerSet, DetectionResult, Frame, PatternSpec
from exceptions import PatternNotFoundError
from log_config.logger import get_logger
from rectify.color import to_gray8

logger = get_logger(__name__)

FIND_FLAGS = cv2.CALIB_CB_ADAPTIVE_THRESH + cv2.CALIB_CB_NORMALIZE_IMAGE


@dataclass(frozen=True)
class SubPixCriteria:
    """Termination for corner refinement; whichever limit is hit first stops it."""

    window: Tuple[int, int] = (11, 11)
    max_iterations: int = 30
    epsilon: float = 0.1

    def as_term_criteria(self) -> Tuple[int, int, float]:
        return (
            cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER,
            self.max_iterations,
            self.epsilon,
        )


def enhance_for_detection(gray: np.ndarray) -> np.ndarray:
    """Unsharp mask followed by histogram equalisation."""
    blurred = cv2.GaussianBlur(gray, (0, 0), 3.0)
    sharpened = cv2.addWeighted(gray, 1.5, blurred, -0.5, 0.0)
    return cv2.equalizeHist(sharpened)


class PatternDetector:
    """Locates the interior corners of a checkerboard in single frames.

    Detection is a pure function of the frame; the detector only holds its
    configuration and may be shared between cameras.
    """

    def __init__(
        self,
        pattern: PatternSpec | None = None,
        criteria: SubPixCriteria | None = None,
        enhance: bool = False,
    ) -> None:
        self.pattern = pattern or PatternSpec()
        self.criteria = criteria or SubPixCriteria()
        self.enhance = enhance

    def detect(self, frame: Frame) -> DetectionResult:
        """Find and refine pattern corners.

        Returns ``DetectionResult(found=False)`` when the full pattern is not
        visible; that is the expected outcome for most frames, not an error.
        """
        gray = to_gray8(frame.image)
        if self.enhance:
            gray = enhance_for_detection(gray)

        found, corners = cv2.findChessboardCorners(gray, self.pattern.opencv_size, flags=FIND_FLAGS)
        if not found or corners is None:
            logger.debug(f"No {self.pattern.rows}x{self.pattern.cols} pattern in frame {frame.frame_index} ({frame.camera_id})")
            return DetectionResult(found=False)

        refined = cv2.cornerSubPix(
            gray,
            corners.astype(np.float32),
            winSize=self.criteria.window,
            zeroZone=(-1, -1),
            criteria=self.criteria.as_term_criteria(),
        )
        corner_set = CornerSet(points=refined.reshape(-1, 2), image_size=frame.size, pattern=self.pattern)
        logger.debug(f"Pattern found in frame {frame.frame_index} ({frame.camera_id}): {len(corner_set)} corners")
        return DetectionResult(found=True, corners=corner_set)

    def draw_corners(self, frame: Frame, result: DetectionResult) -> Frame:
        """Overlay detected corners on a colour copy of the frame for preview."""
        image = frame.image
        if image.ndim == 2 or image.shape[2] == 1:
            canvas = cv2.cvtColor(to_gray8(image), cv2.COLOR_GRAY2BGR)
        else:
            canvas = np.array(image[:, :, :3], copy=True)
        if result.found and result.corners is not None:
            cv2.drawChessboardCorners(
                canvas,
                self.pattern.opencv_size,
                result.corners.points.reshape(-1, 1, 2),
                True,
            )
        return frame.derive(canvas)


def require_corners(result: DetectionResult, camera_id: str | None = None) -> CornerSet:
    """Return the corners of a successful detection or raise PatternNotFoundError."""
    if not result.found or result.corners is None:
        raise PatternNotFoundError("Checkerboard pattern not found in frame", camera_id=camera_id)
    return result.corners


def detect_pattern(frame: Frame, pattern_rows: int, pattern_cols: int) -> Tuple[bool, CornerSet | None]:
    """Functional form: ``(found, corners)`` for a rows x cols interior-corner board."""
    result = PatternDetector(PatternSpec(rows=pattern_rows, cols=pattern_cols)).detect(frame)
    return result.found, result.corners
