"""Rectification interface and per-camera lens correction."""

from __future__ import annotations

from abc import ABC, abstractmethod

import cv2

from contracts import CameraIntrinsics, Frame
from exceptions import InvalidIntrinsicsError
from log_config.logger import get_logger

logger = get_logger(__name__)


class Rectifier(ABC):
    @abstractmethod
    def rectify(self, frame: Frame) -> Frame:
        """Rectify an input frame."""


class Undistorter(Rectifier):
    """Removes lens distortion using a camera's calibrated intrinsics."""

    def __init__(self, intrinsics: CameraIntrinsics) -> None:
        if not intrinsics.is_valid:
            raise InvalidIntrinsicsError(
                f"Intrinsics for {intrinsics.camera_id} are not well-formed and cannot be used for undistortion",
                camera_id=intrinsics.camera_id,
            )
        self.intrinsics = intrinsics

    def rectify(self, frame: Frame) -> Frame:
        intrinsics = self.intrinsics
        if frame.size != intrinsics.image_size:
            logger.debug(
                f"Scaling {intrinsics.camera_id} intrinsics from {intrinsics.image_size} to {frame.size}"
            )
            intrinsics = intrinsics.scaled_to(frame.size)
        corrected = cv2.undistort(frame.image, intrinsics.camera_matrix, intrinsics.distortion_coeffs)
        return frame.derive(corrected)
