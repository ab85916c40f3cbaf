"""Nominal camera geometry from physical sensor metadata."""

from __future__ import annotations

from typing import Tuple

import numpy as np

from contracts import CameraIntrinsics, FieldOfView


def field_of_view(sensor_size_mm: Tuple[float, float], focal_length_mm: float) -> FieldOfView:
    """Horizontal and vertical field of view of a pinhole camera."""
    return FieldOfView.from_sensor(sensor_size_mm[0], sensor_size_mm[1], focal_length_mm)


def nominal_intrinsics(
    camera_id: str,
    sensor_size_mm: Tuple[float, float],
    pixel_array_size: Tuple[int, int],
    focal_length_mm: float,
) -> CameraIntrinsics:
    """Pinhole intrinsics implied by the sensor datasheet, with zero distortion.

    Useful as a starting point before a checkerboard calibration exists. The
    principal point is assumed to sit at the centre of the pixel array.
    """
    width_px, height_px = pixel_array_size
    sensor_w, sensor_h = sensor_size_mm
    if sensor_w <= 0 or sensor_h <= 0 or focal_length_mm <= 0:
        raise ValueError("Sensor size and focal length must be positive")
    fx = focal_length_mm * (width_px / sensor_w)
    fy = focal_length_mm * (height_px / sensor_h)
    matrix = np.array([
        [fx, 0.0, width_px / 2.0],
        [0.0, fy, height_px / 2.0],
        [0.0, 0.0, 1.0],
    ])
    return CameraIntrinsics(
        camera_id=camera_id,
        camera_matrix=matrix,
        distortion_coeffs=np.zeros(5),
        image_size=(width_px, height_px),
    )
