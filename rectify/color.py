"""Colour-space helpers shared by the detection and matching stages."""

from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np


def to_luminance(image: np.ndarray) -> np.ndarray:
    """Single-channel view of an image (BGR/BGRA channel order assumed)."""
    if image.ndim == 2:
        return image
    channels = image.shape[2]
    if channels == 1:
        return image[:, :, 0]
    if channels == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    raise ValueError(f"Unsupported channel count: {channels}")


def to_gray8(image: np.ndarray) -> np.ndarray:
    """Luminance scaled to uint8, as the corner finder, matcher and WLS guide require."""
    gray = to_luminance(image)
    if gray.dtype == np.uint8:
        return gray
    return cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX, cv2.CV_8U)


def to_gray8_pair(left: np.ndarray, right: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Luminance of a matching pair scaled to uint8 over their combined range.

    Equal input values map to equal output values in both frames.
    """
    left_gray = to_luminance(left)
    right_gray = to_luminance(right)
    if left_gray.dtype == np.uint8 and right_gray.dtype == np.uint8:
        return left_gray, right_gray

    low = min(float(left_gray.min()), float(right_gray.min()))
    high = max(float(left_gray.max()), float(right_gray.max()))
    scale = 255.0 / (high - low) if high > low else 0.0
    return (
        cv2.convertScaleAbs(left_gray, alpha=scale, beta=-low * scale),
        cv2.convertScaleAbs(right_gray, alpha=scale, beta=-low * scale),
    )
