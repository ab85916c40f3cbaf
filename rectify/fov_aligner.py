"""Match the secondary camera's field of view to the primary camera's."""

from __future__ import annotations

from typing import Tuple

import cv2

from contracts import FieldOfView, Frame
from log_config.logger import get_logger

logger = get_logger(__name__)


def scale_factors(primary_fov: FieldOfView, secondary_fov: FieldOfView) -> Tuple[float, float]:
    """Per-axis ratio of the primary to the secondary field of view."""
    return (
        primary_fov.horizontal_deg / secondary_fov.horizontal_deg,
        primary_fov.vertical_deg / secondary_fov.vertical_deg,
    )


def resized_size(
    size: Tuple[int, int],
    primary_fov: FieldOfView,
    secondary_fov: FieldOfView,
) -> Tuple[int, int]:
    """Grow ``size`` by ``size * factor`` along each axis.

    The frame grows by the scaled amount rather than being multiplied by the
    ratio, so equal fields of view double the size before cropping.
    """
    sx, sy = scale_factors(primary_fov, secondary_fov)
    width, height = size
    return width + int(width * sx), height + int(height * sy)


def center_crop_box(
    size: Tuple[int, int],
    target: Tuple[int, int],
) -> Tuple[int, int, int, int]:
    """Centred (x, y, width, height) crop of ``target`` inside ``size``, clamped to bounds."""
    width, height = size
    target_w, target_h = target
    x = max(0, (width - target_w) // 2)
    y = max(0, (height - target_h) // 2)
    return x, y, min(target_w, width - x), min(target_h, height - y)


class FieldOfViewAligner:
    """Resizes then centre-crops a frame so it covers the primary camera's view."""

    def __init__(self, interpolation: int = cv2.INTER_LINEAR) -> None:
        self.interpolation = interpolation

    def align(
        self,
        secondary_frame: Frame,
        primary_size: Tuple[int, int],
        primary_fov: FieldOfView,
        secondary_fov: FieldOfView,
    ) -> Frame:
        """Return the secondary frame rescaled and cropped to ``primary_size`` (width, height).

        If the rescaled frame is smaller than the target along an axis, the
        crop is clamped to the rescaled bounds and the result is smaller than
        ``primary_size`` on that axis.
        """
        new_size = resized_size(secondary_frame.size, primary_fov, secondary_fov)
        resized = cv2.resize(secondary_frame.image, new_size, interpolation=self.interpolation)
        x, y, w, h = center_crop_box(new_size, primary_size)
        if (w, h) != tuple(primary_size):
            logger.warning(
                f"Aligned frame clipped to {w}x{h}; resized {new_size[0]}x{new_size[1]} "
                f"is smaller than target {primary_size[0]}x{primary_size[1]}"
            )
        return secondary_frame.derive(resized[y : y + h, x : x + w])
