"""Dense disparity between two field-of-view aligned frames."""

from __future__ import annotations

import time

import numpy as np

from contracts import DisparityMap, Frame
from exceptions import DimensionMismatchError
from log_config.logger import get_logger, log_performance
from rectify.color import to_gray8_pair
from stereo.params import StereoParameters

logger = get_logger(__name__)


class DisparityEngine:
    """Semi-global block matcher built once from a fixed parameter set.

    The underlying OpenCV matcher keeps scratch buffers, so an engine must
    not be shared between threads that compute concurrently.
    """

    def __init__(self, params: StereoParameters | None = None) -> None:
        self.params = params or StereoParameters()
        self._matcher = self.params.create_matcher()

    def compute(self, left: Frame, right: Frame) -> DisparityMap:
        """Disparity of ``left`` relative to ``right`` as 16x fixed point.

        Raises:
            DimensionMismatchError: the frames differ in width or height
        """
        if left.size != right.size:
            logger.error(f"Disparity inputs differ in size: left {left.size}, right {right.size}")
            raise DimensionMismatchError(
                f"Left frame is {left.width}x{left.height} but right frame is {right.width}x{right.height}",
                left_shape=tuple(left.image.shape),
                right_shape=tuple(right.image.shape),
            )

        left_gray, right_gray = to_gray8_pair(left.image, right.image)

        start = time.perf_counter()
        values = self._matcher.compute(left_gray, right_gray)
        log_performance("SGBM disparity", (time.perf_counter() - start) * 1000.0)

        return DisparityMap(
            values=values.astype(np.int16, copy=False),
            min_disparity=self.params.min_disparity,
            num_disparities=self.params.num_disparities,
        )
