"""Edge-aware disparity smoothing and false-colour visualisation."""

from __future__ import annotations

import time
from dataclasses import dataclass

import cv2
import numpy as np

from contracts import DisparityMap, Frame
from exceptions import DimensionMismatchError
from log_config.logger import get_logger, log_performance
from rectify.color import to_gray8

logger = get_logger(__name__)

COLORMAPS = {
    "jet": cv2.COLORMAP_JET,
    "turbo": cv2.COLORMAP_TURBO,
    "magma": cv2.COLORMAP_MAGMA,
    "inferno": cv2.COLORMAP_INFERNO,
    "viridis": cv2.COLORMAP_VIRIDIS,
    "bone": cv2.COLORMAP_BONE,
}


@dataclass(frozen=True)
class WlsFilterConfig:
    lambda_: float = 8000.0
    sigma_color: float = 1.5

    def __post_init__(self) -> None:
        if self.lambda_ < 0 or self.sigma_color <= 0:
            raise ValueError("WLS lambda must be non-negative and sigma_color positive")


@dataclass(frozen=True)
class ColormapConfig:
    name: str = "jet"

    def __post_init__(self) -> None:
        if self.name not in COLORMAPS:
            raise ValueError(f"Unknown colormap {self.name!r}; expected one of {sorted(COLORMAPS)}")

    @property
    def cv_code(self) -> int:
        return COLORMAPS[self.name]


def normalize_disparity(values: np.ndarray) -> np.ndarray:
    """Min-max scale to uint8 so the smallest value maps to 0 and the largest to 255.

    A constant map has no range to stretch and comes back as all zeros.
    """
    values = values.astype(np.float32)
    low = float(values.min())
    high = float(values.max())
    if high - low <= 0.0:
        return np.zeros(values.shape, dtype=np.uint8)
    scaled = (values - low) * (255.0 / (high - low))
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)


class DisparityPostFilter:
    def __init__(
        self,
        wls: WlsFilterConfig | None = None,
        colormap: ColormapConfig | None = None,
    ) -> None:
        self.wls = wls or WlsFilterConfig()
        self.colormap = colormap or ColormapConfig()

    def filter(self, disparity: DisparityMap, guide: Frame) -> DisparityMap:
        """WLS-smooth the disparity, preserving edges of the guide's luminance."""
        if (guide.width, guide.height) != (disparity.width, disparity.height):
            raise DimensionMismatchError(
                f"Guide frame is {guide.width}x{guide.height} but disparity is "
                f"{disparity.width}x{disparity.height}",
                left_shape=tuple(disparity.values.shape),
                right_shape=tuple(guide.image.shape),
            )
        wls = cv2.ximgproc.createDisparityWLSFilterGeneric(False)
        wls.setLambda(self.wls.lambda_)
        wls.setSigmaColor(self.wls.sigma_color)

        start = time.perf_counter()
        source = np.array(disparity.values, dtype=np.int16, copy=True)
        filtered = wls.filter(source, to_gray8(guide.image))
        log_performance("WLS filter", (time.perf_counter() - start) * 1000.0)

        return DisparityMap(
            values=filtered,
            min_disparity=disparity.min_disparity,
            num_disparities=disparity.num_disparities,
        )

    def colorize(self, gray8: np.ndarray) -> np.ndarray:
        return cv2.applyColorMap(gray8, self.colormap.cv_code)

    def visualize(self, disparity: DisparityMap, template: Frame | None = None) -> Frame:
        """Normalise and colour a disparity map without smoothing it."""
        colored = self.colorize(normalize_disparity(disparity.values))
        if template is not None:
            return template.derive(colored)
        return Frame.from_image(colored, camera_id="disparity")

    def filter_and_visualize(self, disparity: DisparityMap, guide_frame: Frame) -> Frame:
        """WLS filter guided by ``guide_frame`` then render as a BGR colour frame."""
        filtered = self.filter(disparity, guide_frame)
        return self.visualize(filtered, template=guide_frame)
