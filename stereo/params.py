"""Semi-global block matching parameters."""

from __future__ import annotations

from dataclasses import dataclass, replace

import cv2

SGBM_MODES = {
    "sgbm": cv2.STEREO_SGBM_MODE_SGBM,
    "hh": cv2.STEREO_SGBM_MODE_HH,
    "sgbm_3way": cv2.STEREO_SGBM_MODE_SGBM_3WAY,
    "hh4": cv2.STEREO_SGBM_MODE_HH4,
}


@dataclass(frozen=True)
class StereoParameters:
    """Matcher settings shared by every disparity computation of a session.

    P1 and P2 are derived from the block size: P1 penalises disparity steps
    of one pixel between neighbours, P2 larger steps.
    """

    min_disparity: int = 0
    num_disparities: int = 16 * 2
    block_size: int = 5
    disp12_max_diff: int = 5
    uniqueness_ratio: int = 3
    speckle_window_size: int = 5
    speckle_range: int = 5
    pre_filter_cap: int = 63
    mode: str = "sgbm_3way"

    def __post_init__(self) -> None:
        if self.num_disparities <= 0 or self.num_disparities % 16 != 0:
            raise ValueError(f"num_disparities must be a positive multiple of 16, got {self.num_disparities}")
        if self.block_size < 1 or self.block_size % 2 == 0:
            raise ValueError(f"block_size must be odd and positive, got {self.block_size}")
        if self.mode not in SGBM_MODES:
            raise ValueError(f"Unknown SGBM mode {self.mode!r}; expected one of {sorted(SGBM_MODES)}")

    @property
    def p1(self) -> int:
        return 8 * 3 * self.block_size ** 2

    @property
    def p2(self) -> int:
        return 32 * 3 * self.block_size ** 2

    def with_overrides(self, **changes) -> "StereoParameters":
        return replace(self, **changes)

    def create_matcher(self) -> cv2.StereoSGBM:
        return cv2.StereoSGBM_create(
            minDisparity=self.min_disparity,
            numDisparities=self.num_disparities,
            blockSize=self.block_size,
            P1=self.p1,
            P2=self.p2,
            disp12MaxDiff=self.disp12_max_diff,
            preFilterCap=self.pre_filter_cap,
            uniquenessRatio=self.uniqueness_ratio,
            speckleWindowSize=self.speckle_window_size,
            speckleRange=self.speckle_range,
            mode=SGBM_MODES[self.mode],
        )
