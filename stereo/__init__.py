"""Stereo module."""

from .disparity import DisparityEngine
from .params import StereoParameters
from .post_filter import ColormapConfig, DisparityPostFilter, WlsFilterConfig

__all__ = [
    "ColormapConfig",
    "DisparityEngine",
    "DisparityPostFilter",
    "StereoParameters",
    "WlsFilterConfig",
]
