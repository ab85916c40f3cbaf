"""Tests for SGBM disparity computation."""

from __future__ import annotations

from unittest.mock import Mock

import cv2
import numpy as np
import pytest

from contracts import DISPARITY_SCALE, Frame
from exceptions import DimensionMismatchError
from stereo.disparity import DisparityEngine
from stereo.params import StereoParameters
from tests.conftest import textured_image


def _valid_region(values: np.ndarray, params: StereoParameters) -> np.ndarray:
    # The leftmost num_disparities columns have no full search range.
    region = values[:, params.num_disparities + params.block_size :]
    return region[region >= params.min_disparity * DISPARITY_SCALE]


def test_identical_frames_have_zero_disparity() -> None:
    image = textured_image()
    left = Frame.from_image(image, camera_id="wide")
    right = Frame.from_image(image, camera_id="ultra_wide")
    engine = DisparityEngine()

    disparity = engine.compute(left, right)

    assert disparity.values.shape == image.shape
    assert disparity.values.dtype == np.int16
    valid = _valid_region(disparity.values, engine.params)
    assert valid.size > 0.5 * image.shape[0] * (image.shape[1] - 40)
    assert np.median(valid) == 0
    assert np.mean(np.abs(valid) <= DISPARITY_SCALE) > 0.95


def test_horizontal_shift_is_recovered() -> None:
    base = textured_image(120, 216, seed=9)
    left = Frame.from_image(base[:, 0:200], camera_id="wide")
    right = Frame.from_image(base[:, 8:208], camera_id="ultra_wide")
    engine = DisparityEngine()

    disparity = engine.compute(left, right)

    valid = _valid_region(disparity.values, engine.params)
    assert abs(float(np.median(valid)) - 8 * DISPARITY_SCALE) <= DISPARITY_SCALE / 2
    pixels = disparity.to_pixels()
    assert pixels.dtype == np.float32


def test_colour_frames_are_matched_on_luminance() -> None:
    image = cv2.cvtColor(textured_image(), cv2.COLOR_GRAY2BGR)
    frame = Frame.from_image(image)

    disparity = DisparityEngine().compute(frame, frame)

    assert disparity.values.shape == image.shape[:2]


def test_deep_frames_share_one_grey_scale() -> None:
    engine = DisparityEngine()
    engine._matcher = Mock()
    engine._matcher.compute.return_value = np.zeros((120, 160), np.int16)
    base = textured_image().astype(np.uint16) * 64 + 1000
    brighter = base.copy()
    brighter[0, 0] = 60000

    engine.compute(Frame.from_image(base), Frame.from_image(brighter))

    left_gray, right_gray = engine._matcher.compute.call_args.args
    assert left_gray.dtype == np.uint8
    assert right_gray.dtype == np.uint8
    assert right_gray[0, 0] == 255
    np.testing.assert_array_equal(left_gray[1:], right_gray[1:])
    np.testing.assert_array_equal(left_gray[0, 1:], right_gray[0, 1:])


def test_size_mismatch_fails_before_matching() -> None:
    engine = DisparityEngine()
    engine._matcher = Mock()
    left = Frame.from_image(textured_image(120, 160))
    right = Frame.from_image(textured_image(120, 150))

    with pytest.raises(DimensionMismatchError) as exc_info:
        engine.compute(left, right)

    engine._matcher.compute.assert_not_called()
    assert exc_info.value.left_shape == (120, 160)
    assert exc_info.value.right_shape == (120, 150)


def test_disparity_map_records_search_range() -> None:
    params = StereoParameters(num_disparities=48)
    image = Frame.from_image(textured_image())

    disparity = DisparityEngine(params).compute(image, image)

    assert disparity.min_disparity == 0
    assert disparity.num_disparities == 48


def test_default_parameters() -> None:
    params = StereoParameters()

    assert params.num_disparities == 32
    assert params.block_size == 5
    assert params.p1 == 8 * 3 * 25
    assert params.p2 == 32 * 3 * 25
    assert params.uniqueness_ratio == 3
    assert params.pre_filter_cap == 63
    assert params.mode == "sgbm_3way"


@pytest.mark.parametrize(
    "changes",
    [
        {"num_disparities": 20},
        {"num_disparities": 0},
        {"block_size": 4},
        {"mode": "fast"},
    ],
)
def test_invalid_parameters_are_rejected(changes) -> None:
    with pytest.raises(ValueError):
        StereoParameters(**changes)


def test_with_overrides_rederives_penalties() -> None:
    params = StereoParameters().with_overrides(block_size=7)

    assert params.p1 == 8 * 3 * 49
    assert params.p2 == 32 * 3 * 49
