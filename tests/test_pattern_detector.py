"""Tests for checkerboard detection and sub-pixel refinement."""

from __future__ import annotations

import numpy as np
import pytest

from calib.pattern import PatternDetector, detect_pattern, require_corners
from contracts import DetectionResult, Frame, PatternSpec
from exceptions import PatternNotFoundError


def _max_nearest_distance(a: np.ndarray, b: np.ndarray) -> float:
    distances = np.linalg.norm(a[:, None, :] - b[None, :, :], axis=2)
    return float(max(distances.min(axis=1).max(), distances.min(axis=0).max()))


def test_uniform_image_has_no_pattern(pattern: PatternSpec) -> None:
    frame = Frame.from_image(np.full((480, 640), 128, np.uint8), camera_id="wide")

    result = PatternDetector(pattern).detect(frame)

    assert result.found is False
    assert result.corners is None


def test_noise_image_has_no_pattern(pattern: PatternSpec) -> None:
    rng = np.random.default_rng(11)
    noise = rng.integers(0, 256, size=(480, 640, 3), dtype=np.uint8)

    result = PatternDetector(pattern).detect(Frame.from_image(noise, camera_id="wide"))

    assert result.found is False


def test_detects_all_corners_to_subpixel_accuracy(board_frame, pattern: PatternSpec) -> None:
    """Every detected corner lies within half a pixel of a true corner."""
    frame, truth = board_frame

    result = PatternDetector(pattern).detect(frame)

    assert result.found
    corners = result.corners
    assert len(corners) == pattern.corner_count
    assert corners.image_size == (frame.width, frame.height)
    assert corners.pattern == pattern
    assert _max_nearest_distance(corners.points, truth) < 0.5


def test_detection_with_contrast_enhancement(board_frame, pattern: PatternSpec) -> None:
    frame, truth = board_frame

    result = PatternDetector(pattern, enhance=True).detect(frame)

    assert result.found
    assert _max_nearest_distance(result.corners.points, truth) < 0.5


def test_partially_hidden_board_is_not_found(board_frame, pattern: PatternSpec) -> None:
    frame, _ = board_frame
    image = np.array(frame.image, copy=True)
    image[:, image.shape[1] // 2 :] = 255

    result = PatternDetector(pattern).detect(frame.derive(image))

    assert result.found is False


def test_grayscale_input_is_accepted(board_frame, pattern: PatternSpec) -> None:
    frame, _ = board_frame
    gray = frame.derive(frame.image[:, :, 0])

    assert PatternDetector(pattern).detect(gray).found


def test_detect_pattern_functional_form(board_frame) -> None:
    frame, _ = board_frame

    found, corners = detect_pattern(frame, 6, 9)

    assert found
    assert corners is not None and len(corners) == 54


def test_detection_does_not_modify_frame(board_frame, pattern: PatternSpec) -> None:
    frame, _ = board_frame
    before = frame.image.copy()

    PatternDetector(pattern, enhance=True).detect(frame)

    assert np.array_equal(frame.image, before)


def test_require_corners_raises_when_missing() -> None:
    with pytest.raises(PatternNotFoundError) as exc_info:
        require_corners(DetectionResult(found=False), camera_id="wide")

    assert exc_info.value.camera_id == "wide"


def test_draw_corners_returns_colour_overlay(board_frame, pattern: PatternSpec) -> None:
    frame, _ = board_frame
    detector = PatternDetector(pattern)
    result = detector.detect(frame)

    overlay = detector.draw_corners(frame, result)

    assert overlay.image.shape == frame.image.shape
    assert overlay.camera_id == frame.camera_id
    assert not np.array_equal(overlay.image, frame.image)


def test_draw_corners_without_detection_keeps_pixels(board_frame, pattern: PatternSpec) -> None:
    frame, _ = board_frame

    overlay = PatternDetector(pattern).draw_corners(frame, DetectionResult(found=False))

    assert np.array_equal(overlay.image, frame.image)
