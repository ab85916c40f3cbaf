"""Tests for per-camera sample accumulation."""

from __future__ import annotations

import threading

import numpy as np
import pytest

from calib.accumulator import CalibrationAccumulator
from calib.pattern import PatternDetector
from contracts import Frame, PatternSpec
from exceptions import SampleMismatchError
from tests.conftest import project_samples


def test_drain_returns_samples_in_arrival_order(pattern: PatternSpec) -> None:
    samples = project_samples("wide", pattern)
    accumulator = CalibrationAccumulator("wide")

    for sample in samples:
        accumulator.accept(sample)

    assert accumulator.count() == len(samples)
    drained = accumulator.drain()
    assert [id(s) for s in drained] == [id(s) for s in samples]


def test_drain_resets_to_empty(pattern: PatternSpec) -> None:
    accumulator = CalibrationAccumulator("wide")
    for sample in project_samples("wide", pattern)[:3]:
        accumulator.accept(sample)

    accumulator.drain()

    assert len(accumulator) == 0
    assert accumulator.drain() == []


def test_sample_from_other_camera_is_rejected(pattern: PatternSpec) -> None:
    accumulator = CalibrationAccumulator("wide")
    sample = project_samples("ultra_wide", pattern)[0]

    with pytest.raises(SampleMismatchError):
        accumulator.accept(sample)
    assert accumulator.count() == 0


def test_accept_frame_keeps_detected_board(board_frame, pattern: PatternSpec) -> None:
    frame, _ = board_frame
    accumulator = CalibrationAccumulator("wide")

    assert accumulator.accept_frame(PatternDetector(pattern), frame) is True

    (sample,) = accumulator.drain()
    assert sample.camera_id == "wide"
    assert sample.reference_points.shape == (pattern.corner_count, 3)


def test_accept_frame_skips_frames_without_board(pattern: PatternSpec) -> None:
    accumulator = CalibrationAccumulator("wide")
    blank = Frame.from_image(np.zeros((240, 320), np.uint8), camera_id="wide")

    assert accumulator.accept_frame(PatternDetector(pattern), blank) is False
    assert accumulator.count() == 0


def test_concurrent_accepts_are_all_kept(pattern: PatternSpec) -> None:
    accumulator = CalibrationAccumulator("wide")
    samples = project_samples("wide", pattern)

    def worker() -> None:
        for sample in samples:
            accumulator.accept(sample)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert accumulator.count() == 4 * len(samples)
