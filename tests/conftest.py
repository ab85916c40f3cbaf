"""Synthetic scenes shared by the test suite."""

from __future__ import annotations

from typing import List, Sequence, Tuple

import cv2
import numpy as np
import pytest

from configs.settings import DEFAULT_CONFIG_PATH, AppConfig, load_config
from contracts import CalibrationSample, CornerSet, Frame, PatternSpec

IMAGE_SIZE = (640, 480)
TRUE_MATRIX = np.array([
    [800.0, 0.0, 320.0],
    [0.0, 780.0, 240.0],
    [0.0, 0.0, 1.0],
])
ROTATIONS = [
    (0.30, 0.00, 0.00),
    (-0.30, 0.00, 0.00),
    (0.00, 0.30, 0.00),
    (0.00, -0.30, 0.00),
    (0.20, 0.20, 0.10),
    (-0.20, 0.25, -0.10),
    (0.25, -0.20, 0.05),
    (-0.15, -0.30, 0.00),
]


def render_checkerboard(
    pattern: PatternSpec,
    square_px: int = 40,
    margin_px: int = 60,
) -> Tuple[np.ndarray, np.ndarray]:
    """Flat checkerboard in BGR plus its interior corners in row-major order."""
    squares_y, squares_x = pattern.rows + 1, pattern.cols + 1
    height = 2 * margin_px + squares_y * square_px
    width = 2 * margin_px + squares_x * square_px
    gray = np.full((height, width), 255, np.uint8)
    for r in range(squares_y):
        for c in range(squares_x):
            if (r + c) % 2 == 0:
                y0 = margin_px + r * square_px
                x0 = margin_px + c * square_px
                gray[y0 : y0 + square_px, x0 : x0 + square_px] = 0
    gray = cv2.GaussianBlur(gray, (3, 3), 0)

    # Square edges fall between pixels, i.e. half a pixel before the index.
    corners = np.array(
        [
            (margin_px + (c + 1) * square_px - 0.5, margin_px + (r + 1) * square_px - 0.5)
            for r in range(pattern.rows)
            for c in range(pattern.cols)
        ],
        dtype=np.float32,
    )
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR), corners


def project_samples(
    camera_id: str,
    pattern: PatternSpec,
    rotations: Sequence[Tuple[float, float, float]] = ROTATIONS,
    camera_matrix: np.ndarray = TRUE_MATRIX,
    image_size: Tuple[int, int] = IMAGE_SIZE,
    depth: float = 20.0,
    noise_px: float = 0.0,
    seed: int = 7,
) -> List[CalibrationSample]:
    """Project the board through a known pinhole camera from several poses."""
    rng = np.random.default_rng(seed)
    object_points = pattern.reference_points().astype(np.float64)
    center = object_points.mean(axis=0)
    samples = []
    for rotation in rotations:
        rvec = np.array(rotation, dtype=np.float64)
        rmat, _ = cv2.Rodrigues(rvec)
        tvec = np.array([0.0, 0.0, depth]) - rmat @ center
        projected, _ = cv2.projectPoints(object_points, rvec, tvec, camera_matrix, np.zeros(5))
        points = projected.reshape(-1, 2)
        if noise_px:
            points = points + rng.normal(0.0, noise_px, points.shape)
        corners = CornerSet(points=points, image_size=image_size, pattern=pattern)
        samples.append(CalibrationSample.from_corners(camera_id, corners))
    return samples


def render_board_view(
    pattern: PatternSpec,
    rotation: Tuple[float, float, float],
    depth: float = 20.0,
) -> np.ndarray:
    """Flat checkerboard warped to how TRUE_MATRIX would see it from one pose."""
    flat, flat_corners = render_checkerboard(pattern)
    sample = project_samples("wide", pattern, rotations=[rotation], depth=depth)[0]
    homography, _ = cv2.findHomography(flat_corners, sample.corners.points.astype(np.float32))
    return cv2.warpPerspective(flat, homography, IMAGE_SIZE, borderValue=(255, 255, 255))


def textured_image(height: int = 120, width: int = 160, seed: int = 3) -> np.ndarray:
    rng = np.random.default_rng(seed)
    noise = rng.integers(0, 256, size=(height, width), dtype=np.uint8)
    return cv2.GaussianBlur(noise, (3, 3), 0)


@pytest.fixture
def pattern() -> PatternSpec:
    return PatternSpec(rows=6, cols=9, square_size=1.0)


@pytest.fixture
def board_frame(pattern: PatternSpec) -> Tuple[Frame, np.ndarray]:
    image, corners = render_checkerboard(pattern)
    return Frame.from_image(image, camera_id="wide", frame_index=1), corners


@pytest.fixture
def app_config() -> AppConfig:
    return load_config(DEFAULT_CONFIG_PATH)
