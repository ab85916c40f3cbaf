"""Calibrate one camera's intrinsics from checkerboard images."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import List, Tuple

import cv2

from calib.accumulator import CalibrationAccumulator
from calib.intrinsics_io import load_intrinsics, save_intrinsics
from calib.pattern import PatternDetector
from calib.solver import CalibrationSolver, rate_calibration_quality
from configs.settings import DEFAULT_CONFIG_PATH, AppConfig, load_config
from contracts import CameraIntrinsics, Frame, PatternSpec
from log_config.logger import get_logger

logger = get_logger(__name__)


def pattern_size(text: str) -> Tuple[int, int]:
    """Parse ROWSxCOLS interior corner counts."""
    parts = text.lower().split("x")
    try:
        rows, cols = (int(part) for part in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected ROWSxCOLS (e.g. 6x9), got {text!r}")
    if rows < 2 or cols < 2:
        raise argparse.ArgumentTypeError(f"pattern needs at least 2x2 interior corners, got {text!r}")
    return rows, cols


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Calibrate camera intrinsics from checkerboard images.")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH)
    parser.add_argument("--camera", required=True, help="Camera id as named in the config (e.g. wide).")
    parser.add_argument("--images", type=Path, nargs="+", required=True, help="Checkerboard image paths.")
    parser.add_argument(
        "--pattern",
        type=pattern_size,
        default=None,
        help="Interior corners as ROWSxCOLS (default from config).",
    )
    parser.add_argument("--square", type=float, default=None, help="Square size (default from config).")
    parser.add_argument("--output", type=Path, default=Path("calibration/intrinsics.yaml"))
    return parser.parse_args(argv)


def _with_pattern(config: AppConfig, pattern: Tuple[int, int] | None, square: float | None) -> AppConfig:
    if pattern is None and square is None:
        return config
    rows, cols = pattern if pattern else (config.pattern.rows, config.pattern.cols)
    spec = PatternSpec(
        rows=rows,
        cols=cols,
        square_size=square if square is not None else config.pattern.square_size,
    )
    return replace(config, pattern=spec)


def collect_samples(
    detector: PatternDetector,
    accumulator: CalibrationAccumulator,
    paths: List[Path],
) -> int:
    accepted = 0
    for index, path in enumerate(paths):
        image = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if image is None:
            logger.warning(f"Failed to load {path}")
            continue
        frame = Frame.from_image(image, camera_id=accumulator.camera_id, frame_index=index)
        if accumulator.accept_frame(detector, frame):
            accepted += 1
        else:
            logger.info(f"No checkerboard in {path.name}")
    logger.info(f"Found the pattern in {accepted}/{len(paths)} images for camera {accumulator.camera_id}")
    return accepted


def calibrate_and_write(
    config: AppConfig,
    camera_id: str,
    paths: List[Path],
    output: Path,
) -> CameraIntrinsics:
    """Solve one camera and merge its record into the intrinsics file at output."""
    detector = PatternDetector(
        config.pattern,
        config.calibration.subpix,
        enhance=config.calibration.enhance_contrast,
    )
    accumulator = CalibrationAccumulator(camera_id)
    collect_samples(detector, accumulator, paths)
    intrinsics = CalibrationSolver(config.calibration.solver).solve(accumulator.drain())

    records = load_intrinsics(output) if output.exists() else {}
    records[camera_id] = intrinsics
    save_intrinsics(output, records.values())
    return intrinsics


def main(argv: List[str] | None = None) -> None:
    args = parse_args(argv)
    config = _with_pattern(load_config(args.config), args.pattern, args.square)
    intrinsics = calibrate_and_write(config, args.camera, args.images, args.output)

    quality = rate_calibration_quality(intrinsics.reprojection_error_px, intrinsics.sample_count)
    print(f"Calibration quality: {quality.rating} ({quality.rms_error_px:.3f}px over {quality.num_samples} frames)")
    print(f"   {quality.description}")
    for recommendation in quality.recommendations:
        print(f"   - {recommendation}")
    print(f"Camera matrix:\n{intrinsics.camera_matrix}")
    print(f"Distortion: {intrinsics.distortion_coeffs}")
    print(f"Wrote {args.output}")


if __name__ == "__main__":
    main()
