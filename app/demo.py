"""Compute a disparity visualisation for one wide / ultra-wide image pair."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List

import cv2

from app.disparity_pipeline import DisparityPipeline
from app.session import StereoSession
from calib.intrinsics_io import load_intrinsics
from configs.settings import DEFAULT_CONFIG_PATH
from contracts import Frame
from log_config.logger import get_logger

logger = get_logger(__name__)


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the disparity pipeline on an image pair.")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH)
    parser.add_argument("--primary", type=Path, required=True, help="Primary (wide) camera image.")
    parser.add_argument("--secondary", type=Path, required=True, help="Secondary (ultra-wide) camera image.")
    parser.add_argument("--intrinsics", type=Path, default=None, help="Intrinsics YAML from quick_calibrate.")
    parser.add_argument("--output", type=Path, default=Path("disparity.png"))
    return parser.parse_args(argv)


def _read_frame(path: Path, camera_id: str) -> Frame:
    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise FileNotFoundError(f"Could not read image {path}")
    return Frame.from_image(image, camera_id=camera_id)


def main(argv: List[str] | None = None) -> None:
    args = parse_args(argv)
    session = StereoSession.from_config_file(args.config)
    if args.intrinsics is not None:
        for intrinsics in load_intrinsics(args.intrinsics).values():
            if intrinsics.camera_id in session.camera_ids:
                session.set_intrinsics(intrinsics)

    primary = _read_frame(args.primary, session.primary.camera_id)
    secondary = _read_frame(args.secondary, session.secondary.camera_id)

    result = DisparityPipeline(session).run_once(primary, secondary)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    cv2.imwrite(str(args.output), result.visualization.image)
    print(f"Disparity pass took {result.duration_ms:.1f}ms; wrote {args.output}")


if __name__ == "__main__":
    main()
