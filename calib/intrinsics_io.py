"""Persist camera intrinsics as versioned YAML documents."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List

import numpy as np
import yaml

from contracts import CameraIntrinsics
from contracts.versioning import make_envelope, open_envelope
from exceptions import InvalidConfigError
from log_config.logger import get_logger

logger = get_logger(__name__)


def intrinsics_to_dict(intrinsics: CameraIntrinsics) -> Dict[str, Any]:
    # Python floats keep full double precision through yaml.safe_dump.
    return {
        "camera_id": intrinsics.camera_id,
        "image_size": [int(v) for v in intrinsics.image_size],
        "camera_matrix": [[float(v) for v in row] for row in intrinsics.camera_matrix],
        "distortion_coeffs": [float(v) for v in intrinsics.distortion_coeffs],
        "reprojection_error_px": float(intrinsics.reprojection_error_px),
        "sample_count": int(intrinsics.sample_count),
        "per_sample_errors_px": [float(v) for v in intrinsics.per_sample_errors_px],
    }


def intrinsics_from_dict(data: Dict[str, Any]) -> CameraIntrinsics:
    if not isinstance(data, dict):
        raise InvalidConfigError(f"Invalid intrinsics record: expected a mapping, got {type(data).__name__}")
    image_size = data.get("image_size")
    if not isinstance(image_size, (list, tuple)) or len(image_size) != 2:
        raise InvalidConfigError(f"Invalid intrinsics record: image_size must be [width, height], got {image_size!r}")
    try:
        return CameraIntrinsics(
            camera_id=str(data["camera_id"]),
            camera_matrix=np.array(data["camera_matrix"], dtype=np.float64),
            distortion_coeffs=np.array(data["distortion_coeffs"], dtype=np.float64),
            image_size=tuple(image_size),
            reprojection_error_px=float(data.get("reprojection_error_px", 0.0)),
            sample_count=int(data.get("sample_count", 0)),
            per_sample_errors_px=tuple(float(v) for v in data.get("per_sample_errors_px", [])),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidConfigError(f"Invalid intrinsics record: {e}") from e


def dump_intrinsics(cameras: Iterable[CameraIntrinsics]) -> str:
    payload = {"cameras": [intrinsics_to_dict(item) for item in cameras]}
    return yaml.safe_dump(make_envelope(payload), sort_keys=False)


def parse_intrinsics(text: str) -> List[CameraIntrinsics]:
    try:
        document = yaml.safe_load(text)
        payload = open_envelope(document if isinstance(document, dict) else {})
    except yaml.YAMLError as e:
        raise InvalidConfigError(f"Failed to parse intrinsics file: {e}") from e
    except ValueError as e:
        raise InvalidConfigError(str(e)) from e
    cameras = payload.get("cameras", [])
    if not isinstance(cameras, list):
        raise InvalidConfigError("Intrinsics file must hold a list under 'cameras'")
    return [intrinsics_from_dict(item) for item in cameras]


def save_intrinsics(path: Path, cameras: Iterable[CameraIntrinsics]) -> None:
    cameras = list(cameras)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_intrinsics(cameras))
    logger.info(f"Saved intrinsics for {', '.join(c.camera_id for c in cameras)} to {path}")


def load_intrinsics(path: Path) -> Dict[str, CameraIntrinsics]:
    """Load intrinsics keyed by camera id."""
    if not path.exists():
        raise InvalidConfigError(f"Intrinsics file not found: {path}")
    cameras = parse_intrinsics(path.read_text())
    logger.info(f"Loaded intrinsics for {len(cameras)} camera(s) from {path}")
    return {camera.camera_id: camera for camera in cameras}
