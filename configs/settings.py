"""Configuration loading for the dual-camera stereo pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from calib.pattern import SubPixCriteria
from calib.solver import SolverConfig
from configs.validator import validate_config
from contracts import FieldOfView, PatternSpec
from exceptions import ConfigError, InvalidConfigError
from log_config.logger import get_logger
from stereo.params import StereoParameters
from stereo.post_filter import ColormapConfig, WlsFilterConfig

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("default.yaml")


@dataclass(frozen=True)
class CalibrationConfig:
    solver: SolverConfig
    subpix: SubPixCriteria
    enhance_contrast: bool = False


@dataclass(frozen=True)
class CameraSetup:
    camera_id: str
    fov: FieldOfView
    intrinsics_path: Optional[str] = None
    sensor_size_mm: Optional[Tuple[float, float]] = None
    focal_length_mm: Optional[float] = None


@dataclass(frozen=True)
class CamerasConfig:
    primary: CameraSetup
    secondary: CameraSetup


@dataclass(frozen=True)
class AppConfig:
    pattern: PatternSpec
    calibration: CalibrationConfig
    cameras: CamerasConfig
    stereo: StereoParameters
    wls: WlsFilterConfig
    colormap: ColormapConfig


def _camera_setup(camera_id: str, data: Dict[str, Any]) -> CameraSetup:
    sensor = data.get("sensor_size_mm")
    focal = data.get("focal_length_mm")
    if "fov_deg" in data:
        fov = FieldOfView(float(data["fov_deg"][0]), float(data["fov_deg"][1]))
    else:
        fov = FieldOfView.from_sensor(float(sensor[0]), float(sensor[1]), float(focal))
    return CameraSetup(
        camera_id=camera_id,
        fov=fov,
        intrinsics_path=data.get("intrinsics_path"),
        sensor_size_mm=(float(sensor[0]), float(sensor[1])) if sensor else None,
        focal_length_mm=float(focal) if focal is not None else None,
    )


def parse_config(data: Dict[str, Any]) -> AppConfig:
    """Validate a configuration mapping and build the typed configuration.

    Raises:
        ConfigError: If the mapping is invalid
    """
    validate_config(data)

    try:
        devices = data["cameras"]["devices"]
        primary_id = data["cameras"]["primary"]
        secondary_id = data["cameras"]["secondary"]
        for camera_id in (primary_id, secondary_id):
            if camera_id not in devices:
                raise InvalidConfigError(f"Camera {camera_id!r} is not defined under cameras.devices")
        if primary_id == secondary_id:
            raise InvalidConfigError("Primary and secondary cameras must differ")

        calibration = data["calibration"]
        subpix = calibration["subpix"]
        config = AppConfig(
            pattern=PatternSpec(**data["pattern"]),
            calibration=CalibrationConfig(
                solver=SolverConfig(
                    min_samples=calibration["min_samples"],
                    max_iterations=calibration["max_iterations"],
                    max_reprojection_error_px=float(calibration["max_reprojection_error_px"]),
                    min_pose_conditioning=float(calibration["min_pose_conditioning"]),
                ),
                subpix=SubPixCriteria(
                    window=tuple(subpix["window"]),
                    max_iterations=subpix["max_iterations"],
                    epsilon=float(subpix["epsilon"]),
                ),
                enhance_contrast=bool(calibration["enhance_contrast"]),
            ),
            cameras=CamerasConfig(
                primary=_camera_setup(primary_id, devices[primary_id]),
                secondary=_camera_setup(secondary_id, devices[secondary_id]),
            ),
            stereo=StereoParameters(**data["stereo"]),
            wls=WlsFilterConfig(
                lambda_=float(data["wls"]["lambda"]),
                sigma_color=float(data["wls"]["sigma_color"]),
            ),
            colormap=ColormapConfig(name=data["visualization"]["colormap"]),
        )
    except ConfigError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Failed to construct configuration objects: {e}")
        raise InvalidConfigError(f"Failed to construct configuration: {e}")

    logger.info(
        f"Configuration loaded: pattern {config.pattern.rows}x{config.pattern.cols}, "
        f"cameras {config.cameras.primary.camera_id}/{config.cameras.secondary.camera_id}, "
        f"{config.stereo.num_disparities} disparities"
    )
    return config


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to configuration file

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    logger.info(f"Loading configuration from {path}")
    if not path.exists():
        raise InvalidConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration: {e}")
        raise InvalidConfigError(f"Failed to parse configuration file: {e}")

    if not isinstance(data, dict):
        raise InvalidConfigError(f"Configuration file {path} does not contain a mapping")
    return parse_config(data)
