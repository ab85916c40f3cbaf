import copy

import pytest
import yaml

from calib.solver import SolverConfig
from configs.settings import DEFAULT_CONFIG_PATH, load_config, parse_config
from configs.validator import validate_config
from exceptions import ConfigValidationError, InvalidConfigError
from stereo.params import StereoParameters


def _default_data() -> dict:
    return yaml.safe_load(DEFAULT_CONFIG_PATH.read_text())


def test_load_config() -> None:
    config = load_config(DEFAULT_CONFIG_PATH)

    assert (config.pattern.rows, config.pattern.cols) == (6, 9)
    assert config.calibration.solver.min_samples == 5
    assert config.calibration.solver.min_pose_conditioning == 1e-3
    assert config.calibration.subpix.window == (11, 11)
    assert config.cameras.primary.camera_id == "wide"
    assert config.cameras.secondary.fov.horizontal_deg == 104.9
    assert config.stereo == StereoParameters()
    assert config.wls.lambda_ == 8000.0
    assert config.colormap.name == "jet"


def test_minimal_config_is_filled_with_defaults() -> None:
    data = {
        "cameras": {
            "primary": "a",
            "secondary": "b",
            "devices": {"a": {"fov_deg": [70, 55]}, "b": {"fov_deg": [100, 80]}},
        }
    }

    config = parse_config(data)

    assert config.stereo.num_disparities == 32
    assert config.calibration.solver.max_reprojection_error_px == 1.0
    assert config.calibration.solver == SolverConfig()
    assert config.cameras.primary.intrinsics_path is None
    assert data["wls"]["sigma_color"] == 1.5


def test_camera_fov_from_sensor_metadata() -> None:
    data = _default_data()
    data["cameras"]["devices"]["wide"] = {"sensor_size_mm": [6.4, 4.8], "focal_length_mm": 4.0}

    config = parse_config(data)

    fov = config.cameras.primary.fov
    assert fov.horizontal_deg == pytest.approx(77.32, abs=0.01)
    assert config.cameras.primary.focal_length_mm == 4.0


def test_disparity_count_must_be_multiple_of_16() -> None:
    data = _default_data()
    data["stereo"]["num_disparities"] = 20

    with pytest.raises(ConfigValidationError) as exc_info:
        validate_config(data)

    assert any("stereo -> num_disparities" in msg for msg in exc_info.value.validation_errors)


def test_camera_without_fov_or_sensor_is_rejected() -> None:
    data = _default_data()
    data["cameras"]["devices"]["wide"] = {"intrinsics_path": None}

    with pytest.raises(ConfigValidationError):
        parse_config(data)


def test_unknown_primary_camera_is_rejected() -> None:
    data = _default_data()
    data["cameras"]["primary"] = "tele"

    with pytest.raises(InvalidConfigError):
        parse_config(data)


def test_same_camera_twice_is_rejected() -> None:
    data = _default_data()
    data["cameras"]["secondary"] = data["cameras"]["primary"]

    with pytest.raises(InvalidConfigError):
        parse_config(data)


def test_defaults_are_not_shared_between_configs() -> None:
    first = {"cameras": copy.deepcopy(_default_data()["cameras"])}
    second = {"cameras": copy.deepcopy(_default_data()["cameras"])}

    validate_config(first)
    first["calibration"]["subpix"]["window"].append(99)
    validate_config(second)

    assert second["calibration"]["subpix"]["window"] == [11, 11]


def test_missing_file_is_reported(tmp_path) -> None:
    with pytest.raises(InvalidConfigError):
        load_config(tmp_path / "nope.yaml")


def test_non_mapping_file_is_reported(tmp_path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")

    with pytest.raises(InvalidConfigError):
        load_config(path)
