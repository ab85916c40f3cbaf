"""Configuration validation using JSON Schema."""

from __future__ import annotations

import copy
from typing import Any, Dict

import jsonschema
from jsonschema import Draft7Validator, validators

from exceptions import ConfigValidationError
from log_config.logger import get_logger

logger = get_logger(__name__)

_FOV_PAIR = {
    "type": "array",
    "items": {"type": "number", "exclusiveMinimum": 0, "exclusiveMaximum": 180},
    "minItems": 2,
    "maxItems": 2,
}

_CAMERA = {
    "type": "object",
    "properties": {
        "fov_deg": _FOV_PAIR,
        "sensor_size_mm": {
            "type": "array",
            "items": {"type": "number", "exclusiveMinimum": 0},
            "minItems": 2,
            "maxItems": 2,
        },
        "focal_length_mm": {"type": "number", "exclusiveMinimum": 0},
        "intrinsics_path": {"type": ["string", "null"], "default": None},
    },
    "anyOf": [
        {"required": ["fov_deg"]},
        {"required": ["sensor_size_mm", "focal_length_mm"]},
    ],
}

# JSON Schema for default.yaml configuration
CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["cameras"],
    "properties": {
        "pattern": {
            "type": "object",
            "default": {},
            "properties": {
                "rows": {"type": "integer", "minimum": 2, "maximum": 50, "default": 6},
                "cols": {"type": "integer", "minimum": 2, "maximum": 50, "default": 9},
                "square_size": {"type": "number", "exclusiveMinimum": 0, "default": 1.0},
            },
        },
        "calibration": {
            "type": "object",
            "default": {},
            "properties": {
                "min_samples": {"type": "integer", "minimum": 3, "default": 5},
                "max_iterations": {"type": "integer", "minimum": 1, "maximum": 10000, "default": 30},
                "max_reprojection_error_px": {"type": "number", "exclusiveMinimum": 0, "default": 1.0},
                "min_pose_conditioning": {"type": "number", "minimum": 0, "default": 1.0e-3},
                "enhance_contrast": {"type": "boolean", "default": False},
                "subpix": {
                    "type": "object",
                    "default": {},
                    "properties": {
                        "window": {
                            "type": "array",
                            "items": {"type": "integer", "minimum": 1},
                            "minItems": 2,
                            "maxItems": 2,
                            "default": [11, 11],
                        },
                        "max_iterations": {"type": "integer", "minimum": 1, "default": 30},
                        "epsilon": {"type": "number", "exclusiveMinimum": 0, "default": 0.1},
                    },
                },
            },
        },
        "cameras": {
            "type": "object",
            "required": ["primary", "secondary", "devices"],
            "properties": {
                "primary": {"type": "string"},
                "secondary": {"type": "string"},
                "devices": {
                    "type": "object",
                    "minProperties": 2,
                    "additionalProperties": _CAMERA,
                },
            },
        },
        "stereo": {
            "type": "object",
            "default": {},
            "properties": {
                "min_disparity": {"type": "integer", "default": 0},
                "num_disparities": {"type": "integer", "minimum": 16, "multipleOf": 16, "default": 32},
                "block_size": {"type": "integer", "minimum": 1, "maximum": 51, "default": 5},
                "disp12_max_diff": {"type": "integer", "default": 5},
                "uniqueness_ratio": {"type": "integer", "minimum": 0, "maximum": 100, "default": 3},
                "speckle_window_size": {"type": "integer", "minimum": 0, "default": 5},
                "speckle_range": {"type": "integer", "minimum": 0, "default": 5},
                "pre_filter_cap": {"type": "integer", "minimum": 1, "maximum": 63, "default": 63},
                "mode": {"type": "string", "enum": ["sgbm", "hh", "sgbm_3way", "hh4"], "default": "sgbm_3way"},
            },
        },
        "wls": {
            "type": "object",
            "default": {},
            "properties": {
                "lambda": {"type": "number", "minimum": 0, "default": 8000.0},
                "sigma_color": {"type": "number", "exclusiveMinimum": 0, "default": 1.5},
            },
        },
        "visualization": {
            "type": "object",
            "default": {},
            "properties": {
                "colormap": {
                    "type": "string",
                    "enum": ["jet", "turbo", "magma", "inferno", "viridis", "bone"],
                    "default": "jet",
                },
            },
        },
    },
}


def extend_with_default(validator_class):
    """Extend JSON Schema validator to set default values."""
    validate_properties = validator_class.VALIDATORS["properties"]

    def set_defaults(validator, properties, instance, schema):
        if isinstance(instance, dict):
            for prop, subschema in properties.items():
                if "default" in subschema:
                    instance.setdefault(prop, copy.deepcopy(subschema["default"]))

        for error in validate_properties(validator, properties, instance, schema):
            yield error

    return validators.extend(validator_class, {"properties": set_defaults})


DefaultValidatingValidator = extend_with_default(Draft7Validator)


def validate_config(config: Dict[str, Any]) -> None:
    """Validate configuration against JSON Schema, filling in defaults.

    Args:
        config: Configuration dictionary (updated in place with defaults)

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    try:
        validator = DefaultValidatingValidator(CONFIG_SCHEMA)
        errors = list(validator.iter_errors(config))

        if errors:
            error_messages = []
            for error in errors:
                path = " -> ".join(str(p) for p in error.path) if error.path else "root"
                error_messages.append(f"{path}: {error.message}")

            logger.error(f"Configuration validation failed with {len(errors)} errors")
            for msg in error_messages:
                logger.error(f"  - {msg}")

            raise ConfigValidationError(
                f"Configuration validation failed with {len(errors)} error(s). See logs for details.",
                validation_errors=error_messages,
            )

        logger.info("Configuration validation passed")

    except jsonschema.exceptions.SchemaError as e:
        logger.error(f"Invalid schema: {e}")
        raise ConfigValidationError(f"Invalid schema definition: {e}")


__all__ = ["validate_config", "CONFIG_SCHEMA"]
