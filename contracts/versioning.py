"""Schema and application version metadata for serialized contracts."""

from __future__ import annotations

from typing import Any, Dict

SCHEMA_VERSION = "1.0.0"
APP_VERSION = "0.1.0"


def make_envelope(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap a payload with schema/app versions for serialization."""
    return {
        "schema_version": SCHEMA_VERSION,
        "app_version": APP_VERSION,
        "payload": payload,
    }


def open_envelope(document: Dict[str, Any]) -> Dict[str, Any]:
    """Return the payload of an envelope, checking the schema major version."""
    version = str(document.get("schema_version", ""))
    if version.split(".")[0] != SCHEMA_VERSION.split(".")[0]:
        raise ValueError(f"Unsupported schema version {version!r} (expected {SCHEMA_VERSION})")
    payload = document.get("payload")
    if not isinstance(payload, dict):
        raise ValueError("Envelope has no payload")
    return payload
