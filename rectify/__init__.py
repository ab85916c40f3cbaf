"""Per-camera image correction and field-of-view alignment."""

from .fov_aligner import FieldOfViewAligner
from .rectifier import Rectifier, Undistorter

__all__ = ["FieldOfViewAligner", "Rectifier", "Undistorter"]
