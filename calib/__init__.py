"""Calibration module."""

from .accumulator import CalibrationAccumulator
from .pattern import PatternDetector, SubPixCriteria
from .solver import CalibrationSolver, SolverConfig

__all__ = [
    "CalibrationAccumulator",
    "CalibrationSolver",
    "PatternDetector",
    "SolverConfig",
    "SubPixCriteria",
]
