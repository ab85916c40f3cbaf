"""Explicitly owned set of pipeline stages for one camera rig."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from calib.accumulator import CalibrationAccumulator
from calib.intrinsics_io import load_intrinsics, save_intrinsics
from calib.pattern import PatternDetector
from calib.solver import CalibrationSolver
from configs.settings import AppConfig, CameraSetup, load_config
from contracts import CameraIntrinsics, Frame
from exceptions import InsufficientSamplesError
from log_config.logger import get_logger
from rectify.fov_aligner import FieldOfViewAligner
from rectify.rectifier import Undistorter
from stereo.disparity import DisparityEngine
from stereo.post_filter import DisparityPostFilter

logger = get_logger(__name__)


class StereoSession:
    """Owns the detector, accumulators, solver and disparity stages of a rig.

    A session is created by the caller and passed to whatever drives capture
    or disparity; nothing here is process-global. Accumulators are
    thread-safe; the disparity stages are meant for one driving thread.
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.primary: CameraSetup = config.cameras.primary
        self.secondary: CameraSetup = config.cameras.secondary
        self.detector = PatternDetector(
            config.pattern,
            config.calibration.subpix,
            enhance=config.calibration.enhance_contrast,
        )
        self.solver = CalibrationSolver(config.calibration.solver)
        self.aligner = FieldOfViewAligner()
        self.engine = DisparityEngine(config.stereo)
        self.post_filter = DisparityPostFilter(config.wls, config.colormap)
        self._accumulators: Dict[str, CalibrationAccumulator] = {
            camera.camera_id: CalibrationAccumulator(camera.camera_id)
            for camera in (self.primary, self.secondary)
        }
        self._intrinsics: Dict[str, CameraIntrinsics] = {}

    @classmethod
    def from_config_file(cls, path: Path) -> "StereoSession":
        session = cls(load_config(path))
        session.load_configured_intrinsics(base_dir=path.parent)
        return session

    @property
    def camera_ids(self) -> List[str]:
        return [self.primary.camera_id, self.secondary.camera_id]

    def accumulator(self, camera_id: str) -> CalibrationAccumulator:
        try:
            return self._accumulators[camera_id]
        except KeyError:
            raise ValueError(f"Unknown camera {camera_id!r}; expected one of {self.camera_ids}") from None

    def capture(self, frame: Frame) -> bool:
        """Offer a captured frame as a calibration sample for its camera."""
        return self.accumulator(frame.camera_id).accept_frame(self.detector, frame)

    def calibrate(self, camera_id: str) -> CameraIntrinsics:
        """Solve intrinsics from everything collected for ``camera_id``.

        The accumulator is drained. If there were too few samples they are
        put back so capture can continue; on any other failure they are
        discarded and a fresh set must be captured.
        """
        accumulator = self.accumulator(camera_id)
        samples = accumulator.drain()
        try:
            intrinsics = self.solver.solve(samples)
        except InsufficientSamplesError:
            for sample in samples:
                accumulator.accept(sample)
            raise
        self.set_intrinsics(intrinsics)
        return intrinsics

    def set_intrinsics(self, intrinsics: CameraIntrinsics) -> None:
        self.accumulator(intrinsics.camera_id)
        self._intrinsics[intrinsics.camera_id] = intrinsics

    def intrinsics_for(self, camera_id: str) -> Optional[CameraIntrinsics]:
        return self._intrinsics.get(camera_id)

    def undistorter_for(self, camera_id: str) -> Optional[Undistorter]:
        intrinsics = self._intrinsics.get(camera_id)
        return Undistorter(intrinsics) if intrinsics is not None else None

    def load_configured_intrinsics(self, base_dir: Path = Path(".")) -> int:
        """Load intrinsics files named in the camera configuration."""
        loaded = 0
        for camera in (self.primary, self.secondary):
            if not camera.intrinsics_path:
                continue
            path = Path(camera.intrinsics_path)
            if not path.is_absolute():
                path = base_dir / path
            records = load_intrinsics(path)
            if camera.camera_id not in records:
                logger.warning(f"{path} has no intrinsics for camera {camera.camera_id}")
                continue
            self.set_intrinsics(records[camera.camera_id])
            loaded += 1
        return loaded

    def save_intrinsics(self, path: Path) -> None:
        save_intrinsics(path, self._intrinsics.values())
