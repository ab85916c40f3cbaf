"""Per-camera collection of calibration samples."""

from __future__ import annotations

import threading
from typing import List

from calib.pattern import PatternDetector
from contracts import CalibrationSample, Frame
from exceptions import SampleMismatchError
from log_config.logger import get_logger

logger = get_logger(__name__)


class CalibrationAccumulator:
    """Append-only sample store with a destructive drain.

    Samples are kept in arrival order. No deduplication or pose-diversity
    check is done here; near-identical poses will make the solve
    ill-conditioned and are reported by the solver instead.
    """

    def __init__(self, camera_id: str) -> None:
        self.camera_id = camera_id
        self._samples: List[CalibrationSample] = []
        self._lock = threading.Lock()

    def accept(self, sample: CalibrationSample) -> None:
        if sample.camera_id != self.camera_id:
            raise SampleMismatchError(
                f"Sample from camera {sample.camera_id!r} offered to accumulator for {self.camera_id!r}",
                camera_id=self.camera_id,
            )
        with self._lock:
            self._samples.append(sample)
            total = len(self._samples)
        logger.info(f"Accepted calibration sample {total} for camera {self.camera_id}")

    def accept_frame(self, detector: PatternDetector, frame: Frame) -> bool:
        """Detect the pattern in a captured frame and keep it if found."""
        result = detector.detect(frame)
        if not result.found or result.corners is None:
            logger.info(f"Pattern not found in frame {frame.frame_index} for camera {self.camera_id}")
            return False
        self.accept(CalibrationSample.from_corners(self.camera_id, result.corners))
        return True

    def count(self) -> int:
        with self._lock:
            return len(self._samples)

    def __len__(self) -> int:
        return self.count()

    def drain(self) -> List[CalibrationSample]:
        """Hand over all samples and reset to empty."""
        with self._lock:
            samples, self._samples = self._samples, []
        logger.debug(f"Drained {len(samples)} samples for camera {self.camera_id}")
        return samples
