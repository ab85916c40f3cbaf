"""Per-frame disparity pipeline: undistort, align, match, filter, visualise."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple

from app.session import StereoSession
from contracts import DisparityMap, Frame
from log_config.logger import get_logger, log_performance

logger = get_logger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    disparity: DisparityMap
    visualization: Frame
    primary: Frame
    aligned_secondary: Frame
    duration_ms: float


class DisparityPipeline:
    """Runs one full pass per frame pair; passes are never interrupted midway."""

    def __init__(self, session: StereoSession, latency_warn_ms: float = 500.0) -> None:
        self._session = session
        self._latency_warn_ms = latency_warn_ms

    def _undistort(self, frame: Frame, camera_id: str) -> Frame:
        undistorter = self._session.undistorter_for(camera_id)
        if undistorter is None:
            return frame
        return undistorter.rectify(frame)

    def run_once(self, primary: Frame, secondary: Frame) -> PipelineResult:
        """Process one synchronised pair.

        Raises:
            DimensionMismatchError: alignment could not produce a frame the
                size of the primary
        """
        session = self._session
        start = time.perf_counter()

        primary_corrected = self._undistort(primary, session.primary.camera_id)
        secondary_corrected = self._undistort(secondary, session.secondary.camera_id)
        aligned = session.aligner.align(
            secondary_corrected,
            primary_corrected.size,
            session.primary.fov,
            session.secondary.fov,
        )
        disparity = session.engine.compute(primary_corrected, aligned)
        visualization = session.post_filter.filter_and_visualize(disparity, primary_corrected)

        duration_ms = (time.perf_counter() - start) * 1000.0
        log_performance(f"disparity pass frame {primary.frame_index}", duration_ms, self._latency_warn_ms)
        return PipelineResult(
            disparity=disparity,
            visualization=visualization,
            primary=primary_corrected,
            aligned_secondary=aligned,
            duration_ms=duration_ms,
        )

    def run(
        self,
        frame_pairs: Iterable[Tuple[Frame, Frame]],
        on_result: Callable[[PipelineResult], None],
        stop_event: Optional[threading.Event] = None,
    ) -> int:
        """Request/response loop over frame pairs.

        ``stop_event`` is checked before each pass, so cancelling never leaves a
        pass half done. Returns the number of completed passes.
        """
        completed = 0
        for primary, secondary in frame_pairs:
            if stop_event is not None and stop_event.is_set():
                logger.info(f"Disparity loop cancelled after {completed} passes")
                break
            on_result(self.run_once(primary, secondary))
            completed += 1
        logger.debug(f"Disparity loop finished: {completed} passes")
        return completed
