"""Background calibration solves, at most one in flight per camera."""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict

from app.session import StereoSession
from contracts import CameraIntrinsics
from exceptions import CalibrationInProgressError
from log_config.logger import get_logger

logger = get_logger(__name__)


class CalibrationRunner:
    """Runs ``StereoSession.calibrate`` off the calling thread.

    The two cameras may solve concurrently with each other, but a second
    solve for a camera that is still solving is rejected.
    """

    def __init__(self, session: StereoSession, max_workers: int = 2) -> None:
        self._session = session
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="calibration")
        self._in_flight: Dict[str, Future] = {}
        self._lock = threading.Lock()

    def submit(self, camera_id: str) -> "Future[CameraIntrinsics]":
        with self._lock:
            current = self._in_flight.get(camera_id)
            if current is not None and not current.done():
                raise CalibrationInProgressError(
                    f"Calibration for camera {camera_id} is already running",
                    camera_id=camera_id,
                )
            future = self._executor.submit(self._session.calibrate, camera_id)
            self._in_flight[camera_id] = future
        logger.info(f"Calibration for camera {camera_id} started")
        future.add_done_callback(lambda done: self._report(camera_id, done))
        return future

    def is_running(self, camera_id: str) -> bool:
        with self._lock:
            current = self._in_flight.get(camera_id)
            return current is not None and not current.done()

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "CalibrationRunner":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=True)

    @staticmethod
    def _report(camera_id: str, future: Future) -> None:
        if future.cancelled():
            logger.warning(f"Calibration for camera {camera_id} was cancelled")
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Calibration for camera {camera_id} failed: {type(error).__name__}: {error}")
        else:
            logger.info(f"Calibration for camera {camera_id} finished")
