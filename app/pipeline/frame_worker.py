"""Frame worker: drives contours -> tracker -> publisher on its own thread."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from app.events import ErrorCategory, ErrorEventBus, ErrorSeverity, publish_error
from app.pipeline.frame_source import FrameSource
from app.pipeline.result_publisher import ResultPublisher
from contracts import Contour
from exceptions import FrameAcquisitionError, FrameStreamClosed
from log_config.logger import get_logger, log_performance
from track.target_tracker import TargetTracker

logger = get_logger(__name__)


class WorkerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass
class WorkerStats:
    frames_processed: int = 0
    valid_results: int = 0
    acquisition_errors: int = 0
    processing_errors: int = 0
    last_frame_ms: float = 0.0


class FrameWorker:
    """Runs the capture -> compute -> publish loop for one camera source.

    Lifecycle: IDLE -> RUNNING -> STOPPING -> STOPPED. A worker without a
    source stays IDLE. A stopped worker cannot be restarted.

    Thread Safety:
        - start(), stop() and join() may be called from any thread
        - The loop is the only caller of the source and the tracker
    """

    def __init__(
        self,
        source: Optional[FrameSource],
        publisher: ResultPublisher,
        tracker: Optional[TargetTracker] = None,
        name: str = "vision",
        retry_delay_s: float = 0.05,
        frame_budget_ms: float = 50.0,
        error_bus: Optional[ErrorEventBus] = None,
    ) -> None:
        """
        Args:
            source: Frame source, or None when no camera is available
            publisher: Destination of every computed result
            tracker: Target tracker (default: a new TargetTracker)
            name: Worker name, used for the thread name and logs
            retry_delay_s: Pause after a failed frame, at most one frame interval
            frame_budget_ms: Read-to-publish time above which a frame is logged as slow
            error_bus: Bus for frame errors (default: the global bus)
        """
        self._source = source
        self._publisher = publisher
        self._tracker = tracker or TargetTracker()
        self.name = name
        self._retry_delay_s = retry_delay_s
        self._frame_budget_ms = frame_budget_ms
        self._error_bus = error_bus

        self._lock = threading.Lock()
        self._state = WorkerState.IDLE
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._stats = WorkerStats()
        self._had_target = False

    @property
    def state(self) -> WorkerState:
        with self._lock:
            return self._state

    @property
    def stats(self) -> WorkerStats:
        with self._lock:
            return WorkerStats(**vars(self._stats))

    def start(self) -> bool:
        """Start the worker thread.

        Returns:
            True if the worker is running, False if it has no source and stays IDLE

        Raises:
            RuntimeError: If the worker was already stopped
        """
        with self._lock:
            if self._state in (WorkerState.STOPPING, WorkerState.STOPPED):
                raise RuntimeError(f"Frame worker '{self.name}' cannot be restarted after stop")
            if self._state is WorkerState.RUNNING:
                return True
            if self._source is None:
                logger.info(f"Frame worker '{self.name}' has no camera source, staying idle")
                return False

            self._thread = threading.Thread(
                target=self._run, name=f"frame-worker-{self.name}", daemon=True
            )
            self._state = WorkerState.RUNNING
            self._thread.start()

        logger.info(f"Frame worker '{self.name}' started")
        return True

    def stop(self, timeout: float = 2.0) -> bool:
        """Request the loop to exit and wait for it.

        The frame in flight, if any, is not published.

        Returns:
            True if the worker thread has exited
        """
        with self._lock:
            if self._state is WorkerState.IDLE:
                self._state = WorkerState.STOPPED
                return True
            if self._state is WorkerState.STOPPED:
                return True
            self._state = WorkerState.STOPPING
            self._stop_event.set()
            thread = self._thread

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"Frame worker '{self.name}' did not stop within {timeout}s")
                return False
        return True

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the loop to end on its own (end of stream).

        Returns:
            True if the worker thread has exited
        """
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout=timeout)
        return not thread.is_alive()

    def _run(self) -> None:
        try:
            while not self._stop_event.is_set():
                tic = time.perf_counter()
                try:
                    contours = list(self._source.next_frame_contours())
                except FrameStreamClosed as e:
                    logger.info(f"Frame worker '{self.name}': {e}")
                    break
                except Exception as e:
                    self._report_frame_error(e)
                    self._stop_event.wait(self._retry_delay_s)
                    continue

                if self._stop_event.is_set():
                    break

                try:
                    self._process(contours, tic)
                except Exception as e:
                    self._report_frame_error(e, processing=True)
                    self._stop_event.wait(self._retry_delay_s)
        finally:
            with self._lock:
                self._state = WorkerState.STOPPED
            logger.info(f"Frame worker '{self.name}' stopped")

    def _process(self, contours: List[Contour], tic: float) -> None:
        result = self._tracker.compute(contours)
        if self._stop_event.is_set():
            return
        self._publisher.publish(result)

        # read + pipeline + compute + publish
        elapsed_ms = (time.perf_counter() - tic) * 1000.0
        self._record(result.valid, elapsed_ms, len(contours))
        log_performance(f"frame ({self.name})", elapsed_ms, self._frame_budget_ms)

    def _record(self, valid: bool, elapsed_ms: float, contour_count: int) -> None:
        with self._lock:
            self._stats.frames_processed += 1
            self._stats.last_frame_ms = elapsed_ms
            if valid:
                self._stats.valid_results += 1

        if valid and not self._had_target:
            logger.info(f"Frame worker '{self.name}': target acquired")
        elif not valid and self._had_target:
            logger.info(f"Frame worker '{self.name}': target lost ({contour_count} contour(s))")
        else:
            logger.debug(f"Frame worker '{self.name}': {contour_count} contour(s), valid={valid}")
        self._had_target = valid

    def _report_frame_error(self, error: Exception, processing: bool = False) -> None:
        with self._lock:
            if processing:
                self._stats.processing_errors += 1
            else:
                self._stats.acquisition_errors += 1

        if processing:
            category = ErrorCategory.TRACKING
            message = f"Frame dropped after acquisition: {error}"
        elif isinstance(error, FrameAcquisitionError):
            category = ErrorCategory.CAMERA
            message = f"Frame skipped: {error}"
        else:
            category = ErrorCategory.CAMERA
            message = f"Unexpected error reading frame: {error}"
        publish_error(
            category,
            ErrorSeverity.WARNING,
            message,
            source=f"FrameWorker[{self.name}]",
            exception=error,
            bus=self._error_bus,
        )
