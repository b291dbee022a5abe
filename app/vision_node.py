"""Vision node: wires configuration, cameras, tracker, publisher and bus."""

from __future__ import annotations

import signal
import threading
from typing import List, Optional

from app.bus import ControlBus, NetworkTablesBus
from app.camera import StartedCamera, start_cameras
from app.lifecycle import CleanupManager
from app.pipeline import FramePipelineAdapter, FrameWorker, ResultPublisher
from configs.settings import VisionConfig
from contracts import TargetResult
from detect import TapePipeline
from log_config.logger import get_logger
from track.target_tracker import TargetTracker

logger = get_logger(__name__)


class VisionNode:
    """One on-robot vision process.

    Startup order is bus, cameras, tracked camera resolution, pipeline and
    worker. Each resource registers its own cleanup task as it comes up, so
    shutdown releases them in the opposite order.

    Example:
        >>> node = VisionNode(load_config(path))
        >>> node.start()
        >>> node.install_signal_handlers()
        >>> node.wait_forever()
        >>> node.shutdown()
    """

    def __init__(
        self,
        config: VisionConfig,
        backend: str = "opencv",
        bus: Optional[ControlBus] = None,
        cleanup: Optional[CleanupManager] = None,
    ) -> None:
        self.config = config
        self.backend = backend
        self.bus = bus or NetworkTablesBus(
            team=config.team,
            mode=config.nt_mode,
            table_name=config.table_name,
        )
        self.cleanup_manager = cleanup or CleanupManager()
        self.cameras: List[StartedCamera] = []
        self.tracked: Optional[StartedCamera] = None
        self.publisher = ResultPublisher(self.bus)
        self.worker: Optional[FrameWorker] = None
        self._stop_event = threading.Event()
        self._started = False

    def start(self) -> bool:
        """Bring the node up.

        Returns:
            True if a frame worker is running, False if no camera is tracked

        Raises:
            BusError: If the control bus cannot be started
        """
        if self._started:
            raise RuntimeError("Vision node already started")
        self._started = True

        self.bus.start()
        self.cleanup_manager.register_cleanup("control_bus", self.bus.stop)

        self.cameras = start_cameras(self.config.cameras, self.backend)
        for camera in self.cameras:
            self.cleanup_manager.register_cleanup(f"camera:{camera.name}", camera.device.close)
        logger.info(f"Number of cameras: {len(self.cameras)}")

        self.tracked = self._select_tracked_camera()
        source = None
        if self.tracked is not None:
            tracking = self.config.tracking
            self.tracked.device.set_resolution(tracking.width, tracking.height)
            source = FramePipelineAdapter(self.tracked.device, TapePipeline(self.config.pipeline))
            logger.info(
                f"Tracking camera '{self.tracked.name}' at {tracking.width}x{tracking.height}"
            )

        self.worker = FrameWorker(
            source,
            self.publisher,
            TargetTracker(),
            name=self.tracked.name if self.tracked is not None else "vision",
        )
        self.cleanup_manager.register_cleanup("frame_worker", self.worker.stop, critical=True)
        return self.worker.start()

    def _select_tracked_camera(self) -> Optional[StartedCamera]:
        index = self.config.tracking.camera
        if not self.cameras:
            logger.warning("No camera started, target tracking disabled")
            return None
        if not 0 <= index < len(self.cameras):
            logger.warning(
                f"Tracking camera index {index} out of range for {len(self.cameras)} camera(s), "
                f"target tracking disabled"
            )
            return None
        return self.cameras[index]

    def current_result(self) -> TargetResult:
        return self.publisher.current()

    def request_stop(self) -> None:
        self._stop_event.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def install_signal_handlers(self) -> None:
        """Route SIGINT and SIGTERM to request_stop(). Main thread only."""

        def _handle_signal(signum, frame):
            logger.info(f"Received signal {signal.Signals(signum).name}, shutting down")
            self.request_stop()

        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)

    def wait_forever(self, poll_interval: float = 10.0) -> None:
        """Block until a stop is requested.

        The worker does all the processing; this only sleeps, waking up
        periodically so signal handlers get a chance to run.
        """
        while not self._stop_event.wait(poll_interval):
            if self.worker is not None:
                stats = self.worker.stats
                logger.debug(
                    f"frames={stats.frames_processed} valid={stats.valid_results} "
                    f"read_errors={stats.acquisition_errors} dropped={stats.processing_errors} "
                    f"last_frame_ms={stats.last_frame_ms:.1f}"
                )

    def shutdown(self) -> bool:
        """Stop the worker, close cameras and stop the bus.

        Returns:
            True if all critical cleanup tasks succeeded
        """
        self.request_stop()
        return self.cleanup_manager.cleanup()


__all__ = ["VisionNode"]
