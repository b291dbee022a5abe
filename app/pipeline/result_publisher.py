"""Thread-safe holder for the latest target result.

The frame worker replaces the result once per frame; the control bus and any
local reader see either the old result or the new one, never a mix.
"""

from __future__ import annotations

import threading
from typing import Optional, Tuple

from app.bus.interface import ControlBus
from app.events import ErrorCategory, ErrorSeverity, publish_error
from contracts import TargetResult
from log_config.logger import get_logger

logger = get_logger(__name__)

CENTER_X_KEY = "centerX"
LEFT_TARGET_KEY = "leftTarget"
RIGHT_TARGET_KEY = "rightTarget"
DISTANCE_TARGET_KEY = "distanceTarget"
TARGET_VALID_KEY = "targetValid"


class ResultPublisher:
    """Single-slot publisher guarded by one lock.

    Bus entries are written inside the same critical section as the slot
    replace, so the four target entries always change together. The geometry
    entries are only written for valid results; ``targetValid`` is written on
    every publish.
    """

    def __init__(self, bus: Optional[ControlBus] = None) -> None:
        self._lock = threading.Lock()
        self._updated = threading.Condition(self._lock)
        self._current = TargetResult.invalid()
        self._publish_count = 0
        self._bus = bus

    def publish(self, result: TargetResult) -> None:
        bus_error: Optional[Exception] = None
        with self._updated:
            self._current = result
            self._publish_count += 1
            if self._bus is not None:
                try:
                    self._forward(result)
                except Exception as e:
                    bus_error = e
            self._updated.notify_all()

        if bus_error is not None:
            publish_error(
                ErrorCategory.BUS,
                ErrorSeverity.WARNING,
                f"Failed to write target to control bus: {bus_error}",
                source="ResultPublisher",
                exception=bus_error,
            )

    def _forward(self, result: TargetResult) -> None:
        bus = self._bus
        if result.valid:
            bus.put_number(CENTER_X_KEY, result.center_x)
            bus.put_number(LEFT_TARGET_KEY, result.left_x)
            bus.put_number(RIGHT_TARGET_KEY, result.right_x)
            bus.put_number(DISTANCE_TARGET_KEY, result.distance)
        bus.put_boolean(TARGET_VALID_KEY, result.valid)
        bus.flush()

    def current(self) -> TargetResult:
        with self._lock:
            return self._current

    @property
    def publish_count(self) -> int:
        with self._lock:
            return self._publish_count

    def snapshot(self) -> Tuple[int, TargetResult]:
        """(publish count, result) read under one lock acquisition."""
        with self._lock:
            return self._publish_count, self._current

    def wait_for_update(self, after: int, timeout: Optional[float] = None) -> Optional[Tuple[int, TargetResult]]:
        """Wait until more than ``after`` results have been published.

        Returns:
            The new snapshot, or None on timeout
        """
        with self._updated:
            if not self._updated.wait_for(lambda: self._publish_count > after, timeout=timeout):
                return None
            return self._publish_count, self._current
