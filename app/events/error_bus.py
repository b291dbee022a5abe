"""Node-wide error reporting.

Recoverable failures (a dropped frame, a camera that did not come up, a
rejected bus write) are published here instead of being raised. Listeners
such as health counters subscribe by category and never need to know which
component reported the problem.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @property
    def label(self) -> str:
        return self.name


class ErrorCategory(Enum):
    """Which part of the node a failure came from."""

    CAMERA = "camera"
    PIPELINE = "pipeline"
    TRACKING = "tracking"
    BUS = "bus"
    CONFIG = "config"
    SYSTEM = "system"


@dataclass(frozen=True)
class ErrorEvent:
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    source: str
    exception: Optional[BaseException] = None
    timestamp: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        text = f"[{self.severity.label}] {self.category.value}/{self.source}: {self.message}"
        if self.exception is not None:
            text += f" ({type(self.exception).__name__})"
        return text


ErrorCallback = Callable[[ErrorEvent], None]


class ErrorEventBus:
    """Records error events and fans them out to subscribers.

    Subscribers registered with a category only hear that category; those
    registered with ``None`` hear everything. Callbacks run on the
    publishing thread after the bus lock is released, and a failing
    callback never affects the publisher or the other callbacks.
    """

    def __init__(self, max_history: int = 100):
        self._lock = threading.Lock()
        self._callbacks: Dict[Optional[ErrorCategory], List[ErrorCallback]] = {}
        self._history: Deque[ErrorEvent] = deque(maxlen=max_history)
        self._counts: Counter = Counter()

    def subscribe(self, callback: ErrorCallback, category: Optional[ErrorCategory] = None) -> None:
        with self._lock:
            self._callbacks.setdefault(category, []).append(callback)

    def unsubscribe(self, callback: ErrorCallback, category: Optional[ErrorCategory] = None) -> None:
        with self._lock:
            callbacks = self._callbacks.get(category, [])
            if callback in callbacks:
                callbacks.remove(callback)

    def publish(self, event: ErrorEvent) -> None:
        with self._lock:
            self._history.append(event)
            self._counts[event.category] += 1
            listeners = list(self._callbacks.get(event.category, ()))
            listeners += self._callbacks.get(None, ())

        logger.log(event.severity.value, str(event), exc_info=event.exception)

        for callback in listeners:
            try:
                callback(event)
            except Exception:
                name = getattr(callback, "__name__", repr(callback))
                logger.exception(f"Error subscriber {name} failed")

    def get_history(self, category: Optional[ErrorCategory] = None, limit: int = 100) -> List[ErrorEvent]:
        """Most recent events, oldest first, optionally for one category."""
        with self._lock:
            events = [e for e in self._history if category is None or e.category is category]
        return events[-limit:]

    def get_error_counts(self) -> Dict[ErrorCategory, int]:
        """Events published per category since the last clear (not capped by history)."""
        with self._lock:
            return dict(self._counts)

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()
            self._counts.clear()


_default_bus: Optional[ErrorEventBus] = None
_default_bus_lock = threading.Lock()


def get_error_bus() -> ErrorEventBus:
    """Process-wide bus used when a component is not handed one explicitly."""
    global _default_bus
    with _default_bus_lock:
        if _default_bus is None:
            _default_bus = ErrorEventBus()
        return _default_bus


def publish_error(
    category: ErrorCategory,
    severity: ErrorSeverity,
    message: str,
    source: str,
    exception: Optional[BaseException] = None,
    bus: Optional[ErrorEventBus] = None,
    **metadata: Any,
) -> None:
    """Build an ErrorEvent and publish it.

    Args:
        category: Part of the node that failed
        severity: How bad it is; also the log level used
        message: Human-readable description
        source: Reporting component, e.g. ``FrameWorker[front]``
        exception: The exception that caused it, if any
        bus: Bus to publish on (default: the process-wide bus)
        **metadata: Extra context stored on the event
    """
    event = ErrorEvent(category, severity, message, source, exception=exception, metadata=metadata)
    (bus or get_error_bus()).publish(event)


__all__ = [
    "ErrorCallback",
    "ErrorCategory",
    "ErrorEvent",
    "ErrorEventBus",
    "ErrorSeverity",
    "get_error_bus",
    "publish_error",
]
