"""In-memory control bus for local consumers and tests."""

from __future__ import annotations

import threading
from typing import Dict, Union

from app.bus.interface import ControlBus

Value = Union[float, bool]


class InMemoryBus(ControlBus):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._values: Dict[str, Value] = {}
        self._running = False
        self.flush_count = 0

    def start(self) -> None:
        self._running = True

    def stop(self) -> None:
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def put_number(self, key: str, value: float) -> None:
        with self._lock:
            self._values[key] = float(value)

    def put_boolean(self, key: str, value: bool) -> None:
        with self._lock:
            self._values[key] = bool(value)

    def get_number(self, key: str, default: float) -> float:
        with self._lock:
            value = self._values.get(key, default)
        return float(value)

    def get_boolean(self, key: str, default: bool) -> bool:
        with self._lock:
            value = self._values.get(key, default)
        return bool(value)

    def flush(self) -> None:
        self.flush_count += 1

    def snapshot(self) -> Dict[str, Value]:
        """Copy of every entry, taken atomically."""
        with self._lock:
            return dict(self._values)
