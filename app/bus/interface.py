"""ControlBus interface for the robot's key-value control channel.

Responsibility: carry published target geometry to the drive/aiming code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ControlBus(ABC):
    """Abstract interface for the control bus.

    Thread-Safety:
        - put_* and get_* may be called from the frame worker thread while
          the main thread owns start()/stop()
    """

    @abstractmethod
    def start(self) -> None:
        """Connect to (or host) the bus.

        Raises:
            BusError: If the bus cannot be started
        """

    @abstractmethod
    def stop(self) -> None:
        """Disconnect from the bus.

        Idempotent: Safe to call multiple times.
        """

    @abstractmethod
    def put_number(self, key: str, value: float) -> None:
        """Write a numeric entry."""

    @abstractmethod
    def put_boolean(self, key: str, value: bool) -> None:
        """Write a boolean entry."""

    @abstractmethod
    def get_number(self, key: str, default: float) -> float:
        """Read a numeric entry, or ``default`` if it has never been written."""

    @abstractmethod
    def get_boolean(self, key: str, default: bool) -> bool:
        """Read a boolean entry, or ``default`` if it has never been written."""

    def flush(self) -> None:
        """Push pending writes to peers immediately (optional)."""
