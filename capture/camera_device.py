"""Camera abstraction for vision node capture backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from configs.settings import CameraConfig
from contracts import Frame


@dataclass(frozen=True)
class CameraStats:
    frames: int
    dropped_frames: int
    fps_avg: float
    width: int
    height: int


class CameraDevice(ABC):
    """One physical (or simulated) camera exposed as a named video source."""

    name: str = "camera"

    @abstractmethod
    def open(self, path: str) -> None:
        """Open the device at ``path`` (e.g. ``/dev/video0`` or an index)."""

    @abstractmethod
    def apply_config(self, config: CameraConfig) -> None:
        """Apply video mode and device properties from a camera entry."""

    @abstractmethod
    def set_resolution(self, width: int, height: int) -> None:
        """Force the resolution of delivered frames."""

    @abstractmethod
    def read_frame(self, timeout_ms: int) -> Frame:
        """Block for the next frame.

        Raises:
            FrameAcquisitionError: If the frame could not be read or decoded
            FrameStreamClosed: If the source has no more frames
        """

    @abstractmethod
    def get_stats(self) -> CameraStats:
        """Return capture diagnostics."""

    @abstractmethod
    def close(self) -> None:
        """Close the camera."""

    def is_open(self) -> bool:
        return False
