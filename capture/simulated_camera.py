"""Simulated camera backend for pipeline testing.

Renders a dark field with bright green rectangles standing in for the two
retro-reflective tape strips lit by the ring light.
"""

from __future__ import annotations

import time
from typing import Iterable, List, Optional, Sequence, Set, Tuple

import cv2
import numpy as np

from configs.settings import CameraConfig
from contracts import Frame
from exceptions import FrameAcquisitionError, FrameStreamClosed

from .camera_device import CameraDevice, CameraStats

Rect = Tuple[int, int, int, int]

TAPE_COLOR_BGR = (0, 255, 0)


def default_targets(width: int, height: int) -> List[Rect]:
    """Two upright strips centred in the frame, a quarter of the width apart."""
    strip_w = max(width // 32, 2)
    strip_h = max(height // 6, 4)
    top = height // 2 - strip_h // 2
    left = width // 2 - width // 8 - strip_w // 2
    right = width // 2 + width // 8 - strip_w // 2
    return [(left, top, strip_w, strip_h), (right, top, strip_w, strip_h)]


class SimulatedCamera(CameraDevice):
    def __init__(
        self,
        name: str = "sim",
        targets: Optional[Sequence[Rect]] = None,
        fps: int = 0,
        max_frames: Optional[int] = None,
        fail_frames: Iterable[int] = (),
    ) -> None:
        """
        Args:
            name: Camera name
            targets: Rectangles (x, y, w, h) to draw; defaults to two centred strips
            fps: Frame pacing, 0 for as fast as possible
            max_frames: End the stream after this many frames
            fail_frames: 1-based frame numbers whose read fails
        """
        self.name = name
        self._path: Optional[str] = None
        self._width = 320
        self._height = 240
        self._fps = fps
        self._targets: Optional[List[Rect]] = list(targets) if targets is not None else None
        self._max_frames = max_frames
        self._fail_frames: Set[int] = set(fail_frames)
        self._attempts = 0
        self._frame_index = 0
        self._dropped = 0
        self._last_frame_time = time.monotonic()
        self._opened = False

    def open(self, path: str) -> None:
        self._path = path
        self._opened = True

    def apply_config(self, config: CameraConfig) -> None:
        if config.width and config.height:
            self.set_resolution(config.width, config.height)
        if config.fps:
            self._fps = config.fps

    def set_resolution(self, width: int, height: int) -> None:
        self._width = width
        self._height = height

    def set_targets(self, targets: Sequence[Rect]) -> None:
        self._targets = list(targets)

    def render(self) -> np.ndarray:
        image = np.full((self._height, self._width, 3), 20, dtype=np.uint8)
        targets = self._targets if self._targets is not None else default_targets(self._width, self._height)
        for x, y, w, h in targets:
            cv2.rectangle(image, (x, y), (x + w - 1, y + h - 1), TAPE_COLOR_BGR, thickness=cv2.FILLED)
        return image

    def read_frame(self, timeout_ms: int) -> Frame:
        if not self._opened:
            raise FrameStreamClosed(f"Camera '{self.name}' is closed", camera_id=self.name)
        if self._max_frames is not None and self._attempts >= self._max_frames:
            raise FrameStreamClosed(f"Camera '{self.name}' reached end of stream", camera_id=self.name)

        if self._fps > 0:
            target_delay = 1.0 / self._fps
            elapsed = time.monotonic() - self._last_frame_time
            if elapsed < target_delay:
                time.sleep(target_delay - elapsed)
        self._last_frame_time = time.monotonic()

        self._attempts += 1
        if self._attempts in self._fail_frames:
            self._dropped += 1
            raise FrameAcquisitionError(
                f"Camera '{self.name}': simulated read failure on frame {self._attempts}",
                camera_id=self.name,
            )

        self._frame_index += 1
        image = self.render()
        return Frame(
            camera_id=self.name,
            frame_index=self._frame_index,
            t_capture_monotonic_ns=time.monotonic_ns(),
            image=image,
            width=self._width,
            height=self._height,
            pixfmt="BGR24",
        )

    def get_stats(self) -> CameraStats:
        return CameraStats(
            frames=self._frame_index,
            dropped_frames=self._dropped,
            fps_avg=float(self._fps),
            width=self._width,
            height=self._height,
        )

    def is_open(self) -> bool:
        return self._opened

    def close(self) -> None:
        self._opened = False
