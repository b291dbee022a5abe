"""Frame pipeline adapter: camera frames in, tape contours out."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Iterator, List, Optional

import cv2

from capture.camera_device import CameraDevice
from contracts import Contour, Frame
from detect.tape_pipeline import TapePipeline
from exceptions import FrameAcquisitionError, FrameStreamClosed


class FrameSource(ABC):
    """Delivers the contours of one frame per call."""

    @abstractmethod
    def next_frame_contours(self) -> Iterable[Contour]:
        """Block until the next frame is available and return its contours.

        The result may be lazy; callers iterate it once.

        Raises:
            FrameAcquisitionError: The frame was lost; the next call may succeed
            FrameStreamClosed: No more frames will arrive
        """


class FramePipelineAdapter(FrameSource):
    """Reads a camera and runs the tape pipeline on every frame."""

    def __init__(
        self,
        camera: CameraDevice,
        pipeline: Optional[TapePipeline] = None,
        read_timeout_ms: int = 1000,
    ) -> None:
        self.camera = camera
        self.pipeline = pipeline or TapePipeline()
        self._read_timeout_ms = read_timeout_ms
        self.last_frame: Optional[Frame] = None

    def next_frame_contours(self) -> List[Contour]:
        frame = self.camera.read_frame(self._read_timeout_ms)
        try:
            contours = self.pipeline.process(frame.image)
        except cv2.error as e:
            raise FrameAcquisitionError(
                f"Camera '{frame.camera_id}': could not process frame {frame.frame_index}: {e}",
                camera_id=frame.camera_id,
            ) from e
        self.last_frame = frame
        return list(contours)


class ReplayFrameSource(FrameSource):
    """Plays back pre-computed contour sets, then closes the stream.

    An item that is an exception instance is raised instead of returned.
    """

    def __init__(self, frames: Iterable[object]) -> None:
        self._frames: Iterator[object] = iter(frames)

    def next_frame_contours(self) -> Iterable[Contour]:
        try:
            item = next(self._frames)
        except StopIteration:
            raise FrameStreamClosed("replay finished", camera_id="replay")
        if isinstance(item, BaseException):
            raise item
        return item  # type: ignore[return-value]
