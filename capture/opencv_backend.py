"""OpenCV-based camera backend."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional, Union

import cv2

from configs.settings import CameraConfig
from contracts import Frame
from exceptions import CameraConnectionError, FrameAcquisitionError
from log_config.logger import get_logger

from .camera_device import CameraDevice, CameraStats
from .timeout_utils import RetryPolicy, retry_on_failure, run_with_timeout

logger = get_logger(__name__)

# frc.json pixel format names -> FOURCC codes
_FOURCC_BY_PIXEL_FORMAT = {
    "MJPEG": "MJPG",
    "YUYV": "YUYV",
    "RGB565": "RGBP",
    "BGR": "BGR3",
    "GRAY": "GREY",
}

# Named device properties OpenCV can set directly
_CAPTURE_PROPERTIES = {
    "brightness": cv2.CAP_PROP_BRIGHTNESS,
    "contrast": cv2.CAP_PROP_CONTRAST,
    "saturation": cv2.CAP_PROP_SATURATION,
    "hue": cv2.CAP_PROP_HUE,
    "gain": cv2.CAP_PROP_GAIN,
    "sharpness": cv2.CAP_PROP_SHARPNESS,
    "gamma": cv2.CAP_PROP_GAMMA,
    "backlight_compensation": cv2.CAP_PROP_BACKLIGHT,
    "focus_auto": cv2.CAP_PROP_AUTOFOCUS,
    "focus_absolute": cv2.CAP_PROP_FOCUS,
    "exposure_absolute": cv2.CAP_PROP_EXPOSURE,
    "white_balance_temperature": cv2.CAP_PROP_WB_TEMPERATURE,
}

# V4L2 auto-exposure modes as reported through OpenCV
_EXPOSURE_MANUAL = 1
_EXPOSURE_AUTO = 3


@dataclass
class _Stats:
    frames: int = 0
    dropped: int = 0
    started_ns: int = 0


class OpenCVCamera(CameraDevice):
    def __init__(self, name: str = "camera", open_timeout_s: float = 5.0) -> None:
        self.name = name
        self._path: Optional[str] = None
        self._capture: Optional[cv2.VideoCapture] = None
        self._stats = _Stats()
        self._open_timeout_s = open_timeout_s
        self._width = 0
        self._height = 0

    @staticmethod
    def _device_source(path: str) -> Union[int, str]:
        return int(path) if path.isdigit() else path

    @retry_on_failure(
        policy=RetryPolicy(
            max_attempts=3,
            base_delay=0.5,
            max_delay=2.0,
            retry_on=(CameraConnectionError,),
        )
    )
    def open(self, path: str) -> None:
        """Open camera by device path or index.

        Raises:
            CameraConnectionError: If camera fails to open within timeout
        """
        self._path = str(path)
        source = self._device_source(self._path)
        logger.info(f"Opening camera '{self.name}' at {self._path}")

        def _open_camera() -> cv2.VideoCapture:
            capture = cv2.VideoCapture(source, cv2.CAP_V4L2)
            if not capture.isOpened():
                capture.release()
                raise CameraConnectionError(
                    f"Failed to open camera '{self.name}' at {self._path} - device may be in use or missing",
                    camera_id=self.name,
                )
            return capture

        self._capture = run_with_timeout(
            _open_camera,
            self._open_timeout_s,
            f"Opening camera '{self.name}' at {self._path} timed out",
        )
        self._stats = _Stats(started_ns=time.monotonic_ns())
        self._width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        self._height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))

    def _require_capture(self) -> cv2.VideoCapture:
        if self._capture is None:
            raise CameraConnectionError(f"Camera '{self.name}' not opened", camera_id=self.name)
        return self._capture

    def _set(self, prop: int, value: Any, label: str) -> None:
        try:
            numeric = float(value)
        except (TypeError, ValueError):
            logger.warning(f"Camera '{self.name}': ignoring non-numeric {label}={value!r}")
            return
        if not self._require_capture().set(prop, numeric):
            logger.warning(f"Camera '{self.name}': device rejected {label}={value}")

    def apply_config(self, config: CameraConfig) -> None:
        """Apply the video mode and device properties of a camera entry.

        Anything OpenCV cannot express is logged and skipped.
        """
        if config.pixel_format:
            fourcc = _FOURCC_BY_PIXEL_FORMAT.get(config.pixel_format.upper())
            if fourcc is None:
                logger.warning(f"Camera '{self.name}': unknown pixel format '{config.pixel_format}'")
            else:
                self._set(cv2.CAP_PROP_FOURCC, cv2.VideoWriter_fourcc(*fourcc), "pixel format")
        if config.width and config.height:
            self.set_resolution(config.width, config.height)
        if config.fps:
            self._set(cv2.CAP_PROP_FPS, config.fps, "fps")
        if config.brightness is not None:
            self._set(cv2.CAP_PROP_BRIGHTNESS, config.brightness, "brightness")

        white_balance = config.white_balance
        if white_balance == "auto":
            self._set(cv2.CAP_PROP_AUTO_WB, 1, "white balance")
        elif white_balance == "hold":
            self._set(cv2.CAP_PROP_AUTO_WB, 0, "white balance")
        elif white_balance is not None:
            self._set(cv2.CAP_PROP_AUTO_WB, 0, "white balance")
            self._set(cv2.CAP_PROP_WB_TEMPERATURE, white_balance, "white balance")

        exposure = config.exposure
        if exposure == "auto":
            self._set(cv2.CAP_PROP_AUTO_EXPOSURE, _EXPOSURE_AUTO, "exposure")
        elif exposure == "hold":
            self._set(cv2.CAP_PROP_AUTO_EXPOSURE, _EXPOSURE_MANUAL, "exposure")
        elif exposure is not None:
            self._set(cv2.CAP_PROP_AUTO_EXPOSURE, _EXPOSURE_MANUAL, "exposure")
            self._set(cv2.CAP_PROP_EXPOSURE, exposure, "exposure")

        for prop in config.properties:
            cv_prop = _CAPTURE_PROPERTIES.get(prop["name"])
            if cv_prop is None:
                logger.debug(f"Camera '{self.name}': property '{prop['name']}' not supported, skipped")
                continue
            self._set(cv_prop, prop["value"], prop["name"])

    def set_resolution(self, width: int, height: int) -> None:
        capture = self._require_capture()
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        self._width = width
        self._height = height

        actual_width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        if actual_width != width or actual_height != height:
            logger.warning(
                f"Camera '{self.name}': requested {width}x{height} but got "
                f"{actual_width}x{actual_height}, frames will be resized"
            )

    def read_frame(self, timeout_ms: int) -> Frame:
        capture = self._require_capture()
        ok, image = capture.read()
        if not ok or image is None:
            self._stats.dropped += 1
            raise FrameAcquisitionError(
                f"Camera '{self.name}': failed to read frame", camera_id=self.name
            )
        if self._width and self._height and (
            image.shape[1] != self._width or image.shape[0] != self._height
        ):
            image = cv2.resize(image, (self._width, self._height), interpolation=cv2.INTER_AREA)

        self._stats.frames += 1
        return Frame(
            camera_id=self.name,
            frame_index=self._stats.frames,
            t_capture_monotonic_ns=time.monotonic_ns(),
            image=image,
            width=image.shape[1],
            height=image.shape[0],
            pixfmt="BGR24",
        )

    def get_stats(self) -> CameraStats:
        elapsed_s = (time.monotonic_ns() - self._stats.started_ns) / 1e9 if self._stats.started_ns else 0.0
        return CameraStats(
            frames=self._stats.frames,
            dropped_frames=self._stats.dropped,
            fps_avg=self._stats.frames / elapsed_s if elapsed_s > 0 else 0.0,
            width=self._width,
            height=self._height,
        )

    def is_open(self) -> bool:
        return bool(self._capture is not None and self._capture.isOpened())

    def close(self) -> None:
        if self._capture is not None:
            logger.info(f"Releasing camera '{self.name}'")
            self._capture.release()
            self._capture = None
