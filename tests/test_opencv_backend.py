"""OpenCV camera backend against a mocked cv2.VideoCapture."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import cv2
import numpy as np
import pytest

from capture import OpenCVCamera
from configs.settings import read_camera_config
from exceptions import CameraConnectionError, FrameAcquisitionError


def _capture(width=640, height=480, opened=True) -> MagicMock:
    capture = MagicMock()
    capture.isOpened.return_value = opened
    capture.set.return_value = True
    sizes = {cv2.CAP_PROP_FRAME_WIDTH: width, cv2.CAP_PROP_FRAME_HEIGHT: height}
    capture.get.side_effect = lambda prop: sizes.get(prop, 0)
    capture.read.return_value = (True, np.zeros((height, width, 3), dtype=np.uint8))
    return capture


class TestOpenCVCamera:
    def test_open_by_index(self):
        capture = _capture()
        with patch("capture.opencv_backend.cv2.VideoCapture", return_value=capture) as video_capture:
            camera = OpenCVCamera(name="front")
            camera.open("0")

        video_capture.assert_called_once_with(0, cv2.CAP_V4L2)
        assert camera.is_open()
        assert camera.get_stats().width == 640

    def test_open_failure_is_retried(self):
        capture = _capture(opened=False)
        with patch("capture.opencv_backend.cv2.VideoCapture", return_value=capture) as video_capture:
            camera = OpenCVCamera(name="front")
            with pytest.raises(CameraConnectionError, match="/dev/video9"):
                camera.open("/dev/video9")

        assert video_capture.call_count == 3
        assert capture.release.call_count == 3

    def test_read_resizes_to_requested_resolution(self):
        capture = _capture()
        with patch("capture.opencv_backend.cv2.VideoCapture", return_value=capture):
            camera = OpenCVCamera()
            camera.open("/dev/video0")
        camera.set_resolution(320, 240)

        frame = camera.read_frame(timeout_ms=100)

        assert frame.image.shape == (240, 320, 3)
        assert (frame.width, frame.height, frame.frame_index) == (320, 240, 1)

    def test_failed_read(self):
        capture = _capture()
        capture.read.return_value = (False, None)
        with patch("capture.opencv_backend.cv2.VideoCapture", return_value=capture):
            camera = OpenCVCamera()
            camera.open("0")

        with pytest.raises(FrameAcquisitionError):
            camera.read_frame(timeout_ms=100)
        assert camera.get_stats().dropped_frames == 1

    def test_apply_config(self):
        capture = _capture(width=320, height=240)
        with patch("capture.opencv_backend.cv2.VideoCapture", return_value=capture):
            camera = OpenCVCamera()
            camera.open("0")
        config = read_camera_config(
            {
                "name": "front",
                "path": "0",
                "width": 320,
                "height": 240,
                "fps": 30,
                "exposure": "auto",
                "properties": [{"name": "contrast", "value": 40}, {"name": "raw_focus", "value": 1}],
            }
        )

        camera.apply_config(config)

        capture.set.assert_any_call(cv2.CAP_PROP_FPS, 30.0)
        capture.set.assert_any_call(cv2.CAP_PROP_AUTO_EXPOSURE, 3.0)
        capture.set.assert_any_call(cv2.CAP_PROP_CONTRAST, 40.0)

    def test_non_numeric_property_is_skipped(self):
        capture = _capture()
        with patch("capture.opencv_backend.cv2.VideoCapture", return_value=capture):
            camera = OpenCVCamera()
            camera.open("0")
        config = read_camera_config(
            {
                "name": "front",
                "path": "0",
                "properties": [{"name": "contrast", "value": "auto"}, {"name": "saturation", "value": 60}],
            }
        )

        camera.apply_config(config)

        set_props = [call.args[0] for call in capture.set.call_args_list]
        assert cv2.CAP_PROP_CONTRAST not in set_props
        capture.set.assert_any_call(cv2.CAP_PROP_SATURATION, 60.0)

    def test_use_before_open(self):
        with pytest.raises(CameraConnectionError):
            OpenCVCamera().read_frame(timeout_ms=100)

    def test_close_releases(self):
        capture = _capture()
        with patch("capture.opencv_backend.cv2.VideoCapture", return_value=capture):
            camera = OpenCVCamera()
            camera.open("0")
        camera.close()
        capture.release.assert_called_once_with()
        assert not camera.is_open()
