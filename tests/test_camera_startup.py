"""Tests for camera bring-up from configuration entries."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from app.camera import build_camera, start_camera, start_cameras
from app.events import ErrorCategory, get_error_bus
from capture import OpenCVCamera, SimulatedCamera
from configs.settings import read_camera_config
from exceptions import CameraConfigurationError, CameraConnectionError


def camera_config(name: str = "front", path: str = "/dev/video0", **extra):
    return read_camera_config({"name": name, "path": path, **extra})


class TestBuildCamera:
    def test_backends(self):
        assert isinstance(build_camera(camera_config(), "sim"), SimulatedCamera)
        assert isinstance(build_camera(camera_config(), "opencv"), OpenCVCamera)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="gstreamer"):
            build_camera(camera_config(), "gstreamer")


class TestStartCamera:
    def test_opens_and_configures(self):
        camera = start_camera(camera_config(width=160, height=120), "sim")

        assert camera.is_open()
        assert camera.name == "front"
        frame = camera.read_frame(timeout_ms=100)
        assert (frame.width, frame.height) == (160, 120)

    def test_logs_start(self):
        with patch("app.camera.startup.logger") as logger:
            start_camera(camera_config(name="rPi Camera 0"), "sim")
        logger.info.assert_any_call("Starting camera 'rPi Camera 0' on /dev/video0")

    def test_config_failure_closes_device(self):
        device = MagicMock()
        device.apply_config.side_effect = CameraConnectionError("rejected")
        with patch.dict("app.camera.startup.BACKENDS", {"mock": lambda config: device}):
            with pytest.raises(CameraConnectionError):
                start_camera(camera_config(), "mock")
        device.close.assert_called_once_with()


class TestStartCameras:
    def test_failed_cameras_are_skipped(self):
        broken = MagicMock()
        broken.open.side_effect = CameraConnectionError("missing", camera_id="back")

        def factory(config):
            return broken if config.name == "back" else SimulatedCamera(name=config.name)

        error_bus = get_error_bus()
        error_bus.clear_history()
        configs = [camera_config("front"), camera_config("back", "/dev/video1"), camera_config("side", "2")]
        with patch.dict("app.camera.startup.BACKENDS", {"mixed": factory}):
            started = start_cameras(configs, "mixed")

        assert [camera.name for camera in started] == ["front", "side"]
        assert started[1].config.path == "2"
        events = error_bus.get_history(ErrorCategory.CAMERA)
        assert len(events) == 1
        assert events[0].metadata == {"path": "/dev/video1"}

    def test_unexpected_config_failure_skips_camera(self):
        device = MagicMock()
        device.apply_config.side_effect = ValueError("could not convert string to float: 'auto'")

        error_bus = get_error_bus()
        error_bus.clear_history()
        with patch.dict("app.camera.startup.BACKENDS", {"mock": lambda config: device}):
            started = start_cameras([camera_config("front")], "mock")

        assert started == []
        device.close.assert_called_once_with()
        (event,) = error_bus.get_history(ErrorCategory.CAMERA)
        assert isinstance(event.exception, CameraConfigurationError)
        assert isinstance(event.exception.__cause__, ValueError)

    def test_string_property_on_opencv_backend(self):
        capture = MagicMock()
        capture.isOpened.return_value = True
        capture.set.return_value = True
        capture.get.return_value = 0
        config = camera_config(properties=[{"name": "brightness", "value": "auto"}])

        with patch("capture.opencv_backend.cv2.VideoCapture", return_value=capture):
            started = start_cameras([config], "opencv")

        assert [camera.name for camera in started] == ["front"]
