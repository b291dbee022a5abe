"""Unit tests for the error event bus."""

import threading
import unittest
from unittest.mock import Mock

from app.events import (
    ErrorCategory,
    ErrorEvent,
    ErrorEventBus,
    ErrorSeverity,
    get_error_bus,
    publish_error,
)


def _event(category=ErrorCategory.CAMERA, message="Frame skipped", exception=None):
    return ErrorEvent(
        category=category,
        severity=ErrorSeverity.WARNING,
        message=message,
        source="FrameWorker[cam0]",
        exception=exception,
    )


class TestErrorEvent(unittest.TestCase):
    def test_string_representation(self):
        event = _event(exception=TimeoutError("read timed out"))

        text = str(event)
        self.assertIn("[WARNING]", text)
        self.assertIn("camera/FrameWorker[cam0]", text)
        self.assertIn("Frame skipped", text)
        self.assertIn("TimeoutError", text)


class TestErrorEventBus(unittest.TestCase):
    def setUp(self):
        self.bus = ErrorEventBus(max_history=3)

    def test_category_and_global_subscribers(self):
        camera_cb = Mock()
        all_cb = Mock()
        self.bus.subscribe(camera_cb, ErrorCategory.CAMERA)
        self.bus.subscribe(all_cb)

        camera_event = _event()
        bus_event = _event(ErrorCategory.BUS, "flush failed")
        self.bus.publish(camera_event)
        self.bus.publish(bus_event)

        camera_cb.assert_called_once_with(camera_event)
        self.assertEqual(all_cb.call_count, 2)

    def test_unsubscribe(self):
        callback = Mock()
        self.bus.subscribe(callback, ErrorCategory.CAMERA)
        self.bus.unsubscribe(callback, ErrorCategory.CAMERA)
        self.bus.publish(_event())
        callback.assert_not_called()

    def test_failing_subscriber_does_not_block_others(self):
        broken = Mock(side_effect=RuntimeError("subscriber bug"))
        broken.__name__ = "broken"
        healthy = Mock()
        self.bus.subscribe(broken)
        self.bus.subscribe(healthy)

        self.bus.publish(_event())

        healthy.assert_called_once()

    def test_history_is_bounded(self):
        for i in range(5):
            self.bus.publish(_event(message=f"frame {i}"))

        history = self.bus.get_history()
        self.assertEqual([e.message for e in history], ["frame 2", "frame 3", "frame 4"])
        self.assertEqual(self.bus.get_error_counts()[ErrorCategory.CAMERA], 5)

    def test_history_filter_and_clear(self):
        self.bus.publish(_event())
        self.bus.publish(_event(ErrorCategory.CONFIG, "bad ntmode"))

        self.assertEqual(len(self.bus.get_history(ErrorCategory.CONFIG)), 1)
        self.bus.clear_history()
        self.assertEqual(self.bus.get_history(), [])
        self.assertEqual(self.bus.get_error_counts(), {})

    def test_concurrent_publishers(self):
        bus = ErrorEventBus(max_history=1000)

        def worker():
            for _ in range(100):
                bus.publish(_event())

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(bus.get_error_counts()[ErrorCategory.CAMERA], 400)


class TestPublishError(unittest.TestCase):
    def test_publishes_on_given_bus(self):
        bus = ErrorEventBus()
        publish_error(
            ErrorCategory.CAMERA,
            ErrorSeverity.ERROR,
            "Camera 'front' failed to start",
            source="start_cameras",
            bus=bus,
            path="/dev/video1",
        )

        (event,) = bus.get_history()
        self.assertEqual(event.severity, ErrorSeverity.ERROR)
        self.assertEqual(event.metadata, {"path": "/dev/video1"})

    def test_global_bus_is_singleton(self):
        self.assertIs(get_error_bus(), get_error_bus())


if __name__ == "__main__":
    unittest.main()
