"""Tests for camera open timeout and retry helpers."""

from __future__ import annotations

import threading
import time
from unittest.mock import Mock

import pytest

from capture.timeout_utils import (
    RetryPolicy,
    exponential_backoff,
    retry_on_failure,
    run_with_timeout,
)
from exceptions import CameraConnectionError


class TestRunWithTimeout:
    def test_returns_result(self):
        assert run_with_timeout(lambda a, b=0: a + b, 1.0, "unused", 2, b=3) == 5

    def test_times_out_without_waiting_for_the_call(self):
        release = threading.Event()
        started = time.monotonic()

        with pytest.raises(CameraConnectionError, match="open /dev/video0 timed out"):
            run_with_timeout(release.wait, 0.1, "open /dev/video0 timed out", 5.0)

        assert time.monotonic() - started < 2.0
        release.set()

    def test_propagates_errors(self):
        def boom():
            raise OSError("device busy")

        with pytest.raises(OSError, match="device busy"):
            run_with_timeout(boom, 1.0)


class TestBackoff:
    def test_doubles_until_capped(self):
        delays = [exponential_backoff(i, base_delay=0.25, max_delay=1.5) for i in range(5)]
        assert delays == [0.25, 0.5, 1.0, 1.5, 1.5]

    def test_policy_limits_attempts_and_types(self):
        policy = RetryPolicy(max_attempts=2, retry_on=(CameraConnectionError,))
        error = CameraConnectionError("gone", camera_id="cam0")

        assert policy.should_retry(0, error)
        assert not policy.should_retry(1, error)
        assert not policy.should_retry(0, ValueError("config"))
        assert policy.get_delay(1) == 1.0


class TestRetryOnFailure:
    def test_retries_until_success(self):
        sleep = Mock()
        call = Mock(side_effect=[CameraConnectionError("busy"), "opened"])

        @retry_on_failure(policy=RetryPolicy(base_delay=0.2), sleep=sleep)
        def open_camera():
            return call()

        assert open_camera() == "opened"
        assert call.call_count == 2
        sleep.assert_called_once_with(0.2)

    def test_gives_up_after_max_attempts(self):
        sleep = Mock()
        call = Mock(side_effect=CameraConnectionError("missing"))

        @retry_on_failure(policy=RetryPolicy(max_attempts=3), sleep=sleep)
        def open_camera():
            return call()

        with pytest.raises(CameraConnectionError, match="missing"):
            open_camera()
        assert call.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0]

    def test_other_errors_are_not_retried(self):
        call = Mock(side_effect=KeyError("pixel format"))

        @retry_on_failure(sleep=Mock())
        def open_camera():
            return call()

        with pytest.raises(KeyError):
            open_camera()
        assert call.call_count == 1

    def test_keeps_function_name(self):
        @retry_on_failure()
        def open_camera():
            """Open it."""

        assert open_camera.__name__ == "open_camera"
        assert open_camera.__doc__ == "Open it."
