"""Bounded waits and retries for opening camera devices.

A USB camera that is unplugged mid-open, or still held by a previous
process, can leave ``cv2.VideoCapture`` blocked in the kernel. Opening is
therefore run on a throwaway thread with a deadline, and retried a few times
with growing pauses before the camera is given up on.
"""

from __future__ import annotations

import functools
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

from exceptions import CameraConnectionError
from log_config.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def run_with_timeout(
    func: Callable[..., T],
    timeout_seconds: float,
    error_message: str = "Operation timed out",
    *args: Any,
    **kwargs: Any,
) -> T:
    """Call ``func(*args, **kwargs)`` and wait at most ``timeout_seconds``.

    On timeout the helper thread is left to finish on its own.

    Raises:
        CameraConnectionError: If the deadline passes first
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="camera-open")
    try:
        future = executor.submit(func, *args, **kwargs)
        try:
            return future.result(timeout=timeout_seconds)
        except FutureTimeoutError:
            message = f"{error_message} after {timeout_seconds}s"
            logger.error(message)
            raise CameraConnectionError(message) from None
    finally:
        executor.shutdown(wait=False)


def exponential_backoff(attempt: int, base_delay: float = 0.5, max_delay: float = 5.0) -> float:
    """Pause before retry ``attempt`` (0 for the first retry): base * 2^attempt, capped."""
    return min(base_delay * (2**attempt), max_delay)


@dataclass(frozen=True)
class RetryPolicy:
    """How often, how patiently and on which errors to retry.

    ``max_attempts`` counts the first call too.
    """

    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 5.0
    retry_on: Tuple[Type[Exception], ...] = (CameraConnectionError,)

    def should_retry(self, attempt: int, exception: Exception) -> bool:
        """True if the failure of 0-based call ``attempt`` deserves another try."""
        has_attempts_left = attempt < self.max_attempts - 1
        return has_attempts_left and isinstance(exception, self.retry_on)

    def get_delay(self, attempt: int) -> float:
        return exponential_backoff(attempt, self.base_delay, self.max_delay)


def retry_on_failure(
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorate a camera operation so retryable failures are tried again.

    Example:
        @retry_on_failure(RetryPolicy(max_attempts=5))
        def open(self, path: str) -> None:
            ...
    """
    policy = policy or RetryPolicy()

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(policy.max_attempts):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not policy.should_retry(attempt, e):
                        if attempt > 0:
                            logger.error(f"{func.__name__} gave up after {attempt + 1} attempt(s): {e}")
                        raise
                    delay = policy.get_delay(attempt)
                    logger.warning(
                        f"{func.__name__} attempt {attempt + 1}/{policy.max_attempts} failed ({e}), "
                        f"retrying in {delay:.2f}s"
                    )
                    sleep(delay)
            raise AssertionError("unreachable: the last attempt either returns or raises")

        return wrapper

    return decorator


__all__ = [
    "RetryPolicy",
    "exponential_backoff",
    "retry_on_failure",
    "run_with_timeout",
]
