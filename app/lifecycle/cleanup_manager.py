"""Ordered, time-bounded shutdown of node resources."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class CleanupTask:
    name: str
    callback: Callable[[], None]
    timeout: float = 5.0
    critical: bool = False


class CleanupManager:
    """Runs registered shutdown tasks newest first.

    Resources register as they come up (bus, cameras, worker), so running the
    list backwards stops the worker before the cameras it reads and the bus it
    writes. Each task gets its own deadline; a task that overruns is left
    running on its daemon thread and the next task starts.
    """

    def __init__(self, default_timeout: float = 5.0):
        self._default_timeout = default_timeout
        self._tasks: List[CleanupTask] = []
        self._lock = threading.Lock()
        self._running = False

    def register_cleanup(
        self,
        name: str,
        callback: Callable[[], None],
        timeout: Optional[float] = None,
        critical: bool = False,
    ) -> None:
        """Add a task.

        Args:
            name: Task name, used in logs and for unregister_cleanup()
            callback: Zero-argument function releasing the resource
            timeout: Deadline for this task (default: the manager's default)
            critical: If True, failure or overrun makes cleanup() return False
        """
        task = CleanupTask(name, callback, timeout or self._default_timeout, critical)
        with self._lock:
            self._tasks.append(task)
        logger.debug(f"Registered cleanup task '{name}'")

    def unregister_cleanup(self, name: str) -> bool:
        with self._lock:
            for task in self._tasks:
                if task.name == name:
                    self._tasks.remove(task)
                    return True
        return False

    @property
    def task_names(self) -> List[str]:
        with self._lock:
            return [task.name for task in self._tasks]

    def cleanup(self) -> bool:
        """Run and drop every registered task, newest first.

        Returns:
            False if a critical task failed or timed out, else True
        """
        with self._lock:
            if self._running:
                logger.warning("Cleanup already running, ignoring second request")
                return False
            self._running = True
            tasks, self._tasks = self._tasks[::-1], []

        clean = True
        started = time.monotonic()
        logger.info(f"Running {len(tasks)} cleanup task(s)")
        try:
            for task in tasks:
                if not self._run_task(task) and task.critical:
                    clean = False
        finally:
            with self._lock:
                self._running = False
        logger.info(f"Cleanup finished in {time.monotonic() - started:.2f}s (clean={clean})")
        return clean

    def _run_task(self, task: CleanupTask) -> bool:
        errors: List[BaseException] = []

        def target() -> None:
            try:
                task.callback()
            except Exception as e:
                errors.append(e)

        thread = threading.Thread(target=target, name=f"cleanup-{task.name}", daemon=True)
        task_started = time.monotonic()
        thread.start()
        thread.join(timeout=task.timeout)

        if thread.is_alive():
            logger.error(f"Cleanup task '{task.name}' still running after {task.timeout}s, moving on")
            return False
        if errors:
            logger.error(f"Cleanup task '{task.name}' failed: {errors[0]}", exc_info=errors[0])
            return False
        logger.info(f"Cleanup task '{task.name}' done in {time.monotonic() - task_started:.2f}s")
        return True


__all__ = [
    "CleanupManager",
    "CleanupTask",
]
