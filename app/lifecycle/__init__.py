"""Lifecycle management for node shutdown and cleanup."""

from app.lifecycle.cleanup_manager import CleanupManager, CleanupTask

__all__ = [
    "CleanupManager",
    "CleanupTask",
]
