"""Frame pipeline module - contours to published target results.

This module provides the frame source adapters, the result publisher and the
frame worker that ties them to the target tracker.
"""

from .frame_source import FramePipelineAdapter, FrameSource, ReplayFrameSource
from .frame_worker import FrameWorker, WorkerState, WorkerStats
from .result_publisher import ResultPublisher

__all__ = [
    "FramePipelineAdapter",
    "FrameSource",
    "FrameWorker",
    "ReplayFrameSource",
    "ResultPublisher",
    "WorkerState",
    "WorkerStats",
]
