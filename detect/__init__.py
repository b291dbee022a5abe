"""Detection module."""

from .config import ContourFilterConfig, HsvThresholdConfig, PipelineConfig
from .filters import filter_contours
from .tape_pipeline import TapePipeline, find_contours, hsv_threshold

__all__ = [
    "ContourFilterConfig",
    "HsvThresholdConfig",
    "PipelineConfig",
    "TapePipeline",
    "filter_contours",
    "find_contours",
    "hsv_threshold",
]
