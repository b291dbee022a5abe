from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class HsvThresholdConfig:
    """Inclusive HSV ranges (OpenCV scale: hue 0-180, saturation/value 0-255)."""

    hue: Tuple[float, float] = (55.0, 95.0)
    saturation: Tuple[float, float] = (100.0, 255.0)
    value: Tuple[float, float] = (80.0, 255.0)


@dataclass(frozen=True)
class ContourFilterConfig:
    min_area: float = 20.0
    min_perimeter: float = 0.0
    min_width: float = 0.0
    max_width: float = 1000.0
    min_height: float = 0.0
    max_height: float = 1000.0
    solidity: Tuple[float, float] = (0.0, 100.0)
    max_vertices: float = 1_000_000.0
    min_vertices: float = 0.0
    min_ratio: float = 0.0
    max_ratio: float = 1000.0


@dataclass(frozen=True)
class PipelineConfig:
    hsv: HsvThresholdConfig = field(default_factory=HsvThresholdConfig)
    filters: ContourFilterConfig = field(default_factory=ContourFilterConfig)
