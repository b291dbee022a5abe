"""Core data contracts for capture, contour detection and target tracking."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence, Tuple, Union

import numpy as np

# One connected blob boundary: OpenCV's (N, 1, 2) int32 array, an (N, 2)
# array, or a plain sequence of (x, y) pairs.
Contour = Union[np.ndarray, Sequence[Tuple[int, int]]]


@dataclass(frozen=True)
class Frame:
    camera_id: str
    frame_index: int
    t_capture_monotonic_ns: int
    image: Any
    width: int
    height: int
    pixfmt: str


@dataclass(frozen=True)
class BoundingRect:
    """Axis-aligned rectangle enclosing a contour, x increasing rightward."""

    x: int
    y: int
    width: int
    height: int

    @property
    def center_x(self) -> int:
        return self.x + self.width // 2


@dataclass(frozen=True)
class TargetResult:
    """Geometry of the tracked target for one frame.

    Replaced as a whole every frame; never mutated.
    """

    center_x: int
    left_x: int
    right_x: int
    distance: float
    valid: bool

    @classmethod
    def invalid(cls) -> "TargetResult":
        """Sentinel for "no target" (fewer than two candidates, zero width)."""
        return cls(center_x=0, left_x=0, right_x=0, distance=0.0, valid=False)

    @property
    def width(self) -> int:
        return self.right_x - self.left_x
