"""Shared data contracts for the vision node."""

from .types import (
    BoundingRect,
    Contour,
    Frame,
    TargetResult,
)

__all__ = [
    "BoundingRect",
    "Contour",
    "Frame",
    "TargetResult",
]
