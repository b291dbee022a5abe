"""Pairs tape contours into a left/right target and estimates its distance.

The two rightmost bounding rectangles of a frame are taken as the target
pair. This is only right when the frame holds at most one real target plus
noise that is smaller or further left; extra rectangles are ignored rather
than scored.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from contracts import BoundingRect, Contour, TargetResult
from log_config.logger import get_logger

logger = get_logger(__name__)

# Calibration constant from the tape geometry and the camera's field of view.
# distance = DISTANCE_CONSTANT / target width in pixels
DISTANCE_CONSTANT = 11.0 * ((88.0 * 43.0) / 11.0)


def bounding_rect(contour: Contour) -> Optional[BoundingRect]:
    """Bounding rectangle of a contour, or None if it has no usable points."""
    try:
        points = np.asarray(contour)
        if points.size == 0 or points.size % 2 != 0:
            return None
        points = points.reshape(-1, 2).astype(np.int32)
        x, y, w, h = cv2.boundingRect(points)
    except (TypeError, ValueError, cv2.error) as e:
        logger.debug(f"Skipping malformed contour: {e}")
        return None
    return BoundingRect(x=int(x), y=int(y), width=int(w), height=int(h))


def sort_rightmost_first(rects: Sequence[BoundingRect]) -> List[BoundingRect]:
    """Sort by x descending; rectangles with equal x keep their input order."""
    return sorted(rects, key=lambda rect: rect.x, reverse=True)


def select_target_pair(rects: Sequence[BoundingRect]) -> Optional[Tuple[BoundingRect, BoundingRect]]:
    """Return (left tape, right tape) from the two rightmost rectangles."""
    if len(rects) < 2:
        return None
    ordered = sort_rightmost_first(rects)
    return ordered[1], ordered[0]


def estimate_distance(width_px: int) -> float:
    return DISTANCE_CONSTANT / width_px


class TargetTracker:
    """Turns one frame's contours into a TargetResult.

    Pure: the result depends only on the contours passed in, and no
    exception escapes ``compute``. Degenerate frames give
    ``TargetResult.invalid()``.
    """

    def compute(self, contours: Iterable[Contour]) -> TargetResult:
        rects = [rect for rect in (bounding_rect(c) for c in contours) if rect is not None]

        pair = select_target_pair(rects)
        if pair is None:
            logger.debug(f"Only {len(rects)} candidate rectangle(s), no target")
            return TargetResult.invalid()
        left_tape, right_tape = pair

        left_x = left_tape.center_x
        right_x = right_tape.center_x
        width = right_x - left_x
        if width <= 0:
            logger.debug(f"Degenerate target width {width}px (left={left_x}, right={right_x})")
            return TargetResult.invalid()

        center_x = left_x + width // 2
        distance = estimate_distance(width)
        logger.trace(
            f"Target: width={width}px center={center_x}px distance={distance:.2f} "
            f"from {len(rects)} rectangle(s)"
        )
        return TargetResult(
            center_x=center_x,
            left_x=left_x,
            right_x=right_x,
            distance=distance,
            valid=True,
        )


__all__ = [
    "DISTANCE_CONSTANT",
    "TargetTracker",
    "bounding_rect",
    "estimate_distance",
    "select_target_pair",
    "sort_rightmost_first",
]
