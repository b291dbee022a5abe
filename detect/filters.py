"""Shape, area and vertex checks applied to tape contour candidates."""

from __future__ import annotations

import cv2
import numpy as np

from detect.config import ContourFilterConfig


def contour_size_ok(contour: np.ndarray, config: ContourFilterConfig) -> bool:
    _, _, w, h = cv2.boundingRect(contour)
    if w < config.min_width or w > config.max_width:
        return False
    if h < config.min_height or h > config.max_height:
        return False
    if h == 0:
        return False
    ratio = float(w) / h
    return config.min_ratio <= ratio <= config.max_ratio


def contour_area_ok(contour: np.ndarray, config: ContourFilterConfig) -> bool:
    area = cv2.contourArea(contour)
    if area < config.min_area:
        return False
    if cv2.arcLength(contour, True) < config.min_perimeter:
        return False
    hull_area = cv2.contourArea(cv2.convexHull(contour))
    if hull_area <= 0:
        return config.solidity[0] <= 0
    solidity = 100.0 * area / hull_area
    return config.solidity[0] <= solidity <= config.solidity[1]


def contour_vertices_ok(contour: np.ndarray, config: ContourFilterConfig) -> bool:
    return config.min_vertices <= len(contour) <= config.max_vertices


def filter_contours(
    contours: list[np.ndarray], config: ContourFilterConfig
) -> list[np.ndarray]:
    """Keep contours passing every size, area, solidity and vertex limit, in input order."""
    output = []
    for contour in contours:
        if not contour_size_ok(contour, config):
            continue
        if not contour_area_ok(contour, config):
            continue
        if not contour_vertices_ok(contour, config):
            continue
        output.append(contour)
    return output
