"""Color-threshold pipeline that finds retro-reflective tape contours."""

from __future__ import annotations

from typing import List, Optional

import cv2
import numpy as np

from detect.config import HsvThresholdConfig, PipelineConfig
from detect.filters import filter_contours


def hsv_threshold(image: np.ndarray, config: HsvThresholdConfig) -> np.ndarray:
    """Binary mask of pixels inside the HSV box (255 inside, 0 outside)."""
    hsv = cv2.cvtColor(image, cv2.COLOR_BGR2HSV)
    lower = (config.hue[0], config.saturation[0], config.value[0])
    upper = (config.hue[1], config.saturation[1], config.value[1])
    return cv2.inRange(hsv, lower, upper)


def find_contours(mask: np.ndarray) -> List[np.ndarray]:
    """External contours only; holes inside a strip are ignored."""
    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    return list(contours)


class TapePipeline:
    """HSV threshold -> find contours -> filter contours.

    Outputs of the last ``process`` call stay available until the next call.
    """

    def __init__(self, config: Optional[PipelineConfig] = None) -> None:
        self.config = config or PipelineConfig()
        self.hsv_threshold_output: Optional[np.ndarray] = None
        self.find_contours_output: List[np.ndarray] = []
        self.filter_contours_output: List[np.ndarray] = []

    def process(self, image: np.ndarray) -> List[np.ndarray]:
        self.hsv_threshold_output = hsv_threshold(image, self.config.hsv)
        self.find_contours_output = find_contours(self.hsv_threshold_output)
        self.filter_contours_output = filter_contours(
            self.find_contours_output, self.config.filters
        )
        return self.filter_contours_output
