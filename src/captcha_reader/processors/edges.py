"""Edge detection on binary glyph masks."""

import cv2
import numpy as np

from .base import BaseProcessor


class EdgeDetectionProcessor(BaseProcessor):
    """Canny edge map of a binary mask."""

    stage_name = "edges"

    def process(self, image: np.ndarray, **kwargs) -> np.ndarray:
        self.validate_image(image)
        self.clear_debug_images()

        edges = detect_edges(
            image,
            low_threshold=self.get_config_value('low_threshold', 170),
            high_threshold=self.get_config_value('high_threshold', 250),
        )
        self.save_debug_image('04_edges', edges)
        return edges


def detect_edges(mask: np.ndarray, low_threshold: int = 170, high_threshold: int = 250) -> np.ndarray:
    """Binary edge map using Canny hysteresis thresholds."""
    return cv2.Canny(mask, low_threshold, high_threshold)
