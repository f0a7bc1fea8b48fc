"""Uniform background margins around glyph crops."""

import dataclasses

import cv2
import numpy as np

from .base import BaseProcessor
from ..models import Glyph

# Binary masks carry glyph pixels as 255 on a 0 background
BACKGROUND_VALUE = 0


class PaddingProcessor(BaseProcessor):
    """Adds the final recognition margin to a deskewed glyph."""

    stage_name = "padding"

    def process(self, image: Glyph, **kwargs) -> Glyph:
        """Return a new glyph whose image has a background border on every side."""
        self.validate_image(image.image)
        margin = self.get_config_value('margin', 15)
        padded = add_padding(image.image, margin)
        self.save_debug_image(f'glyph_{image.ordinal:02d}_padded', padded)
        return dataclasses.replace(image, image=padded)


def add_padding(image: np.ndarray, margin: int, value: int = BACKGROUND_VALUE) -> np.ndarray:
    """Surround ``image`` with ``margin`` pixels of constant ``value``.

    Always allocates a new array, so padding a crop view leaves its
    parent untouched.
    """
    return cv2.copyMakeBorder(
        image, margin, margin, margin, margin,
        cv2.BORDER_CONSTANT | cv2.BORDER_ISOLATED,
        value=value,
    )
