"""Grayscale conversion, noise filtering and binarization of captcha images."""

from typing import Tuple

import cv2
import numpy as np

from .base import BaseProcessor, validate_image
from ..exceptions import InvalidImageError


class PreprocessProcessor(BaseProcessor):
    """Turns a color captcha into a binary mask with glyph pixels on."""

    stage_name = "preprocess"

    def process(self, image: np.ndarray, **kwargs) -> np.ndarray:
        """Run grayscale, noise filter and binarizer in sequence.

        Args:
            image: BGR (or already single-channel) captcha image

        Returns:
            np.ndarray: Binary mask, glyphs 255 and background 0
        """
        self.clear_debug_images()

        gray = to_grayscale(image)
        self.save_debug_image('01_grayscale', gray)

        smoothed = reduce_noise(
            gray,
            blur_kernel=tuple(self.get_config_value('blur_kernel', (1, 11))),
            median_kernel=self.get_config_value('median_kernel', 5),
        )
        self.save_debug_image('02_denoised', smoothed)

        mask = binarize(smoothed, threshold=self.get_config_value('threshold', 200))
        self.save_debug_image('03_mask', mask)
        return mask


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert a color image to single-channel intensity.

    Raises:
        InvalidImageError: If the image is empty or has an unsupported layout
    """
    validate_image(image, stage="grayscale")
    if image.dtype != np.uint8:
        raise InvalidImageError(f"Expected 8-bit pixels, got {image.dtype}", stage="grayscale")

    if image.ndim == 2:
        return image.copy()
    channels = image.shape[2]
    if channels == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    if channels == 1:
        return image[:, :, 0].copy()
    raise InvalidImageError(f"Unsupported number of channels: {channels}", stage="grayscale")


def reduce_noise(
    gray: np.ndarray,
    blur_kernel: Tuple[int, int] = (1, 11),
    median_kernel: int = 5,
) -> np.ndarray:
    """Blur along the vertical axis, then median filter.

    The Gaussian kernel is given as (width, height); a tall narrow kernel
    smears horizontal speckle while vertical strokes survive.
    """
    blurred = cv2.GaussianBlur(gray, blur_kernel, 0)
    return cv2.medianBlur(blurred, median_kernel)


def binarize(gray: np.ndarray, threshold: int = 200, invert: bool = True) -> np.ndarray:
    """Threshold at a fixed cutoff and flip polarity.

    Pixels brighter than ``threshold`` are background. With ``invert`` the
    result holds glyph pixels as 255 on a 0 background, which is what the
    contour tracing downstream expects.
    """
    _, binary = cv2.threshold(gray, threshold, 255, cv2.THRESH_BINARY)
    if invert:
        return cv2.bitwise_not(binary)
    return binary
