"""Base processor class and common utilities for glyph pipeline processors."""

from typing import Any, Dict, Optional
from abc import ABC, abstractmethod
from pathlib import Path

import cv2
import numpy as np

from ..exceptions import InvalidImageError


class BaseProcessor(ABC):
    """Base class for all pipeline stages."""

    stage_name = "base"

    def __init__(self, config: Optional[Any] = None, save_debug_images: bool = False):
        """Initialize processor with an optional configuration section."""
        self.config = config
        self.save_debug_images = save_debug_images
        self.debug_images = {}  # Store debug images during processing

    def get_config_value(self, key: str, default: Any) -> Any:
        """Safely get a config value with a default."""
        if self.config is None:
            return default
        return getattr(self.config, key, default)

    @abstractmethod
    def process(self, image: np.ndarray, **kwargs) -> Any:
        """Process an image. Must be implemented by subclasses."""
        pass

    def validate_image(self, image: np.ndarray) -> None:
        """Validate that the input is a non-empty image."""
        validate_image(image, stage=self.stage_name)

    def save_debug_image(self, name: str, image: np.ndarray) -> None:
        """Store a debug image for later saving."""
        if self.save_debug_images:
            self.debug_images[name] = image

    def get_debug_images(self) -> Dict[str, np.ndarray]:
        """Get all stored debug images."""
        return self.debug_images

    def clear_debug_images(self) -> None:
        """Clear stored debug images."""
        self.debug_images = {}

    def save_debug_images_to_dir(self, debug_dir: Path, prefix: str = "") -> None:
        """Save all debug images to the specified directory."""
        if not self.debug_images:
            return

        debug_dir.mkdir(parents=True, exist_ok=True)

        for name, image in self.debug_images.items():
            filename = f"{prefix}_{name}.png" if prefix else f"{name}.png"
            cv2.imwrite(str(debug_dir / filename), image)


def validate_image(image: np.ndarray, stage: Optional[str] = None) -> None:
    """Raise InvalidImageError unless ``image`` is a 2-D or 3-D array with pixels."""
    if image is None:
        raise InvalidImageError("Image cannot be None", stage=stage)
    if not isinstance(image, np.ndarray):
        raise InvalidImageError("Image must be a numpy array", stage=stage,
                                type=type(image).__name__)
    if image.ndim not in (2, 3):
        raise InvalidImageError(f"Invalid image shape: {image.shape}", stage=stage)
    height, width = image.shape[:2]
    if width == 0 or height == 0:
        raise InvalidImageError(f"Image has zero dimension: {width}x{height}", stage=stage)
