"""Image I/O utilities for loading and saving captcha images."""

import logging
from pathlib import Path
from typing import List, Optional, Union

import cv2
import numpy as np

from ..exceptions import ImageLoadError, InvalidImageError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

IMAGE_EXTENSIONS = [".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp"]


def load_image(image_path: PathLike) -> np.ndarray:
    """Load a color image from file.

    Args:
        image_path: Path to the image file

    Returns:
        BGR image array

    Raises:
        ImageLoadError: If the file is missing or cannot be decoded
    """
    path = Path(image_path)
    if not path.exists():
        raise ImageLoadError(f"Image file not found: {path}", stage="load", path=str(path))

    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise ImageLoadError(f"Could not decode image: {path}", stage="load", path=str(path))

    logger.debug(f"Loaded image: {path} ({image.shape}, dtype={image.dtype})")
    return image


def save_image(image: np.ndarray, output_path: PathLike) -> None:
    """Save image to file, creating parent directories.

    Raises:
        InvalidImageError: If image is None or empty
    """
    path = Path(output_path)
    if image is None or image.size == 0:
        raise InvalidImageError(f"Cannot save empty image to {path}", stage="save")

    path.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(path), image):
        raise OSError(f"OpenCV failed to save image: {path}")
    logger.debug(f"Saved image: {path}")


def get_image_files(directory: PathLike, extensions: Optional[List[str]] = None) -> List[Path]:
    """Get all image files from directory, sorted by name."""
    directory = Path(directory)
    if extensions is None:
        extensions = IMAGE_EXTENSIONS

    image_files = set()  # Use set to avoid duplicates on case-insensitive filesystems
    for ext in extensions:
        image_files.update(directory.glob(f"*{ext}"))
        image_files.update(directory.glob(f"*{ext.upper()}"))

    return sorted(image_files)
