"""Character recognition of single padded glyphs."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import cv2
import numpy as np
import pytesseract
from PIL import Image

from .config.models import RecognizerConfig
from .exceptions import RecognitionFailedError

logger = logging.getLogger(__name__)


class Recognizer(ABC):
    """Turns one glyph image into text."""

    @abstractmethod
    def recognize(self, image: np.ndarray) -> str:
        """Return the recognized text.

        Raises:
            RecognitionFailedError: If the engine cannot read the glyph
        """


class TesseractRecognizer(Recognizer):
    """Recognizer backed by the tesseract executable through pytesseract."""

    def __init__(self, config: Optional[RecognizerConfig] = None):
        self.config = config or RecognizerConfig()

    def build_options(self) -> str:
        """Command line options passed to tesseract."""
        options = []
        if self.config.tessdata_dir:
            options.append(f'--tessdata-dir "{self.config.tessdata_dir}"')
        if self.config.page_segmentation_mode is not None:
            options.append(f"--psm {self.config.page_segmentation_mode}")
        options.append(f"-c tessedit_char_whitelist={self.config.char_whitelist}")
        options.append(f"-c user_defined_dpi={self.config.dpi}")
        return " ".join(options)

    def to_pil(self, image: np.ndarray) -> Image.Image:
        """Convert a glyph mask to the dark-on-light image tesseract expects."""
        if self.config.invert:
            image = cv2.bitwise_not(image)
        return Image.fromarray(image)

    def recognize(self, image: np.ndarray) -> str:
        try:
            return pytesseract.image_to_string(
                self.to_pil(image),
                lang=self.config.language,
                config=self.build_options(),
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
            raise RecognitionFailedError(f"Tesseract failed: {e}") from e


def clean_text(text: Optional[str]) -> str:
    """Drop newlines and surrounding whitespace from recognizer output."""
    if not text:
        return ""
    return text.replace("\r", "").replace("\n", "").strip()
