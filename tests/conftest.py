"""
Pytest configuration and shared fixtures for captcha reader tests.

Provides synthetic captcha images, a scripted recognizer, and quiet
logging for all test modules.
"""

from typing import Iterable, List, Optional, Tuple

import cv2
import numpy as np
import pytest

from captcha_reader.config import Config, get_default_config
from captcha_reader.exceptions import RecognitionFailedError
from captcha_reader.models import BoundingBox, Glyph
from captcha_reader.processors import rotate_image
from captcha_reader.recognizer import Recognizer
from captcha_reader.utils.logging_utils import setup_logging


class ScriptedRecognizer(Recognizer):
    """Returns canned answers in call order and records what it was shown."""

    def __init__(self, answers: Iterable[Optional[str]]):
        self.answers = list(answers)
        self.seen: List[np.ndarray] = []

    def recognize(self, image: np.ndarray) -> str:
        self.seen.append(image)
        answer = self.answers[len(self.seen) - 1]
        if answer is None:
            raise RecognitionFailedError("scripted failure")
        return answer


def make_bar_mask(angle: float, bar_width: int = 10, bar_height: int = 80,
                  canvas: int = 160) -> np.ndarray:
    """Binary mask of an upright bar rotated by ``angle`` degrees."""
    mask = np.zeros((canvas, canvas), dtype=np.uint8)
    top = (canvas - bar_height) // 2
    left = (canvas - bar_width) // 2
    mask[top:top + bar_height, left:left + bar_width] = 255
    if angle:
        mask = rotate_image(mask, angle)
        _, mask = cv2.threshold(mask, 127, 255, cv2.THRESH_BINARY)
    return mask


def make_bar_glyph(angle: float, ordinal: int = 0, **kwargs) -> Glyph:
    """Glyph cropped tightly around a tilted bar."""
    mask = make_bar_mask(angle, **kwargs)
    x, y, w, h = cv2.boundingRect(mask)
    box = BoundingBox(x, y, w, h)
    return Glyph(image=mask[box.as_slices()], box=box, ordinal=ordinal)


def draw_tilted_bar(image: np.ndarray, center: Tuple[int, int], angle: float,
                    size: Tuple[int, int] = (10, 44), color=(0, 0, 0)) -> None:
    """Draw a filled bar on a color image, tilted by ``angle`` degrees."""
    points = cv2.boxPoints((center, size, angle)).astype(np.int32)
    cv2.fillPoly(image, [points], color)


def make_captcha(glyphs: List[Tuple[Tuple[int, int], float]],
                 width: int = 320, height: int = 100) -> np.ndarray:
    """White color captcha with dark bars and pale speckle noise."""
    rng = np.random.default_rng(7)
    image = np.full((height, width, 3), 255, dtype=np.uint8)

    # Pale speckles stay above the binarization cutoff
    ys = rng.integers(0, height, 300)
    xs = rng.integers(0, width, 300)
    image[ys, xs] = (225, 235, 245)

    for center, angle in glyphs:
        draw_tilted_bar(image, center, angle)
    return image


@pytest.fixture
def default_config() -> Config:
    """Default configuration with quiet logging."""
    config = get_default_config()
    config.logging.level = "WARNING"
    config.logging.use_rich = False
    return config


@pytest.fixture
def bar_glyph():
    """Factory for glyphs cropped around a bar tilted by a given angle."""
    return make_bar_glyph


@pytest.fixture
def scripted_recognizer():
    """Factory for recognizers that return canned answers in call order."""
    return ScriptedRecognizer


@pytest.fixture
def blank_image() -> np.ndarray:
    """All-background color image."""
    return np.full((80, 200, 3), 255, dtype=np.uint8)


@pytest.fixture
def captcha_image() -> np.ndarray:
    """Three tilted glyphs left to right, drawn out of order."""
    return make_captcha([
        ((250, 50), 0),
        ((60, 50), 18),
        ((155, 48), -24),
    ])


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Setup logging for tests."""
    setup_logging(
        level="WARNING",  # Only show warnings and errors in tests
        use_rich=False,   # Disable rich formatting for cleaner test output
        format_style="minimal"
    )


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (deselect with '-m \"not unit\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)

        if "slow" in item.name.lower():
            item.add_marker(pytest.mark.slow)
