"""Data model shared by the captcha processing stages."""

from dataclasses import dataclass, field
from typing import List, Tuple

import cv2
import numpy as np


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned rectangle enclosing a contour."""

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Bounding box must have positive size, got {self.width}x{self.height}"
            )

    @classmethod
    def from_contour(cls, contour: np.ndarray) -> "BoundingBox":
        x, y, w, h = cv2.boundingRect(contour)
        return cls(int(x), int(y), int(w), int(h))

    @property
    def area(self) -> int:
        return self.width * self.height

    def as_slices(self) -> Tuple[slice, slice]:
        """Row and column slices selecting this box from an image."""
        return (
            slice(self.y, self.y + self.height),
            slice(self.x, self.x + self.width),
        )


@dataclass(frozen=True)
class Glyph:
    """One segmented character region.

    ``image`` starts out as a view into the binary mask it was cropped from.
    Later stages never write into it; they build a new Glyph with
    ``dataclasses.replace``.
    """

    image: np.ndarray = field(repr=False, compare=False)
    box: BoundingBox
    ordinal: int
    angle: float = 0.0

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])


@dataclass(frozen=True)
class RotationCandidate:
    """Tight crop of a glyph rotated by ``angle`` degrees."""

    angle: float
    width: int
    image: np.ndarray = field(repr=False, compare=False)


@dataclass(frozen=True)
class DeskewResult:
    """Outcome of the rotation search for one glyph."""

    ordinal: int
    best: RotationCandidate
    direction: int
    evaluated: int
    fallback: bool = False

    @property
    def angle(self) -> float:
        return self.best.angle


@dataclass
class CaptchaResult:
    """Recognized text of a captcha plus the glyphs it was read from."""

    text: str
    characters: List[str]
    glyphs: List[Glyph] = field(default_factory=list, repr=False)
    failed: List[int] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed
