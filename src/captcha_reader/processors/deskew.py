"""Per-glyph rotation search.

A glyph counts as upright when its bounding box is as narrow as it gets.
The deskewer probes one rotation to decide which way the glyph leans, then
walks in fixed angular steps in that direction for as long as the tight
bounding width keeps shrinking (or stays equal), and keeps the last crop
that did not grow.
"""

import dataclasses
import logging
from typing import Callable, Iterator, Optional, Tuple

import cv2
import numpy as np

from .base import BaseProcessor
from .edges import detect_edges
from .padding import BACKGROUND_VALUE, add_padding
from .segmentation import find_outer_contours
from ..exceptions import DeskewStepFailedError
from ..models import BoundingBox, DeskewResult, Glyph, RotationCandidate

logger = logging.getLogger(__name__)

# Positive angles rotate counter-clockwise (OpenCV convention)
LEFTWARD = 1
RIGHTWARD = -1

Measure = Callable[[float], RotationCandidate]


class DeskewProcessor(BaseProcessor):
    """Rotates each glyph to the angle with the narrowest bounding box."""

    stage_name = "deskew"

    def __init__(self, config=None, edge_config=None, save_debug_images: bool = False):
        super().__init__(config, save_debug_images=save_debug_images)
        self.edge_config = edge_config

    @property
    def edge_thresholds(self) -> Tuple[int, int]:
        if self.edge_config is None:
            return 170, 250
        return self.edge_config.low_threshold, self.edge_config.high_threshold

    def process(self, image: Glyph, **kwargs) -> Glyph:
        """Deskew one glyph and return it as a new Glyph."""
        return self.apply(image, self.deskew(image))

    def apply(self, glyph: Glyph, result: DeskewResult) -> Glyph:
        """Swap the winning crop and its angle into ``glyph``."""
        self.save_debug_image(f'glyph_{glyph.ordinal:02d}_deskewed', result.best.image)
        return dataclasses.replace(glyph, image=result.best.image, angle=result.angle)

    def deskew(self, glyph: Glyph) -> DeskewResult:
        """Run the probe and the stepped search for one glyph.

        Raises:
            DeskewStepFailedError: Only when ``strict`` is configured
        """
        self.validate_image(glyph.image)
        strict = self.get_config_value('strict', False)
        crop = glyph.image

        def measure(angle: float) -> RotationCandidate:
            return self.measure(crop, angle, ordinal=glyph.ordinal)

        try:
            start = measure(0.0)
        except DeskewStepFailedError:
            if strict:
                raise
            logger.warning(f"Glyph {glyph.ordinal}: no contour at 0 degrees, keeping crop as is")
            fallback = RotationCandidate(angle=0.0, width=glyph.width, image=crop)
            return DeskewResult(glyph.ordinal, fallback, direction=RIGHTWARD,
                                evaluated=0, fallback=True)

        direction, probe_failed = self.probe_direction(measure, start.width, glyph.ordinal)

        best, evaluated, step_failed = search_rotation(
            measure,
            start,
            direction,
            step=self.get_config_value('angle_step', 6.0),
            max_angle=self.get_config_value('max_search_angle', 90.0),
            strict=strict,
            ordinal=glyph.ordinal,
        )

        logger.debug(
            f"Glyph {glyph.ordinal}: angle={best.angle:+.0f} width {start.width}->{best.width} "
            f"after {evaluated} candidates"
        )
        return DeskewResult(
            ordinal=glyph.ordinal,
            best=best,
            direction=direction,
            evaluated=evaluated,
            fallback=probe_failed or step_failed,
        )

    def probe_direction(self, measure: Measure, upright_width: int, ordinal: int = -1) -> Tuple[int, bool]:
        """Decide which way to rotate.

        Returns the step sign and whether the probe itself failed. A probe
        that narrows the glyph means it leans the probe's way.
        """
        probe_angle = self.get_config_value('probe_angle', 19.0)
        try:
            probe = measure(probe_angle)
        except DeskewStepFailedError:
            if self.get_config_value('strict', False):
                raise
            logger.warning(f"Glyph {ordinal}: probe at {probe_angle} degrees found no contour, "
                           f"searching rightward")
            return RIGHTWARD, True

        direction = LEFTWARD if probe.width < upright_width else RIGHTWARD
        logger.debug(f"Glyph {ordinal}: probe width {probe.width} vs {upright_width}, "
                     f"direction {direction:+d}")
        return direction, False

    def measure(self, crop: np.ndarray, angle: float, ordinal: Optional[int] = None) -> RotationCandidate:
        """Pad, rotate and re-crop ``crop`` to its tightest box."""
        padded = add_padding(crop, self.get_config_value('crop_margin', 40))
        rotated = rotate_image(padded, angle)
        low, high = self.edge_thresholds
        try:
            tight = tightest_crop(rotated, low, high)
        except DeskewStepFailedError as e:
            raise DeskewStepFailedError(e.message, angle=angle, ordinal=ordinal) from e
        return RotationCandidate(angle=angle, width=int(tight.shape[1]), image=tight)


def rotate_image(image: np.ndarray, angle: float, border_value: int = BACKGROUND_VALUE) -> np.ndarray:
    """Rigid rotation about the image center, keeping the canvas size."""
    height, width = image.shape[:2]
    center = (width // 2, height // 2)
    rotation_matrix = cv2.getRotationMatrix2D(center, angle, 1.0)
    return cv2.warpAffine(
        image,
        rotation_matrix,
        (width, height),
        flags=cv2.INTER_AREA,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=border_value,
    )


def tightest_crop(image: np.ndarray, low_threshold: int = 170, high_threshold: int = 250) -> np.ndarray:
    """Crop ``image`` to the box of its dominant outer contour.

    Raises:
        DeskewStepFailedError: If the edge map has no contour at all
    """
    contours = find_outer_contours(detect_edges(image, low_threshold, high_threshold))
    if not contours:
        raise DeskewStepFailedError("No contour found in rotated glyph")

    box = max((BoundingBox.from_contour(c) for c in contours), key=lambda b: b.area)
    return image[box.as_slices()]


def candidate_angles(direction: int, step: float, max_angle: float) -> Iterator[float]:
    """Angles after 0 in the search direction, up to ``max_angle``."""
    count = int(max_angle // step)
    for i in range(1, count + 1):
        yield direction * step * i


def search_rotation(
    measure: Measure,
    start: RotationCandidate,
    direction: int,
    step: float = 6.0,
    max_angle: float = 90.0,
    strict: bool = False,
    ordinal: int = -1,
) -> Tuple[RotationCandidate, int, bool]:
    """Fold over candidates until the width grows.

    A candidate as wide as the previous one still counts as progress, so a
    plateau is walked to its far end.

    Returns:
        tuple: (best candidate, number of candidates evaluated, whether a
        failed step cut the search short)
    """
    best = start
    evaluated = 1
    for angle in candidate_angles(direction, step, max_angle):
        try:
            candidate = measure(angle)
        except DeskewStepFailedError:
            if strict:
                raise
            logger.warning(f"Glyph {ordinal}: no contour at {angle:+.0f} degrees, "
                           f"keeping {best.angle:+.0f}")
            return best, evaluated, True

        evaluated += 1
        logger.debug(f"Glyph {ordinal}: {angle:+.0f} degrees -> width {candidate.width}")
        if candidate.width > best.width:
            break
        best = candidate

    return best, evaluated, False
