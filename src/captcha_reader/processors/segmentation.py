"""Contour based glyph segmentation."""

import logging
from typing import List, Tuple

import cv2
import numpy as np

from .base import BaseProcessor
from ..exceptions import NoGlyphsFoundError
from ..models import BoundingBox, Glyph

logger = logging.getLogger(__name__)


class SegmentationProcessor(BaseProcessor):
    """Splits an edge map into glyphs ordered left to right."""

    stage_name = "segmentation"

    def process(self, image: np.ndarray, mask: np.ndarray = None, **kwargs) -> List[Glyph]:
        """Segment glyphs from an edge map.

        Args:
            image: Edge map of the captcha
            mask: Binary mask the glyph crops are taken from

        Returns:
            List[Glyph]: Glyphs in reading order, ordinals starting at 0

        Raises:
            NoGlyphsFoundError: If no contour survives
        """
        self.validate_image(image)
        self.clear_debug_images()
        if mask is None:
            raise ValueError("A binary mask is required to crop glyphs")

        glyphs = segment_glyphs(
            image,
            mask,
            min_glyph_area=self.get_config_value('min_glyph_area', 0),
        )

        if self.save_debug_images:
            overlay = cv2.cvtColor(mask, cv2.COLOR_GRAY2BGR)
            for glyph in glyphs:
                box = glyph.box
                cv2.rectangle(overlay, (box.x, box.y),
                              (box.x + box.width - 1, box.y + box.height - 1), (0, 0, 255), 1)
            self.save_debug_image('05_segments', overlay)

        return glyphs


def find_outer_contours(edges: np.ndarray) -> List[np.ndarray]:
    """Outer contours of an edge map, with collinear points collapsed."""
    contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    return list(contours)


def sort_by_left_edge(contours: List[np.ndarray]) -> List[Tuple[np.ndarray, BoundingBox]]:
    """Pair contours with their boxes, ordered by the box's left x.

    The sort is stable, so contours sharing a left edge keep the order
    OpenCV returned them in.
    """
    pairs = [(contour, BoundingBox.from_contour(contour)) for contour in contours]
    return sorted(pairs, key=lambda pair: pair[1].x)


def segment_glyphs(edges: np.ndarray, mask: np.ndarray, min_glyph_area: int = 0) -> List[Glyph]:
    """Crop one glyph per outer contour, in left-to-right order.

    Each glyph image is a view into ``mask``; nothing is copied here.

    Raises:
        NoGlyphsFoundError: If the edge map holds no usable contour
    """
    pairs = sort_by_left_edge(find_outer_contours(edges))
    boxes = [box for _, box in pairs if box.area >= min_glyph_area]

    if len(boxes) < len(pairs):
        logger.debug(f"Dropped {len(pairs) - len(boxes)} contours below {min_glyph_area}px")

    if not boxes:
        raise NoGlyphsFoundError(
            "No glyphs found; captcha is unreadable",
            stage="segmentation",
            contours=len(pairs),
        )

    glyphs = [
        Glyph(image=mask[box.as_slices()], box=box, ordinal=ordinal)
        for ordinal, box in enumerate(boxes)
    ]
    logger.debug(f"Segmented {len(glyphs)} glyphs at x={[g.box.x for g in glyphs]}")
    return glyphs
