"""Tests for contour segmentation and glyph ordering."""

import numpy as np
import pytest

from captcha_reader.exceptions import NoGlyphsFoundError
from captcha_reader.models import BoundingBox
from captcha_reader.processors import (
    SegmentationProcessor,
    detect_edges,
    find_outer_contours,
    segment_glyphs,
    sort_by_left_edge,
)


def mask_with_blocks(blocks, shape=(80, 300)):
    """Binary mask with filled rectangles given as (x, y, w, h)."""
    mask = np.zeros(shape, dtype=np.uint8)
    for x, y, w, h in blocks:
        mask[y:y + h, x:x + w] = 255
    return mask


class TestBoundingBox:
    """Test bounding box construction."""

    def test_from_contour(self):
        contour = np.array([[[5, 7]], [[14, 7]], [[14, 26]], [[5, 26]]], dtype=np.int32)
        assert BoundingBox.from_contour(contour) == BoundingBox(5, 7, 10, 20)

    def test_degenerate_box_rejected(self):
        with pytest.raises(ValueError):
            BoundingBox(0, 0, 0, 5)


class TestSegmentation:
    """Test outer contour extraction and left-to-right ordering."""

    @pytest.mark.parametrize("count", [1, 3, 5])
    def test_count_matches_separated_shapes(self, count):
        blocks = [(10 + i * 55, 15 + (i % 2) * 10, 20, 40) for i in range(count)]
        mask = mask_with_blocks(blocks)

        glyphs = segment_glyphs(detect_edges(mask), mask)

        assert len(glyphs) == count

    def test_glyphs_ordered_by_left_edge(self):
        # Listed right to left and at different heights
        mask = mask_with_blocks([(230, 5, 20, 30), (20, 40, 25, 30), (120, 20, 15, 45)])

        glyphs = segment_glyphs(detect_edges(mask), mask)

        xs = [glyph.box.x for glyph in glyphs]
        assert xs == sorted(xs)
        assert len(set(xs)) == len(xs)
        assert [glyph.ordinal for glyph in glyphs] == [0, 1, 2]

    def test_nested_shape_not_split(self):
        mask = mask_with_blocks([(40, 10, 50, 50)])
        mask[25:45, 55:75] = 0  # hole

        glyphs = segment_glyphs(detect_edges(mask), mask)

        assert len(glyphs) == 1

    def test_glyph_image_is_view_into_mask(self):
        mask = mask_with_blocks([(30, 20, 20, 30)])

        glyph = segment_glyphs(detect_edges(mask), mask)[0]

        assert np.shares_memory(glyph.image, mask)
        assert glyph.image.shape == (glyph.box.height, glyph.box.width)
        assert glyph.angle == 0.0

    def test_blank_edge_map_raises(self):
        mask = np.zeros((40, 40), dtype=np.uint8)
        with pytest.raises(NoGlyphsFoundError) as exc_info:
            segment_glyphs(detect_edges(mask), mask)
        assert exc_info.value.stage == "segmentation"

    def test_min_area_filters_specks(self):
        mask = mask_with_blocks([(10, 10, 3, 3), (60, 10, 20, 40)])

        glyphs = segment_glyphs(detect_edges(mask), mask, min_glyph_area=100)

        assert len(glyphs) == 1
        assert glyphs[0].ordinal == 0
        assert glyphs[0].box.x > 50

    def test_sort_is_stable_for_equal_left_edges(self):
        upper = np.array([[[10, 0]], [[20, 0]], [[20, 10]], [[10, 10]]], dtype=np.int32)
        lower = np.array([[[10, 30]], [[15, 30]], [[15, 50]], [[10, 50]]], dtype=np.int32)

        ordered = sort_by_left_edge([upper, lower])

        assert ordered[0][0] is upper
        assert ordered[1][0] is lower

    def test_outer_contours_only(self):
        mask = mask_with_blocks([(20, 20, 40, 40)])
        mask[30:50, 30:50] = 0
        mask[35:45, 35:45] = 255  # island inside the hole

        assert len(find_outer_contours(detect_edges(mask))) == 1


class TestSegmentationProcessor:
    """Test the segmentation processor wrapper."""

    def test_requires_mask(self):
        with pytest.raises(ValueError):
            SegmentationProcessor().process(np.zeros((10, 10), dtype=np.uint8))

    def test_debug_overlay(self, default_config):
        mask = mask_with_blocks([(30, 20, 20, 30)])
        processor = SegmentationProcessor(default_config.segmentation, save_debug_images=True)

        processor.process(detect_edges(mask), mask=mask)

        assert processor.get_debug_images()['05_segments'].shape == mask.shape + (3,)
