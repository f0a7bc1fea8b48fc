"""Tests for the final padding stage."""

import numpy as np
import pytest

from captcha_reader.config import PaddingConfig
from captcha_reader.models import BoundingBox, Glyph
from captcha_reader.processors import BACKGROUND_VALUE, PaddingProcessor, add_padding


def test_padding_adds_uniform_margin():
    image = np.full((20, 10), 255, dtype=np.uint8)

    padded = add_padding(image, 15)

    assert padded.shape == (50, 40)
    assert not padded[:15].any()
    assert not padded[:, :15].any()
    assert not padded[-15:].any()
    assert not padded[:, -15:].any()
    np.testing.assert_array_equal(padded[15:-15, 15:-15], image)


def test_padding_already_padded_only_grows_canvas():
    content = np.random.default_rng(0).integers(0, 256, (12, 8)).astype(np.uint8)
    once = add_padding(content, 15)

    twice = add_padding(once, 15)

    assert twice.shape == (once.shape[0] + 30, once.shape[1] + 30)
    np.testing.assert_array_equal(twice[15:-15, 15:-15], once)
    np.testing.assert_array_equal(twice[30:-30, 30:-30], content)


def test_padding_view_leaves_parent_untouched():
    parent = np.zeros((40, 40), dtype=np.uint8)
    parent[10:20, 10:20] = 255
    view = parent[10:20, 10:20]

    padded = add_padding(view, 5)

    assert padded.shape == (20, 20)
    assert not np.shares_memory(padded, parent)
    assert parent.sum() == 255 * 100


def test_padding_processor_returns_new_glyph():
    glyph = Glyph(image=np.full((6, 4), 255, dtype=np.uint8), box=BoundingBox(3, 4, 4, 6),
                  ordinal=2, angle=-12.0)

    padded = PaddingProcessor(PaddingConfig(margin=15)).process(glyph)

    assert padded.image.shape == (36, 34)
    assert padded.image[0, 0] == BACKGROUND_VALUE
    assert (padded.ordinal, padded.angle, padded.box) == (2, -12.0, glyph.box)
    assert glyph.image.shape == (6, 4)


def test_glyph_is_frozen():
    glyph = Glyph(image=np.zeros((2, 2), dtype=np.uint8), box=BoundingBox(0, 0, 2, 2), ordinal=0)
    with pytest.raises(AttributeError):
        glyph.ordinal = 1
