"""Captcha Reader Processors Module.

This module provides the image processing stages of the glyph pipeline.
Each processor handles one step from color captcha to padded glyph.
"""

# Base processor
from .base import BaseProcessor, validate_image

# Image I/O
from .image_io import (
    load_image,
    save_image,
    get_image_files,
)

# Grayscale, noise filter, binarizer
from .preprocess import (
    PreprocessProcessor,
    to_grayscale,
    reduce_noise,
    binarize,
)

# Edge detection
from .edges import (
    EdgeDetectionProcessor,
    detect_edges,
)

# Segmentation
from .segmentation import (
    SegmentationProcessor,
    find_outer_contours,
    sort_by_left_edge,
    segment_glyphs,
)

# Deskewing
from .deskew import (
    DeskewProcessor,
    rotate_image,
    tightest_crop,
    candidate_angles,
    search_rotation,
)

# Padding
from .padding import (
    PaddingProcessor,
    add_padding,
    BACKGROUND_VALUE,
)

__all__ = [
    # Base
    "BaseProcessor",
    "validate_image",

    # Image I/O
    "load_image",
    "save_image",
    "get_image_files",

    # Preprocessing
    "PreprocessProcessor",
    "to_grayscale",
    "reduce_noise",
    "binarize",

    # Edge detection
    "EdgeDetectionProcessor",
    "detect_edges",

    # Segmentation
    "SegmentationProcessor",
    "find_outer_contours",
    "sort_by_left_edge",
    "segment_glyphs",

    # Deskewing
    "DeskewProcessor",
    "rotate_image",
    "tightest_crop",
    "candidate_angles",
    "search_rotation",

    # Padding
    "PaddingProcessor",
    "add_padding",
    "BACKGROUND_VALUE",
]
