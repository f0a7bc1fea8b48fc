"""Captcha digit reader.

Segments a distorted captcha into glyphs, rotates each one upright and
hands the padded glyphs to a character recognizer.
"""

__version__ = "1.0.0"
__author__ = "Captcha Reader Team"

from .pipeline import CaptchaPipeline
from .models import BoundingBox, CaptchaResult, DeskewResult, Glyph, RotationCandidate

__all__ = [
    "CaptchaPipeline",
    "BoundingBox",
    "CaptchaResult",
    "DeskewResult",
    "Glyph",
    "RotationCandidate",
]
