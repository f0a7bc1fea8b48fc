"""
Custom exceptions for the captcha reader.

Provides a hierarchy of exceptions for the errors that can occur while
segmenting, deskewing, and recognizing captcha glyphs.
"""

from typing import Optional, Any


class CaptchaReaderError(Exception):
    """Base exception for all captcha reader errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} (Details: {details_str})"
        return self.message


class ConfigurationError(CaptchaReaderError):
    """Raised when there are configuration-related errors."""
    pass


class ProcessingError(CaptchaReaderError):
    """Raised when a pipeline stage fails."""

    def __init__(self, message: str, stage: Optional[str] = None,
                 ordinal: Optional[int] = None, **kwargs: Any) -> None:
        details = kwargs
        if stage:
            details["stage"] = stage
        if ordinal is not None:
            details["ordinal"] = ordinal
        super().__init__(message, details)

    @property
    def stage(self) -> Optional[str]:
        return self.details.get("stage")

    @property
    def ordinal(self) -> Optional[int]:
        return self.details.get("ordinal")


class InvalidImageError(ProcessingError):
    """Raised when the input image is malformed or has a zero dimension."""
    pass


class ImageLoadError(ProcessingError):
    """Raised when an image file cannot be decoded."""
    pass


class NoGlyphsFoundError(ProcessingError):
    """Raised when segmentation finds no glyphs; the captcha is unreadable."""
    pass


class DeskewStepFailedError(ProcessingError):
    """Raised when a rotation step of the deskew search finds no contours."""

    def __init__(self, message: str, angle: Optional[float] = None, **kwargs: Any) -> None:
        if angle is not None:
            kwargs["angle"] = angle
        kwargs.setdefault("stage", "deskew")
        super().__init__(message, **kwargs)


class RecognitionFailedError(ProcessingError):
    """Raised when the recognizer fails on a single glyph."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("stage", "recognition")
        super().__init__(message, **kwargs)
