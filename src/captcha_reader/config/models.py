"""
Pydantic models for captcha reader configuration.

Defines the configuration schema with validation, defaults, and
documentation for every stage of the glyph pipeline.
"""

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class LogLevel(str, Enum):
    """Supported logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class PreprocessingConfig(BaseModel):
    """Configuration for grayscale conversion, noise filtering and thresholding."""

    blur_kernel: Tuple[int, int] = Field(
        default=(1, 11),
        description="Gaussian kernel as (width, height); tall and narrow to keep vertical strokes"
    )
    median_kernel: int = Field(
        default=5,
        ge=1,
        description="Aperture of the median filter (must be odd)"
    )
    threshold: int = Field(
        default=200,
        ge=0,
        le=255,
        description="Intensity cutoff; brighter pixels become background"
    )

    @field_validator('blur_kernel')
    @classmethod
    def validate_blur_kernel(cls, v):
        """Gaussian kernel sides must be positive and odd."""
        for side in v:
            if side <= 0 or side % 2 == 0:
                raise ValueError("Blur kernel sides must be positive odd numbers")
        return v

    @field_validator('median_kernel')
    @classmethod
    def validate_odd_median_kernel(cls, v):
        """Ensure median aperture is odd."""
        if v % 2 == 0:
            raise ValueError("Median kernel size must be odd")
        return v


class EdgeDetectionConfig(BaseModel):
    """Configuration for Canny edge detection."""

    low_threshold: int = Field(
        default=170,
        ge=0,
        description="Lower hysteresis threshold"
    )
    high_threshold: int = Field(
        default=250,
        gt=0,
        description="Upper hysteresis threshold"
    )

    @model_validator(mode='after')
    def validate_threshold_order(self):
        """Validate that hysteresis thresholds are ordered."""
        if self.low_threshold >= self.high_threshold:
            raise ValueError("low_threshold must be less than high_threshold")
        return self


class SegmentationConfig(BaseModel):
    """Configuration for contour segmentation."""

    min_glyph_area: int = Field(
        default=0,
        ge=0,
        description="Drop contours whose bounding box area is below this many pixels"
    )


class DeskewConfig(BaseModel):
    """Configuration for the per-glyph rotation search."""

    crop_margin: int = Field(
        default=40,
        ge=0,
        description="Background margin added around a glyph before each rotation"
    )
    probe_angle: float = Field(
        default=19.0,
        gt=0.0,
        lt=90.0,
        description="Angle used to pick the search direction (degrees)"
    )
    angle_step: float = Field(
        default=6.0,
        gt=0.0,
        le=45.0,
        description="Step between candidate angles (degrees)"
    )
    max_search_angle: float = Field(
        default=90.0,
        gt=0.0,
        le=180.0,
        description="Largest rotation magnitude the search may reach (degrees)"
    )
    strict: bool = Field(
        default=False,
        description="Propagate failed search steps instead of falling back"
    )

    @model_validator(mode='after')
    def validate_search_range(self):
        """The search range has to fit at least one step."""
        if self.angle_step > self.max_search_angle:
            raise ValueError("angle_step must not exceed max_search_angle")
        return self


class PaddingConfig(BaseModel):
    """Configuration for the final glyph margin."""

    margin: int = Field(
        default=15,
        ge=0,
        description="Background margin added around each deskewed glyph"
    )


class RecognizerConfig(BaseModel):
    """Configuration for the Tesseract character recognizer."""

    char_whitelist: str = Field(
        default="0123456789",
        min_length=1,
        description="Characters the recognizer may return"
    )
    dpi: int = Field(
        default=2400,
        gt=0,
        description="Resolution hint passed as user_defined_dpi"
    )
    language: str = Field(
        default="eng",
        description="Tesseract language / traineddata name"
    )
    tessdata_dir: Optional[str] = Field(
        default=None,
        description="Directory holding traineddata files (system default when unset)"
    )
    page_segmentation_mode: Optional[int] = Field(
        default=10,
        ge=0,
        le=13,
        description="Tesseract --psm value; 10 treats the image as a single character"
    )
    tesseract_cmd: Optional[str] = Field(
        default=None,
        description="Path to the tesseract executable"
    )
    invert: bool = Field(
        default=True,
        description="Hand glyphs to Tesseract as dark text on a light background"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Base logging level"
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional log file path"
    )
    use_rich: bool = Field(
        default=True,
        description="Whether to use rich console output"
    )
    format_style: str = Field(
        default="detailed",
        pattern="^(simple|detailed|minimal)$",
        description="Logging format style"
    )


class Config(BaseModel):
    """Main configuration model for the captcha reader."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        use_enum_values=True,
    )

    preprocessing: PreprocessingConfig = Field(
        default_factory=PreprocessingConfig,
        description="Grayscale, noise filter and binarizer configuration"
    )
    edge_detection: EdgeDetectionConfig = Field(
        default_factory=EdgeDetectionConfig,
        description="Edge detection configuration"
    )
    segmentation: SegmentationConfig = Field(
        default_factory=SegmentationConfig,
        description="Contour segmentation configuration"
    )
    deskew: DeskewConfig = Field(
        default_factory=DeskewConfig,
        description="Glyph deskew configuration"
    )
    padding: PaddingConfig = Field(
        default_factory=PaddingConfig,
        description="Final padding configuration"
    )
    recognizer: RecognizerConfig = Field(
        default_factory=RecognizerConfig,
        description="Recognizer configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration"
    )

    parallel: bool = Field(
        default=False,
        description="Deskew glyphs in worker processes"
    )
    max_workers: Optional[int] = Field(
        default=None,
        gt=0,
        description="Worker process count (default: CPU count - 1)"
    )
    opencv_threads: Optional[int] = Field(
        default=None,
        ge=0,
        description="OpenCV internal thread count (library default when unset)"
    )
    save_debug_images: bool = Field(
        default=False,
        description="Keep intermediate images for inspection"
    )
    debug_dir: Optional[str] = Field(
        default=None,
        description="Directory for intermediate images"
    )
    description: Optional[str] = Field(
        default=None,
        description="Configuration description"
    )
