"""Captcha reader utility modules."""

from .logging_utils import (
    setup_logging, get_logger, log_processing_stats, configure_opencv_logging
)
from .environment import initialize_runtime, is_initialized, find_executable

__all__ = [
    'setup_logging', 'get_logger', 'log_processing_stats', 'configure_opencv_logging',
    'initialize_runtime', 'is_initialized', 'find_executable',
]
