"""
Process-wide runtime setup.

OpenCV and Tesseract are native libraries configured once per process.
``initialize_runtime`` does that setup and is safe to call repeatedly;
nothing needs tearing down afterwards.
"""

import logging
import shutil
import threading
from typing import Optional

import cv2
import pytesseract

from .logging_utils import configure_opencv_logging

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_initialized = False


def find_executable(name: str) -> Optional[str]:
    """
    Find executable in PATH.

    Args:
        name: Executable name

    Returns:
        Full path to executable or None if not found
    """
    return shutil.which(name)


def initialize_runtime(tesseract_cmd: Optional[str] = None,
                       opencv_log_level: int = logging.WARNING,
                       opencv_threads: Optional[int] = None) -> bool:
    """
    Configure native libraries for this process.

    Args:
        tesseract_cmd: Explicit path to the tesseract executable
        opencv_log_level: Python logging level mirrored onto OpenCV
        opencv_threads: OpenCV worker thread count (library default when None)

    Returns:
        True if this call did the setup, False if it had already been done
    """
    global _initialized

    with _lock:
        if _initialized:
            return False

        configure_opencv_logging(opencv_log_level)
        if opencv_threads is not None:
            cv2.setNumThreads(opencv_threads)

        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        else:
            resolved = find_executable("tesseract")
            if resolved:
                pytesseract.pytesseract.tesseract_cmd = resolved
            else:
                logger.warning("tesseract executable not found in PATH; recognition will fail")

        _initialized = True
        logger.debug(f"Runtime initialized (tesseract={pytesseract.pytesseract.tesseract_cmd})")
        return True


def is_initialized() -> bool:
    """Whether ``initialize_runtime`` has run in this process."""
    return _initialized
