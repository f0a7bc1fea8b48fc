"""Captcha reading pipeline and command line entry point."""

import argparse
import dataclasses
import logging
import sys
from multiprocessing import Pool, cpu_count
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

from .config import Config, get_default_config, load_config
from .exceptions import CaptchaReaderError, ProcessingError, RecognitionFailedError
from .models import CaptchaResult, DeskewResult, Glyph
from .processors import (
    DeskewProcessor,
    EdgeDetectionProcessor,
    PaddingProcessor,
    PreprocessProcessor,
    SegmentationProcessor,
    get_image_files,
    load_image,
    save_image,
)
from .recognizer import Recognizer, TesseractRecognizer, clean_text
from .utils.environment import initialize_runtime
from .utils.logging_utils import log_processing_stats, setup_logging

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_PATH = Path("captcha/c1.jpeg")

PathLike = Union[str, Path]


def _deskew_worker(task: Tuple[Glyph, Config]) -> Tuple[int, DeskewResult]:
    """Deskew one glyph in a worker process, keyed by its ordinal."""
    glyph, config = task
    processor = DeskewProcessor(config.deskew, edge_config=config.edge_detection)
    return glyph.ordinal, processor.deskew(glyph)


class CaptchaPipeline:
    """Segments a captcha into upright glyphs and reads them."""

    def __init__(self, config: Optional[Config] = None, recognizer: Optional[Recognizer] = None):
        """Initialize pipeline with configuration and a recognizer.

        The Tesseract recognizer is only built when text is first requested,
        so glyph extraction works without the tesseract executable.
        """
        self.config = config or get_default_config()
        self._recognizer = recognizer

        debug = self.config.save_debug_images
        self.preprocessor = PreprocessProcessor(self.config.preprocessing, save_debug_images=debug)
        self.edge_detector = EdgeDetectionProcessor(self.config.edge_detection, save_debug_images=debug)
        self.segmenter = SegmentationProcessor(self.config.segmentation, save_debug_images=debug)
        self.deskewer = DeskewProcessor(
            self.config.deskew, edge_config=self.config.edge_detection, save_debug_images=debug
        )
        self.padder = PaddingProcessor(self.config.padding, save_debug_images=debug)

    @property
    def recognizer(self) -> Recognizer:
        if self._recognizer is None:
            initialize_runtime(tesseract_cmd=self.config.recognizer.tesseract_cmd,
                               opencv_threads=self.config.opencv_threads)
            self._recognizer = TesseractRecognizer(self.config.recognizer)
        return self._recognizer

    def extract_glyphs(self, image: np.ndarray) -> List[Glyph]:
        """Run stages 1-7 and return padded, upright glyphs in reading order.

        Raises:
            InvalidImageError: If the image is empty or malformed
            NoGlyphsFoundError: If segmentation finds nothing
        """
        self.deskewer.clear_debug_images()
        self.padder.clear_debug_images()

        mask = self.preprocessor.process(image)
        edges = self.edge_detector.process(mask)
        glyphs = self.segmenter.process(edges, mask=mask)

        results = self.deskew_all(glyphs)
        deskewed = [self.deskewer.apply(glyph, result) for glyph, result in zip(glyphs, results)]

        return [self.padder.process(glyph) for glyph in deskewed]

    def deskew_all(self, glyphs: List[Glyph]) -> List[DeskewResult]:
        """Deskew every glyph, returning results in ordinal order."""
        if not self.config.parallel or len(glyphs) < 2:
            return [self.deskewer.deskew(glyph) for glyph in glyphs]

        workers = self.config.max_workers or max(1, cpu_count() - 1)
        # Crops are views into the full mask; send compact copies to the workers
        tasks = [
            (dataclasses.replace(glyph, image=np.ascontiguousarray(glyph.image)), self.config)
            for glyph in glyphs
        ]

        collected: Dict[int, DeskewResult] = {}
        with Pool(processes=min(workers, len(glyphs))) as pool:
            for ordinal, result in pool.imap_unordered(_deskew_worker, tasks):
                collected[ordinal] = result

        return [collected[glyph.ordinal] for glyph in glyphs]

    def recognize_glyphs(self, glyphs: List[Glyph]) -> CaptchaResult:
        """Recognize each glyph and join the characters in ordinal order.

        A glyph the recognizer fails on contributes an empty character and
        is listed in ``CaptchaResult.failed``.
        """
        characters = []
        failed = []
        for glyph in sorted(glyphs, key=lambda g: g.ordinal):
            try:
                characters.append(clean_text(self.recognizer.recognize(glyph.image)))
            except RecognitionFailedError as e:
                e.details.setdefault("ordinal", glyph.ordinal)
                logger.warning(f"Recognition failed: {e}")
                characters.append("")
                failed.append(glyph.ordinal)

        return CaptchaResult(text="".join(characters), characters=characters,
                             glyphs=list(glyphs), failed=failed)

    def read(self, image: np.ndarray) -> CaptchaResult:
        """Read the digits of a decoded captcha image."""
        glyphs = self.extract_glyphs(image)
        result = self.recognize_glyphs(glyphs)
        logger.info(f"Read {result.text!r} from {len(glyphs)} glyphs")
        return result

    def read_file(self, image_path: PathLike) -> CaptchaResult:
        """Load and read one captcha image file."""
        image_path = Path(image_path)
        logger.debug(f"Processing: {image_path}")
        result = self.read(load_image(image_path))

        if self.config.save_debug_images and self.config.debug_dir:
            self.save_debug_images(Path(self.config.debug_dir) / image_path.stem)
        return result

    def read_directory(self, directory: PathLike) -> Dict[Path, Optional[CaptchaResult]]:
        """Read every image in a directory.

        A file that fails any processing stage maps to None and counts as
        failed; the rest of the batch still runs.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise ValueError(f"Input directory does not exist: {directory}")

        results: Dict[Path, Optional[CaptchaResult]] = {}
        with log_processing_stats(f"reading {directory}", logger) as stats:
            for image_path in get_image_files(directory):
                try:
                    results[image_path] = self.read_file(image_path)
                    stats["images_processed"] += 1
                except ProcessingError as e:
                    logger.warning(f"{image_path.name}: {e}")
                    results[image_path] = None
                    stats["images_failed"] += 1
        return results

    def save_debug_images(self, debug_dir: Path) -> None:
        """Write the intermediate images of the last run."""
        for processor in (self.preprocessor, self.edge_detector, self.segmenter,
                          self.deskewer, self.padder):
            processor.save_debug_images_to_dir(debug_dir)
            processor.clear_debug_images()


def save_glyphs(glyphs: List[Glyph], output_dir: Path, prefix: str) -> List[Path]:
    """Write final glyph images named by ordinal."""
    paths = []
    for glyph in glyphs:
        path = output_dir / f"{prefix}_glyph_{glyph.ordinal:02d}.png"
        save_image(glyph.image, path)
        paths.append(path)
    return paths


def main(argv: Optional[List[str]] = None) -> int:
    """Command line interface."""
    parser = argparse.ArgumentParser(description="Read the digits of distorted captcha images")
    parser.add_argument(
        "images", nargs="*", type=Path,
        help=f"Captcha image files or directories (default: {DEFAULT_IMAGE_PATH})"
    )
    parser.add_argument("-c", "--config", help="Configuration file (JSON, YAML or TOML)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--quiet", action="store_true", help="Only log errors")
    parser.add_argument("--debug-dir", help="Save intermediate images to this directory")
    parser.add_argument("--glyph-dir", type=Path, help="Save final glyph images to this directory")
    parser.add_argument("--parallel", action="store_true", help="Deskew glyphs in worker processes")
    parser.add_argument("--workers", type=int, help="Number of worker processes")
    parser.add_argument("--tessdata-dir", help="Directory holding tesseract traineddata")

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config) if args.config else get_default_config()
    except CaptchaReaderError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.verbose:
        config.logging.level = "DEBUG"
    elif args.quiet:
        config.logging.level = "ERROR"
    if args.debug_dir:
        config.save_debug_images = True
        config.debug_dir = args.debug_dir
    if args.parallel:
        config.parallel = True
    if args.workers:
        config.max_workers = args.workers
    if args.tessdata_dir:
        config.recognizer.tessdata_dir = args.tessdata_dir

    setup_logging(
        level=config.logging.level,
        log_file=config.logging.log_file,
        use_rich=config.logging.use_rich,
        format_style=config.logging.format_style,
    )
    initialize_runtime(
        tesseract_cmd=config.recognizer.tesseract_cmd,
        opencv_log_level=logging.getLevelName(config.logging.level),
        opencv_threads=config.opencv_threads,
    )

    image_paths: List[Path] = []
    for path in args.images or [DEFAULT_IMAGE_PATH]:
        image_paths.extend(get_image_files(path) if path.is_dir() else [path])

    pipeline = CaptchaPipeline(config)
    exit_code = 0
    for image_path in image_paths:
        try:
            result = pipeline.read_file(image_path)
        except CaptchaReaderError as e:
            logger.error(f"{image_path}: {e}")
            exit_code = 1
            continue

        if args.glyph_dir:
            save_glyphs(result.glyphs, args.glyph_dir, image_path.stem)
        if len(image_paths) > 1:
            print(f"{image_path}\t{result.text}")
        else:
            print(result.text)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
