"""
CornerMark - Main Entry Point
=============================
Command-line front end for batch watermark removal, injection and
detection.

Usage:
    python main.py remove photo.png -o cleaned/
    python main.py add photo.png --size large
    python main.py detect photo.png other.jpg

Architecture:
    - Model: cornermark/core/ (pure algorithms)
    - Worker: cornermark/workers/ (QThread batch processing)
    - Controller: This file (argument parsing, signal/slot connections)
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from PyQt6.QtCore import QCoreApplication

from cornermark import config
from cornermark.core import (
    InvalidImageError, Region, SizeOverride, detect_watermark_region, read_image
)
from cornermark.workers import ProcessConfig, ProcessMode, ProcessResult, ProcessWorker

logger = logging.getLogger("cornermark.cli")

SIZE_CHOICES = {
    "auto": SizeOverride.AUTO,
    "small": SizeOverride.FORCE_SMALL,
    "large": SizeOverride.FORCE_LARGE,
}


def collect_images(paths: List[str]) -> List[Path]:
    """Expand directories into the supported image files they contain."""
    images: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            images.extend(
                sorted(p for p in path.iterdir() if p.suffix.lower() in config.SUPPORTED_SUFFIXES)
            )
        else:
            images.append(path)
    return images


class BatchController:
    """
    Runs a ProcessWorker to completion and reports its progress.

    Every per-file failure is logged and skipped; the exit code reflects
    whether any file failed.
    """

    def __init__(self, app: QCoreApplication, process_config: ProcessConfig):
        self.app = app
        self.worker = ProcessWorker(process_config)
        self.results: List[ProcessResult] = []
        self.critical_error: Optional[str] = None

        self.worker.progress.connect(self._on_progress)
        self.worker.image_completed.connect(self._on_image_completed)
        self.worker.error.connect(self._on_error)
        self.worker.finished_all.connect(self._on_finished)

    def _on_progress(self, current: int, total: int, filename: str):
        logger.info("[%d/%d] %s", current, total, filename)

    def _on_image_completed(self, result: ProcessResult):
        if not result.success:
            logger.error("Failed: %s (%s)", result.source_path, result.error_message)
        elif result.skipped:
            logger.info("Skipped: %s (confidence %.2f)", result.source_path.name, result.confidence)
        else:
            logger.info("Saved: %s", result.output_path)

    def _on_error(self, message: str):
        self.critical_error = message
        logger.error(message)

    def _on_finished(self, results: list):
        self.results = results
        self.app.quit()

    def run(self) -> int:
        self.worker.start()
        self.app.exec()
        self.worker.wait()

        if self.critical_error is not None and not self.results:
            return 1
        failed = sum(1 for r in self.results if not r.success)
        logger.info("Done: %d processed, %d failed", len(self.results) - failed, failed)
        return 1 if failed else 0


def run_detect(paths: List[Path]) -> int:
    exit_code = 0
    for path in paths:
        try:
            image = read_image(path)
        except (FileNotFoundError, InvalidImageError) as e:
            logger.error("%s", e)
            exit_code = 1
            continue

        result = detect_watermark_region(image)
        if result is None:
            print(f"{path}: no result")
            continue

        region = result.region
        print(
            f"{path}: region=({region.x},{region.y},{region.width},{region.height}) "
            f"confidence={result.confidence:.2f} "
            f"[brightness={result.brightness_score:.2f} variance={result.variance_score:.2f} "
            f"edge={result.edge_score:.2f}]"
        )
    return exit_code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Remove, add or detect the corner watermark")
    parser.add_argument("command", choices=["remove", "add", "detect"])
    parser.add_argument("paths", nargs="+", help="Image files or directories")
    parser.add_argument("-o", "--output-dir", type=Path, default=Path.cwd() / "output",
                        help="Output directory (default: ./output)")
    parser.add_argument("--size", choices=sorted(SIZE_CHOICES), default="auto",
                        help="Force the watermark size class")
    parser.add_argument("--region", type=Region.parse, default=None,
                        help="Explicit watermark rectangle X,Y,W,H")
    parser.add_argument("--assets", type=Path, default=config.ASSET_DIR,
                        help="Directory holding bg_48.png and bg_96.png")
    parser.add_argument("--logo-value", type=float, default=config.DEFAULT_LOGO_VALUE,
                        help="Logo layer intensity 0-255 (default: 255)")
    parser.add_argument("--format", dest="output_format", default=None,
                        help="Output extension, e.g. png (default: keep source)")
    parser.add_argument("--min-confidence", type=float, default=None,
                        help="Only remove when detection confidence reaches this value")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s"
    )

    images = collect_images(args.paths)
    if not images:
        logger.error("No images to process")
        return 1

    if args.command == "detect":
        return run_detect(images)

    process_config = ProcessConfig(
        image_paths=images,
        output_dir=args.output_dir,
        mode=ProcessMode(args.command),
        size=SIZE_CHOICES[args.size],
        region=args.region,
        asset_dir=args.assets,
        logo_value=args.logo_value,
        output_format=args.output_format,
        min_confidence=args.min_confidence,
    )

    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    return BatchController(app, process_config).run()


if __name__ == "__main__":
    sys.exit(main())
