"""
Process Worker - Async Watermark Removal/Injection
==================================================
QThread worker that applies the watermark engine to a batch of files.

Workflow:
1. Build one WatermarkEngine from the configured captures
2. For each image in the queue:
   a. Optionally score the expected position and skip weak matches
   b. Remove or add the watermark
   c. Save to the output directory with proper naming
3. Emit progress signals during processing
4. Emit finished signal with results

Naming Convention:
- Remove: filename_clean.ext
- Add: filename_watermarked.ext
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from PyQt6.QtCore import QThread, pyqtSignal

from cornermark import config
from cornermark.core.detector import detect_watermark_region
from cornermark.core.engine import WatermarkEngine
from cornermark.core.errors import ResourceLoadError
from cornermark.core.image_io import read_image, write_image
from cornermark.core.types import Region, SizeOverride

logger = logging.getLogger(__name__)


class ProcessMode(Enum):
    REMOVE = "remove"
    ADD = "add"


@dataclass
class ProcessConfig:
    """Complete configuration for a batch run."""
    image_paths: List[Path] = field(default_factory=list)
    output_dir: Path = field(default_factory=lambda: Path.cwd() / "output")
    mode: ProcessMode = ProcessMode.REMOVE
    size: SizeOverride = SizeOverride.AUTO
    region: Optional[Region] = None

    asset_dir: Path = field(default_factory=lambda: config.ASSET_DIR)
    logo_value: float = config.DEFAULT_LOGO_VALUE

    # Output extension without dot; None keeps the source extension
    output_format: Optional[str] = None

    # Removal only: skip images whose detection confidence is lower
    min_confidence: Optional[float] = None


@dataclass
class ProcessResult:
    """Result of processing a single image."""
    source_path: Path
    output_path: Optional[Path] = None
    confidence: Optional[float] = None
    skipped: bool = False
    success: bool = False
    error_message: str = ""


def generate_output_filename(source_path: Path, mode: ProcessMode,
                             output_format: Optional[str] = None) -> str:
    suffix = f".{output_format.lstrip('.')}" if output_format else source_path.suffix
    tag = "clean" if mode is ProcessMode.REMOVE else "watermarked"
    return f"{source_path.stem}_{tag}{suffix}"


def process_single_image(
        engine: WatermarkEngine,
        image_path: Path,
        process_config: ProcessConfig
) -> ProcessResult:
    """
    Process one image with the given engine.

    Failures are recorded on the result instead of raised, so a batch
    continues past bad files.
    """
    result = ProcessResult(source_path=image_path)

    try:
        image = read_image(image_path)

        if process_config.min_confidence is not None and process_config.mode is ProcessMode.REMOVE:
            detection = detect_watermark_region(image)
            result.confidence = detection.confidence if detection is not None else 0.0
            if result.confidence < process_config.min_confidence:
                logger.info(
                    "Skipping %s: confidence %.2f below %.2f",
                    image_path.name, result.confidence, process_config.min_confidence
                )
                result.skipped = True
                result.success = True
                return result

        remove = process_config.mode is ProcessMode.REMOVE
        if process_config.region is not None:
            if remove:
                image = engine.remove_custom(image, process_config.region)
            else:
                image = engine.add_custom(image, process_config.region)
        elif remove:
            image = engine.remove(image, process_config.size)
        else:
            image = engine.add(image, process_config.size)

        output_name = generate_output_filename(
            image_path, process_config.mode, process_config.output_format
        )
        result.output_path = write_image(process_config.output_dir / output_name, image)
        result.success = True

    except Exception as e:
        result.success = False
        result.error_message = str(e)
        logger.exception("Error processing %s", image_path)

    return result


class ProcessWorker(QThread):
    """
    Worker thread for removing or adding watermarks on a batch of images.

    Signals:
        progress(int, int, str): (current, total, current_file_name)
        image_completed(ProcessResult): Emitted when each image is processed
        finished_all(list[ProcessResult]): Emitted when all images are done
        error(str): Emitted on critical errors
    """

    # Signals
    progress = pyqtSignal(int, int, str)  # current, total, filename
    image_completed = pyqtSignal(object)  # ProcessResult
    finished_all = pyqtSignal(list)  # List[ProcessResult]
    error = pyqtSignal(str)  # Error message

    def __init__(self, config: ProcessConfig, parent=None):
        """
        Initialize the process worker.

        Args:
            config: ProcessConfig with all run settings.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self.config = config
        self._is_cancelled = False
        self._engine: Optional[WatermarkEngine] = None

    def cancel(self):
        """Request cancellation of the worker."""
        self._is_cancelled = True

    def run(self):
        """
        Main worker execution.

        Processes all images in the config and emits progress signals.
        """
        results: List[ProcessResult] = []
        total = len(self.config.image_paths)

        if total == 0:
            self.error.emit("No images to process")
            self.finished_all.emit(results)
            return

        try:
            self._engine = WatermarkEngine.from_asset_dir(
                self.config.asset_dir, logo_value=self.config.logo_value
            )
        except (ResourceLoadError, ValueError) as e:
            self.error.emit(str(e))
            self.finished_all.emit(results)
            return

        try:
            self.config.output_dir.mkdir(parents=True, exist_ok=True)

            for idx, image_path in enumerate(self.config.image_paths):
                if self._is_cancelled:
                    break

                self.progress.emit(idx + 1, total, image_path.name)

                result = process_single_image(self._engine, image_path, self.config)
                results.append(result)

                self.image_completed.emit(result)

        except Exception as e:
            self.error.emit(f"Critical error: {str(e)}")
            logger.exception("Batch run aborted")

        finally:
            self._engine = None

        self.finished_all.emit(results)
