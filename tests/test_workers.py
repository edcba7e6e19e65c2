"""
Test script for worker threads.

Run with: python -m pytest tests/test_workers.py -v
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
import pytest
from PIL import Image

from PyQt6.QtCore import QCoreApplication, QEventLoop, QTimer

from cornermark.core import WatermarkEngine, read_image, resolve
from cornermark.workers import (
    ProcessConfig, ProcessMode, ProcessResult, ProcessWorker,
    generate_output_filename, process_single_image
)

# Global application instance
_app = None


def get_app():
    """Get or create the QCoreApplication instance."""
    global _app
    if _app is None:
        _app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    return _app


def create_asset_dir(root: Path) -> Path:
    """Write a pair of ramp captures in the layout from_asset_dir expects."""
    asset_dir = root / "assets"
    asset_dir.mkdir()
    for side, name in [(48, "bg_48.png"), (96, "bg_96.png")]:
        ramp = np.linspace(13, 120, side * side).reshape(side, side)
        Image.fromarray(np.rint(ramp).astype(np.uint8)).save(asset_dir / name)
    return asset_dir


def create_test_image(path: Path, width: int = 640, height: int = 480, seed: int = 0) -> Path:
    """Create a noisy RGB test image on disk."""
    rng = np.random.default_rng(seed)
    arr = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    Image.fromarray(arr).save(path)
    return path


def run_worker(worker: ProcessWorker, timeout_ms: int = 30000):
    """
    Start a worker and wait for finished_all.

    Returns:
        The list emitted by finished_all, or None on timeout.
    """
    get_app()
    loop = QEventLoop()
    result = [None]

    def on_finished(results):
        result[0] = results
        loop.quit()

    worker.finished_all.connect(on_finished)

    # Setup timeout
    timer = QTimer()
    timer.setSingleShot(True)
    timer.timeout.connect(loop.quit)
    timer.start(timeout_ms)

    worker.start()
    loop.exec()
    timer.stop()
    worker.wait()

    return result[0]


def test_generate_output_filename():
    source = Path("/images/photo.jpg")

    assert generate_output_filename(source, ProcessMode.REMOVE) == "photo_clean.jpg"
    assert generate_output_filename(source, ProcessMode.ADD) == "photo_watermarked.jpg"
    assert generate_output_filename(source, ProcessMode.REMOVE, "png") == "photo_clean.png"
    assert generate_output_filename(source, ProcessMode.ADD, ".webp") == "photo_watermarked.webp"


def test_process_single_image_add_then_remove(tmp_path):
    engine = WatermarkEngine.from_asset_dir(create_asset_dir(tmp_path))
    source = create_test_image(tmp_path / "photo.png")
    output_dir = tmp_path / "out"

    added = process_single_image(
        engine, source, ProcessConfig(output_dir=output_dir, mode=ProcessMode.ADD)
    )
    assert added.success, added.error_message
    assert added.output_path == output_dir / "photo_watermarked.png"

    removed = process_single_image(
        engine, added.output_path, ProcessConfig(output_dir=output_dir, mode=ProcessMode.REMOVE)
    )
    assert removed.success, removed.error_message
    assert removed.output_path.name == "photo_watermarked_clean.png"

    diff = np.abs(
        read_image(removed.output_path).astype(np.int16) - read_image(source).astype(np.int16)
    )
    assert diff.max() <= 1


def test_min_confidence_skips_unmarked_image(tmp_path):
    engine = WatermarkEngine.from_asset_dir(create_asset_dir(tmp_path))
    source = tmp_path / "flat.png"
    Image.new("RGB", (400, 300), (120, 120, 120)).save(source)

    result = process_single_image(
        engine, source,
        ProcessConfig(output_dir=tmp_path / "out", min_confidence=0.5)
    )

    assert result.success
    assert result.skipped
    assert result.confidence == pytest.approx(0.15)
    assert result.output_path is None


def test_process_single_image_reports_missing_file(tmp_path):
    engine = WatermarkEngine.from_asset_dir(create_asset_dir(tmp_path))

    result = process_single_image(
        engine, tmp_path / "missing.png", ProcessConfig(output_dir=tmp_path / "out")
    )

    assert not result.success
    assert "missing.png" in result.error_message


def test_process_worker_batch(tmp_path):
    asset_dir = create_asset_dir(tmp_path)
    images = [create_test_image(tmp_path / f"img_{i}.png", seed=i) for i in range(3)]
    images.append(tmp_path / "missing.png")
    output_dir = tmp_path / "out"

    worker = ProcessWorker(ProcessConfig(
        image_paths=images,
        output_dir=output_dir,
        mode=ProcessMode.ADD,
        asset_dir=asset_dir,
    ))

    progress_log = []
    worker.progress.connect(lambda c, t, f: progress_log.append((c, t, f)))

    results = run_worker(worker)

    assert results is not None, "Worker timed out"
    assert len(results) == 4
    assert sum(1 for r in results if r.success) == 3
    assert isinstance(results[0], ProcessResult)
    assert [entry[0] for entry in progress_log] == [1, 2, 3, 4]

    region = resolve(640, 480).region
    marked = read_image(output_dir / "img_0_watermarked.png")
    original = read_image(images[0])
    assert not np.array_equal(
        marked[region.y:region.bottom, region.x:region.right],
        original[region.y:region.bottom, region.x:region.right]
    )


def test_process_worker_missing_assets(tmp_path):
    source = create_test_image(tmp_path / "photo.png")

    worker = ProcessWorker(ProcessConfig(
        image_paths=[source],
        output_dir=tmp_path / "out",
        asset_dir=tmp_path / "no_assets",
    ))

    errors = []
    worker.error.connect(errors.append)

    results = run_worker(worker)

    assert results == []
    assert len(errors) == 1
    assert "small" in errors[0]


def test_process_worker_empty_queue(tmp_path):
    worker = ProcessWorker(ProcessConfig(image_paths=[], output_dir=tmp_path / "out"))

    errors = []
    worker.error.connect(errors.append)

    results = run_worker(worker)

    assert results == []
    assert errors == ["No images to process"]
