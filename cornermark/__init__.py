"""
CornerMark Package
==================
Removes or injects the semi-transparent corner logo of generated images,
and scores whether the logo sits at its expected position.

Modules:
    - core: Pure algorithm logic (no UI dependencies)
    - workers: QThread workers for batch processing

Usage:
    from cornermark.core import WatermarkEngine, detect_watermark_region
    from cornermark.workers import ProcessWorker, ProcessConfig
"""

import logging

__version__ = "1.0.0"
__app_name__ = "CornerMark"

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Core exports
from .core import (
    WatermarkEngine,
    AlphaMap,
    detect_watermark_region,
    resolve,
    WatermarkSize,
    SizeOverride,
    Region,
    WatermarkPlacement,
    DetectionResult,
    WatermarkError,
    ResourceLoadError,
    InvalidImageError,
    InvalidRegionError,
)

__all__ = [
    # Version info
    "__version__",
    "__app_name__",

    # Core
    "WatermarkEngine",
    "AlphaMap",
    "detect_watermark_region",
    "resolve",
    "WatermarkSize",
    "SizeOverride",
    "Region",
    "WatermarkPlacement",
    "DetectionResult",

    # Errors
    "WatermarkError",
    "ResourceLoadError",
    "InvalidImageError",
    "InvalidRegionError",
]
