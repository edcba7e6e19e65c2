"""
Core Module - Pure Algorithm Logic
==================================
This module contains no UI dependencies.
Alpha map construction, blending, position rules and detection live here.
"""

from .alpha import AlphaMap, calculate_alpha_map
from .blend import ensure_bgr
from .detector import detect_watermark_region
from .engine import WatermarkEngine
from .errors import (
    WatermarkError, ResourceLoadError, InvalidImageError, InvalidRegionError
)
from .image_io import read_image, write_image, process_file
from .position import (
    get_watermark_size, placement_for, resolve, fallback_region
)
from .types import (
    WatermarkSize, SizeOverride, Region, WatermarkPlacement, DetectionResult
)

__all__ = [
    # Engine
    "WatermarkEngine",
    "AlphaMap",
    "calculate_alpha_map",
    "ensure_bgr",
    # Detection
    "detect_watermark_region",
    # Position rules
    "get_watermark_size",
    "placement_for",
    "resolve",
    "fallback_region",
    # Types
    "WatermarkSize",
    "SizeOverride",
    "Region",
    "WatermarkPlacement",
    "DetectionResult",
    # I/O
    "read_image",
    "write_image",
    "process_file",
    # Errors
    "WatermarkError",
    "ResourceLoadError",
    "InvalidImageError",
    "InvalidRegionError",
]
