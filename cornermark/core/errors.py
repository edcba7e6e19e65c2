"""
Core Exceptions
===============
Error kinds raised by the compositing engine.

- ResourceLoadError: a reference capture is missing or cannot be decoded
- InvalidImageError: an operation received an empty or unsupported buffer
- InvalidRegionError: a region is degenerate after clipping
"""

from typing import Union
from pathlib import Path


class WatermarkError(Exception):
    """Base class for all watermark processing errors."""


class ResourceLoadError(WatermarkError):
    """
    A reference capture could not be loaded.

    Attributes:
        size_label: Which capture failed ("small" or "large").
        origin: File path or a description of the in-memory source.
    """

    def __init__(self, size_label: str, origin: Union[str, Path], reason: str = ""):
        self.size_label = size_label
        self.origin = str(origin)
        message = f"Failed to load {size_label} background capture: {self.origin}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidImageError(WatermarkError):
    """An operation received an empty or unsupported image buffer."""


class InvalidRegionError(WatermarkError):
    """A requested region is degenerate after clipping to image bounds."""
