"""
Shared Data Types
=================
Plain value types passed between the position resolver, the engine
and the detector.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# Regions smaller than this (in either dimension) are not usable
MIN_REGION_EXTENT = 8


class WatermarkSize(Enum):
    """Watermark footprint size class."""
    SMALL = "small"
    LARGE = "large"


class SizeOverride(Enum):
    """
    How the engine chooses a size class.

    AUTO defers to the image-dimension rule; the FORCE variants pick
    the alpha map and margin set directly.
    """
    AUTO = "auto"
    FORCE_SMALL = "small"
    FORCE_LARGE = "large"

    def resolve(self, image_width: int, image_height: int) -> WatermarkSize:
        if self is SizeOverride.FORCE_SMALL:
            return WatermarkSize.SMALL
        if self is SizeOverride.FORCE_LARGE:
            return WatermarkSize.LARGE

        # Local import keeps types.py free of the position rules
        from .position import get_watermark_size
        return get_watermark_size(image_width, image_height)


@dataclass(frozen=True)
class Region:
    """Axis-aligned pixel rectangle (x, y, width, height)."""
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def clip(self, image_width: int, image_height: int) -> Optional["Region"]:
        """
        Intersect with the image bounds.

        Returns:
            The clipped region, or None if nothing overlaps.
        """
        x0 = max(self.x, 0)
        y0 = max(self.y, 0)
        x1 = min(self.right, image_width)
        y1 = min(self.bottom, image_height)
        if x1 <= x0 or y1 <= y0:
            return None
        return Region(x0, y0, x1 - x0, y1 - y0)

    def is_usable(self, min_extent: int = MIN_REGION_EXTENT) -> bool:
        return self.width >= min_extent and self.height >= min_extent

    @classmethod
    def parse(cls, text: str) -> "Region":
        """Parse an "X,Y,W,H" string."""
        parts = [p.strip() for p in text.split(",")]
        if len(parts) != 4:
            raise ValueError(f"Region must be X,Y,W,H, got: {text!r}")
        x, y, w, h = (int(p) for p in parts)
        return cls(x, y, w, h)


@dataclass(frozen=True)
class WatermarkPlacement:
    """Where the square watermark footprint sits for a given image."""
    size: WatermarkSize
    x: int
    y: int
    side: int

    @property
    def region(self) -> Region:
        return Region(self.x, self.y, self.side, self.side)


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of a single detection call."""
    region: Region
    confidence: float
    method: str
    brightness_score: float = 0.0
    variance_score: float = 0.0
    edge_score: float = 0.0
