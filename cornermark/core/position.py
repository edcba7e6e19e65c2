"""
Watermark Position Rules
========================
Maps image dimensions to the watermark size class and placement.

Rules:
- Large (96x96, 64px margin): BOTH width AND height > 1024
- Small (48x48, 32px margin): otherwise, including 1024x1024

The footprint is anchored to the bottom-right corner. The engine and
the detector both go through these functions so their expected
location never diverges.
"""

from typing import NamedTuple

from .types import Region, WatermarkPlacement, WatermarkSize


SIZE_THRESHOLD = 1024


class WatermarkGeometry(NamedTuple):
    """Logo side and margins for one size class."""
    logo_size: int
    margin_right: int
    margin_bottom: int


GEOMETRY = {
    WatermarkSize.SMALL: WatermarkGeometry(logo_size=48, margin_right=32, margin_bottom=32),
    WatermarkSize.LARGE: WatermarkGeometry(logo_size=96, margin_right=64, margin_bottom=64),
}


def get_watermark_size(image_width: int, image_height: int) -> WatermarkSize:
    if image_width > SIZE_THRESHOLD and image_height > SIZE_THRESHOLD:
        return WatermarkSize.LARGE
    return WatermarkSize.SMALL


def canonical_side(size: WatermarkSize) -> int:
    return GEOMETRY[size].logo_size


def placement_for(size: WatermarkSize, image_width: int, image_height: int) -> WatermarkPlacement:
    """
    Place the footprint of a given size class on an image.

    The origin may be negative when the image is smaller than the
    footprint plus its margins; callers clip.
    """
    geometry = GEOMETRY[size]
    x = image_width - geometry.margin_right - geometry.logo_size
    y = image_height - geometry.margin_bottom - geometry.logo_size
    return WatermarkPlacement(size=size, x=x, y=y, side=geometry.logo_size)


def resolve(image_width: int, image_height: int) -> WatermarkPlacement:
    """Resolve size class and placement from image dimensions alone."""
    size = get_watermark_size(image_width, image_height)
    return placement_for(size, image_width, image_height)


def fallback_region(image_width: int, image_height: int) -> Region:
    """Expected watermark rectangle, used when detection finds nothing better."""
    return resolve(image_width, image_height).region
