"""
Alpha Blending
==============
Forward and inverse alpha compositing of a flat-colour logo layer.

    add:    out = in * (1 - a) + L * a
    remove: out = (in - L * a) / (1 - a)

The inverse divides by (1 - a); the denominator is clamped to
MIN_DENOMINATOR so fully opaque pixels saturate instead of producing
inf/NaN.
"""

import logging
from typing import Tuple

import cv2
import numpy as np

from .errors import InvalidImageError, InvalidRegionError
from .types import Region

logger = logging.getLogger(__name__)

MIN_DENOMINATOR = 0.01


def ensure_bgr(image: np.ndarray) -> np.ndarray:
    """
    Normalize an image buffer to 3-channel uint8.

    A 3-channel buffer is returned as-is (same object); 1- and 4-channel
    buffers are converted into a new array.

    Raises:
        InvalidImageError: If the buffer is empty or not uint8.
    """
    if image is None or image.size == 0:
        raise InvalidImageError("Empty image provided")

    if image.dtype != np.uint8:
        raise InvalidImageError(f"Expected an 8-bit image, got dtype {image.dtype}")

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)

    if image.ndim == 3:
        channels = image.shape[2]
        if channels == 3:
            return image
        if channels == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
        if channels == 1:
            return cv2.cvtColor(np.ascontiguousarray(image[:, :, 0]), cv2.COLOR_GRAY2BGR)

    raise InvalidImageError(f"Unsupported image shape: {image.shape}")


def _blend_window(
        image: np.ndarray,
        alpha: np.ndarray,
        origin: Tuple[int, int]
) -> Tuple[Region, Region]:
    """
    Find the overlap between an alpha map placed at origin and the image.

    Returns:
        (image window, alpha window), both as Regions.

    Raises:
        InvalidRegionError: If the overlap is empty or smaller than 8x8.
    """
    image_h, image_w = image.shape[:2]
    alpha_h, alpha_w = alpha.shape[:2]
    footprint = Region(origin[0], origin[1], alpha_w, alpha_h)

    clipped = footprint.clip(image_w, image_h)
    if clipped is None or not clipped.is_usable():
        raise InvalidRegionError(
            f"Watermark footprint {footprint} does not fit a {image_w}x{image_h} image"
        )

    alpha_window = Region(
        clipped.x - footprint.x,
        clipped.y - footprint.y,
        clipped.width,
        clipped.height
    )
    return clipped, alpha_window


def _slices(region: Region):
    return slice(region.y, region.bottom), slice(region.x, region.right)


def add_watermark_alpha_blend(
        image: np.ndarray,
        alpha: np.ndarray,
        origin: Tuple[int, int],
        logo_value: float
) -> Region:
    """
    Composite the logo layer onto a 3-channel uint8 image in place.

    Returns:
        The image window that was modified.
    """
    window, alpha_window = _blend_window(image, alpha, origin)
    rows, cols = _slices(window)
    a_rows, a_cols = _slices(alpha_window)

    a = alpha[a_rows, a_cols][:, :, np.newaxis]
    patch = image[rows, cols].astype(np.float32)

    blended = patch * (1.0 - a) + np.float32(logo_value) * a
    image[rows, cols] = np.clip(np.rint(blended), 0, 255).astype(np.uint8)

    logger.debug("Forward blend over %s", window)
    return window


def remove_watermark_alpha_blend(
        image: np.ndarray,
        alpha: np.ndarray,
        origin: Tuple[int, int],
        logo_value: float
) -> Region:
    """
    Undo a logo composite on a 3-channel uint8 image in place.

    Returns:
        The image window that was modified.
    """
    window, alpha_window = _blend_window(image, alpha, origin)
    rows, cols = _slices(window)
    a_rows, a_cols = _slices(alpha_window)

    a = alpha[a_rows, a_cols][:, :, np.newaxis]
    patch = image[rows, cols].astype(np.float32)

    numerator = patch - np.float32(logo_value) * a
    denominator = np.maximum(1.0 - a, MIN_DENOMINATOR)
    restored = numerator / denominator

    image[rows, cols] = np.clip(np.rint(restored), 0, 255).astype(np.uint8)

    logger.debug("Inverse blend over %s", window)
    return window
