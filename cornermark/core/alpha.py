"""
Alpha Map Construction
======================
Builds per-pixel opacity maps from reference captures.

Technical Notes:
- A capture is the white logo layer composited onto a solid black
  canvas, so its brightness equals the blend alpha scaled to [0, 255]
- alpha = gray(capture) / 255
- Captures with the wrong dimensions are resized with INTER_AREA
- Canonical maps are read-only; resized maps are fresh copies
"""

import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from .blend import ensure_bgr
from .errors import InvalidImageError, InvalidRegionError, ResourceLoadError
from .position import canonical_side
from .types import Region, WatermarkSize

logger = logging.getLogger(__name__)

CaptureSource = Union[str, Path, bytes, bytearray, memoryview, np.ndarray]


def _bilinear_taps(start: int, count: int, src_len: int, dst_len: int):
    """Source indices and weights for dst pixels [start, start + count)."""
    dst = np.arange(start, start + count, dtype=np.float64)
    src = np.clip((dst + 0.5) * (src_len / dst_len) - 0.5, 0, src_len - 1)
    low = np.floor(src).astype(np.intp)
    high = np.minimum(low + 1, src_len - 1)
    return low, high, (src - low).astype(np.float32)


def load_capture(source: CaptureSource, size: WatermarkSize) -> np.ndarray:
    """
    Decode a reference capture into a BGR uint8 array.

    Args:
        source: File path, encoded image bytes, or a decoded array.
        size: Size class the capture belongs to (used in error messages).

    Returns:
        BGR image array.

    Raises:
        ResourceLoadError: If the capture is absent, empty or undecodable.
    """
    label = size.value

    if isinstance(source, np.ndarray):
        if source.size == 0:
            raise ResourceLoadError(label, "<array>", "empty array")
        image = source
        if image.dtype != np.uint8:
            image = np.clip(image, 0, 255).astype(np.uint8)
        try:
            return ensure_bgr(image)
        except InvalidImageError as e:
            raise ResourceLoadError(label, "<array>", str(e)) from e

    if isinstance(source, (bytes, bytearray, memoryview)):
        buffer = np.frombuffer(bytes(source), dtype=np.uint8)
        if buffer.size == 0:
            raise ResourceLoadError(label, "<embedded buffer>", "empty buffer")
        image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
        if image is None or image.size == 0:
            raise ResourceLoadError(label, "<embedded buffer>", "cannot decode")
        return image

    path = Path(source)
    if not path.is_file():
        raise ResourceLoadError(label, path, "file not found")

    # np.fromfile + imdecode handles non-ASCII paths on Windows
    image = cv2.imdecode(np.fromfile(str(path), dtype=np.uint8), cv2.IMREAD_COLOR)
    if image is None or image.size == 0:
        raise ResourceLoadError(label, path, "cannot decode")
    return image


def calculate_alpha_map(capture: np.ndarray) -> np.ndarray:
    """Convert a BGR capture into a float32 opacity grid in [0, 1]."""
    gray = capture if capture.ndim == 2 else cv2.cvtColor(capture, cv2.COLOR_BGR2GRAY)
    return np.clip(gray.astype(np.float32) / 255.0, 0.0, 1.0)


class AlphaMap:
    """
    Per-pixel opacity grid for one watermark footprint.

    The underlying array is read-only. Use resized() to derive a map of
    another size.
    """

    def __init__(self, values: np.ndarray):
        if values.ndim != 2 or values.size == 0:
            raise ValueError(f"Alpha map must be a non-empty 2D array, got shape {values.shape}")
        values = np.array(values, dtype=np.float32, copy=True)
        values.setflags(write=False)
        self._values = values

    @classmethod
    def from_capture(cls, source: CaptureSource, size: WatermarkSize) -> "AlphaMap":
        """
        Build the canonical alpha map for a size class from a capture.

        Args:
            source: File path, encoded bytes or decoded array.
            size: Target size class (48x48 or 96x96).

        Returns:
            AlphaMap with canonical dimensions.
        """
        capture = load_capture(source, size)
        side = canonical_side(size)
        height, width = capture.shape[:2]

        if width != side or height != side:
            logger.warning(
                "%s capture is %dx%d, expected %dx%d. Resizing.",
                size.value.capitalize(), width, height, side, side
            )
            capture = cv2.resize(capture, (side, side), interpolation=cv2.INTER_AREA)

        return cls(calculate_alpha_map(capture))

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def width(self) -> int:
        return self._values.shape[1]

    @property
    def height(self) -> int:
        return self._values.shape[0]

    @property
    def shape(self):
        return self._values.shape

    def value_range(self):
        return float(self._values.min()), float(self._values.max())

    def resized(self, width: int, height: int) -> "AlphaMap":
        """
        Derive a map of a different size.

        Upscaling in either dimension uses bilinear interpolation,
        otherwise area averaging.

        Raises:
            InvalidRegionError: If a target dimension is not positive.
        """
        if width <= 0 or height <= 0:
            raise InvalidRegionError(f"Cannot build a {width}x{height} alpha map")

        if width == self.width and height == self.height:
            return AlphaMap(self._values)

        if width > self.width or height > self.height:
            method = cv2.INTER_LINEAR
        else:
            method = cv2.INTER_AREA

        resized = cv2.resize(self._values, (width, height), interpolation=method)
        logger.debug(
            "Created interpolated alpha map: %dx%d -> %dx%d (method: %s)",
            self.width, self.height, width, height,
            "bilinear" if method == cv2.INTER_LINEAR else "area"
        )
        return AlphaMap(np.clip(resized, 0.0, 1.0))

    def resized_window(self, width: int, height: int, window: Region) -> "AlphaMap":
        """
        Derive only the window of a width x height resize.

        Equivalent to cropping resized(width, height) to window, but an
        upscale never materializes the full map, so the cost follows the
        window size rather than the requested size.

        Raises:
            InvalidRegionError: If a target dimension is not positive or
                the window does not lie inside the target.
        """
        if width <= 0 or height <= 0:
            raise InvalidRegionError(f"Cannot build a {width}x{height} alpha map")
        if window.clip(width, height) != window:
            raise InvalidRegionError(f"Window {window} is outside a {width}x{height} alpha map")

        if width <= self.width and height <= self.height:
            full = self.resized(width, height).values
            return AlphaMap(full[window.y:window.bottom, window.x:window.right])

        row_low, row_high, row_frac = _bilinear_taps(window.y, window.height, self.height, height)
        col_low, col_high, col_frac = _bilinear_taps(window.x, window.width, self.width, width)

        top = self._values[row_low]
        bottom = self._values[row_high]
        top = top[:, col_low] * (1.0 - col_frac) + top[:, col_high] * col_frac
        bottom = bottom[:, col_low] * (1.0 - col_frac) + bottom[:, col_high] * col_frac
        sampled = top * (1.0 - row_frac[:, np.newaxis]) + bottom * row_frac[:, np.newaxis]

        logger.debug(
            "Sampled %dx%d window of a %dx%d bilinear alpha map",
            window.width, window.height, width, height
        )
        return AlphaMap(np.clip(sampled, 0.0, 1.0))

    def __repr__(self) -> str:
        return f"AlphaMap({self.width}x{self.height})"
