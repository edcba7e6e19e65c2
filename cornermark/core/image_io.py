"""
Image I/O
=========
Thin OpenCV adapter for reading and writing image files.

Technical Notes:
- Paths go through np.fromfile / ndarray.tofile so non-ASCII paths work
  on Windows, where cv2.imread/imwrite do not handle them
- Encode options are chosen per format:
  JPEG quality 100, PNG compression 6, WebP quality 101 (lossless)
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import cv2
import numpy as np

from .engine import WatermarkEngine
from .errors import InvalidImageError
from .types import Region, SizeOverride

logger = logging.getLogger(__name__)


def read_image(path: Union[str, Path]) -> np.ndarray:
    """
    Decode an image file into a BGR uint8 array.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidImageError: If the file cannot be decoded.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Image not found: {path}")

    image = cv2.imdecode(np.fromfile(str(path), dtype=np.uint8), cv2.IMREAD_COLOR)
    if image is None or image.size == 0:
        raise InvalidImageError(f"Failed to load image: {path}")
    return image


def encode_params(suffix: str) -> List[int]:
    suffix = suffix.lower()
    if suffix in (".jpg", ".jpeg"):
        # Still lossy, but the best quality JPEG offers
        return [cv2.IMWRITE_JPEG_QUALITY, 100]
    if suffix == ".png":
        return [cv2.IMWRITE_PNG_COMPRESSION, 6]
    if suffix == ".webp":
        # 101+ selects lossless mode
        return [cv2.IMWRITE_WEBP_QUALITY, 101]
    return []


def write_image(path: Union[str, Path], image: np.ndarray) -> Path:
    """
    Encode an image to disk, creating parent directories as needed.

    Raises:
        InvalidImageError: If the image is empty or cannot be encoded.
    """
    path = Path(path)
    if image is None or image.size == 0:
        raise InvalidImageError("Cannot write an empty image")

    path.parent.mkdir(parents=True, exist_ok=True)

    ok, encoded = cv2.imencode(path.suffix or ".png", image, encode_params(path.suffix))
    if not ok:
        raise InvalidImageError(f"Failed to write image: {path}")

    encoded.tofile(str(path))
    return path


def process_file(
        input_path: Union[str, Path],
        output_path: Union[str, Path],
        engine: WatermarkEngine,
        remove: bool = True,
        size: SizeOverride = SizeOverride.AUTO,
        region: Optional[Region] = None
) -> Path:
    """
    Read an image, add or remove the watermark, and write the result.

    Args:
        input_path: Source image.
        output_path: Destination image; format follows its extension.
        engine: Engine to apply.
        remove: Remove (True) or add (False) the watermark.
        size: Size class override for the standard placement.
        region: Explicit rectangle; overrides the standard placement.

    Returns:
        The output path.
    """
    input_path = Path(input_path)
    image = read_image(input_path)
    height, width = image.shape[:2]
    logger.info("Processing: %s (%dx%d)", input_path.name, width, height)

    if region is not None:
        image = engine.remove_custom(image, region) if remove else engine.add_custom(image, region)
    else:
        image = engine.remove(image, size) if remove else engine.add(image, size)

    output_path = write_image(output_path, image)
    logger.info("Saved: %s", output_path.name)
    return output_path
