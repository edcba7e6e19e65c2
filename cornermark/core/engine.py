"""
Watermark Engine
================
Adds or removes the corner logo using alpha maps recovered from
reference captures.

Technical Notes:
- Two canonical alpha maps: 48x48 (small) and 96x96 (large)
- The logo layer is a flat colour (logo_value) applied to all channels
- Images are normalized to 3-channel uint8 and blended in place
- Custom regions that are not 48x48 or 96x96 get an alpha map resampled
  from the large map, used once and discarded
- A footprint that falls outside the image is a logged no-op
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

import numpy as np
from PIL import Image

from .. import config
from .alpha import AlphaMap, CaptureSource
from .blend import add_watermark_alpha_blend, ensure_bgr, remove_watermark_alpha_blend
from .errors import InvalidImageError, InvalidRegionError
from .position import placement_for
from .types import Region, SizeOverride, WatermarkSize

logger = logging.getLogger(__name__)

BlendFunc = Callable[[np.ndarray, np.ndarray, Tuple[int, int], float], Region]


class WatermarkEngine:
    """
    Compositing engine for the corner logo.

    Owns the small and large alpha maps plus the logo intensity. The maps
    are never modified after construction, so one engine can serve many
    images (and many threads, as long as they use distinct buffers).
    """

    def __init__(
            self,
            small_capture: CaptureSource,
            large_capture: CaptureSource,
            logo_value: float = config.DEFAULT_LOGO_VALUE
    ):
        """
        Initialize the engine from the two reference captures.

        Args:
            small_capture: Capture for the 48x48 logo (path, encoded bytes
                           or decoded array).
            large_capture: Capture for the 96x96 logo.
            logo_value: Flat intensity of the logo layer (0-255).

        Raises:
            ResourceLoadError: If either capture cannot be loaded.
            ValueError: If logo_value is out of range.
        """
        if not 0 <= logo_value <= 255:
            raise ValueError("Logo value must be between 0 and 255")

        self._logo_value = float(logo_value)
        self._alpha_small = AlphaMap.from_capture(small_capture, WatermarkSize.SMALL)
        self._alpha_large = AlphaMap.from_capture(large_capture, WatermarkSize.LARGE)

        low, high = self._alpha_large.value_range()
        logger.debug(
            "Alpha map small: %r, large: %r (large range %.4f - %.4f)",
            self._alpha_small, self._alpha_large, low, high
        )

    @classmethod
    def from_asset_dir(
            cls,
            directory: Optional[Union[str, Path]] = None,
            logo_value: float = config.DEFAULT_LOGO_VALUE
    ) -> "WatermarkEngine":
        """
        Load the captures bg_48.png and bg_96.png from a directory.

        Args:
            directory: Asset directory. Defaults to config.ASSET_DIR.
            logo_value: Flat intensity of the logo layer.
        """
        directory = Path(directory) if directory is not None else config.ASSET_DIR
        engine = cls(
            directory / config.SMALL_CAPTURE_NAME,
            directory / config.LARGE_CAPTURE_NAME,
            logo_value=logo_value
        )
        logger.info("Loaded background captures from %s", directory)
        return engine

    @property
    def logo_value(self) -> float:
        return self._logo_value

    def get_alpha_map(self, size: WatermarkSize) -> AlphaMap:
        return self._alpha_small if size is WatermarkSize.SMALL else self._alpha_large

    def create_interpolated_alpha(self, width: int, height: int) -> AlphaMap:
        """
        Resample the large (higher resolution) map to an arbitrary size.

        The result is a new map owned by the caller.
        """
        return self._alpha_large.resized(width, height)

    # ===== Canonical placement =====

    def _apply_canonical(
            self,
            image: np.ndarray,
            size: SizeOverride,
            blend: BlendFunc,
            action: str
    ) -> np.ndarray:
        image = ensure_bgr(image)
        height, width = image.shape[:2]

        size_class = size.resolve(width, height)
        placement = placement_for(size_class, width, height)
        alpha = self.get_alpha_map(size_class)

        logger.debug(
            "%s watermark at (%d, %d) with %r (size: %s)",
            action, placement.x, placement.y, alpha, size_class.value
        )
        self._blend(image, alpha, (placement.x, placement.y), blend)
        return image

    def add(self, image: np.ndarray, size: SizeOverride = SizeOverride.AUTO) -> np.ndarray:
        """
        Composite the logo onto an image at its standard position.

        Args:
            image: uint8 image (gray, BGR or BGRA). A BGR buffer is
                   modified in place.
            size: Size class override; AUTO follows the image dimensions.

        Returns:
            The BGR buffer holding the result.

        Raises:
            InvalidImageError: If the image is empty or not 8-bit.
        """
        return self._apply_canonical(image, size, add_watermark_alpha_blend, "Adding")

    def remove(self, image: np.ndarray, size: SizeOverride = SizeOverride.AUTO) -> np.ndarray:
        """
        Reverse the logo composite at its standard position.

        Args:
            image: uint8 image (gray, BGR or BGRA). A BGR buffer is
                   modified in place.
            size: Size class override; AUTO follows the image dimensions.

        Returns:
            The BGR buffer holding the result.

        Raises:
            InvalidImageError: If the image is empty or not 8-bit.
        """
        return self._apply_canonical(image, size, remove_watermark_alpha_blend, "Removing")

    # ===== Custom regions =====

    def _alpha_for_region(
            self,
            region: Region,
            visible: Region
    ) -> Tuple[AlphaMap, Tuple[int, int]]:
        """Alpha map for a custom region and the image origin to blend it at."""
        if region.width == 48 and region.height == 48:
            logger.info("Custom region matches 48x48, using small alpha map")
            return self._alpha_small, (region.x, region.y)

        if region.width == 96 and region.height == 96:
            logger.info("Custom region matches 96x96, using large alpha map")
            return self._alpha_large, (region.x, region.y)

        if visible == region:
            return self.create_interpolated_alpha(region.width, region.height), (region.x, region.y)

        # Only the on-image part of the resampled map is built
        window = Region(
            visible.x - region.x,
            visible.y - region.y,
            visible.width,
            visible.height
        )
        alpha = self._alpha_large.resized_window(region.width, region.height, window)
        return alpha, (visible.x, visible.y)

    def _apply_custom(
            self,
            image: np.ndarray,
            region: Region,
            blend: BlendFunc,
            action: str
    ) -> np.ndarray:
        image = ensure_bgr(image)
        height, width = image.shape[:2]

        visible = region.clip(width, height)
        if visible is None or not visible.is_usable():
            logger.warning(
                "Skipping custom region %s: no usable overlap with a %dx%d image",
                region, width, height
            )
            return image

        alpha, origin = self._alpha_for_region(region, visible)

        logger.info(
            "%s watermark at (%d,%d) with custom %dx%d alpha map",
            action, region.x, region.y, region.width, region.height
        )
        self._blend(image, alpha, origin, blend)
        return image

    def add_custom(self, image: np.ndarray, region: Region) -> np.ndarray:
        """Composite the logo into an explicit rectangle."""
        return self._apply_custom(image, region, add_watermark_alpha_blend, "Adding")

    def remove_custom(self, image: np.ndarray, region: Region) -> np.ndarray:
        """Reverse the logo composite inside an explicit rectangle."""
        return self._apply_custom(image, region, remove_watermark_alpha_blend, "Removing")

    def _blend(
            self,
            image: np.ndarray,
            alpha: AlphaMap,
            origin: Tuple[int, int],
            blend: BlendFunc
    ) -> None:
        try:
            blend(image, alpha.values, origin, self._logo_value)
        except InvalidRegionError as e:
            logger.warning("%s; image left unchanged", e)

    # ===== Pillow convenience =====

    def process_image_object(
            self,
            image: Image.Image,
            remove: bool = True,
            size: SizeOverride = SizeOverride.AUTO,
            region: Optional[Region] = None
    ) -> Image.Image:
        """
        Apply the engine to a PIL Image.

        The blend treats all channels alike, so RGB order can be used
        directly without converting to BGR.

        Returns:
            New RGB PIL Image.
        """
        if image.width == 0 or image.height == 0:
            raise InvalidImageError("Empty image provided")

        if image.mode != "RGB":
            image = image.convert("RGB")

        arr = np.array(image, dtype=np.uint8)

        if region is not None:
            op = self.remove_custom if remove else self.add_custom
            arr = op(arr, region)
        else:
            op = self.remove if remove else self.add
            arr = op(arr, size)

        return Image.fromarray(arr)
