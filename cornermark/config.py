"""
Configuration defaults.

Reference captures are looked up in ASSET_DIR, which can be moved with
the CORNERMARK_ASSET_DIR environment variable.
"""

from __future__ import annotations

import os
from pathlib import Path

# Flat colour of the logo layer (white)
DEFAULT_LOGO_VALUE: float = 255.0

ASSET_DIR: Path = Path(os.environ.get("CORNERMARK_ASSET_DIR", "assets")).resolve()

SMALL_CAPTURE_NAME = "bg_48.png"
LARGE_CAPTURE_NAME = "bg_96.png"

SUPPORTED_SUFFIXES = (".png", ".jpg", ".jpeg", ".webp", ".bmp", ".tif", ".tiff")
