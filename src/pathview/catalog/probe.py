"""Header probe for raw whole-slide images.

Reads only the image header through pyvips (no pixel decoding) to report the
dimensions a slide will have once tiled, and the max level its pyramid gets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pathview.config import DEFAULT_TILE_SIZE, WSI_EXTENSIONS
from pathview.core.pyramid import compute_max_level

logger = logging.getLogger(__name__)

_HAS_VIPS = False
_vips_import_error: str | None = None
pyvips: Any = None

try:
    import pyvips
    _HAS_VIPS = True
except (ImportError, OSError) as e:
    _vips_import_error = str(e)


def is_vips_available() -> bool:
    """Check if pyvips (and libvips) can be loaded."""
    return _HAS_VIPS


@dataclass(frozen=True)
class SlideInfo:
    width: int
    height: int
    max_level: int


def is_wsi_file(path: Path) -> bool:
    """Check if a file is a supported WSI format."""
    return path.suffix.lower() in WSI_EXTENSIONS


def probe_slide(path: Path, tile_size: int = DEFAULT_TILE_SIZE) -> SlideInfo:
    """Read slide dimensions from the file header.

    Args:
        path: Path to an SVS, NDPI or TIFF slide
        tile_size: Tile size the pyramid will be cut with

    Returns:
        SlideInfo with width, height and max pyramid level

    Raises:
        ValueError: If the extension is not a supported WSI format
        FileNotFoundError: If the file does not exist
        RuntimeError: If pyvips is unavailable or cannot read the header
    """
    path = Path(path)
    if not is_wsi_file(path):
        raise ValueError(
            f"Unsupported file type {path.suffix!r}. "
            f"Supported formats: {', '.join(sorted(WSI_EXTENSIONS))}"
        )
    if not path.exists():
        raise FileNotFoundError(f"Slide not found: {path}")
    if not _HAS_VIPS:
        raise RuntimeError(f"pyvips is not available: {_vips_import_error}")

    try:
        # Opening is lazy: only the header is parsed until pixels are requested
        image = pyvips.Image.new_from_file(str(path), access="sequential")
    except pyvips.error.Error as e:
        raise RuntimeError(f"Failed to read slide header of {path.name}: {e}") from e

    info = SlideInfo(
        width=image.width,
        height=image.height,
        max_level=compute_max_level(image.width, image.height, tile_size),
    )
    logger.info(
        "Parsed dimensions of %s: %dx%d, max level %d",
        path.name, info.width, info.height, info.max_level,
    )
    return info
