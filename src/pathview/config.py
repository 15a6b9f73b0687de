"""Centralized configuration for PathView.

All tunable parameters are defined here with sensible defaults.
Values can be overridden via environment variables.

Environment Variables:
    PATHVIEW_CDN_HOST: Canonical host serving slide tiles
        (default: dpyczcjhun2r2.cloudfront.net)
    PATHVIEW_CDN_MARKER: Host token identifying CDN URLs (default: cloudfront.net)
    PATHVIEW_TILE_SIZE: Default tile size in pixels (default: 256)
    PATHVIEW_TILE_OVERLAP: Default tile overlap in pixels (default: 1)
    PATHVIEW_METADATA_TIMEOUT: Descriptor fetch timeout in seconds (default: 30)
    PATHVIEW_METADATA_RETRY_AFTER: Seconds before a failed descriptor fetch is
        retried (default: 60)
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


def _get_env_int(name: str, default: int) -> int:
    """Get an integer from environment variable with fallback."""
    value = os.environ.get(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            logger.warning(
                "Invalid integer for %s: %r, using default %d", name, value, default
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            logger.warning(
                "Invalid number for %s: %r, using default %s", name, value, default
            )
    return default


def _get_env_str(name: str, default: str) -> str:
    """Get a string from environment variable with fallback."""
    return os.environ.get(name, default)


# =============================================================================
# CDN Layout
# =============================================================================

#: Host all tile URLs are re-based under
CDN_HOST: str = _get_env_str("PATHVIEW_CDN_HOST", "dpyczcjhun2r2.cloudfront.net")

#: Host token that marks an absolute URL as pointing at the CDN
CDN_MARKER: str = _get_env_str("PATHVIEW_CDN_MARKER", "cloudfront.net")

#: Directory holding the level folders next to the descriptor (dzsave layout)
TILE_DIR: str = "slide_files"

#: Tile image extension
TILE_FORMAT: str = "jpg"

#: Deep Zoom descriptor file name inside each slide folder
DESCRIPTOR_NAME: str = "slide.dzi"


# =============================================================================
# Pyramid Defaults
# =============================================================================

#: Default tile size in pixels
DEFAULT_TILE_SIZE: int = _get_env_int("PATHVIEW_TILE_SIZE", 256)

#: Default overlap between adjacent tiles
DEFAULT_OVERLAP: int = _get_env_int("PATHVIEW_TILE_OVERLAP", 1)

#: Fallback slide dimensions when no descriptor can be read
DEFAULT_SLIDE_WIDTH: int = 119040
DEFAULT_SLIDE_HEIGHT: int = 25344

#: Fallback max level for the default slide dimensions
DEFAULT_MAX_LEVEL: int = 9


# =============================================================================
# Metadata Fetch
# =============================================================================

#: Timeout for fetching a pyramid descriptor over HTTP (seconds)
METADATA_TIMEOUT: float = _get_env_float("PATHVIEW_METADATA_TIMEOUT", 30.0)

#: How long a fallback descriptor is served before the fetch is retried (seconds)
METADATA_RETRY_AFTER: float = _get_env_float("PATHVIEW_METADATA_RETRY_AFTER", 60.0)


# =============================================================================
# Slide Library
# =============================================================================

#: Folder prefix of tiled cases in a source directory
CASE_DIR_PREFIX: str = "case_"

#: Supported raw WSI file extensions for probing
WSI_EXTENSIONS: frozenset[str] = frozenset({".svs", ".ndpi", ".tiff", ".tif"})


# =============================================================================
# Validation
# =============================================================================


def _validate_config() -> None:
    """Validate configuration values and log warnings for out-of-range settings."""
    global DEFAULT_TILE_SIZE, DEFAULT_OVERLAP, METADATA_TIMEOUT, METADATA_RETRY_AFTER

    if DEFAULT_TILE_SIZE < 1:
        logger.warning(
            "DEFAULT_TILE_SIZE=%d is too low, using 256", DEFAULT_TILE_SIZE
        )
        DEFAULT_TILE_SIZE = 256

    if DEFAULT_OVERLAP < 0:
        logger.warning(
            "DEFAULT_OVERLAP=%d is negative, clamping to 0", DEFAULT_OVERLAP
        )
        DEFAULT_OVERLAP = 0

    if METADATA_TIMEOUT <= 0:
        logger.warning(
            "METADATA_TIMEOUT=%s is not positive, using 30s", METADATA_TIMEOUT
        )
        METADATA_TIMEOUT = 30.0

    if METADATA_RETRY_AFTER < 0:
        logger.warning(
            "METADATA_RETRY_AFTER=%s is negative, clamping to 0", METADATA_RETRY_AFTER
        )
        METADATA_RETRY_AFTER = 0.0


_validate_config()
