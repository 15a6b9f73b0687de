"""Reading Deep Zoom descriptors into PyramidDescriptor objects.

Descriptor problems are never fatal: a viewer must still open the slide at
approximate dimensions, so every reader falls back to caller defaults and
logs the reason instead of raising.
"""

from __future__ import annotations

import logging
import threading
import time
import xml.etree.ElementTree as ET
from pathlib import Path

import requests

from pathview.config import (
    DEFAULT_OVERLAP,
    DEFAULT_TILE_SIZE,
    METADATA_RETRY_AFTER,
    METADATA_TIMEOUT,
)

from .pyramid import PyramidDescriptor, _check_tile_size

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    # Strip the {http://schemas.microsoft.com/deepzoom/2008} namespace
    return tag.rsplit("}", 1)[-1]


def read_descriptor_root(document: str | bytes) -> ET.Element:
    """Parse a DZI document and return its ``<Image>`` element.

    Raises:
        ET.ParseError: If the document is not well-formed XML
        ValueError: If the root element is not ``<Image>``
    """
    root = ET.fromstring(document)
    if _local_name(root.tag) != "Image":
        raise ValueError(f"Unexpected root element <{_local_name(root.tag)}>")
    return root


def _size_attribute(size: ET.Element, name: str, default: int | None) -> int:
    value = size.get(name)
    if value is None:
        if default is None:
            raise ValueError(f"Missing {name} attribute")
        return default
    return int(value)


def read_descriptor(
    document: str | bytes,
    tile_size: int,
    overlap: int,
    default_width: int | None = None,
    default_height: int | None = None,
) -> PyramidDescriptor:
    """Parse a DZI document strictly.

    A missing ``Width`` or ``Height`` attribute takes ``default_width`` or
    ``default_height``; without a default it is an error.

    Raises:
        ET.ParseError: If the document is not well-formed XML
        ValueError: If the structure or values are not a usable pyramid
    """
    root = read_descriptor_root(document)
    size = next((child for child in root if _local_name(child.tag) == "Size"), None)
    if size is None:
        raise ValueError("Missing <Size> element")

    return PyramidDescriptor(
        width=_size_attribute(size, "Width", default_width),
        height=_size_attribute(size, "Height", default_height),
        tile_size=int(root.get("TileSize", tile_size)),
        overlap=int(root.get("Overlap", overlap)),
        format=root.get("Format", "jpg"),
    )


def _parse_or_default(
    document: str | bytes | None,
    default_width: int,
    default_height: int,
    tile_size: int,
    overlap: int,
    default_max_level: int | None,
) -> tuple[PyramidDescriptor, bool]:
    """Return the descriptor and whether it came from ``document``."""
    _check_tile_size(tile_size)

    if document:
        try:
            descriptor = read_descriptor(
                document, tile_size, overlap, default_width, default_height
            )
            return descriptor, True
        except (ET.ParseError, ValueError) as e:
            logger.warning("Unusable pyramid descriptor, using defaults: %s", e)

    descriptor = PyramidDescriptor.from_dimensions(
        default_width,
        default_height,
        tile_size=tile_size,
        overlap=overlap,
        max_level=default_max_level,
    )
    return descriptor, False


def parse_pyramid_metadata(
    document: str | bytes | None,
    default_width: int,
    default_height: int,
    tile_size: int = DEFAULT_TILE_SIZE,
    overlap: int = DEFAULT_OVERLAP,
    default_max_level: int | None = None,
) -> PyramidDescriptor:
    """Parse a DZI document, falling back to defaults when it is unusable.

    A missing ``Width`` or ``Height`` takes the matching default on its own;
    the rest of the document is still used. When the document yields
    dimensions, ``max_level`` is derived from them. Otherwise the descriptor
    is built from ``default_width``/``default_height`` and
    ``default_max_level`` (derived as well if None).

    Args:
        document: DZI XML text, or None when nothing could be fetched
        default_width: Width to use if the document does not provide one
        default_height: Height to use if the document does not provide one
        tile_size: Tile size used when the document does not declare one
        overlap: Overlap used when the document does not declare one
        default_max_level: Max level paired with the default dimensions

    Raises:
        InvalidTileSizeError: If ``tile_size`` is zero or negative
    """
    descriptor, _ = _parse_or_default(
        document, default_width, default_height, tile_size, overlap, default_max_level
    )
    return descriptor


def load_pyramid_metadata(
    path: Path,
    default_width: int,
    default_height: int,
    tile_size: int = DEFAULT_TILE_SIZE,
    overlap: int = DEFAULT_OVERLAP,
    default_max_level: int | None = None,
) -> PyramidDescriptor:
    """Read a local ``.dzi`` file; same fallback contract as the parser."""
    try:
        document = Path(path).read_bytes()
    except OSError as e:
        logger.warning("Could not read descriptor %s, using defaults: %s", path, e)
        document = None
    return parse_pyramid_metadata(
        document, default_width, default_height, tile_size, overlap, default_max_level
    )


def _fetch(
    url: str,
    default_width: int,
    default_height: int,
    tile_size: int,
    overlap: int,
    default_max_level: int | None,
    session: requests.Session | None,
    timeout: float,
) -> tuple[PyramidDescriptor, bool]:
    http = session or requests
    document = None
    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
        document = response.content
    except requests.RequestException as e:
        logger.warning(
            "Could not fetch descriptor %s, using provided dimensions: %s", url, e
        )
    return _parse_or_default(
        document, default_width, default_height, tile_size, overlap, default_max_level
    )


def fetch_pyramid_metadata(
    url: str,
    default_width: int,
    default_height: int,
    tile_size: int = DEFAULT_TILE_SIZE,
    overlap: int = DEFAULT_OVERLAP,
    default_max_level: int | None = None,
    session: requests.Session | None = None,
    timeout: float = METADATA_TIMEOUT,
) -> PyramidDescriptor:
    """Fetch a descriptor over HTTP with a bounded timeout.

    Network errors and non-2xx responses fall back to the defaults.
    """
    descriptor, _ = _fetch(
        url,
        default_width,
        default_height,
        tile_size,
        overlap,
        default_max_level,
        session,
        timeout,
    )
    return descriptor


class DescriptorCache:
    """Memoises descriptor fetches so each slide is fetched at most once.

    Fetches for different slides run concurrently; concurrent requests for
    the same slide wait for the first one. A descriptor fetched and parsed
    successfully is kept until invalidated. A fallback built from defaults
    is only kept for ``retry_after`` seconds, after which the next request
    fetches again.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = METADATA_TIMEOUT,
        retry_after: float = METADATA_RETRY_AFTER,
    ) -> None:
        self._session = session
        self._timeout = timeout
        self._retry_after = retry_after
        # url -> (descriptor, expiry on the monotonic clock or None)
        self._entries: dict[str, tuple[PyramidDescriptor, float | None]] = {}
        self._key_locks: dict[str, threading.Lock] = {}
        self._generation = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _cached(self, url: str) -> tuple[PyramidDescriptor, bool] | None:
        # Caller holds self._lock
        entry = self._entries.get(url)
        if entry is None:
            return None
        descriptor, expires = entry
        if expires is None:
            return descriptor, True
        if time.monotonic() < expires:
            return descriptor, False
        del self._entries[url]
        return None

    def lookup(
        self,
        url: str,
        default_width: int,
        default_height: int,
        tile_size: int = DEFAULT_TILE_SIZE,
        overlap: int = DEFAULT_OVERLAP,
        default_max_level: int | None = None,
    ) -> tuple[PyramidDescriptor, bool]:
        """Return the descriptor for ``url`` and whether it was read from it.

        The flag is False when the descriptor is a fallback built from the
        defaults.
        """
        with self._lock:
            cached = self._cached(url)
            if cached is not None:
                return cached
            key_lock = self._key_locks.setdefault(url, threading.Lock())

        with key_lock:
            with self._lock:
                cached = self._cached(url)
                generation = self._generation
            if cached is not None:
                return cached

            descriptor, fetched = _fetch(
                url,
                default_width,
                default_height,
                tile_size,
                overlap,
                default_max_level,
                self._session,
                self._timeout,
            )
            expires = None if fetched else time.monotonic() + self._retry_after
            with self._lock:
                # Drop the result if the cache was invalidated mid-fetch
                if generation == self._generation:
                    self._entries[url] = (descriptor, expires)
            logger.debug("Cached descriptor for %s (fetched=%s)", url, fetched)
            return descriptor, fetched

    def get(
        self,
        url: str,
        default_width: int,
        default_height: int,
        tile_size: int = DEFAULT_TILE_SIZE,
        overlap: int = DEFAULT_OVERLAP,
        default_max_level: int | None = None,
    ) -> PyramidDescriptor:
        descriptor, _ = self.lookup(
            url, default_width, default_height, tile_size, overlap, default_max_level
        )
        return descriptor

    def invalidate(self, url: str | None = None) -> None:
        """Forget one cached descriptor, or all of them."""
        with self._lock:
            self._generation += 1
            if url is None:
                self._entries.clear()
            else:
                self._entries.pop(url, None)
