"""Tile URL resolution against the CDN layout.

Tiles live at ``https://{cdn_host}/{namespace}/slide_files/{level}/{x}_{y}.jpg``
where ``namespace`` is the slide folder derived from the base identifier.
Everything here is string composition; no request is ever issued.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pathview import config

from .identifiers import BaseIdentifier, RelativePath, parse_base_identifier
from .types import TileAddress


@dataclass(frozen=True)
class TileResolver:
    """Composes tile and descriptor URLs for one CDN layout."""

    cdn_host: str = config.CDN_HOST
    cdn_marker: str = config.CDN_MARKER
    tile_dir: str = config.TILE_DIR
    tile_format: str = config.TILE_FORMAT
    descriptor_name: str = config.DESCRIPTOR_NAME

    def parse(self, base: str | BaseIdentifier) -> BaseIdentifier:
        if isinstance(base, str):
            return parse_base_identifier(base, self.cdn_marker)
        return base

    def _root(self, base: str | BaseIdentifier) -> str:
        return f"https://{self.cdn_host}/{self.parse(base).namespace}"

    def tile_url(self, base: str | BaseIdentifier, level: int, x: int, y: int) -> str:
        """Return the CDN URL of tile ``(level, x, y)``.

        Coordinates are not checked against the pyramid grid; a tile outside
        it simply does not exist on the CDN.

        Raises:
            ValueError: If any coordinate is negative or the base is unusable
        """
        if level < 0 or x < 0 or y < 0:
            raise ValueError(f"Negative tile coordinate ({level}, {x}, {y})")
        return f"{self._root(base)}/{self.tile_dir}/{level}/{x}_{y}.{self.tile_format}"

    def address_url(self, base: str | BaseIdentifier, address: TileAddress) -> str:
        return self.tile_url(base, *address)

    def tile_url_template(self, base: str | BaseIdentifier) -> str:
        """URL with ``{level}``, ``{x}`` and ``{y}`` placeholders for viewers."""
        return f"{self._root(base)}/{self.tile_dir}/{{level}}/{{x}}_{{y}}.{self.tile_format}"

    def descriptor_url(self, base: str | BaseIdentifier) -> str:
        """Return where the slide's Deep Zoom descriptor is fetched from.

        Absolute URLs already point at the descriptor and are kept as is.
        """
        identifier = self.parse(base)
        if isinstance(identifier, RelativePath):
            return f"https://{self.cdn_host}/{identifier.path}/{self.descriptor_name}"
        return identifier.url


@lru_cache(maxsize=1)
def default_resolver() -> TileResolver:
    return TileResolver()


def resolve_tile_url(base: str | BaseIdentifier, level: int, x: int, y: int) -> str:
    """Resolve a tile URL with the configured CDN layout."""
    return default_resolver().tile_url(base, level, x, y)


def resolve_descriptor_url(base: str | BaseIdentifier) -> str:
    return default_resolver().descriptor_url(base)
