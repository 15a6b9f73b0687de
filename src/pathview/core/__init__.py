"""Pyramid geometry and tile URL resolution."""

from .identifiers import (
    BaseIdentifier,
    KnownHostUrl,
    OpaqueUrl,
    RelativePath,
    parse_base_identifier,
)
from .metadata import (
    DescriptorCache,
    fetch_pyramid_metadata,
    load_pyramid_metadata,
    parse_pyramid_metadata,
)
from .pyramid import PyramidDescriptor, compute_max_level
from .resolver import (
    TileResolver,
    default_resolver,
    resolve_descriptor_url,
    resolve_tile_url,
)
from .types import InvalidTileSizeError, LevelInfo, TileAddress

__all__ = [
    "BaseIdentifier",
    "KnownHostUrl",
    "OpaqueUrl",
    "RelativePath",
    "parse_base_identifier",
    "DescriptorCache",
    "fetch_pyramid_metadata",
    "load_pyramid_metadata",
    "parse_pyramid_metadata",
    "PyramidDescriptor",
    "compute_max_level",
    "TileResolver",
    "default_resolver",
    "resolve_descriptor_url",
    "resolve_tile_url",
    "InvalidTileSizeError",
    "LevelInfo",
    "TileAddress",
]
