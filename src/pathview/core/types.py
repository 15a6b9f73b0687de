"""Shared type definitions for PathView core module."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


class TileAddress(NamedTuple):
    """Address of a tile in a Deep Zoom pyramid.

    Attributes:
        level: Pyramid level (max_level = full resolution)
        x: Column index (0-based)
        y: Row index (0-based)
    """

    level: int
    x: int
    y: int


@dataclass(frozen=True)
class LevelInfo:
    """Tile grid of a single pyramid level.

    Attributes:
        level: Level index
        downsample: Downsample factor relative to full resolution (1 = full res)
        width: Level width in pixels
        height: Level height in pixels
        cols: Number of tile columns at this level
        rows: Number of tile rows at this level
    """

    level: int
    downsample: int
    width: int
    height: int
    cols: int
    rows: int


class InvalidTileSizeError(ValueError):
    """Raised when a pyramid is configured with a non-positive tile size."""
