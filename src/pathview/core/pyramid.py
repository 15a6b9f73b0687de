"""Deep Zoom pyramid geometry."""

from __future__ import annotations

from dataclasses import dataclass

from pathview.config import DEFAULT_OVERLAP, DEFAULT_TILE_SIZE, TILE_FORMAT

from .types import InvalidTileSizeError, LevelInfo, TileAddress


def _check_tile_size(tile_size: int) -> None:
    if tile_size <= 0:
        raise InvalidTileSizeError(f"tile_size must be positive, got {tile_size}")


def compute_max_level(width: int, height: int, tile_size: int) -> int:
    """Return the highest pyramid level for an image.

    Equivalent to ``ceil(log2(max(width, height) / tile_size))`` floored at 0,
    computed with integer shifts so large slides do not hit float rounding.

    Args:
        width: Image width in pixels
        height: Image height in pixels
        tile_size: Tile edge in pixels

    Raises:
        InvalidTileSizeError: If tile_size is zero or negative
        ValueError: If width or height is not positive
    """
    _check_tile_size(tile_size)
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

    longest = max(width, height)
    level = 0
    while tile_size << level < longest:
        level += 1
    return level


def _ceil_div(value: int, divisor: int) -> int:
    return -(-value // divisor)


@dataclass(frozen=True)
class PyramidDescriptor:
    """Immutable description of a slide's tile pyramid.

    ``max_level`` is the full-resolution level; every level below it halves
    the dimensions of the one above (rounding up), down to ``min_level``.
    """

    width: int
    height: int
    tile_size: int = DEFAULT_TILE_SIZE
    overlap: int = DEFAULT_OVERLAP
    min_level: int = 0
    max_level: int = -1
    format: str = TILE_FORMAT

    def __post_init__(self) -> None:
        _check_tile_size(self.tile_size)
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.overlap < 0:
            raise ValueError(f"overlap must be >= 0, got {self.overlap}")
        if self.max_level < 0:
            # Unknown upstream: derive from the dimensions.
            object.__setattr__(
                self,
                "max_level",
                compute_max_level(self.width, self.height, self.tile_size),
            )
        if not 0 <= self.min_level <= self.max_level:
            raise ValueError(
                f"min_level {self.min_level} outside [0, {self.max_level}]"
            )

    @classmethod
    def from_dimensions(
        cls,
        width: int,
        height: int,
        tile_size: int = DEFAULT_TILE_SIZE,
        overlap: int = DEFAULT_OVERLAP,
        max_level: int | None = None,
    ) -> PyramidDescriptor:
        return cls(
            width=width,
            height=height,
            tile_size=tile_size,
            overlap=overlap,
            max_level=-1 if max_level is None else max_level,
        )

    def level_info(self, level: int) -> LevelInfo:
        """Compute the tile grid at ``level``.

        Raises:
            ValueError: If level is outside [min_level, max_level]
        """
        if not self.min_level <= level <= self.max_level:
            raise ValueError(
                f"Unknown level {level}, expected {self.min_level}..{self.max_level}"
            )
        downsample = 2 ** (self.max_level - level)
        level_width = _ceil_div(self.width, downsample)
        level_height = _ceil_div(self.height, downsample)
        return LevelInfo(
            level=level,
            downsample=downsample,
            width=level_width,
            height=level_height,
            cols=_ceil_div(level_width, self.tile_size),
            rows=_ceil_div(level_height, self.tile_size),
        )

    def levels(self) -> list[LevelInfo]:
        return [
            self.level_info(level)
            for level in range(self.min_level, self.max_level + 1)
        ]

    def contains(self, address: TileAddress) -> bool:
        """Whether ``address`` falls inside the pyramid's tile grid."""
        level, x, y = address
        if not self.min_level <= level <= self.max_level or x < 0 or y < 0:
            return False
        info = self.level_info(level)
        return x < info.cols and y < info.rows

    def to_tile_source(self) -> dict:
        """Render the descriptor in OpenSeadragon's tile source vocabulary."""
        return {
            "width": self.width,
            "height": self.height,
            "tileSize": self.tile_size,
            "tileOverlap": self.overlap,
            "minLevel": self.min_level,
            "maxLevel": self.max_level,
        }
