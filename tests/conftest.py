"""Test fixtures for PathView tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest
import requests

from pathview.core.resolver import TileResolver

DZI_TEMPLATE = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<Image xmlns="http://schemas.microsoft.com/deepzoom/2008"\n'
    '  Format="jpg"\n'
    '  Overlap="{overlap}"\n'
    '  TileSize="{tile_size}"\n'
    "  >\n"
    '  <Size Height="{height}" Width="{width}"/>\n'
    "</Image>\n"
)


def make_dzi(width: int, height: int, tile_size: int = 256, overlap: int = 1) -> str:
    return DZI_TEMPLATE.format(
        width=width, height=height, tile_size=tile_size, overlap=overlap
    )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def resolver() -> TileResolver:
    return TileResolver(cdn_host="tiles.example.cloudfront.net", cdn_marker="cloudfront.net")


@pytest.fixture
def make_case(temp_dir: Path) -> Callable[..., Path]:
    """Factory creating a dzsave-style case folder under temp_dir."""

    def _make(
        name: str = "case_0NTDJG",
        width: int = 1024,
        height: int = 512,
        dzi: str | None = None,
        with_tiles: bool = True,
    ) -> Path:
        case_dir = temp_dir / name
        case_dir.mkdir()
        (case_dir / "slide.dzi").write_text(
            dzi if dzi is not None else make_dzi(width, height)
        )
        tiles_dir = case_dir / "slide_files"
        tiles_dir.mkdir()
        if with_tiles:
            level_dir = tiles_dir / "0"
            level_dir.mkdir()
            (level_dir / "0_0.jpg").write_bytes(b"\xff\xd8\xff\xd9")
        return case_dir

    return _make


class FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200) -> None:
        self.content = content
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Stands in for requests.Session; records every GET.

    Each GET consumes the next response; the last one repeats.
    """

    def __init__(self, *responses: FakeResponse | Exception) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, float]] = []

    def get(self, url: str, timeout: float) -> FakeResponse:
        self.calls.append((url, timeout))
        response = self.responses[min(len(self.calls), len(self.responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response
