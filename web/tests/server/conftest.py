from __future__ import annotations

from pathlib import Path

import pytest
import requests
from fastapi.testclient import TestClient

from pathview.catalog.library import SlideRecord, save_slide_library
from web.server.config import ServerConfig
from web.server.main import create_app

CDN_HOST = "tiles.example.cloudfront.net"

DZI = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<Image xmlns="http://schemas.microsoft.com/deepzoom/2008" '
    'Format="jpg" Overlap="1" TileSize="256">'
    '<Size Height="{height}" Width="{width}"/></Image>'
)


class _Response:
    def __init__(self, content: bytes, status_code: int = 200) -> None:
        self.content = content
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class StubSession:
    """Serves descriptors from a dict; unknown URLs fail like a dead CDN."""

    def __init__(self, documents: dict[str, str]) -> None:
        self.documents = documents
        self.calls: list[str] = []

    def get(self, url: str, timeout: float) -> _Response:
        self.calls.append(url)
        if url not in self.documents:
            raise requests.ConnectionError(f"cannot reach {url}")
        return _Response(self.documents[url].encode())


def _record(name: str, width: int, height: int, max_level: int) -> SlideRecord:
    return SlideRecord(
        slide_name=name,
        slide_path=f"https://{CDN_HOST}/{name}/slide.dzi",
        slide_width=width,
        slide_height=height,
        max_level=max_level,
        tile_size=256,
        overlap=1,
        original_filename=f"{name}.dzi",
        upload_date="2024-01-01T00:00:00+00:00",
    )


@pytest.fixture()
def library_path(tmp_path: Path) -> Path:
    path = tmp_path / "slide_library.json"
    save_slide_library(
        path,
        [
            _record("case_0NTDJG", 119040, 25344, 9),
            _record("case_OFFLINE", 1024, 512, 2),
        ],
    )
    return path


@pytest.fixture()
def session() -> StubSession:
    # case_0NTDJG's live descriptor differs from the stored record
    return StubSession({
        f"https://{CDN_HOST}/case_0NTDJG/slide.dzi": DZI.format(width=120000, height=26000),
    })


@pytest.fixture()
def app(library_path: Path, session: StubSession):
    config = ServerConfig(library_path=library_path, cdn_host=CDN_HOST)
    return create_app(config, session=session)


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)
