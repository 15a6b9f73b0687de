from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from pathview.config import (
    CDN_HOST,
    CDN_MARKER,
    METADATA_RETRY_AFTER,
    METADATA_TIMEOUT,
)


@dataclass(frozen=True)
class ServerConfig:
    library_path: Path
    host: str = "0.0.0.0"
    port: int = 8000
    cdn_host: str = CDN_HOST
    cdn_marker: str = CDN_MARKER
    fetch_descriptors: bool = True
    metadata_timeout: float = METADATA_TIMEOUT
    metadata_retry_after: float = METADATA_RETRY_AFTER


def _get_bool(value: str) -> bool:
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


def load_config() -> ServerConfig:
    library = os.getenv("PATHVIEW_WEB_LIBRARY", "slide_library.json")
    library_path = Path(library).expanduser().resolve()
    host = os.getenv("PATHVIEW_WEB_HOST", "0.0.0.0")
    port_str = os.getenv("PATHVIEW_WEB_PORT", "8000")
    try:
        port = int(port_str)
    except ValueError:
        port = 8000
    fetch = _get_bool(os.getenv("PATHVIEW_WEB_FETCH_DESCRIPTORS", "1"))
    return ServerConfig(
        library_path=library_path,
        host=host,
        port=port,
        fetch_descriptors=fetch,
    )
