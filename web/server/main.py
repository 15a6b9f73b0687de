from __future__ import annotations

import logging

import requests
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware

from pathview.catalog.library import load_slide_library
from pathview.core.metadata import DescriptorCache
from pathview.core.resolver import TileResolver

from .config import ServerConfig, load_config
from .routes.slides import build_slide_index, create_slides_router

logger = logging.getLogger(__name__)


def create_app(
    config: ServerConfig | None = None,
    session: requests.Session | None = None,
) -> FastAPI:
    config = config or load_config()
    slides = build_slide_index(load_slide_library(config.library_path))
    logger.info("Loaded %d slides from %s", len(slides), config.library_path)

    resolver = TileResolver(cdn_host=config.cdn_host, cdn_marker=config.cdn_marker)
    cache = None
    if config.fetch_descriptors:
        cache = DescriptorCache(
            session=session,
            timeout=config.metadata_timeout,
            retry_after=config.metadata_retry_after,
        )

    app = FastAPI()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "HEAD"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.state.config = config
    app.state.slides = slides
    app.state.resolver = resolver
    app.state.descriptor_cache = cache

    app.include_router(create_slides_router(slides, resolver, cache))

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "slides": len(slides)}

    return app


app = create_app()


def main() -> None:
    import uvicorn

    config = load_config()
    uvicorn.run(
        "web.server.main:app",
        host=config.host,
        port=config.port,
        reload=True,
    )


if __name__ == "__main__":
    main()
