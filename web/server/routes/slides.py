from __future__ import annotations

import logging
import re
from typing import Iterable

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse, RedirectResponse

from pathview.catalog.library import SlideRecord
from pathview.core.metadata import DescriptorCache
from pathview.core.pyramid import PyramidDescriptor
from pathview.core.resolver import TileResolver
from pathview.core.types import TileAddress

logger = logging.getLogger(__name__)
_TILE_NAME = re.compile(r"^(\d+)_(\d+)\.(\w+)$")


def build_slide_index(records: Iterable[SlideRecord]) -> dict[str, SlideRecord]:
    slides: dict[str, SlideRecord] = {}
    for record in records:
        if record.slide_name in slides:
            logger.warning("Duplicate slide name %s, keeping the first", record.slide_name)
            continue
        slides[record.slide_name] = record
    return slides


def create_slides_router(
    slides: dict[str, SlideRecord],
    resolver: TileResolver,
    cache: DescriptorCache | None = None,
) -> APIRouter:
    router = APIRouter()

    def _get_record(name: str) -> SlideRecord:
        record = slides.get(name)
        if not record:
            raise HTTPException(status_code=404, detail="Slide not found")
        return record

    def _descriptor(record: SlideRecord) -> tuple[PyramidDescriptor, bool]:
        """Return the slide's descriptor and whether it is authoritative."""
        if cache is None:
            descriptor = PyramidDescriptor.from_dimensions(
                record.slide_width,
                record.slide_height,
                tile_size=record.tile_size,
                overlap=record.overlap,
                max_level=record.max_level,
            )
            return descriptor, True
        return cache.lookup(
            record.slide_path,
            record.slide_width,
            record.slide_height,
            tile_size=record.tile_size,
            overlap=record.overlap,
            default_max_level=record.max_level,
        )

    @router.get("/api/slides")
    def list_slides() -> JSONResponse:
        response = [
            {
                "name": record.slide_name,
                "width": record.slide_width,
                "height": record.slide_height,
                "maxLevel": record.max_level,
                "descriptorUrl": record.slide_path,
                "tileSourceUrl": f"/api/slides/{record.slide_name}/tile-source",
            }
            for record in slides.values()
        ]
        return JSONResponse(
            content=response,
            headers={"Cache-Control": "public, max-age=60"},
        )

    @router.get("/api/slides/{name}/tile-source")
    def get_tile_source(name: str) -> JSONResponse:
        record = _get_record(name)
        descriptor, authoritative = _descriptor(record)
        content = descriptor.to_tile_source()
        content["tileUrlTemplate"] = resolver.tile_url_template(record.slide_path)
        content["descriptorUrl"] = resolver.descriptor_url(record.slide_path)
        # Fallback dimensions are replaced once the descriptor fetch succeeds
        cache_control = "public, max-age=3600" if authoritative else "no-store"
        return JSONResponse(
            content=content,
            headers={"Cache-Control": cache_control},
        )

    @router.get("/api/slides/{name}/tiles/{level}/{tile}")
    def get_tile(name: str, level: int, tile: str) -> RedirectResponse:
        record = _get_record(name)
        match = _TILE_NAME.match(tile)
        if not match or match.group(3) != resolver.tile_format:
            raise HTTPException(status_code=404, detail="Tile not found")

        address = TileAddress(level, int(match.group(1)), int(match.group(2)))
        descriptor, _ = _descriptor(record)
        if not descriptor.contains(address):
            raise HTTPException(status_code=404, detail="Tile not found")

        return RedirectResponse(
            resolver.address_url(record.slide_path, address),
            status_code=307,
            headers={"Cache-Control": "public, max-age=86400"},
        )

    @router.get("/api/tiles/resolve")
    def resolve_tile(
        base: str,
        level: int = Query(ge=0),
        x: int = Query(ge=0),
        y: int = Query(ge=0),
    ) -> JSONResponse:
        try:
            url = resolver.tile_url(base, level, x, y)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return JSONResponse(content={"url": url})

    return router
