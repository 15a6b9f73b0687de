"""Slide library built from a directory of tiled case folders.

Each case folder holds a Deep Zoom pyramid as written by ``vips dzsave``::

    case_0NTDJG/
        slide.dzi
        slide_files/<level>/<x>_<y>.jpg

The library is a JSON list of SlideRecord entries that the web server reads
to hand out tile sources.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable

from pathview.config import (
    CASE_DIR_PREFIX,
    DEFAULT_SLIDE_HEIGHT,
    DEFAULT_SLIDE_WIDTH,
    DEFAULT_TILE_SIZE,
    DESCRIPTOR_NAME,
    TILE_DIR,
)
from pathview.core.identifiers import RelativePath
from pathview.core.metadata import load_pyramid_metadata, read_descriptor_root
from pathview.core.resolver import TileResolver, default_resolver

logger = logging.getLogger(__name__)


class CaseStatus(Enum):
    """Status of a tiled case folder."""

    NOT_EXISTS = "not_exists"  # No such folder
    COMPLETE = "complete"  # Descriptor and tiles present
    INCOMPLETE = "incomplete"  # Missing descriptor or tiles
    CORRUPTED = "corrupted"  # Descriptor is not a DZI document


def check_case_status(case_dir: Path) -> CaseStatus:
    """Check whether a case folder holds a usable pyramid.

    Args:
        case_dir: Path to the case folder

    Returns:
        CaseStatus indicating the state
    """
    if not case_dir.exists():
        return CaseStatus.NOT_EXISTS

    dzi_path = case_dir / DESCRIPTOR_NAME
    tiles_dir = case_dir / TILE_DIR
    if not dzi_path.exists() or not tiles_dir.is_dir():
        return CaseStatus.INCOMPLETE

    # Missing fields are filled with defaults when the record is built
    try:
        read_descriptor_root(dzi_path.read_bytes())
    except (OSError, ValueError, SyntaxError):
        # ET.ParseError is a SyntaxError subclass
        return CaseStatus.CORRUPTED

    level_dirs = [d for d in tiles_dir.iterdir() if d.is_dir() and d.name.isdigit()]
    for level_dir in level_dirs:
        if any(level_dir.glob("*.jpg")):
            return CaseStatus.COMPLETE
    return CaseStatus.INCOMPLETE


def find_case_dirs(source_dir: Path, prefix: str = CASE_DIR_PREFIX) -> list[Path]:
    """List case folders directly under ``source_dir``, sorted by name."""
    source_dir = Path(source_dir)
    if not source_dir.is_dir():
        return []
    return sorted(
        d for d in source_dir.iterdir() if d.is_dir() and d.name.startswith(prefix)
    )


@dataclass
class SlideRecord:
    """One registered slide."""

    slide_name: str
    slide_path: str
    slide_width: int
    slide_height: int
    max_level: int
    tile_size: int
    overlap: int
    original_filename: str
    upload_date: str

    def to_dict(self) -> dict:
        return {
            "slide_name": self.slide_name,
            "slide_path": self.slide_path,
            "slide_width": self.slide_width,
            "slide_height": self.slide_height,
            "max_level": self.max_level,
            "tile_size": self.tile_size,
            "overlap": self.overlap,
            "original_filename": self.original_filename,
            "upload_date": self.upload_date,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SlideRecord:
        return cls(
            slide_name=data["slide_name"],
            slide_path=data["slide_path"],
            slide_width=int(data["slide_width"]),
            slide_height=int(data["slide_height"]),
            max_level=int(data["max_level"]),
            tile_size=int(data.get("tile_size", DEFAULT_TILE_SIZE)),
            overlap=int(data.get("overlap", 0)),
            original_filename=data.get("original_filename", ""),
            upload_date=data.get("upload_date", ""),
        )


def build_slide_record(
    case_dir: Path, resolver: TileResolver | None = None
) -> SlideRecord:
    """Describe a case folder as a SlideRecord.

    Missing descriptor fields fall back to the dimensions of the reference
    slide (119040 x 25344), 256px tiles and no overlap.
    """
    resolver = resolver or default_resolver()
    descriptor = load_pyramid_metadata(
        case_dir / DESCRIPTOR_NAME,
        DEFAULT_SLIDE_WIDTH,
        DEFAULT_SLIDE_HEIGHT,
        tile_size=DEFAULT_TILE_SIZE,
        overlap=0,
    )
    return SlideRecord(
        slide_name=case_dir.name,
        slide_path=resolver.descriptor_url(RelativePath(case_dir.name)),
        slide_width=descriptor.width,
        slide_height=descriptor.height,
        max_level=descriptor.max_level,
        tile_size=descriptor.tile_size,
        overlap=descriptor.overlap,
        original_filename=f"{case_dir.name}.dzi",
        upload_date=datetime.now(timezone.utc).isoformat(),
    )


def build_slide_library(
    source_dir: Path,
    resolver: TileResolver | None = None,
    prefix: str = CASE_DIR_PREFIX,
    progress_callback: Callable[[str, int, int], None] | None = None,
) -> list[SlideRecord]:
    """Build records for every complete case folder under ``source_dir``.

    Args:
        source_dir: Directory containing case folders
        resolver: Resolver used to compose descriptor URLs
        prefix: Case folder name prefix
        progress_callback: Optional callback(case_name, current, total)

    Returns:
        Records of complete cases; incomplete and corrupted ones are skipped
    """
    case_dirs = find_case_dirs(source_dir, prefix)
    logger.info("Found %d case directories in %s", len(case_dirs), source_dir)

    records: list[SlideRecord] = []
    for i, case_dir in enumerate(case_dirs):
        status = check_case_status(case_dir)
        if status == CaseStatus.COMPLETE:
            record = build_slide_record(case_dir, resolver)
            records.append(record)
            logger.info(
                "Prepared %s (%dx%d, level %d)",
                record.slide_name,
                record.slide_width,
                record.slide_height,
                record.max_level,
            )
        elif status == CaseStatus.CORRUPTED:
            logger.warning("Skipping corrupted case: %s", case_dir)
        else:
            logger.warning("Skipping incomplete case: %s", case_dir)

        if progress_callback:
            progress_callback(case_dir.name, i + 1, len(case_dirs))

    return records


def save_slide_library(path: Path, records: list[SlideRecord]) -> None:
    """Write the library as a JSON list of records.

    The file is written next to its destination and renamed over it, so the
    web server never reads a half-written library.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [record.to_dict() for record in records]

    with tempfile.NamedTemporaryFile(
        "w", dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp", delete=False
    ) as f:
        staged = Path(f.name)
        try:
            json.dump(payload, f, indent=2)
        except BaseException:
            f.close()
            staged.unlink(missing_ok=True)
            raise
    try:
        os.replace(staged, path)
    except OSError:
        staged.unlink(missing_ok=True)
        raise
    logger.debug("Saved %d slide records to %s", len(records), path)


def load_slide_library(path: Path) -> list[SlideRecord]:
    """Load a slide library file.

    A missing file is an empty library.

    Raises:
        ValueError: If the file is not a valid library
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Slide library %s does not exist", path)
        return []
    try:
        data = json.loads(path.read_text())
        return [SlideRecord.from_dict(entry) for entry in data]
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid slide library {path}: {e}") from e
