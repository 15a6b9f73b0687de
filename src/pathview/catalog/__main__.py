"""CLI entry point for the PathView slide catalog."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from tqdm import tqdm

from pathview.config import CASE_DIR_PREFIX, DEFAULT_TILE_SIZE
from pathview.core.resolver import default_resolver

from .library import build_slide_library, save_slide_library
from .probe import probe_slide

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Register, probe and address Deep Zoom slides."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("source_dir", type=click.Path(exists=True, file_okay=False))
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False),
    default="./slide_library.json",
    help="Slide library JSON to write",
)
@click.option(
    "--prefix",
    default=CASE_DIR_PREFIX,
    show_default=True,
    help="Only folders starting with this prefix are treated as cases",
)
def register(source_dir: str, output: str, prefix: str) -> None:
    """Register every tiled case folder in SOURCE_DIR.

    Each case folder must contain slide.dzi and a slide_files/ tree as
    produced by ``vips dzsave --layout dz``.

    Examples:

        python -m pathview.catalog register "/data/MF tiled" -o library.json
    """
    click.echo(click.style("PathView Slide Registration", fg="cyan", bold=True))
    click.echo(click.style("=" * 40, fg="cyan"))

    with tqdm(desc="Scanning cases", unit="case") as pbar:

        def _progress(_name: str, current: int, total: int) -> None:
            pbar.total = total
            pbar.update(current - pbar.n)

        records = build_slide_library(
            Path(source_dir), prefix=prefix, progress_callback=_progress
        )

    if not records:
        click.echo(click.style(f"No slides found to register in {source_dir}", fg="red"), err=True)
        sys.exit(1)

    for record in records:
        click.echo(
            f"  {record.slide_name}: {record.slide_width}x{record.slide_height}, "
            f"level {record.max_level}"
        )

    save_slide_library(Path(output), records)
    click.echo()
    click.echo(
        click.style("Completed: ", bold=True)
        + click.style(f"{len(records)} slide(s) registered", fg="green")
        + f" -> {output}"
    )


@main.command()
@click.argument("slide", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--tile-size",
    "-t",
    type=int,
    default=DEFAULT_TILE_SIZE,
    show_default=True,
    help="Tile size the pyramid will be cut with",
)
def probe(slide: str, tile_size: int) -> None:
    """Print width, height and max pyramid level of a raw SLIDE."""
    try:
        info = probe_slide(Path(slide), tile_size=tile_size)
    except (ValueError, RuntimeError) as e:
        # InvalidTileSizeError is a ValueError
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)
    click.echo(f"{info.width}x{info.height} max_level={info.max_level}")


@main.command()
@click.argument("base")
@click.argument("level", type=click.IntRange(min=0))
@click.argument("x", type=click.IntRange(min=0))
@click.argument("y", type=click.IntRange(min=0))
def resolve(base: str, level: int, x: int, y: int) -> None:
    """Print the CDN URL of tile (LEVEL, X, Y) of slide BASE.

    BASE is a bucket path such as slides/ME-052 or an absolute slide URL.
    """
    try:
        url = default_resolver().tile_url(base, level, x, y)
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)
    click.echo(url)


if __name__ == "__main__":
    main()
