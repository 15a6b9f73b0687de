"""Parsing of slide base identifiers.

A slide is referenced either by a bare path inside the CDN bucket
(``slides/ME-052``) or by an absolute URL. Absolute URLs come in two shapes:
those served by the CDN itself, whose path is the slide namespace, and
anything else, for which the case name is recovered heuristically.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union
from urllib.parse import urlsplit

_URL_SCHEMES = ("http://", "https://")


@dataclass(frozen=True)
class RelativePath:
    """Bare bucket path, used directly as the tile namespace."""

    path: str

    @property
    def namespace(self) -> str:
        return self.path


@dataclass(frozen=True)
class KnownHostUrl:
    """Absolute URL on a CDN host; ``case_path`` is its slide folder."""

    url: str
    case_path: str

    @property
    def namespace(self) -> str:
        return self.case_path


@dataclass(frozen=True)
class OpaqueUrl:
    """Absolute URL on an unrecognised host.

    ``case_name`` is a best-effort guess kept for links stored before slides
    moved to the CDN; it is not a guaranteed mapping.
    """

    url: str
    case_name: str

    @property
    def namespace(self) -> str:
        return self.case_name


BaseIdentifier = Union[RelativePath, KnownHostUrl, OpaqueUrl]


def _is_file_segment(segment: str) -> bool:
    # slide.dzi, slide.xml, ...
    return "." in segment


def _host_matches(host: str, marker: str) -> bool:
    host = host.lower()
    marker = marker.lower().lstrip(".")
    return bool(marker) and (host == marker or host.endswith("." + marker))


def parse_base_identifier(value: str, cdn_marker: str) -> BaseIdentifier:
    """Classify a slide reference.

    Args:
        value: Relative bucket path or absolute URL
        cdn_marker: Host token identifying the CDN (e.g. ``cloudfront.net``)

    Returns:
        The matching BaseIdentifier variant

    Raises:
        ValueError: If no slide namespace can be derived from ``value``
    """
    text = value.strip()
    if not text:
        raise ValueError("Empty slide identifier")

    if not text.lower().startswith(_URL_SCHEMES):
        path = text.strip("/")
        if not path:
            raise ValueError(f"No slide path in {value!r}")
        return RelativePath(path)

    parts = urlsplit(text)
    segments = [s for s in parts.path.split("/") if s]

    if _host_matches(parts.hostname or "", cdn_marker):
        folder = segments[:-1] if segments and _is_file_segment(segments[-1]) else segments
        if folder:
            return KnownHostUrl(url=text, case_path="/".join(folder))

    if not segments:
        raise ValueError(f"No case name in URL {value!r}")
    if len(segments) >= 2 and _is_file_segment(segments[-1]):
        case_name = segments[-2]
    else:
        case_name = segments[-1]
    return OpaqueUrl(url=text, case_name=case_name)
