"""Slide catalog: library registration and raw slide probing."""

from .library import (
    CaseStatus,
    SlideRecord,
    build_slide_library,
    build_slide_record,
    check_case_status,
    find_case_dirs,
    load_slide_library,
    save_slide_library,
)
from .probe import SlideInfo, is_vips_available, probe_slide

__all__ = [
    "CaseStatus",
    "SlideRecord",
    "build_slide_library",
    "build_slide_record",
    "check_case_status",
    "find_case_dirs",
    "load_slide_library",
    "save_slide_library",
    "SlideInfo",
    "is_vips_available",
    "probe_slide",
]
