"""Tests for slide library registration."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pathview.catalog.library import (
    CaseStatus,
    SlideRecord,
    build_slide_library,
    build_slide_record,
    check_case_status,
    find_case_dirs,
    load_slide_library,
    save_slide_library,
)
from pathview.core.resolver import TileResolver


class TestCheckCaseStatus:
    """Tests for case folder validation."""

    def test_complete(self, make_case) -> None:
        assert check_case_status(make_case()) == CaseStatus.COMPLETE

    def test_not_exists(self, temp_dir: Path) -> None:
        assert check_case_status(temp_dir / "case_missing") == CaseStatus.NOT_EXISTS

    def test_missing_descriptor(self, make_case) -> None:
        case_dir = make_case()
        (case_dir / "slide.dzi").unlink()
        assert check_case_status(case_dir) == CaseStatus.INCOMPLETE

    def test_no_tiles(self, make_case) -> None:
        assert check_case_status(make_case(with_tiles=False)) == CaseStatus.INCOMPLETE

    def test_corrupted_descriptor(self, make_case) -> None:
        case_dir = make_case(dzi="{not xml")
        assert check_case_status(case_dir) == CaseStatus.CORRUPTED

    def test_wrong_root_is_corrupted(self, make_case) -> None:
        case_dir = make_case(dzi="<Collection><Items/></Collection>")
        assert check_case_status(case_dir) == CaseStatus.CORRUPTED

    @pytest.mark.parametrize(
        "dzi",
        [
            "<Image TileSize='256'><Size Width='4096'/></Image>",
            "<Image TileSize='256'/>",
        ],
        ids=["missing-height", "missing-size"],
    )
    def test_sparse_descriptor_is_complete(self, make_case, dzi: str) -> None:
        assert check_case_status(make_case(dzi=dzi)) == CaseStatus.COMPLETE


class TestBuildSlideLibrary:
    """Tests for scanning a directory of tiled cases."""

    def test_find_case_dirs(self, make_case, temp_dir: Path) -> None:
        make_case("case_B")
        make_case("case_A")
        (temp_dir / "notes").mkdir()
        (temp_dir / "case_file.txt").write_text("not a folder")

        assert [d.name for d in find_case_dirs(temp_dir)] == ["case_A", "case_B"]

    def test_find_case_dirs_missing_source(self, temp_dir: Path) -> None:
        assert find_case_dirs(temp_dir / "nope") == []

    def test_build_record(self, make_case, resolver: TileResolver) -> None:
        case_dir = make_case("case_0NTDJG", width=119040, height=25344)
        record = build_slide_record(case_dir, resolver)

        assert record.slide_name == "case_0NTDJG"
        assert record.slide_path == (
            "https://tiles.example.cloudfront.net/case_0NTDJG/slide.dzi"
        )
        assert (record.slide_width, record.slide_height) == (119040, 25344)
        assert record.max_level == 9
        assert record.tile_size == 256
        assert record.overlap == 1
        assert record.original_filename == "case_0NTDJG.dzi"
        assert record.upload_date

    def test_record_defaults_for_sparse_descriptor(self, make_case, resolver) -> None:
        case_dir = make_case(dzi='<Image><Size Width="2048" Height="512"/></Image>')
        record = build_slide_record(case_dir, resolver)
        assert record.tile_size == 256
        assert record.overlap == 0
        assert record.max_level == 3

    def test_registers_sparse_descriptor(self, make_case, temp_dir, resolver) -> None:
        make_case("case_SPARSE", dzi="<Image TileSize='256'><Size Width='4096'/></Image>")

        records = build_slide_library(temp_dir, resolver)

        assert [r.slide_name for r in records] == ["case_SPARSE"]
        assert (records[0].slide_width, records[0].slide_height) == (4096, 25344)
        assert records[0].max_level == 7

    def test_skips_incomplete_and_corrupted(self, make_case, temp_dir, resolver) -> None:
        make_case("case_good")
        make_case("case_empty", with_tiles=False)
        make_case("case_bad", dzi="garbage")

        records = build_slide_library(temp_dir, resolver)
        assert [r.slide_name for r in records] == ["case_good"]

    def test_progress_callback(self, make_case, temp_dir, resolver) -> None:
        make_case("case_1")
        make_case("case_2")
        calls = []

        build_slide_library(
            temp_dir, resolver, progress_callback=lambda *args: calls.append(args)
        )
        assert calls == [("case_1", 1, 2), ("case_2", 2, 2)]

    def test_custom_prefix(self, make_case, temp_dir, resolver) -> None:
        make_case("case_1")
        make_case("slide_2")
        records = build_slide_library(temp_dir, resolver, prefix="slide_")
        assert [r.slide_name for r in records] == ["slide_2"]


class TestSlideLibraryPersistence:
    """Tests for saving and loading the library file."""

    def test_save_writes_json_list(self, make_case, temp_dir, resolver) -> None:
        record = build_slide_record(make_case(), resolver)
        path = temp_dir / "out" / "library.json"

        save_slide_library(path, [record])

        data = json.loads(path.read_text())
        assert data == [record.to_dict()]
        assert not list(path.parent.glob("*.tmp"))

    def test_load_saved_library(self, make_case, temp_dir, resolver) -> None:
        record = build_slide_record(make_case(), resolver)
        path = temp_dir / "library.json"
        save_slide_library(path, [record])

        assert load_slide_library(path) == [record]

    def test_load_missing_is_empty(self, temp_dir: Path) -> None:
        assert load_slide_library(temp_dir / "missing.json") == []

    @pytest.mark.parametrize(
        "content",
        ["{invalid json", '[{"slide_name": "x"}]', '{"not": "a list"}'],
        ids=["malformed", "missing-keys", "not-a-list"],
    )
    def test_load_invalid_raises(self, temp_dir: Path, content: str) -> None:
        path = temp_dir / "library.json"
        path.write_text(content)
        with pytest.raises(ValueError, match="Invalid slide library"):
            load_slide_library(path)

    def test_from_dict_fills_optional_fields(self) -> None:
        record = SlideRecord.from_dict({
            "slide_name": "case_A",
            "slide_path": "https://cdn/case_A/slide.dzi",
            "slide_width": 512,
            "slide_height": 512,
            "max_level": 1,
        })
        assert record.tile_size == 256
        assert record.overlap == 0
        assert record.original_filename == ""
