"""Tests for data models."""

import pytest
from pydantic import ValidationError

from diskscope.models import (
    DisplayItem,
    ScanProgress,
    ScanResult,
    ScanState,
    SortOption,
    TrashResult,
    format_bytes,
    format_percent,
)


def item(path, size=0, children=(), is_file=False):
    return DisplayItem(path=path, size=size, is_file=is_file, children=tuple(children))


class TestEnums:
    def test_sort_options(self):
        assert SortOption.SIZE_DESC == "size-desc"
        assert SortOption.SIZE_ASC == "size-asc"
        assert SortOption.NAME == "name"

    def test_scan_states(self):
        assert {s.value for s in ScanState} == {"idle", "scanning", "completed", "cancelled"}


class TestFormatting:
    def test_format_bytes(self):
        assert format_bytes(500) == "500.0 B"
        assert format_bytes(2048) == "2.0 KB"
        assert format_bytes(5 * 1024**3) == "5.0 GB"
        assert format_bytes(3 * 1024**5) == "3072.0 TB"

    def test_format_percent(self):
        assert format_percent(25, 100) == "25.0 %"
        assert format_percent(0, 100) == "0.0 %"
        assert format_percent(10, 0) == "0.0 %"


class TestDisplayItem:
    def test_name(self):
        assert item("/data/photos").name == "photos"
        assert item("/").name == "/"

    def test_is_frozen(self):
        node = item("/a", 1)
        with pytest.raises(ValidationError):
            node.size = 2

    def test_walk_and_find(self):
        tree = item("/a", 3, [item("/a/b", 1, is_file=True), item("/a/c", 2, [item("/a/c/d", 2, is_file=True)])])
        assert [i.path for i in tree.walk()] == ["/a", "/a/b", "/a/c", "/a/c/d"]
        assert tree.find("/a/c/d").size == 2
        assert tree.find("/a/x") is None

    def test_find_follows_matching_branch_only(self):
        tree = item(
            "/a",
            7,
            [
                item("/a/b", 2, [item("/a/b/x", 2, is_file=True)]),
                item("/a/bc", 5, [item("/a/bc/x", 5, is_file=True)]),
            ],
        )
        assert tree.find("/a/bc/x").size == 5
        assert tree.find("/a/b/x").size == 2
        assert tree.find("/a/bc/y") is None
        assert tree.find("/other") is None

    def test_size_human_and_percent(self):
        node = item("/a", 1536)
        assert node.size_human == "1.5 KB"
        assert node.percent_of(3072) == "50.0 %"


class TestScanResult:
    def test_empty(self):
        result = ScanResult()
        assert result.total_size == 0
        assert result.top_items == ()
        assert not result.cancelled

    def test_totals(self):
        root = item("/a", 3, [item("/a/b", 3, is_file=True)])
        result = ScanResult(root=root, restricted=("/a/x",))
        assert result.total_size == 3
        assert result.top_items[0].path == "/a/b"

    def test_progress_defaults(self):
        progress = ScanProgress()
        assert progress.files_scanned == 0
        assert progress.bytes_found == 0
        assert progress.current_folder == ""


class TestTrashResult:
    def test_defaults(self):
        result = TrashResult(path="/a")
        assert result.success
        assert result.error is None
        assert result.bytes_freed == 0
