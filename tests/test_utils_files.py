"""Tests for file utility functions."""

from __future__ import annotations

from pathlib import Path

import pytest

from docblog.utils.files import classify_entry, normalized_asset_path, write_file


class TestNormalizedAssetPath:
    """Test normalized_asset_path function."""

    def test_without_prefix(self) -> None:
        assert normalized_asset_path("", "doc123", "images/pic.png") == "doc123-pic.png"

    def test_with_prefix(self) -> None:
        assert normalized_asset_path("assets", "doc123", "images/pic.png") == "assets/doc123-pic.png"

    def test_flat_name(self) -> None:
        assert normalized_asset_path("", "doc123", "pic.png") == "doc123-pic.png"

    def test_nested_directories(self) -> None:
        assert normalized_asset_path("", "d", "a/b/c/pic.png") == "d-pic.png"

    def test_same_base_name_collides_within_document(self) -> None:
        first = normalized_asset_path("", "d", "images/pic.png")
        second = normalized_asset_path("", "d", "other/pic.png")
        assert first == second

    def test_distinct_documents_do_not_collide(self) -> None:
        assert normalized_asset_path("", "a", "pic.png") != normalized_asset_path("", "b", "pic.png")

    def test_empty_inputs(self) -> None:
        assert normalized_asset_path("", "", "") == "-"


class TestClassifyEntry:
    @pytest.mark.parametrize(
        "name,kind",
        [
            ("Post.html", "markup"),
            ("Post.HTM", "markup"),
            ("images/image1.png", "image"),
            ("images/photo.JPEG", "image"),
            ("images/anim.gif", "image"),
            ("styles.css", "other"),
            ("README", "other"),
        ],
    )
    def test_classify(self, name: str, kind: str) -> None:
        assert classify_entry(name) == kind


class TestWriteFile:
    def test_creates_parents(self, tmp_path: Path) -> None:
        path = tmp_path / "assets" / "nested" / "a.png"

        write_file(path, b"data")

        assert path.read_bytes() == b"data"

    def test_overwrites(self, tmp_path: Path) -> None:
        path = tmp_path / "a.html"
        write_file(path, b"old")
        write_file(path, b"new")

        assert path.read_bytes() == b"new"
