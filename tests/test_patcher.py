"""Tests for the unified diff applier."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from treepatch.core.diff.patcher import HunkInfo, Patcher
from treepatch.core.diff.text_diff import TextDiffEngine
from treepatch.core.exceptions import PatchError
from treepatch.core.models import FileEntry


@pytest.fixture
def dirs(tmp_path: Path):
    source = tmp_path / "source"
    destination = tmp_path / "destination"
    source.mkdir()
    destination.mkdir()
    return source, destination


def apply(dirs, original: str, diff: str, name: str = "f.txt") -> Path:
    source, destination = dirs
    (source / name).write_text(original, encoding="utf-8", newline="")
    Patcher(source, destination).add_diff(diff, name).patch()
    return destination / name


def roundtrip(dirs, original: str, modified: str) -> str:
    diff = TextDiffEngine().unified_diff(original, modified)
    return apply(dirs, original, diff).read_bytes().decode("utf-8")


class TestHunkInfo:
    def test_indices(self):
        assert HunkInfo(3, 2, 4, 1).src_index == 2
        assert HunkInfo(3, 2, 4, 1).dst_index == 3

    def test_zero_length_addresses_after_line(self):
        assert HunkInfo(0, 0, 1, 1).src_index == 0
        assert HunkInfo(5, 0, 5, 0).dst_index == 5


class TestApply:
    """Tests for successful hunk application."""

    def test_single_change(self, dirs):
        result = apply(dirs, "a\nb\nc\n", "@@ -2 +2 @@\n-b\n+B\n")

        assert result.read_text() == "a\nB\nc\n"

    def test_returns_number_of_files_written(self, dirs):
        source, destination = dirs
        (source / "a.txt").write_text("a\n")
        (source / "b.txt").write_text("b\n")

        patcher = Patcher(source, destination)
        patcher.add_diff("@@ -1 +1 @@\n-a\n+A\n", "a.txt")
        patcher.add_diff("@@ -1 +1 @@\n-b\n+B\n", "b.txt")

        assert patcher.patch() == 2
        assert (destination / "a.txt").read_text() == "A\n"
        assert (destination / "b.txt").read_text() == "B\n"

    def test_nested_destination_is_created(self, dirs):
        source, destination = dirs
        (source / "sub").mkdir()
        (source / "sub/f.txt").write_text("x\n")

        Patcher(source, destination).add_diff("@@ -1 +1 @@\n-x\n+y\n", "sub/f.txt").patch()

        assert (destination / "sub/f.txt").read_text() == "y\n"

    def test_text_before_first_header_is_skipped(self, dirs):
        diff = "--- a/f.txt\n+++ b/f.txt\n@@ -1 +1 @@\n-a\n+b\n"

        assert apply(dirs, "a\n", diff).read_text() == "b\n"

    def test_multiple_hunks_with_shifted_lines(self, dirs):
        original = "\n".join(str(i) for i in range(1, 21)) + "\n"
        lines = original.splitlines()
        lines[2:2] = ["new-a", "new-b"]
        lines[18] = "changed"
        modified = "\n".join(lines) + "\n"

        assert roundtrip(dirs, original, modified) == modified

    def test_added_final_newline(self, dirs):
        assert roundtrip(dirs, "a\nb", "a\nb\n") == "a\nb\n"

    def test_removed_final_newline(self, dirs):
        assert roundtrip(dirs, "a\nb\n", "a\nb") == "a\nb"

    def test_change_before_line_without_newline(self, dirs):
        assert roundtrip(dirs, "a\nz", "b\nz") == "b\nz"

    def test_empty_to_content(self, dirs):
        assert roundtrip(dirs, "", "c\n") == "c\n"

    def test_content_to_empty(self, dirs):
        assert roundtrip(dirs, "c\n", "") == ""

    def test_crlf_source_is_written_with_lf(self, dirs):
        result = apply(dirs, "a\r\nb\r\n", "@@ -2 +2 @@\n-b\n+c\n")

        assert result.read_bytes() == b"a\nc\n"

    def test_patch_without_header_is_written_verbatim(self, dirs):
        source, destination = dirs
        (source / "f.txt").write_text("old\n")

        count = Patcher(source, destination).add_diff("user@@example\n", "f.txt").patch()

        assert count == 1
        assert (destination / "f.txt").read_text() == "user@@example\n"


class TestErrors:
    """Tests for malformed or non-matching patches."""

    def test_unexpected_eof(self, dirs):
        with pytest.raises(PatchError) as exc_info:
            apply(dirs, "a\n", "@@ -1 +1 @@")

        assert exc_info.value.reason == "Unexpected EOF"
        assert exc_info.value.line_number == 0
        assert exc_info.value.line == "@@ -1 +1 @@"

    def test_unexpected_removal_line(self, dirs):
        with pytest.raises(PatchError) as exc_info:
            apply(dirs, "a\nb\n", "@@ -1 +1 @@\n-a\n-b\n+x\n")

        error = exc_info.value
        assert error.reason == "Unexpected removal line"
        assert error.line_number == 2
        assert error.line == "-b"
        assert error.path == "f.txt"

    def test_unexpected_addition_line(self, dirs):
        with pytest.raises(PatchError) as exc_info:
            apply(dirs, "a\n", "@@ -1 +1 @@\n+x\n+y\n-a\n")

        assert exc_info.value.reason == "Unexpected addition line"
        assert exc_info.value.line == "+y"
        assert exc_info.value.line_number == 2

    def test_hunk_mismatch(self, dirs):
        with pytest.raises(PatchError) as exc_info:
            apply(dirs, "a\nb\n", "@@ -1,2 +1,2 @@\n a")

        assert exc_info.value.reason == "Hunk mismatch"

    def test_source_verification_failed(self, dirs):
        source, destination = dirs

        with pytest.raises(PatchError) as exc_info:
            apply(dirs, "a\n", "@@ -1 +1 @@\n-z\n+y\n")

        assert exc_info.value.reason == "Source file verification failed"
        assert not (destination / "f.txt").exists()

    def test_failure_writes_nothing(self, dirs):
        source, destination = dirs
        (source / "a.txt").write_text("a\n")
        (source / "b.txt").write_text("b\n")

        patcher = Patcher(source, destination)
        patcher.add_diff("@@ -1 +1 @@\n-a\n+A\n", "a.txt")
        patcher.add_diff("@@ -1 +1 @@\n-drifted\n+B\n", "b.txt")

        with pytest.raises(PatchError):
            patcher.patch()

        assert list(destination.iterdir()) == []


class TestPatchFiles:
    """Tests for patch file detection."""

    def test_is_patch_file(self, tmp_path: Path):
        patch = tmp_path / "f.txt"
        patch.write_text("@@ -1 +1 @@\n-a\n+b\n")
        plain = tmp_path / "plain.txt"
        plain.write_text("no markers\n")
        os.symlink(patch, tmp_path / "link")

        assert Patcher.is_patch_file(patch)
        assert not Patcher.is_patch_file(plain)
        assert not Patcher.is_patch_file(tmp_path / "link")
        assert not Patcher.is_patch_file(tmp_path)
        assert not Patcher.is_patch_file(tmp_path / "missing")

    def test_add_patch_file_uses_relative_path(self, tmp_path: Path):
        source = tmp_path / "source"
        diffs = tmp_path / "diffs"
        destination = tmp_path / "destination"
        (source / "sub").mkdir(parents=True)
        (diffs / "sub").mkdir(parents=True)
        (source / "sub/f.txt").write_text("a\n")
        (diffs / "sub/f.txt").write_text("@@ -1 +1 @@\n-a\n+b\n")

        patcher = Patcher(source, destination)
        patcher.add_patch_file(FileEntry(diffs / "sub/f.txt", diffs))

        assert patcher.patch() == 1
        assert (destination / "sub/f.txt").read_text() == "b\n"

    def test_add_non_patch_file_raises(self, tmp_path: Path):
        plain = tmp_path / "plain.txt"
        plain.write_text("text\n")

        with pytest.raises(PatchError) as exc_info:
            Patcher(tmp_path, tmp_path / "out").add_patch_file(FileEntry(plain, tmp_path))

        assert exc_info.value.reason == "Invalid patch file"
        assert exc_info.value.path == str(plain)

    def test_patch_file_without_header_keeps_raw_bytes(self, tmp_path: Path):
        source = tmp_path / "source"
        diffs = tmp_path / "diffs"
        destination = tmp_path / "destination"
        source.mkdir()
        diffs.mkdir()
        data = b"first\r\nuser@@example\rlast\r\n"
        (diffs / "f.txt").write_bytes(data)

        patcher = Patcher(source, destination)
        patcher.add_patch_file(FileEntry(diffs / "f.txt", diffs))

        assert patcher.patch() == 1
        assert (destination / "f.txt").read_bytes() == data
