"""Tests for tree synchronization."""

from __future__ import annotations

import os

from conftest import read_tree

from treepatch.core.folder.rules import Rules
from treepatch.core.folder.scanner import Index
from treepatch.core.folder.sync import Syncer


class TestSyncer:
    def test_copies_indexed_files(self, tree, tmp_path):
        src = tree("src", {"a.txt": "a", "dir/b.txt": "b", ".git/HEAD": "ref"})
        dst = tmp_path / "dst"

        syncer = Syncer(Index(src)).sync(dst)

        assert read_tree(dst) == {"a.txt": b"a", "dir/b.txt": b"b"}
        assert syncer.result.files_written == 2
        assert syncer.result.bytes_written == 2
        assert syncer.result.success

    def test_skipped_files_are_not_copied(self, tree, tmp_path):
        src = tree("src", {"keep.txt": "k", "build/out.bin": "o"})
        dst = tmp_path / "dst"

        Syncer(Index(src, Rules().add_skip("build/"))).sync(dst)

        assert read_tree(dst) == {"keep.txt": b"k"}

    def test_content_override_is_written(self, tree, tmp_path):
        src = tree("src", {"a.txt": "disk"})
        dst = tmp_path / "dst"
        index = Index(src)
        index.files["a.txt"].set_content(b"memory")

        Syncer(index).sync(dst)

        assert (dst / "a.txt").read_bytes() == b"memory"

    def test_ignored_files_are_copied_from_disk(self, tree, tmp_path):
        src = tree("src", {"gen.txt": "generated"})
        dst = tmp_path / "dst"

        Syncer(Index(src, Rules().add_ignore_content("gen.txt"))).sync(dst)

        assert (dst / "gen.txt").read_bytes() == b"generated"

    def test_symlinks_are_recreated(self, tree, tmp_path):
        src = tree("src", {"a.txt": "a", "target/x.txt": "x"})
        os.symlink("a.txt", src / "file_link")
        os.symlink("target", src / "dir_link")
        dst = tmp_path / "dst"

        Syncer(Index(src)).sync(dst)

        assert os.readlink(dst / "file_link") == "a.txt"
        assert os.readlink(dst / "dir_link") == "target"
        assert (dst / "dir_link/x.txt").read_text() == "x"

    def test_empty_ignored_directory(self, tree, tmp_path):
        src = tree("src", {"cache": None})
        rules = Rules().add_ignore_content("cache/")

        Syncer(Index(src, rules)).sync(tmp_path / "without")
        Syncer(Index(src, rules)).sync(tmp_path / "with", copy_empty_dirs=True)

        assert not (tmp_path / "without/cache").exists()
        assert (tmp_path / "with/cache").is_dir()

    def test_destination_is_created_with_permissions(self, tree, tmp_path):
        src = tree("src", {})
        dst = tmp_path / "nested/dst"

        Syncer(Index(src)).sync(dst, permissions=0o700)

        assert dst.is_dir()
        assert dst.stat().st_mode & 0o777 == 0o700
