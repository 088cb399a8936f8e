"""Tests for the batched task runner."""

from __future__ import annotations

from pathlib import Path

import pytest

from treepatch.workers.tasker import Tasker


def upper(entry):
    entry.set_content(entry.content.upper())
    return entry


def suffix(entry):
    entry.set_content(entry.content + b"!")
    return entry


class TestTasker:
    def test_transforms_apply_in_order(self, tree):
        root = tree("root", {"a.txt": "abc"})
        tasker = Tasker().add_task(upper).add_task(suffix)

        tasker.run_directory(root)

        assert (root / "a.txt").read_bytes() == b"ABC!"

    def test_only_changed_files_are_reported(self, tree):
        root = tree("root", {"lower.txt": "abc", "UPPER.txt": "ABC"})

        result = Tasker().add_task(upper).run_directory(root)

        assert result.files_processed == 2
        assert result.files_changed == ["lower.txt"]

    def test_images_and_git_are_excluded(self, tree):
        root = tree("root", {"a.txt": "a", "pic.PNG": "png", "photo.jpeg": "jpg", ".git/config": "cfg"})
        seen = []

        def record(entry):
            seen.append(entry.relative_path)
            return entry

        Tasker().add_task(record).run_directory(root)

        assert seen == ["a.txt"]

    def test_non_entry_return_raises(self, tree):
        root = tree("root", {"a.txt": "a"})

        with pytest.raises(TypeError):
            Tasker().add_task(lambda entry: None).run_directory(root)

    def test_batch_is_cleared_after_run(self, tree):
        root = tree("root", {"a.txt": "a"})
        tasker = Tasker().add_task(upper, "custom")

        tasker.run_directory(root, "custom")

        assert tasker.tasks("custom") == []

    def test_batches_are_separate(self, tree):
        root = tree("root", {"a.txt": "abc"})
        tasker = Tasker().add_task(upper, "one").add_task(suffix, "two")

        tasker.run_directory(root, "two")

        assert (root / "a.txt").read_bytes() == b"abc!"
        assert tasker.tasks("one") == [upper]

    def test_empty_batch_does_nothing(self, tree):
        root = tree("root", {"a.txt": "a"})

        result = Tasker().run_directory(root)

        assert result.files_processed == 0

    def test_clear(self):
        tasker = Tasker().add_task(upper, "one").add_task(suffix, "two")

        tasker.clear("one")
        assert tasker.tasks("one") == []
        assert tasker.tasks("two") == [suffix]

        tasker.clear()
        assert tasker.tasks("two") == []

    def test_progress_callback(self, tree):
        root = tree("root", {"a.txt": "a", "b.txt": "b"})
        progress = []

        Tasker().add_task(upper).run_directory(root, progress_callback=progress.append)

        assert [(p.current, p.total) for p in progress] == [(1, 2), (2, 2)]
        assert progress[-1].percent == 100.0
