"""Shared test fixtures for treepatch."""

from __future__ import annotations

import os
from pathlib import Path

import pytest


def make_tree(root: Path, mapping: dict) -> Path:
    """Create files under root.

    Args:
        root: Directory to create the tree in
        mapping: Relative path to content. ``str`` is written as UTF-8,
            ``bytes`` as is, and ``None`` creates an empty directory.

    Returns:
        The root path
    """
    root.mkdir(parents=True, exist_ok=True)
    for rel_path, content in mapping.items():
        path = root / rel_path
        if content is None:
            path.mkdir(parents=True, exist_ok=True)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
    return root


def read_tree(root: Path) -> dict[str, bytes]:
    """Read every regular file under root, keyed by posix relative path."""
    result = {}
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            path = Path(dirpath) / name
            if path.is_symlink():
                continue
            result[path.relative_to(root).as_posix()] = path.read_bytes()
    return result


@pytest.fixture
def tree(tmp_path: Path):
    """Factory that builds a named tree under tmp_path."""

    def _tree(name: str, mapping: dict) -> Path:
        return make_tree(tmp_path / name, mapping)

    return _tree


@pytest.fixture
def scenario(tree):
    """Baseline and destination trees from the reference scenario."""
    baseline = tree("baseline", {"f1.txt": "a\n", "f2.txt": "b\n"})
    destination = tree("destination", {"f1.txt": "a\n", "f2.txt": "b2\n", "f3.txt": "c\n"})
    return baseline, destination
