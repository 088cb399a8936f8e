"""
Tree-level operations: compare, diff, sync and patch.

Typical workflow::

    diff('template-v1', 'my-project', 'patches')   # record local changes
    patch('template-v2', 'patches', 'my-project-v2')  # replay them on v2
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from treepatch.core.diff.patcher import Patcher
from treepatch.core.diff.text_diff import TextCompareOptions
from treepatch.core.folder.comparer import Comparer
from treepatch.core.folder.rules import Rules
from treepatch.core.folder.scanner import ContentCallback, Index
from treepatch.core.folder.sync import Syncer
from treepatch.core.models import FileEntry
from treepatch.services.file_io import FileIOService
from treepatch.services.settings import TreePatchSettings

REMOVAL_PREFIX = '-'


def _index(
    directory: Path | str,
    rules: Optional[Rules],
    before_match_content: Optional[ContentCallback],
    settings: TreePatchSettings
) -> Index:
    return Index(
        directory,
        rules,
        before_match_content,
        rules_filename=settings.rules_filename,
        default_skip_patterns=settings.default_skip_patterns
    )


def compare(
    src: Path | str,
    dst: Path | str,
    rules: Optional[Rules] = None,
    before_match_content: Optional[ContentCallback] = None,
    settings: Optional[TreePatchSettings] = None
) -> Comparer:
    """
    Compare two directories.

    The destination is created if missing and indexed with the same rules
    as the source.

    Returns:
        Comparer with a populated differ
    """
    settings = settings or TreePatchSettings()

    src_index = _index(src, rules, before_match_content, settings)
    FileIOService().mkdir(dst, settings.dir_permissions)
    dst_index = _index(dst, src_index.rules, before_match_content, settings)

    return Comparer(src_index, dst_index).compare()


def diff(
    baseline: Path | str,
    destination: Path | str,
    diff_dir: Path | str,
    before_match_content: Optional[ContentCallback] = None,
    settings: Optional[TreePatchSettings] = None
) -> bool:
    """
    Write the differences between two directories into a diff directory.

    - Files only in the destination are copied
    - Files only in the baseline get an empty '-'-prefixed marker file
    - Files with different content get a unified diff

    Files whose content cannot be expressed as a line diff (symlinks,
    binary content, line-ending-only changes) are copied from the
    destination instead.

    Returns:
        True if any difference was written
    """
    settings = settings or TreePatchSettings()
    file_io = FileIOService()
    destination = Path(destination)
    diff_dir = Path(diff_dir)

    file_io.mkdir(diff_dir, settings.dir_permissions)
    differ = compare(baseline, destination, None, before_match_content, settings).differ

    absent_left = differ.absent_left()
    absent_right = differ.absent_right()
    content_diffs = differ.content_diffs()

    if not absent_left and not absent_right and not content_diffs:
        logging.info(f"diff - No differences between {baseline} and {destination}")
        return False

    for path in absent_left:
        file_io.copy_path(destination / path, diff_dir / path, settings.dir_permissions)

    for path in absent_right:
        marker = diff_dir / path
        file_io.write_bytes(marker.parent / (REMOVAL_PREFIX + marker.name), b'')

    options = TextCompareOptions(context_lines=settings.context_lines)
    for path, d in content_diffs.items():
        rendered = None
        if _is_line_diffable(d.left, file_io) and _is_line_diffable(d.right, file_io):
            rendered = d.render(options)

        if rendered:
            file_io.write_bytes(diff_dir / path, file_io.encode(rendered))
        else:
            file_io.copy_path(destination / path, diff_dir / path, settings.dir_permissions)

    logging.info(
        f"diff - Wrote {len(absent_left)} new, {len(absent_right)} removed and "
        f"{len(content_diffs)} changed path(s) to {diff_dir}"
    )
    return True


def sync(
    src: Path | str,
    dst: Path | str,
    permissions: int = 0o755,
    copy_empty_dirs: bool = False,
    before_match_content: Optional[ContentCallback] = None,
    settings: Optional[TreePatchSettings] = None
) -> Syncer:
    """Copy all indexed entries of src into dst."""
    settings = settings or TreePatchSettings()
    src_index = _index(src, None, before_match_content, settings)
    return Syncer(src_index).sync(dst, permissions, copy_empty_dirs)


def patch(
    baseline: Path | str,
    diff_dir: Path | str,
    destination: Path | str,
    before_match_content: Optional[ContentCallback] = None,
    settings: Optional[TreePatchSettings] = None
) -> int:
    """
    Rebuild a destination from a baseline and a diff directory.

    The baseline is synced into the destination first. Then, for every
    entry of the diff directory, a '-'-prefixed name removes the path, a
    patch file is applied and any other file is copied as is.

    Returns:
        Number of files written by the patcher

    Raises:
        PatchError: If a patch does not apply to the baseline
    """
    settings = settings or TreePatchSettings()
    file_io = FileIOService()
    destination = Path(destination)

    file_io.mkdir(destination, settings.dir_permissions)
    sync(baseline, destination, settings.dir_permissions, settings.copy_empty_dirs,
         before_match_content, settings)

    patcher = Patcher(baseline, destination, file_io)

    for entry in _index(diff_dir, None, before_match_content, settings):
        if entry.basename.startswith(REMOVAL_PREFIX):
            target = destination / entry.relative_dir / entry.basename[len(REMOVAL_PREFIX):]
            logging.debug(f"patch - Removing {target}")
            file_io.remove_path(target)
        elif not Patcher.is_patch_file(entry.path):
            target = destination / entry.relative_path
            file_io.remove_path(target)
            file_io.copy_path(entry.path, target, settings.dir_permissions)
        else:
            patcher.add_patch_file(entry)

    return patcher.patch()


def _is_line_diffable(entry: FileEntry, file_io: FileIOService) -> bool:
    if entry.is_link or entry.is_dir:
        return False
    return not file_io.is_binary(entry.content)
