"""
Exception hierarchy for tree comparison, diffing and patching.

Errors fall into three groups:
- Configuration errors (rule and settings files)
- Structural errors (programming mistakes such as bad base paths)
- Patch integrity errors (malformed or non-matching hunks)
"""

from __future__ import annotations

from typing import Optional


class TreePatchError(Exception):
    """Base class for all treepatch errors."""


class RulesError(TreePatchError):
    """A rule file is missing or cannot be read."""


class SettingsError(TreePatchError):
    """A settings file cannot be read or parsed."""


class BasePathError(TreePatchError, ValueError):
    """A path does not start with the base path it is made relative to."""

    def __init__(self, path: str, base_path: str):
        self.path = path
        self.base_path = base_path
        super().__init__(f"Path {path} does not start with basepath {base_path}")


class PatchError(TreePatchError):
    """
    A patch could not be applied.

    The message is assembled from the parts that are known::

        Hunk mismatch in file "a/b.txt" on line 4: "+line".
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
    ):
        self.reason = message
        self.path = path
        self.line_number = line_number
        self.line = line
        super().__init__(self._format(message, path, line_number, line))

    @staticmethod
    def _format(
        message: str,
        path: Optional[str],
        line_number: Optional[int],
        line: Optional[str],
    ) -> str:
        text = message.rstrip('.')
        if path:
            text += f' in file "{path}"'
        if line_number is not None:
            text += f' on line {line_number}'
        if line is not None:
            text += f': "{line}"'
        return text + '.'
