"""
Application settings management.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import Any, Optional

from treepatch.core.exceptions import SettingsError


@dataclass
class TreePatchSettings:
    """Settings for indexing, diffing and syncing."""
    # Indexing
    rules_filename: str = '.ignorecontent'
    default_skip_patterns: list[str] = field(default_factory=lambda: ['.git/'])

    # Diff rendering
    context_lines: int = 3
    show_diff_file_limit: Optional[int] = 10

    # Sync
    dir_permissions: int = 0o755
    copy_empty_dirs: bool = False

    log_level: str = 'INFO'


class SettingsManager:
    """Manager for loading/saving application settings."""

    def __init__(self, settings_path: Optional[Path | str] = None, strict: bool = False):
        """
        Args:
            settings_path: Settings file; the per-user default when omitted
            strict: Raise SettingsError instead of falling back to defaults
                when the file exists but cannot be read
        """
        self.settings_path = Path(settings_path) if settings_path else self._get_default_path()
        self.strict = strict
        self._settings: Optional[TreePatchSettings] = None

    @staticmethod
    def _get_default_path() -> Path:
        """Get the default settings file path."""
        if os.name == 'nt':
            # Windows
            app_data = os.environ.get('APPDATA', os.path.expanduser('~'))
            return Path(app_data) / 'TreePatch' / 'settings.json'
        else:
            # Linux/Mac
            config_home = os.environ.get('XDG_CONFIG_HOME',
                                         os.path.expanduser('~/.config'))
            return Path(config_home) / 'treepatch' / 'settings.json'

    @property
    def settings(self) -> TreePatchSettings:
        """Get current settings, loading from disk if needed."""
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> TreePatchSettings:
        """
        Load settings from disk.

        Raises:
            SettingsError: In strict mode, if the file is missing or invalid
        """
        if not self.settings_path.exists():
            if self.strict:
                logging.error(f"SettingsManager - Settings file not found: {self.settings_path}")
                raise SettingsError(f"Settings file {self.settings_path} does not exist.")
            return TreePatchSettings()

        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return self._from_dict(data)
        except (OSError, ValueError, TypeError) as e:
            if self.strict:
                logging.error(f"SettingsManager - Could not load {self.settings_path}: {e}")
                raise SettingsError(f"Failed to load settings from {self.settings_path}: {e}") from e
            logging.warning(f"SettingsManager - Could not load {self.settings_path}, using defaults: {e}")
            return TreePatchSettings()

    def save(self, settings: Optional[TreePatchSettings] = None) -> bool:
        """Save settings to disk."""
        settings = settings or self._settings
        if settings is None:
            return False

        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.settings_path, 'w', encoding='utf-8') as f:
                json.dump(self._to_dict(settings), f, indent=2)

            self._settings = settings
            return True

        except OSError as e:
            logging.warning(f"SettingsManager - Could not save {self.settings_path}: {e}")
            return False

    def reset(self) -> TreePatchSettings:
        """Reset to default settings."""
        self._settings = TreePatchSettings()
        self.save()
        return self._settings

    def _to_dict(self, settings: TreePatchSettings) -> dict:
        """Convert settings to dictionary for JSON serialization."""
        return asdict(settings)

    def _from_dict(self, data: dict) -> TreePatchSettings:
        """Convert dictionary back to settings, ignoring unknown keys."""
        if not isinstance(data, dict):
            raise ValueError("Settings root must be an object")

        known = {f.name for f in fields(TreePatchSettings)}
        values: dict[str, Any] = {k: v for k, v in data.items() if k in known}

        settings = TreePatchSettings(**values)

        if not isinstance(settings.context_lines, int) or settings.context_lines < 0:
            raise ValueError(f"Invalid context_lines: {settings.context_lines!r}")
        if not isinstance(settings.default_skip_patterns, list):
            raise ValueError("default_skip_patterns must be a list")

        return settings
