"""
Indexing rules and pattern matching.

The rule file syntax is similar to .gitignore, with a '^' prefix for
content-only rules::

    # comment
    file      Ignore file anywhere (matched against the basename).
    dir/      Ignore directory and all subdirectories.
    dir/*     Ignore all files in directory, but not subdirectories.
    ^file     Ignore content changes in file, but not the file itself.
    ^dir/     Ignore content changes in the subtree, but check that the
              directory itself exists.
    !file     Do not ignore file.
    !^file    Do not ignore content changes in file.
"""

from __future__ import annotations

import fnmatch
import logging
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path

from treepatch.core.exceptions import RulesError

LINE_SPLIT_RE = re.compile(r'\r\n|\r|\n')


class PatternKind(Enum):
    """Shape of a rule pattern, decided when the pattern is compiled."""
    PREFIX = auto()     # 'dir/' - the whole subtree
    CHILDREN = auto()   # 'dir/*' - direct children only
    GLOB = auto()       # shell-style wildcards against the full path


@dataclass(frozen=True)
class PatternMatcher:
    """A single compiled rule pattern."""
    pattern: str
    kind: PatternKind
    regex: re.Pattern | None = field(default=None, compare=False, repr=False)

    @classmethod
    def compile(cls, pattern: str) -> 'PatternMatcher':
        if pattern.endswith('/'):
            return cls(pattern, PatternKind.PREFIX)

        if pattern.endswith('/*'):
            return cls(pattern, PatternKind.CHILDREN)

        if '/' in pattern:
            regex = cls._segment_glob_to_regex(pattern)
        else:
            # No separator: '*' may cross directory boundaries
            regex = fnmatch.translate(pattern)

        return cls(pattern, PatternKind.GLOB, re.compile(regex))

    def matches(self, path: str) -> bool:
        """Check a root-relative, '/'-separated path against the pattern."""
        if self.kind == PatternKind.PREFIX:
            return path.startswith(self.pattern)

        if self.kind == PatternKind.CHILDREN:
            parent = self.pattern[:-1]
            return path.startswith(parent) and path.count('/') == parent.count('/')

        return self.regex.match(path) is not None

    @staticmethod
    def _segment_glob_to_regex(pattern: str) -> str:
        """Convert a glob to a regex where '*' and '?' stay within one segment."""
        special = '.^$+{}|()\\'
        result = []
        i = 0

        while i < len(pattern):
            c = pattern[i]

            if c == '*':
                if i + 1 < len(pattern) and pattern[i + 1] == '*':
                    # ** matches anything including /
                    result.append('.*')
                    i += 2
                    continue
                result.append('[^/]*')
            elif c == '?':
                result.append('[^/]')
            elif c == '[':
                j = pattern.find(']', i + 2)
                if j == -1:
                    result.append('\\[')
                else:
                    body = pattern[i + 1:j]
                    if body.startswith('!'):
                        body = '^' + body[1:]
                    result.append('[' + body.replace('\\', '\\\\') + ']')
                    i = j
            elif c in special:
                result.append('\\' + c)
            else:
                result.append(c)

            i += 1

        return '(?s:' + ''.join(result) + r')\Z'


class Rules:
    """
    Ordered pattern lists used while indexing a directory.

    - global: matched against basenames; excludes unconditionally
    - include: overrides skip and ignore-content rules
    - skip: excludes matching paths
    - ignore_content: keeps matching paths but skips content comparison
    """

    def __init__(self):
        self.global_patterns: list[PatternMatcher] = []
        self.skip: list[PatternMatcher] = []
        self.include: list[PatternMatcher] = []
        self.ignore_content: list[PatternMatcher] = []

    def __repr__(self) -> str:
        return (f"Rules(global={len(self.global_patterns)}, skip={len(self.skip)}, "
                f"include={len(self.include)}, ignore_content={len(self.ignore_content)})")

    def copy(self) -> 'Rules':
        rules = Rules()
        rules.global_patterns = list(self.global_patterns)
        rules.skip = list(self.skip)
        rules.include = list(self.include)
        rules.ignore_content = list(self.ignore_content)
        return rules

    def add_global(self, pattern: str) -> 'Rules':
        self.global_patterns.append(PatternMatcher.compile(pattern))
        return self

    def add_skip(self, pattern: str) -> 'Rules':
        self.skip.append(PatternMatcher.compile(pattern))
        return self

    def add_include(self, pattern: str) -> 'Rules':
        self.include.append(PatternMatcher.compile(pattern))
        return self

    def add_ignore_content(self, pattern: str) -> 'Rules':
        self.ignore_content.append(PatternMatcher.compile(pattern))
        return self

    def has_skip(self, pattern: str) -> bool:
        return any(m.pattern == pattern for m in self.skip)

    def is_global_excluded(self, basename: str) -> bool:
        return self._any(self.global_patterns, basename)

    def is_included(self, path: str) -> bool:
        return self._any(self.include, path)

    def is_skipped(self, path: str) -> bool:
        return self._any(self.skip, path)

    def is_ignore_content(self, path: str) -> bool:
        return self._any(self.ignore_content, path)

    def parse(self, content: str) -> 'Rules':
        """Parse rule file content and append the rules to this instance."""
        for line in LINE_SPLIT_RE.split(content):
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            elif line.startswith('!^'):
                self.add_include(line[2:])
            elif line.startswith('!'):
                self.add_include(line[1:])
            elif line.startswith('^'):
                self.add_ignore_content(line[1:])
            elif '/' not in line:
                self.add_global(line)
            else:
                self.add_skip(line)

        return self

    @classmethod
    def from_file(cls, path: Path | str) -> 'Rules':
        """
        Create rules from a rule file.

        Raises:
            RulesError: If the file does not exist or cannot be read
        """
        path = Path(path)

        if not path.is_file():
            logging.error(f"Rules - Rule file not found: {path}")
            raise RulesError(f"File {path} does not exist.")

        try:
            content = path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logging.error(f"Rules - Could not read rule file {path}: {e}")
            raise RulesError(f"Failed to read the {path} file.") from e

        return cls().parse(content)

    @staticmethod
    def _any(matchers: list[PatternMatcher], path: str) -> bool:
        return any(m.matches(path) for m in matchers)
