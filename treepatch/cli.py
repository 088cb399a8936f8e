"""
Command line interface.

This module handles:
- Command line argument parsing
- Logging configuration
- Settings loading
- Dispatch to the tree operations
- Conversion of errors to exit codes
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Optional, List

from treepatch import __version__, operations
from treepatch.core.exceptions import TreePatchError
from treepatch.core.folder.comparer import RenderOptions
from treepatch.services.file_io import skip_binary
from treepatch.services.settings import SettingsManager, TreePatchSettings


# =============================================================================
# Constants
# =============================================================================

APP_NAME = "treepatch"

EXIT_OK = 0
EXIT_DIFFERENCES = 1
EXIT_ERROR = 2


# =============================================================================
# Enums
# =============================================================================

class Command(Enum):
    """Sub-command to run."""
    COMPARE = auto()
    DIFF = auto()
    SYNC = auto()
    PATCH = auto()


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class CommandLineArgs:
    """Parsed command line arguments."""
    command: Command
    paths: tuple[str, ...]
    skip_binary: bool = False
    config_file: Optional[str] = None
    log_level: Optional[str] = None
    log_file: Optional[str] = None
    show_diff: bool = True
    diff_limit: Optional[int] = None
    copy_empty_dirs: bool = False


# =============================================================================
# Logging Setup
# =============================================================================

class LogFormatter(logging.Formatter):
    """Log formatter that colors whole records by level on a terminal."""

    LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
    DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

    COLORS = {
        logging.DEBUG: '\033[2m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[1;31m',
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True, stream=None):
        super().__init__(fmt=self.LOG_FORMAT, datefmt=self.DATE_FORMAT)
        stream = stream or sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        color = self.COLORS.get(record.levelno) if self.use_colors else None
        return f"{color}{formatted}{self.RESET}" if color else formatted


def _make_handler(handler: logging.Handler, level: int, use_colors: bool) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(LogFormatter(use_colors, getattr(handler, 'stream', None)))
    return handler


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure the root logger for a command run.

    Records go to stderr so that reports printed on stdout can be piped.
    Calling this again replaces the handlers of the previous call.

    Args:
        level: Log level name; unknown names fall back to INFO
        log_file: Optional file that receives an uncolored copy of each record

    Returns:
        Root logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers = [_make_handler(logging.StreamHandler(sys.stderr), numeric_level, True)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _make_handler(logging.FileHandler(log_file, encoding='utf-8'), numeric_level, False)
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers[:] = handlers

    # chardet logs every probe at DEBUG
    logging.getLogger('chardet').setLevel(logging.WARNING)

    return root_logger


# =============================================================================
# Argument Parsing
# =============================================================================

def parse_arguments(args: Optional[List[str]] = None) -> CommandLineArgs:
    """
    Parse command line arguments.

    Args:
        args: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '--skip-binary',
        action='store_true',
        help='Leave binary files out of the comparison'
    )
    common.add_argument(
        '-c', '--config',
        help='Settings file path'
    )
    common.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default=None,
        help='Logging level (defaults to the configured level)'
    )
    common.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    common.add_argument(
        '--log-file',
        help='Also write log output to this file'
    )

    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Compare directory trees and replay their differences as patches",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s compare template project          Report differences
  %(prog)s diff template project patches     Record local changes
  %(prog)s patch template-v2 patches out     Replay changes on a new baseline
        """
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    compare_parser = subparsers.add_parser('compare', parents=[common], help='Report differences')
    compare_parser.add_argument('src', help='Left directory')
    compare_parser.add_argument('dst', help='Right directory')
    compare_parser.add_argument(
        '--no-diff',
        action='store_true',
        help='List differing files without their diffs'
    )
    compare_parser.add_argument(
        '--diff-limit',
        type=int,
        default=None,
        help='Number of files to show diffs for (0 for all)'
    )

    diff_parser = subparsers.add_parser('diff', parents=[common], help='Write differences to a directory')
    diff_parser.add_argument('baseline', help='Baseline directory')
    diff_parser.add_argument('destination', help='Modified directory')
    diff_parser.add_argument('output', help='Diff directory to write')

    sync_parser = subparsers.add_parser('sync', parents=[common], help='Copy indexed files')
    sync_parser.add_argument('src', help='Source directory')
    sync_parser.add_argument('dst', help='Destination directory')
    sync_parser.add_argument(
        '--copy-empty-dirs',
        action='store_true',
        help='Create empty directories'
    )

    patch_parser = subparsers.add_parser('patch', parents=[common], help='Apply a diff directory')
    patch_parser.add_argument('baseline', help='Baseline directory')
    patch_parser.add_argument('diff', help='Diff directory')
    patch_parser.add_argument('output', help='Directory to create')

    parsed = parser.parse_args(args)
    command = Command[parsed.command.upper()]

    if command == Command.COMPARE:
        paths = (parsed.src, parsed.dst)
    elif command == Command.DIFF:
        paths = (parsed.baseline, parsed.destination, parsed.output)
    elif command == Command.SYNC:
        paths = (parsed.src, parsed.dst)
    else:
        paths = (parsed.baseline, parsed.diff, parsed.output)

    log_level = 'DEBUG' if parsed.verbose else parsed.log_level

    return CommandLineArgs(
        command=command,
        paths=paths,
        skip_binary=parsed.skip_binary,
        config_file=parsed.config,
        log_level=log_level,
        log_file=parsed.log_file,
        show_diff=not getattr(parsed, 'no_diff', False),
        diff_limit=getattr(parsed, 'diff_limit', None),
        copy_empty_dirs=getattr(parsed, 'copy_empty_dirs', False),
    )


# =============================================================================
# Commands
# =============================================================================

def run_command(args: CommandLineArgs, settings: TreePatchSettings) -> int:
    """Run the selected command and return its exit code."""
    callback = skip_binary if args.skip_binary else None

    if args.command == Command.COMPARE:
        src, dst = args.paths
        comparer = operations.compare(src, dst, before_match_content=callback, settings=settings)
        limit = args.diff_limit if args.diff_limit is not None else settings.show_diff_file_limit
        if limit is not None and limit <= 0:
            limit = None
        report = comparer.render(RenderOptions(
            show_diff=args.show_diff,
            show_diff_file_limit=limit,
            context_lines=settings.context_lines,
        ))
        if report is None:
            print("No differences found.")
            return EXIT_OK
        sys.stdout.write(report)
        return EXIT_DIFFERENCES

    if args.command == Command.DIFF:
        baseline, destination, output = args.paths
        written = operations.diff(baseline, destination, output, callback, settings)
        print(f"Differences written to {output}" if written else "No differences found.")
        return EXIT_OK

    if args.command == Command.SYNC:
        src, dst = args.paths
        copy_empty_dirs = args.copy_empty_dirs or settings.copy_empty_dirs
        syncer = operations.sync(src, dst, settings.dir_permissions, copy_empty_dirs, callback, settings)
        print(f"Synced {syncer.result.files_written + syncer.result.paths_copied} path(s) to {dst}")
        return EXIT_OK

    baseline, diff_dir, output = args.paths
    count = operations.patch(baseline, diff_dir, output, callback, settings)
    print(f"Patched {count} file(s) in {output}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    Application main entry point.

    Returns:
        Exit code (0 for success)
    """
    args = parse_arguments(argv)

    setup_logging(args.log_level or 'WARNING')

    try:
        settings = SettingsManager(args.config_file, strict=bool(args.config_file)).settings
    except TreePatchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    log_file = Path(args.log_file) if args.log_file else None
    logger = setup_logging(args.log_level or settings.log_level, log_file)
    logger.debug(f"Starting {APP_NAME} v{__version__}: {args.command.name.lower()}")

    try:
        return run_command(args, settings)
    except (TreePatchError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
