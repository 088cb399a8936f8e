"""
Main entry point for the treepatch command line tool.

Usage::

    python main.py compare SRC DST
"""

import sys

from treepatch.cli import main


if __name__ == "__main__":
    sys.exit(main())
