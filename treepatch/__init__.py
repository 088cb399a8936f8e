"""
Directory tree comparison, diffing and patching.
"""

__version__ = "1.0.0"
