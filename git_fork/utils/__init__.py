"""Utility functions for git-fork.

This package provides utility modules:
- logging: Logging configuration and logger creation
- probes: First-match evaluation of ordered fallback probes
"""

from .logging import setup_logging, get_logger, ColoredFormatter
from .probes import first_match

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "ColoredFormatter",
    # Probes
    "first_match",
]
