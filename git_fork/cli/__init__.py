"""CLI package for git-fork"""

from .main import main

__all__ = ["main"]
