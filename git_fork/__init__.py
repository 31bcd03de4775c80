"""
git-fork - Manage git worktrees in a standard layout
"""

from .__version__ import __version__
from .cli.main import main

__all__ = ["main", "__version__"]
