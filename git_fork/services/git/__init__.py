"""Git-related services for git-fork."""

from .worktrees import WorktreeService, parse_worktree_porcelain
from .merge_detector import MergeDetector

__all__ = [
    "WorktreeService",
    "MergeDetector",
    "parse_worktree_porcelain",
]
