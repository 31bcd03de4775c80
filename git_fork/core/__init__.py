"""Command handlers for git-fork."""

from .worktree_keeper import WorktreeKeeper

__all__ = ["WorktreeKeeper"]
