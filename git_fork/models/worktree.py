"""Worktree data models."""

from dataclasses import dataclass


@dataclass
class WorktreeInfo:
    """Information about a git worktree."""

    path: str
    branch_name: str  # Empty for detached HEAD
    commit_sha: str
    is_main: bool  # Is this the main working tree?
    is_orphaned: bool  # Directory missing?

    def __str__(self) -> str:
        """String representation of worktree."""
        status = "orphaned" if self.is_orphaned else "active"
        main_marker = " (main)" if self.is_main else ""
        return f"{self.branch_name} @ {self.path}{main_marker} [{status}]"


@dataclass
class WorktreeStatus:
    """Merge and dirty state of a fork, computed at listing time."""

    worktree: WorktreeInfo
    merged: bool
    dirty: bool

    @property
    def branch_name(self) -> str:
        return self.worktree.branch_name

    @property
    def path(self) -> str:
        return self.worktree.path

    @property
    def removable(self) -> bool:
        """True when clean would remove this worktree."""
        return self.merged and not self.dirty

    @property
    def merge_label(self) -> str:
        return "merged" if self.merged else "unmerged"

    @property
    def dirty_label(self) -> str:
        return "dirty" if self.dirty else "clean"
