"""Data models for git-fork."""

from .worktree import WorktreeInfo, WorktreeStatus
from .container import ContainerState, ImageSource

__all__ = ["WorktreeInfo", "WorktreeStatus", "ContainerState", "ImageSource"]
