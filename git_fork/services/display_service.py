"""Display service for fork output.

stdout carries only what the shell integration consumes (paths, container
exec commands, listings); everything meant for a human goes to stderr.
"""
import sys
from typing import List

from rich.console import Console
from rich.table import Table

from git_fork.constants import CLI_COLORS, COLUMNS, WorktreeStyleType
from git_fork.models.worktree import WorktreeStatus
from git_fork.utils.logging import get_logger

console = Console(stderr=True, soft_wrap=True, highlight=False, emoji=False)
table_console = Console(highlight=False, emoji=False)
logger = get_logger(__name__)


def get_worktree_style_type(status: WorktreeStatus) -> str:
    """Pick the row style for a listed worktree."""
    if status.removable:
        return WorktreeStyleType.REMOVABLE
    if status.dirty:
        return WorktreeStyleType.DIRTY
    return WorktreeStyleType.ACTIVE


def format_worktree_row(status: WorktreeStatus) -> str:
    """Tab-separated listing row: branch, merge state, dirty state, path."""
    return "\t".join(
        [status.branch_name, status.merge_label, status.dirty_label, status.path]
    )


class DisplayService:
    def __init__(self, quiet: bool = False):
        """
        Args:
            quiet: Suppress notices (shell-integration mode). Warnings and
                errors are always shown.
        """
        self.quiet = quiet

    def output(self, line: str) -> None:
        """Write a machine-readable line to stdout."""
        print(line, file=sys.stdout)

    def notice(self, message: str) -> None:
        """Progress and status messages for humans."""
        logger.debug(message)
        if not self.quiet:
            console.print(message, markup=False)

    def warning(self, message: str) -> None:
        console.print(f"Warning: {message}", style="yellow", markup=False)

    def error(self, message: str) -> None:
        console.print(f"Error: {message}", style="red", markup=False)

    def display_worktrees(self, statuses: List[WorktreeStatus]) -> None:
        """Show listed worktrees as a table on a terminal, tab-separated otherwise."""
        if not sys.stdout.isatty():
            for status in statuses:
                self.output(format_worktree_row(status))
            return

        table = Table()
        for col in COLUMNS:
            table.add_column(col.label, min_width=col.width or None)

        for status in statuses:
            row_style = CLI_COLORS.get(get_worktree_style_type(status))
            table.add_row(
                status.branch_name,
                status.merge_label,
                status.dirty_label,
                status.path,
                style=row_style,
            )

        table_console.print(table)
