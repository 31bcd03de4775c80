"""Core functionality for git-fork"""

import os
from typing import List, Optional, Sequence, Tuple

from git_fork.config import Config
from git_fork.constants import DIRTY_FILTERS, EXIT_FAILURE, EXIT_OK, MERGE_FILTERS
from git_fork.exceptions import (
    ForkError,
    GitOperationError,
    InvalidArgumentError,
    WorktreeNotFoundError,
)
from git_fork.models.worktree import WorktreeInfo, WorktreeStatus
from git_fork.services.container import ContainerManager, ContainerRuntime
from git_fork.services.display_service import DisplayService
from git_fork.services.git import MergeDetector, WorktreeService
from git_fork.services.repository import RepositoryLocator
from git_fork.utils.logging import get_logger

logger = get_logger(__name__)


class WorktreeKeeper:
    """Runs fork commands against the repository containing a directory.

    Every handler re-derives worktree, branch and container state from git
    and the container runtime; nothing is remembered between calls. Paths and
    container exec commands go to stdout, notices to stderr.
    """

    def __init__(
        self,
        cwd: str,
        config: Config,
        display: Optional[DisplayService] = None,
        runtime: Optional[ContainerRuntime] = None,
    ):
        """Initialize WorktreeKeeper.

        Args:
            cwd: Directory the command was invoked from
            config: Configuration object
            display: Output sink; notices are muted in shell-integration mode
            runtime: Container runtime (defaults to the configured binary)

        Raises:
            NotARepositoryError: If cwd is not inside a git repository
        """
        self.config = config
        self.display = display or DisplayService(quiet=config.cd_mode)
        self.context = RepositoryLocator(cwd, config).locate()

        self.merge_detector = MergeDetector(self.context.main_root)
        self.worktrees = WorktreeService(
            self.context, merge_detector=self.merge_detector, display=self.display
        )
        self.containers = ContainerManager(
            config, self.context, display=self.display, runtime=runtime
        )

    @property
    def base_branch(self) -> str:
        return self.config.base_branch

    def _container_mode(
        self, container: Optional[bool], keep_alive: Optional[bool]
    ) -> Tuple[bool, bool]:
        """Resolve container and keep-alive flags against the configuration."""
        use_container = self.config.container if container is None else container
        keep = self.config.container_keep_alive if keep_alive is None else keep_alive
        return bool(use_container), bool(keep)

    def _live_forks(self) -> List[WorktreeInfo]:
        """Forks under the worktree base whose directory still exists."""
        forks = []
        for wt in self.worktrees.list_forks():
            if wt.is_orphaned:
                self.display.warning(
                    f"skipping worktree '{wt.branch_name}': {wt.path} is missing "
                    "(run 'git worktree prune')"
                )
                continue
            forks.append(wt)
        return forks

    def _enter(
        self,
        branch: str,
        use_container: bool,
        keep_alive: bool,
        missing_notice: Optional[str] = None,
    ) -> None:
        """Print where the caller's shell should go: a path or an exec command."""
        path = self.context.worktree_path(branch)
        if not use_container:
            self.display.output(path)
            return

        source = self.containers.ensure(branch, path, keep_alive, missing_notice=missing_notice)
        image = source.image if source else None
        self.display.output(self.containers.exec_command(branch, path, keep_alive, image=image))

    def new(self, branches: Sequence[str], target: Optional[str] = None) -> int:
        """Create a worktree for each branch.

        A failure is reported and the remaining branches are still attempted.
        """
        if not branches:
            raise InvalidArgumentError("Usage: fork new <branch>... [-t|--target <base>]")

        base = target or self.base_branch
        failed = False
        for branch in branches:
            try:
                self.worktrees.create(branch, base)
            except ForkError as e:
                self.display.error(str(e))
                failed = True

        return EXIT_FAILURE if failed else EXIT_OK

    def checkout(
        self,
        branch: str,
        container: Optional[bool] = None,
        keep_alive: Optional[bool] = None,
    ) -> int:
        """Switch to an existing worktree.

        Raises:
            WorktreeNotFoundError: If the branch has no worktree
        """
        if not self.worktrees.exists(branch):
            raise WorktreeNotFoundError(branch)

        use_container, keep = self._container_mode(container, keep_alive)
        self._enter(
            branch,
            use_container,
            keep,
            missing_notice=f"Container does not exist for '{branch}', creating...",
        )

        if use_container:
            self.display.notice(f"Switched to container for worktree '{branch}'")
        else:
            self.display.notice(f"Switched to worktree '{branch}'")
        return EXIT_OK

    def go(
        self,
        branch: str,
        target: Optional[str] = None,
        container: Optional[bool] = None,
        keep_alive: Optional[bool] = None,
    ) -> int:
        """Switch to a worktree, creating it first when it does not exist."""
        created = False
        if not self.worktrees.exists(branch):
            self.worktrees.create(branch, target or self.base_branch)
            created = True

        use_container, keep = self._container_mode(container, keep_alive)
        self._enter(branch, use_container, keep)

        if created and use_container:
            self.display.notice(f"Created worktree and container for '{branch}'")
        elif created:
            self.display.notice(f"Created and switched to worktree '{branch}'")
        elif use_container:
            self.display.notice(f"Switched to container for worktree '{branch}'")
        else:
            self.display.notice(f"Switched to worktree '{branch}'")
        return EXIT_OK

    def main(self) -> int:
        """Print the main repository root."""
        self.display.output(self.context.main_root)
        self.display.notice("Switched to main worktree")
        return EXIT_OK

    def _removal_targets(self, branches: Sequence[str], remove_all: bool) -> List[str]:
        if remove_all:
            return [wt.branch_name for wt in self._live_forks()]

        if branches:
            return list(branches)

        current = self.context.current_branch
        if not current:
            raise InvalidArgumentError("not in a worktree and no branch specified")
        return [current]

    def remove(
        self,
        branches: Sequence[str] = (),
        force: bool = False,
        remove_all: bool = False,
        container: Optional[bool] = None,
    ) -> int:
        """Remove fork worktrees and print the main root as the return path.

        Targets are the given branches, every fork with ``remove_all``, or the
        worktree containing cwd. Each target is attempted even when an earlier
        one fails; its container is removed only if the worktree was.
        """
        targets = self._removal_targets(branches, remove_all)
        if not targets:
            self.display.notice("No worktrees to remove")
            return EXIT_OK

        remove_containers = self.config.container if container is None else container
        return_path = self.context.main_root

        failed = False
        for branch in targets:
            try:
                self.worktrees.remove(branch, force=force, base=self.base_branch)
            except ForkError as e:
                self.display.error(str(e))
                failed = True
                continue

            if remove_containers:
                self.containers.remove(branch)

        self.display.output(return_path)
        self.display.notice(f"Return path: {return_path}")
        return EXIT_FAILURE if failed else EXIT_OK

    def _status_of(self, wt: WorktreeInfo) -> WorktreeStatus:
        return WorktreeStatus(
            worktree=wt,
            merged=self.merge_detector.is_branch_merged(wt.branch_name, self.base_branch),
            dirty=self.worktrees.is_dirty(wt.path),
        )

    def list(self, merge_filter: str = "all", dirty_filter: str = "all") -> int:
        """List forks with their merge and dirty state.

        Args:
            merge_filter: all, merged or unmerged
            dirty_filter: all, dirty or clean
        """
        if merge_filter not in MERGE_FILTERS:
            raise InvalidArgumentError(f"unknown merge filter: {merge_filter}")
        if dirty_filter not in DIRTY_FILTERS:
            raise InvalidArgumentError(f"unknown dirty filter: {dirty_filter}")

        statuses = []
        for wt in self._live_forks():
            status = self._status_of(wt)
            if merge_filter == "merged" and not status.merged:
                continue
            if merge_filter == "unmerged" and status.merged:
                continue
            if dirty_filter == "dirty" and not status.dirty:
                continue
            if dirty_filter == "clean" and status.dirty:
                continue
            statuses.append(status)

        if not statuses:
            self.display.output("No worktrees found")
            return EXIT_OK

        self.display.display_worktrees(statuses)
        return EXIT_OK

    def _clean_one(self, wt: WorktreeInfo) -> bool:
        try:
            self.worktrees.remove_path(wt.path)
        except GitOperationError as e:
            self.display.error(str(e))
            return False

        self.display.notice(f"Removed worktree: {wt.branch_name}")
        self.containers.remove(wt.branch_name)
        return True

    def clean(self) -> int:
        """Remove every fork that is merged and has no local changes.

        The fork containing cwd is removed last, after which the main root is
        printed so the caller's shell can leave the deleted directory.
        """
        current = self.context.current_branch
        current_path = (
            os.path.realpath(self.context.worktree_path(current)) if current else None
        )

        queue: List[WorktreeInfo] = []
        deferred: Optional[WorktreeInfo] = None
        for wt in self._live_forks():
            try:
                status = self._status_of(wt)
            except GitOperationError as e:
                self.display.warning(f"skipping worktree '{wt.branch_name}': {e}")
                continue

            if not status.removable:
                logger.debug(f"Keeping {wt.branch_name} (merged={status.merged}, dirty={status.dirty})")
                continue

            if wt.branch_name == current and os.path.realpath(wt.path) == current_path:
                deferred = wt
            else:
                queue.append(wt)

        removed = 0
        failed = False
        for wt in queue:
            if self._clean_one(wt):
                removed += 1
            else:
                failed = True

        if deferred is not None:
            if self._clean_one(deferred):
                removed += 1
                self.display.output(self.context.main_root)
                self.display.notice(f"Return path: {self.context.main_root}")
            else:
                failed = True

        if not removed:
            self.display.notice("No worktrees removed")

        return EXIT_FAILURE if failed else EXIT_OK
