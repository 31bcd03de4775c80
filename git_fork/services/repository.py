"""Repository location service for git-fork."""

import os
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import git

from git_fork.exceptions import NotARepositoryError
from git_fork.utils.logging import get_logger

if TYPE_CHECKING:
    from git_fork.config import Config

logger = get_logger(__name__)


@dataclass(frozen=True)
class RepositoryContext:
    """Resolved locations for one invocation."""

    cwd: str
    repo_root: str  # Top level of the checkout containing cwd (may be a worktree)
    main_root: str  # Top level of the main checkout
    repo_name: str
    worktree_base: str

    def worktree_path(self, branch: str) -> str:
        """Path of the worktree for a branch: always <worktree_base>/<branch>."""
        return os.path.join(self.worktree_base, branch)

    @property
    def current_branch(self) -> Optional[str]:
        """Branch of the fork containing cwd, if any."""
        return current_worktree_branch(self.cwd, self.worktree_base)


def current_worktree_branch(cwd: str, worktree_base: str) -> Optional[str]:
    """Derive the fork branch from a working directory.

    Returns the first path segment of ``cwd`` beneath ``worktree_base``, or
    None when ``cwd`` is not inside the worktree base.
    """
    base = os.path.normpath(worktree_base)
    current = os.path.normpath(cwd)

    prefix = base.rstrip(os.sep) + os.sep
    if not current.startswith(prefix):
        return None

    remainder = current[len(prefix):]
    branch = remainder.split(os.sep, 1)[0]
    return branch or None


class RepositoryLocator:
    """Resolves repository roots and the worktree base from a directory."""

    def __init__(self, cwd: str, config: "Config"):
        """Initialize the locator.

        Args:
            cwd: Directory the command was invoked from
            config: Configuration object
        """
        self.cwd = os.path.realpath(cwd)
        self.config = config

    def _open_repo(self) -> git.Repo:
        try:
            return git.Repo(self.cwd, search_parent_directories=True)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            logger.debug(f"No repository found from {self.cwd}: {e}")
            raise NotARepositoryError(self.cwd) from e

    def locate(self) -> RepositoryContext:
        """Resolve repository root, main root, name and worktree base.

        Raises:
            NotARepositoryError: If no repository is found upward from cwd
        """
        repo = self._open_repo()
        try:
            if repo.working_tree_dir is None:
                # Bare repositories have no checkout to fork from
                raise NotARepositoryError(self.cwd)

            repo_root = os.path.realpath(repo.working_tree_dir)
            # The common dir is shared by all worktrees; its parent is the main checkout
            common_dir = os.path.realpath(repo.common_dir)
            main_root = os.path.dirname(common_dir)
        finally:
            repo.close()

        repo_name = os.path.basename(main_root)
        # git reports worktree paths with symlinks resolved
        worktree_base = os.path.realpath(self.config.worktree_base_for(main_root, repo_name))

        context = RepositoryContext(
            cwd=self.cwd,
            repo_root=repo_root,
            main_root=main_root,
            repo_name=repo_name,
            worktree_base=worktree_base,
        )
        logger.debug(f"Located repository: {context}")
        return context
