"""Worktree operations service for git-fork."""

import git
import os
from typing import Optional, Dict, Any, List, Tuple, TYPE_CHECKING

from git_fork.constants import DEFAULT_REMOTE
from git_fork.exceptions import (
    BranchNotMergedError,
    DirtyWorktreeError,
    GitOperationError,
    WorktreeExistsError,
    WorktreeNotFoundError,
)
from git_fork.models.worktree import WorktreeInfo
from git_fork.services.display_service import DisplayService
from git_fork.services.git.merge_detector import MergeDetector
from git_fork.utils.logging import get_logger
from git_fork.utils.probes import first_match

if TYPE_CHECKING:
    from git_fork.services.repository import RepositoryContext

logger = get_logger(__name__)


def describe_git_error(command: str, error: git.exc.GitCommandError) -> str:
    """Extract a readable message from a GitCommandError."""
    stderr = (error.stderr if hasattr(error, "stderr") else str(error)).strip()
    status = error.status if hasattr(error, "status") else "unknown"

    # GitPython prefixes captured stderr with "stderr: '...'"
    if stderr.startswith("stderr:"):
        stderr = stderr[len("stderr:"):].strip().strip("'").strip()

    if stderr:
        return f"{command} failed (exit {status}): {stderr}"
    return f"{command} failed with exit code {status}"


def parse_worktree_porcelain(output: str) -> List[WorktreeInfo]:
    """Parse ``git worktree list --porcelain`` output.

    Format:
        worktree /path/to/worktree
        HEAD commit_sha
        branch refs/heads/branch-name   (or "detached")
        (blank line between worktrees)

    The first entry is always the main worktree.
    """
    worktree_list: List[WorktreeInfo] = []
    current: Dict[str, Any] = {}

    def flush():
        path = current.get("path", "")
        if path:
            worktree_list.append(
                WorktreeInfo(
                    path=path,
                    branch_name=current.get("branch", ""),
                    commit_sha=current.get("HEAD", ""),
                    is_main=not worktree_list,
                    is_orphaned=not os.path.exists(path),
                )
            )
        current.clear()

    for line in output.split("\n"):
        line = line.strip()

        if not line:
            # Empty line marks end of worktree entry
            flush()
            continue

        if line.startswith("worktree "):
            current["path"] = line.split(" ", 1)[1]
        elif line.startswith("HEAD "):
            current["HEAD"] = line.split(" ", 1)[1]
        elif line.startswith("branch "):
            branch_ref = line.split(" ", 1)[1]
            if branch_ref.startswith("refs/heads/"):
                current["branch"] = branch_ref[len("refs/heads/"):]
            else:
                current["branch"] = ""
        elif line == "detached":
            current["branch"] = ""

    # Handle last entry if no trailing blank line
    flush()
    return worktree_list


class WorktreeService:
    """Service for managing fork worktrees through git's worktree registry."""

    def __init__(
        self,
        context: "RepositoryContext",
        merge_detector: Optional[MergeDetector] = None,
        display: Optional[DisplayService] = None,
        remote_name: str = DEFAULT_REMOTE,
    ):
        """Initialize the worktree service.

        Args:
            context: Resolved repository locations
            merge_detector: Merge classifier used by the removal safety gate
            display: Where notices are written
            remote_name: Remote consulted for tracking branches
        """
        self.context = context
        self.repo_path = context.main_root
        self.merge_detector = merge_detector or MergeDetector(context.main_root)
        self.display = display or DisplayService()
        self.remote_name = remote_name

    def _get_repo(self):
        """Get a fresh git.Repo instance for the main repository.

        Returns:
            git.Repo: A fresh repository instance
        """
        return git.Repo(self.repo_path)

    def list_worktrees(self) -> List[WorktreeInfo]:
        """Get detailed information about all registered worktrees.

        Returns:
            List of WorktreeInfo objects, main worktree first
        """
        repo = self._get_repo()
        try:
            output = repo.git.worktree("list", "--porcelain")
        except git.exc.GitCommandError as e:
            raise GitOperationError("list_worktrees", message=describe_git_error("git worktree list", e))
        finally:
            repo.close()

        worktree_list = parse_worktree_porcelain(output)
        logger.debug(f"Found {len(worktree_list)} worktrees")
        for wt in worktree_list:
            logger.debug(f"  {wt}")
        return worktree_list

    def list_forks(self) -> List[WorktreeInfo]:
        """Registered worktrees with a branch that live under the worktree base."""
        prefix = self.context.worktree_base.rstrip(os.sep) + os.sep
        return [
            wt for wt in self.list_worktrees()
            if wt.branch_name and os.path.realpath(wt.path).startswith(prefix)
        ]

    def exists(self, branch: str) -> bool:
        """True iff the branch's directory exists and git lists that exact path."""
        path = self.context.worktree_path(branch)
        if not os.path.isdir(path):
            return False

        target = os.path.realpath(path)
        return any(os.path.realpath(wt.path) == target for wt in self.list_worktrees())

    def _ref_exists(self, repo: git.Repo, ref: str) -> bool:
        try:
            repo.git.show_ref("--verify", "--quiet", ref)
            return True
        except git.exc.GitCommandError:
            return False

    def branch_exists(self, repo: git.Repo, branch: str) -> bool:
        return self._ref_exists(repo, f"refs/heads/{branch}")

    def remote_branch_exists(self, repo: git.Repo, branch: str) -> bool:
        return self._ref_exists(repo, f"refs/remotes/{self.remote_name}/{branch}")

    def _resolve_add_args(
        self, repo: git.Repo, branch: str, base_branch: str, path: str
    ) -> Tuple[List[str], Optional[str]]:
        """Pick the `git worktree add` arguments for a new fork.

        Resuming existing work wins over branching fresh from base: a remote
        branch is tracked, a local branch is checked out as-is, and only then
        is a new branch cut from the remote or local base.

        Returns:
            The add arguments and, when a local branch must catch up with its
            remote after checkout, the ref to fast-forward to.

        Raises:
            GitOperationError: If the local branch cannot fast-forward to the
                remote branch of the same name
        """
        remote_branch = f"{self.remote_name}/{branch}"
        remote_base = f"{self.remote_name}/{base_branch}"

        def track_remote():
            if not self.remote_branch_exists(repo, branch):
                return None
            if not self.branch_exists(repo, branch):
                logger.debug(f"Tracking remote branch {remote_branch}")
                return ["--track", "-b", branch, path, remote_branch], None
            if not repo.is_ancestor(branch, remote_branch):
                raise GitOperationError(
                    "create_worktree", branch,
                    f"local branch has diverged from {remote_branch} or holds unpushed "
                    f"commits; reconcile it before creating the worktree",
                )
            logger.debug(f"Using local branch {branch}, fast-forwarding to {remote_branch}")
            return [path, branch], remote_branch

        def use_local():
            if self.branch_exists(repo, branch):
                logger.debug(f"Using existing local branch {branch}")
                return [path, branch], None
            return None

        def from_remote_base():
            if self.remote_branch_exists(repo, base_branch):
                logger.debug(f"Creating {branch} from {remote_base}")
                return ["--no-track", "-b", branch, path, remote_base], None
            return None

        def from_local_base():
            logger.debug(f"Creating {branch} from {base_branch}")
            return ["-b", branch, path, base_branch], None

        return first_match([track_remote, use_local, from_remote_base, from_local_base])

    def _fast_forward(self, path: str, ref: str) -> None:
        worktree_repo = git.Repo(path)
        try:
            worktree_repo.git.merge("--ff-only", ref)
        finally:
            worktree_repo.close()

    def create(self, branch: str, base_branch: str) -> str:
        """Create the fork worktree for a branch.

        Args:
            branch: Branch to check out
            base_branch: Branch to start from when the branch exists nowhere

        Returns:
            Path of the new worktree

        Raises:
            WorktreeExistsError: If the worktree is already registered
            GitOperationError: If git refuses to add the worktree, or the
                local branch has diverged from its remote counterpart
        """
        path = self.context.worktree_path(branch)

        if self.exists(branch):
            raise WorktreeExistsError(branch, path)

        os.makedirs(self.context.worktree_base, exist_ok=True)

        repo = self._get_repo()
        try:
            args, fast_forward_ref = self._resolve_add_args(repo, branch, base_branch, path)
            repo.git.worktree("add", *args)
            if fast_forward_ref:
                self._fast_forward(path, fast_forward_ref)
        except git.exc.GitCommandError as e:
            error_msg = describe_git_error("git worktree add", e)
            logger.error(f"Failed to create worktree at {path}: {error_msg}")
            raise GitOperationError("create_worktree", branch, error_msg)
        finally:
            repo.close()

        self.display.notice(f"Created worktree: {path}")
        return path

    def get_worktree_status_details(self, worktree_path: str) -> Dict[str, bool]:
        """Get the file status flags of a worktree.

        Three independent checks: unstaged changes to tracked files
        (``modified``), staged but uncommitted changes (``staged``) and
        untracked files not excluded by ignore rules (``untracked``).

        Raises:
            GitOperationError: If the worktree is missing or unreadable
        """
        if not os.path.isdir(worktree_path):
            raise GitOperationError(
                "check_status", message=f"worktree path {worktree_path} is not accessible"
            )

        try:
            repo = git.Repo(worktree_path)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise GitOperationError(
                "check_status", message=f"{worktree_path} is not a git worktree: {e}"
            )

        try:
            return {
                "modified": repo.is_dirty(index=False, working_tree=True, untracked_files=False),
                "staged": repo.is_dirty(index=True, working_tree=False, untracked_files=False),
                "untracked": bool(repo.untracked_files),
            }
        except git.exc.GitCommandError as e:
            error_msg = describe_git_error("git status", e)
            logger.warning(f"Could not check worktree status for {worktree_path}: {error_msg}")
            raise GitOperationError("check_status", message=error_msg)
        finally:
            repo.close()

    def is_dirty(self, worktree_path: str) -> bool:
        """True if the worktree has unstaged, staged or untracked changes."""
        return any(self.get_worktree_status_details(worktree_path).values())

    def remove_path(self, path: str) -> None:
        """Remove a worktree directory, forcing only if the soft removal fails.

        No safety gates are applied here; callers decide eligibility.
        """
        repo = self._get_repo()
        try:
            try:
                repo.git.worktree("remove", path)
            except git.exc.GitCommandError as e:
                logger.debug(f"Soft removal of {path} failed, forcing: {describe_git_error('git worktree remove', e)}")
                repo.git.worktree("remove", "--force", path)
            logger.info(f"Removed worktree at {path}")
        except git.exc.GitCommandError as e:
            error_msg = describe_git_error("git worktree remove", e)
            logger.error(f"Failed to remove worktree at {path}: {error_msg}")
            raise GitOperationError("remove_worktree", message=error_msg)
        finally:
            repo.close()

    def remove(self, branch: str, force: bool = False, base: str = "main") -> str:
        """Remove the fork worktree for a branch.

        Unless forced, the branch must be merged into base and the worktree
        must be clean. The merge gate is checked before the dirty gate.

        Returns:
            Path of the removed worktree

        Raises:
            WorktreeNotFoundError: If no worktree exists for the branch
            BranchNotMergedError: If not forced and the branch is unmerged
            DirtyWorktreeError: If not forced and the worktree has changes
        """
        path = self.context.worktree_path(branch)

        if not self.exists(branch):
            raise WorktreeNotFoundError(branch)

        if not force:
            if not self.merge_detector.is_branch_merged(branch, base):
                raise BranchNotMergedError(branch, base)

            if self.is_dirty(path):
                raise DirtyWorktreeError(branch)

        self.remove_path(path)
        self.display.notice(f"Removed worktree: {branch}")
        return path
