"""Merge detection service for git-fork."""

import git

from git_fork.utils.logging import get_logger
from git_fork.utils.probes import first_match

logger = get_logger(__name__)


class MergeDetector:
    """Service for detecting if branches have been merged.

    A branch is merged into a base when every commit reachable from the
    branch is also reachable from the base. Nothing is cached: state is
    re-derived from git on every call.
    """

    def __init__(self, repo_path: str):
        """Initialize the merge detector.

        Args:
            repo_path: Path to the main repository
        """
        self.repo_path = repo_path
        logger.debug("Merge detector initialized")

    def _get_repo(self):
        """Get a fresh git.Repo instance.

        GitPython repos are lightweight - they don't clone, just open the existing repo.

        Returns:
            git.Repo: A fresh repository instance
        """
        return git.Repo(self.repo_path)

    def _ref_exists(self, repo: git.Repo, ref_name: str) -> bool:
        try:
            repo.git.rev_parse("--verify", "--quiet", f"{ref_name}^{{commit}}")
            return True
        except git.exc.GitCommandError:
            return False

    def is_branch_merged(self, branch_name: str, base: str = "main") -> bool:
        """Check if a branch's history is fully contained in base.

        Missing branch or base refs count as not merged.
        """
        repo = self._get_repo()
        try:
            for ref_name in (branch_name, base):
                if not self._ref_exists(repo, ref_name):
                    logger.debug(f"Ref {ref_name} not found, treating {branch_name} as unmerged")
                    return False

            # Cheapest check first
            merged = first_match([
                lambda: self._check_fast_revlist(repo, branch_name, base),
                lambda: self._check_ancestor(repo, branch_name, base),
            ])
            return merged is True
        finally:
            repo.close()

    def _check_fast_revlist(self, repo: git.Repo, branch_name: str, base: str):
        """Method 1: no commits on branch that base lacks."""
        logger.debug("[Method 1] Using fast rev-list check...")
        try:
            result = repo.git.rev_list("--count", f"{base}..{branch_name}")
            if result.strip() == "0":
                logger.debug(f"[Method 1] Branch {branch_name} is merged into {base} (fast rev-list)")
                return True
        except git.exc.GitCommandError as e:
            logger.debug(f"[Method 1] Error running rev-list: {e}")

        return None

    def _check_ancestor(self, repo: git.Repo, branch_name: str, base: str):
        """Method 2: branch tip is an ancestor of base."""
        logger.debug("[Method 2] Checking if branch tip is ancestor...")
        try:
            if repo.is_ancestor(branch_name, base):
                logger.debug(f"[Method 2] Branch {branch_name} is merged into {base} (tip is ancestor)")
                return True
        except git.exc.GitCommandError as e:
            logger.debug(f"[Method 2] Error checking ancestor: {e}")

        return None
