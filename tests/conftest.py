"""Pytest fixtures for git-fork tests"""
import logging
import os
import tempfile
from pathlib import Path
from unittest.mock import Mock
import pytest
import git

from git_fork.config import Config
from git_fork.services.container.runtime import ContainerRuntime
from git_fork.services.display_service import DisplayService


@pytest.fixture(autouse=True)
def clean_fork_env(monkeypatch):
    """Keep the developer's FORK_* settings out of the tests."""
    for name in list(os.environ):
        if name.startswith("FORK_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo handlers installed by setup_logging during CLI tests."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        # git reports worktree paths with symlinks resolved (macOS /tmp)
        yield Path(tmpdir).resolve()


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository named 'myrepo' on branch main."""
    repo_path = temp_dir / "myrepo"
    repo_path.mkdir()

    # Initialize repository
    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    # Create initial commit
    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    repo.git.branch("-M", "main")

    yield repo

    # Cleanup
    repo.close()


@pytest.fixture
def repo_path(git_repo):
    return Path(git_repo.working_dir)


@pytest.fixture
def forks_dir(temp_dir):
    """Default worktree base for the 'myrepo' fixture repository."""
    return temp_dir / "myrepo_forks"


@pytest.fixture
def git_repo_with_remote(git_repo, temp_dir):
    """Repository with a bare 'origin' that has main and a remote-only branch."""
    remote_path = temp_dir / "remote.git"
    git.Repo.init(remote_path, bare=True).close()

    git_repo.create_remote("origin", str(remote_path))
    git_repo.git.push("origin", "main")

    git_repo.git.checkout("-b", "remote-only")
    (Path(git_repo.working_dir) / "remote.txt").write_text("from the remote\n")
    git_repo.index.add(["remote.txt"])
    git_repo.index.commit("Remote-only work")
    git_repo.git.push("origin", "remote-only")

    git_repo.git.checkout("main")
    git_repo.git.branch("-D", "remote-only")
    git_repo.git.fetch("origin")

    yield git_repo


@pytest.fixture
def commit_file():
    """Commit a file in any checkout (main repository or worktree)."""

    def _commit(path, filename, content="content\n", message=None):
        path = Path(path)
        (path / filename).write_text(content)
        repo = git.Repo(path)
        try:
            repo.git.add(filename)
            repo.git.commit("-m", message or f"Add {filename}")
            return repo.head.commit.hexsha
        finally:
            repo.close()

    return _commit


@pytest.fixture
def fork_config():
    """Default configuration."""
    return Config()


@pytest.fixture
def unavailable_runtime():
    """Container runtime whose binary is not installed."""
    runtime = Mock(spec=ContainerRuntime)
    runtime.binary = "docker"
    runtime.is_available.return_value = False
    return runtime


@pytest.fixture
def mock_runtime():
    """Installed container runtime with no containers."""
    runtime = Mock(spec=ContainerRuntime)
    runtime.binary = "docker"
    runtime.is_available.return_value = True
    runtime.exists.return_value = False
    return runtime


@pytest.fixture
def make_keeper(repo_path, fork_config, unavailable_runtime):
    """Factory for WorktreeKeeper instances bound to the fixture repository."""
    from git_fork.core.worktree_keeper import WorktreeKeeper

    def _make(cwd=None, config=None, runtime=None, display=None):
        config = config or fork_config
        return WorktreeKeeper(
            str(cwd or repo_path),
            config,
            display=display or DisplayService(quiet=config.cd_mode),
            runtime=runtime or unavailable_runtime,
        )

    return _make
