"""Custom exceptions for git-fork"""

from typing import Optional

from git_fork.constants import EXIT_FAILURE, EXIT_MISSING_DEPENDENCY


class ForkError(Exception):
    """Base exception for all git-fork errors."""

    exit_code = EXIT_FAILURE


class ConfigError(ForkError, ValueError):
    """Exception raised for invalid configuration values."""
    pass


class InvalidArgumentError(ForkError):
    """Exception raised for bad flags or command usage."""
    pass


class MissingDependencyError(ForkError):
    """Exception raised when a required external binary is not on PATH."""

    exit_code = EXIT_MISSING_DEPENDENCY

    def __init__(self, binary: str):
        self.binary = binary
        super().__init__(f"{binary} is required on PATH")


class NotARepositoryError(ForkError):
    """Exception raised when no git repository is found upward from a directory."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        super().__init__("not in a git repository")


class GitOperationError(ForkError):
    """Exception raised for errors in Git operations."""

    def __init__(self, operation: str, branch: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.branch = branch
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if branch:
            error_msg += f" for branch '{branch}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class WorktreeNotFoundError(GitOperationError):
    """Exception raised when no worktree exists for a branch."""

    def __init__(self, branch: str):
        super().__init__("find_worktree", branch, "Worktree not found")

    def __str__(self) -> str:
        return f"worktree for '{self.branch}' does not exist"


class WorktreeExistsError(GitOperationError):
    """Exception raised when creating a worktree that is already registered."""

    def __init__(self, branch: str, path: str):
        self.path = path
        super().__init__("create_worktree", branch, "Worktree already exists")

    def __str__(self) -> str:
        return f"worktree for '{self.branch}' already exists at {self.path}"


class BranchNotMergedError(GitOperationError):
    """Exception raised when removing the worktree of an unmerged branch."""

    def __init__(self, branch: str, base: str):
        self.base = base
        super().__init__("remove_worktree", branch, f"Branch is not merged into {base}")

    def __str__(self) -> str:
        return f"branch '{self.branch}' is not merged. Use -f to force removal."


class DirtyWorktreeError(GitOperationError):
    """Exception raised when removing a worktree with uncommitted changes."""

    def __init__(self, branch: str):
        super().__init__("remove_worktree", branch, "Worktree has uncommitted changes")

    def __str__(self) -> str:
        return f"worktree '{self.branch}' has uncommitted changes. Use -f to force removal."


class ContainerError(ForkError):
    """Base exception for container runtime errors."""
    pass


class RuntimeUnavailableError(ContainerError):
    """Exception raised when the configured container runtime is not installed."""

    def __init__(self, runtime: str):
        self.runtime = runtime
        super().__init__(f"Container runtime is not available. Please install {runtime}.")


class ContainerOperationError(ContainerError):
    """Exception raised when a container runtime command fails."""

    def __init__(self, operation: str, target: str, message: Optional[str] = None):
        self.operation = operation
        self.target = target
        self.message = message

        error_msg = f"failed to {operation}: {target}"
        if message:
            error_msg += f" ({message})"

        super().__init__(error_msg)


class ContainerCreateError(ContainerOperationError):
    """Exception raised when a container cannot be created."""

    def __init__(self, container: str, message: Optional[str] = None):
        super().__init__("create container", container, message)


class ContainerStartError(ContainerOperationError):
    """Exception raised when an existing container cannot be started."""

    def __init__(self, container: str, message: Optional[str] = None):
        super().__init__("start container", container, message)


class ContainerStopError(ContainerOperationError):
    """Exception raised when a running container cannot be stopped."""

    def __init__(self, container: str, message: Optional[str] = None):
        super().__init__("stop container", container, message)


class ContainerRemoveError(ContainerOperationError):
    """Exception raised when a container cannot be removed."""

    def __init__(self, container: str, message: Optional[str] = None):
        super().__init__("remove container", container, message)


class ImageBuildError(ContainerOperationError):
    """Exception raised when an image cannot be built from a Dockerfile."""

    def __init__(self, dockerfile: str, message: Optional[str] = None):
        self.dockerfile = dockerfile
        super().__init__("build image from Dockerfile", dockerfile, message)
