"""Container runtime wrapper for git-fork.

Docker and Podman share the command-line surface used here, so one class
drives either binary.
"""

import os
import shutil
import subprocess
from typing import List

from git_fork.constants import CONTAINER_KEEP_ALIVE_SCRIPT, CONTAINER_SHELL
from git_fork.exceptions import (
    ContainerCreateError,
    ContainerOperationError,
    ContainerRemoveError,
    ContainerStartError,
    ContainerStopError,
    ImageBuildError,
    RuntimeUnavailableError,
)
from git_fork.models.container import ContainerState
from git_fork.utils.logging import get_logger

logger = get_logger(__name__)


def _stderr_of(error: subprocess.CalledProcessError) -> str:
    return (error.stderr or "").strip()


class ContainerRuntime:
    """Runs container lifecycle commands against docker or podman."""

    def __init__(self, binary: str = "docker"):
        """
        Args:
            binary: Runtime executable name (docker or podman)
        """
        self.binary = binary

    def is_available(self) -> bool:
        """Check the runtime binary is on PATH."""
        return shutil.which(self.binary) is not None

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        cmd = [self.binary, *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            return subprocess.run(cmd, check=True, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise RuntimeUnavailableError(self.binary) from e

    def list_names(self, include_stopped: bool = True) -> List[str]:
        """Names of containers known to the runtime."""
        args = ["ps", "--format", "{{.Names}}"]
        if include_stopped:
            args.insert(1, "-a")

        try:
            result = self._run(*args)
        except subprocess.CalledProcessError as e:
            raise ContainerOperationError("list containers", self.binary, _stderr_of(e))

        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def exists(self, name: str) -> bool:
        return name in self.list_names(include_stopped=True)

    def is_running(self, name: str) -> bool:
        return name in self.list_names(include_stopped=False)

    def state(self, name: str) -> ContainerState:
        """Current lifecycle state of a named container."""
        if not self.exists(name):
            return ContainerState.ABSENT
        if self.is_running(name):
            return ContainerState.RUNNING
        return ContainerState.STOPPED

    def start(self, name: str) -> None:
        try:
            self._run("start", name)
        except subprocess.CalledProcessError as e:
            raise ContainerStartError(name, _stderr_of(e))

    def stop(self, name: str) -> None:
        """Stop a running container.

        The fork commands never stop containers (`rm -c` and `clean` force-remove
        them); this rounds out the start/stop/remove lifecycle of the runtime.
        """
        try:
            self._run("stop", name)
        except subprocess.CalledProcessError as e:
            raise ContainerStopError(name, _stderr_of(e))

    def remove(self, name: str) -> None:
        """Force-remove a container, running or not."""
        try:
            self._run("rm", "-f", name)
        except subprocess.CalledProcessError as e:
            raise ContainerRemoveError(name, _stderr_of(e))

    def run_detached(self, name: str, image: str, mount_source: str, mount_target: str) -> None:
        """Start a long-lived container that can be exec'd into later.

        The worktree is mounted read-write at ``mount_target``, which is also
        the working directory.
        """
        try:
            self._run(
                "run", "-d",
                "--name", name,
                "-v", f"{mount_source}:{mount_target}:rw",
                "-w", mount_target,
                "--entrypoint", CONTAINER_SHELL,
                image,
                "-c", CONTAINER_KEEP_ALIVE_SCRIPT,
            )
        except subprocess.CalledProcessError as e:
            raise ContainerCreateError(name, _stderr_of(e))

    def build(self, dockerfile: str, tag: str) -> None:
        """Build and tag an image, using the Dockerfile's directory as context."""
        context_dir = os.path.dirname(os.path.abspath(dockerfile))
        try:
            self._run("build", "-t", tag, "-f", dockerfile, context_dir)
        except subprocess.CalledProcessError as e:
            raise ImageBuildError(dockerfile, _stderr_of(e))
