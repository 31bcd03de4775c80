"""Container lifecycle management for forks."""

import os
import shlex
from typing import Optional, TYPE_CHECKING

from git_fork.constants import CONTAINER_EXEC_MARKER, CONTAINER_SHELL
from git_fork.exceptions import ContainerError, RuntimeUnavailableError
from git_fork.models.container import ContainerState, ImageSource
from git_fork.services.container.images import ImageResolver
from git_fork.services.container.runtime import ContainerRuntime
from git_fork.services.display_service import DisplayService
from git_fork.utils.logging import get_logger

if TYPE_CHECKING:
    from git_fork.config import Config
    from git_fork.services.repository import RepositoryContext

logger = get_logger(__name__)


def container_name(branch: str, prefix: Optional[str] = None) -> str:
    """Container name for a fork: ``<prefix>_<branch>_fork`` or ``<branch>_fork``."""
    if prefix:
        return f"{prefix}_{branch}_fork"
    return f"{branch}_fork"


class ContainerManager:
    """Creates, starts, enters and removes the container bound to a fork.

    The runtime is the source of truth: container state is queried by name on
    every call and never cached.
    """

    def __init__(
        self,
        config: "Config",
        context: "RepositoryContext",
        display: Optional[DisplayService] = None,
        runtime: Optional[ContainerRuntime] = None,
    ):
        self.config = config
        self.context = context
        self.display = display or DisplayService()
        self.runtime = runtime or ContainerRuntime(config.container_runtime)
        self.resolver = ImageResolver(config, context.cwd, context.repo_root)

    @property
    def mount_target(self) -> str:
        """Where the worktree is mounted inside the container."""
        return f"/{self.context.repo_name}"

    def name_for(self, branch: str) -> str:
        return container_name(branch, self.config.container_name_prefix)

    def _require_runtime(self) -> None:
        if not self.runtime.is_available():
            raise RuntimeUnavailableError(self.runtime.binary)

    def _prepare_image(self, branch: str) -> ImageSource:
        source = self.resolver.resolve(branch)
        if source.needs_build:
            self.runtime.build(source.dockerfile, source.image)
            self.display.notice(f"Built image: {source.image} from {source.dockerfile}")
        return source

    def ensure(
        self,
        branch: str,
        worktree_path: str,
        keep_alive: bool,
        missing_notice: Optional[str] = None,
    ) -> Optional[ImageSource]:
        """Make sure the fork's container can be entered.

        Ephemeral mode creates no container object; the image is resolved (and
        built when Dockerfile-backed) so the one-shot run can use it.
        Keep-alive mode walks the lifecycle: running is left alone, stopped is
        started, absent is created detached with the worktree mounted.

        Args:
            branch: Fork branch
            worktree_path: Worktree mounted into a new container
            keep_alive: Use the persistent container
            missing_notice: Shown instead of the default when the container
                has to be created

        Returns:
            The image source when one was resolved, None when an existing
            container was reused

        Raises:
            RuntimeUnavailableError: If the runtime binary is missing
            ContainerOperationError: If a build, start or create fails
        """
        self._require_runtime()

        if not keep_alive:
            return self._prepare_image(branch)

        name = self.name_for(branch)
        state = self.runtime.state(name)
        logger.debug(f"Container {name} is {state.value}")

        if state is ContainerState.RUNNING:
            return None

        if state is ContainerState.STOPPED:
            self.display.notice(f"Starting container for '{branch}'...")
            self.runtime.start(name)
            return None

        self.display.notice(missing_notice or f"Creating container for '{branch}'...")
        source = self._prepare_image(branch)
        self.runtime.run_detached(
            name,
            source.image,
            os.path.abspath(worktree_path),
            self.mount_target,
        )
        self.display.notice(f"Created container: {name}")
        return source

    def exec_command(
        self,
        branch: str,
        worktree_path: str,
        keep_alive: bool,
        image: Optional[str] = None,
    ) -> str:
        """The command line the caller's shell runs to enter the container.

        Args:
            branch: Fork branch
            worktree_path: Worktree to mount (ephemeral mode)
            keep_alive: Exec into the persistent container instead of a one-shot run
            image: Image for the one-shot run; resolved when omitted
        """
        runtime = self.runtime.binary
        name = shlex.quote(self.name_for(branch))

        if keep_alive:
            return f"{CONTAINER_EXEC_MARKER} {runtime} exec -it {name} {CONTAINER_SHELL}"

        if image is None:
            image = self.resolver.resolve(branch).image

        source = shlex.quote(os.path.abspath(worktree_path))
        target = shlex.quote(self.mount_target)
        return (
            f"{CONTAINER_EXEC_MARKER} {runtime} run --rm -it --name {name} "
            f"-v {source}:{target}:rw -w {target} {shlex.quote(image)} {CONTAINER_SHELL}"
        )

    def remove(self, branch: str) -> bool:
        """Best-effort removal of the fork's container.

        Returns:
            True when nothing is left behind (including when the runtime is
            missing or no container exists), False if removal failed
        """
        if not self.runtime.is_available():
            logger.debug(f"{self.runtime.binary} not available, no container to remove")
            return True

        name = self.name_for(branch)
        try:
            if not self.runtime.exists(name):
                return True
            self.runtime.remove(name)
        except ContainerError as e:
            logger.debug(f"Container removal failed: {e}")
            self.display.warning(f"failed to remove container: {name}")
            return False

        self.display.notice(f"Removed container: {name}")
        return True
