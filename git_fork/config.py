"""Configuration handling for git-fork"""

import os
import re
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from git_fork.constants import (
    DEFAULT_BASE_BRANCH,
    DEFAULT_CONTAINER_IMAGE,
    DEFAULT_CONTAINER_RUNTIME,
    DEFAULT_DIR_PATTERN,
    ENV_FILE_VAR,
    ENV_NAME_PATTERN,
    ENV_PREFIX,
    SUPPORTED_RUNTIMES,
    TRUTHY_VALUES,
)
from git_fork.exceptions import ConfigError
from git_fork.utils.logging import get_logger

logger = get_logger(__name__)

_ENV_NAME_RE = re.compile(ENV_NAME_PATTERN)
_BRANCH_PLACEHOLDER = "{branch}"
_REPO_PLACEHOLDER = "{repo}"

# Environment variable -> Config field
ENV_FIELDS = {
    "FORK_DIR_PATTERN": "dir_pattern",
    "FORK_BASE_BRANCH": "base_branch",
    "FORK_CONTAINER": "container",
    "FORK_CONTAINER_IMAGE": "container_image",
    "FORK_CONTAINER_DOCKERFILE": "container_dockerfile",
    "FORK_CONTAINER_DEFAULT_DOCKERFILE": "container_default_dockerfile",
    "FORK_CONTAINER_RUNTIME": "container_runtime",
    "FORK_CONTAINER_NAME": "container_name_prefix",
    "FORK_CONTAINER_KEEP_ALIVE": "container_keep_alive",
    "FORK_CD": "cd_mode",
}

_BOOL_FIELDS = {"container", "container_keep_alive", "cd_mode"}


def parse_bool(value: Optional[str]) -> bool:
    """Interpret an environment-style flag value."""
    if value is None:
        return False
    return value.strip().lower() in TRUTHY_VALUES


def load_env_file(path: Optional[str]) -> Dict[str, str]:
    """Read FORK_* assignments from an env file.

    Lines are ``NAME=value``. Anything after ``#`` is a comment, surrounding
    whitespace is stripped and names outside the FORK_ prefix are ignored.
    A missing file yields an empty mapping.

    Args:
        path: Path to the env file (may be None or empty)

    Returns:
        Ordered mapping of variable name to raw string value
    """
    values: Dict[str, str] = {}
    if not path:
        return values

    if not os.path.isfile(path):
        logger.debug(f"Env file {path} does not exist, skipping")
        return values

    with open(path, encoding="utf-8") as handle:
        for raw_line in handle:
            line = raw_line.split("#", 1)[0].strip()
            if not line or "=" not in line:
                continue

            name, value = line.split("=", 1)
            if not _ENV_NAME_RE.match(name):
                continue
            values[name] = value

    logger.debug(f"Loaded {len(values)} variables from {path}")
    return values


@dataclass
class Config:
    """Configuration for a single fork invocation with validation."""

    # Layout
    dir_pattern: Optional[str] = None  # None means the default ../{repo}_forks/{branch}
    base_branch: str = DEFAULT_BASE_BRANCH

    # Containers
    container: bool = False
    container_image: str = DEFAULT_CONTAINER_IMAGE
    container_dockerfile: Optional[str] = None
    container_default_dockerfile: Optional[str] = None
    container_runtime: str = DEFAULT_CONTAINER_RUNTIME
    container_name_prefix: Optional[str] = None
    container_keep_alive: bool = False

    # Execution modes
    cd_mode: bool = False  # Set by the shell integration, suppresses notices
    verbose: bool = False
    debug: bool = False
    env_file: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_base_branch()
        self._validate_container_runtime()
        self._validate_container_image()
        self._validate_dir_pattern()

    def _validate_base_branch(self):
        """Validate base_branch is not empty."""
        if not self.base_branch or not self.base_branch.strip():
            raise ConfigError("base_branch cannot be empty")
        self.base_branch = self.base_branch.strip()

    def _validate_container_runtime(self):
        """Validate container_runtime is one of the supported binaries."""
        if self.container_runtime not in SUPPORTED_RUNTIMES:
            raise ConfigError(
                f"container_runtime must be one of {list(SUPPORTED_RUNTIMES)}, "
                f"got '{self.container_runtime}'"
            )

    def _validate_container_image(self):
        """Fall back to the default image when an empty one is configured."""
        if not self.container_image or not self.container_image.strip():
            self.container_image = DEFAULT_CONTAINER_IMAGE

    def _validate_dir_pattern(self):
        """Validate dir_pattern ends with {branch} and uses no other placeholders."""
        if not self.dir_pattern:
            self.dir_pattern = None
            return

        pattern = self.dir_pattern.rstrip("/")
        suffix = "/" + _BRANCH_PLACEHOLDER
        if not pattern.endswith(suffix):
            raise ConfigError(
                f"dir_pattern must end with '/{{branch}}', got '{self.dir_pattern}'"
            )

        prefix = pattern[: -len(suffix)].replace(_REPO_PLACEHOLDER, "")
        if not prefix or "{" in prefix or "}" in prefix:
            raise ConfigError(
                f"dir_pattern may only use {{repo}} before the final {{branch}}, "
                f"got '{self.dir_pattern}'"
            )

    @property
    def effective_dir_pattern(self) -> str:
        """The directory pattern in use."""
        return self.dir_pattern or DEFAULT_DIR_PATTERN

    def worktree_base_for(self, main_root: str, repo_name: str) -> str:
        """Resolve the worktree base directory for a repository.

        Relative patterns are anchored at the main repository root, so the
        default pattern yields ``<parent-of-repo>/<repo>_forks``.

        Args:
            main_root: Absolute path of the main repository
            repo_name: Repository short name

        Returns:
            Absolute, normalized worktree base path
        """
        pattern = self.effective_dir_pattern.rstrip("/")
        base = pattern[: -len("/" + _BRANCH_PLACEHOLDER)].replace(_REPO_PLACEHOLDER, repo_name)
        base = os.path.expanduser(base)
        if not os.path.isabs(base):
            base = os.path.join(main_root, base)
        return os.path.normpath(base)

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "dir_pattern": self.dir_pattern,
            "base_branch": self.base_branch,
            "container": self.container,
            "container_image": self.container_image,
            "container_dockerfile": self.container_dockerfile,
            "container_default_dockerfile": self.container_default_dockerfile,
            "container_runtime": self.container_runtime,
            "container_name_prefix": self.container_name_prefix,
            "container_keep_alive": self.container_keep_alive,
            "cd_mode": self.cd_mode,
            "verbose": self.verbose,
            "debug": self.debug,
            "env_file": self.env_file,
        }

    @classmethod
    def from_env_values(cls, values: Mapping[str, str], **overrides) -> "Config":
        """Create Config from FORK_* variable values.

        Unknown FORK_* names are ignored. Empty strings count as unset.
        """
        kwargs = {}
        for name, field_name in ENV_FIELDS.items():
            raw = values.get(name)
            if raw is None or raw == "":
                continue
            if field_name in _BOOL_FIELDS:
                kwargs[field_name] = parse_bool(raw)
            else:
                kwargs[field_name] = raw.strip()

        kwargs.update(overrides)
        return cls(**kwargs)

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "Config":
        """Create Config from the process environment and the FORK_ENV file.

        Values read from the env file take precedence over the environment.

        Args:
            environ: Environment mapping (defaults to os.environ)
            **overrides: Explicit field values, e.g. verbose/debug from the CLI
        """
        if environ is None:
            environ = os.environ

        values = {name: value for name, value in environ.items() if name.startswith(ENV_PREFIX)}
        env_file = environ.get(ENV_FILE_VAR) or None
        values.update(load_env_file(env_file))

        return cls.from_env_values(values, env_file=env_file, **overrides)
