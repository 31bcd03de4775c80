"""Shared constants for git-fork."""

from dataclasses import dataclass
from typing import List


# Exit codes
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_MISSING_DEPENDENCY = 127


# Configuration
ENV_PREFIX = "FORK_"
ENV_NAME_PATTERN = r"^FORK_[A-Za-z0-9_]+$"
ENV_FILE_VAR = "FORK_ENV"

DEFAULT_BASE_BRANCH = "main"
DEFAULT_REMOTE = "origin"
DEFAULT_DIR_PATTERN = "../{repo}_forks/{branch}"
DEFAULT_CONTAINER_IMAGE = "ubuntu:latest"
DEFAULT_CONTAINER_RUNTIME = "docker"
SUPPORTED_RUNTIMES = ("docker", "podman")
SUPPORTED_SHELLS = ("bash", "zsh", "fish")

TRUTHY_VALUES = ("1", "true", "yes", "on")


# Container conventions
CONTAINER_SHELL = "/bin/sh"
CONTAINER_EXEC_MARKER = "FORK_CONTAINER_EXEC=1"
CONTAINER_KEEP_ALIVE_SCRIPT = "while true; do sleep 3600; done"
DOCKERFILE_AUTO_NAME = "Dockerfile.fork"
DOCKERFILE_SUBDIR = ".docker"
IMAGE_VARIANT_PATTERN = r"[^A-Za-z0-9_.-]"


# Listing
MERGE_FILTERS = ("all", "merged", "unmerged")
DIRTY_FILTERS = ("all", "dirty", "clean")


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    label: str
    width: int = 0  # 0 means auto-width


COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("Branch", 30),
    ColumnDefinition("Merge", 10),
    ColumnDefinition("State", 8),
    ColumnDefinition("Path"),
]


class WorktreeStyleType:
    """Style types for listed worktrees."""

    REMOVABLE = "removable"  # merged and clean, clean would remove it
    DIRTY = "dirty"
    ACTIVE = "active"


CLI_COLORS = {
    WorktreeStyleType.REMOVABLE: "red",
    WorktreeStyleType.DIRTY: "yellow",
    WorktreeStyleType.ACTIVE: None,
}
