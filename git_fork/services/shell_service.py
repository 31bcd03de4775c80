"""Shell integration snippets for git-fork.

A child process cannot change its parent shell's directory, so commands that
navigate (co, go, main, rm, clean) print a path, or a container exec command,
on stdout. The generated wrapper function captures that output and either
``cd``s into it or evaluates it.
"""

import os
from typing import Mapping, Optional

from git_fork.constants import CONTAINER_EXEC_MARKER, SUPPORTED_SHELLS
from git_fork.exceptions import InvalidArgumentError
from git_fork.utils.logging import get_logger

logger = get_logger(__name__)

NAVIGATING_COMMANDS = ("co", "checkout", "go", "main", "rm", "clean")

_POSIX_TEMPLATE = """\
fork() {{
    case "$1" in
        {cases})
            local output fork_status
            output=$(FORK_CD=1 {env}command fork "$@")
            fork_status=$?
            if [ $fork_status -eq 0 ] && [ -n "$output" ]; then
                case "$output" in
                    "{marker} "*)
                        eval "$output"
                        ;;
                    *)
                        builtin cd "$output"
                        ;;
                esac
            fi
            return $fork_status
            ;;
        *)
            {env}command fork "$@"
            ;;
    esac
}}
"""

_FISH_TEMPLATE = """\
function fork
    switch $argv[1]
        case {cases}
            set -l output (env FORK_CD=1 {env}fork $argv)
            set -l fork_status $status
            if test $fork_status -eq 0; and test -n "$output"
                if string match -q -- "{marker} *" "$output"
                    eval $output
                else
                    builtin cd $output
                end
            end
            return $fork_status
        case '*'
            env {env}fork $argv
    end
end
"""


def detect_shell(shell_path: Optional[str]) -> str:
    """Map a $SHELL value to a supported shell name."""
    if not shell_path:
        raise InvalidArgumentError("$SHELL is not set and no shell specified")

    name = os.path.basename(shell_path)
    if name not in SUPPORTED_SHELLS:
        raise InvalidArgumentError(
            f"unknown shell in $SHELL: {shell_path} (supported: {', '.join(SUPPORTED_SHELLS)})"
        )
    return name


def _quote_posix(value: str) -> str:
    return "'" + value.replace("'", "'\\''") + "'"


def _quote_fish(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def format_env_assignments(env_values: Mapping[str, str], shell: str) -> str:
    """Render FORK_* values as ``NAME='value' `` prefixes (with trailing space)."""
    quote = _quote_fish if shell == "fish" else _quote_posix
    return "".join(f"{name}={quote(value)} " for name, value in env_values.items())


def generate_shell_function(shell: str, env_values: Optional[Mapping[str, str]] = None) -> str:
    """Build the fork wrapper function for a shell.

    Args:
        shell: bash, zsh or fish
        env_values: FORK_* values embedded in every invocation

    Raises:
        InvalidArgumentError: If the shell is not supported
    """
    if shell not in SUPPORTED_SHELLS:
        raise InvalidArgumentError(
            f"unknown shell: {shell} (supported: {', '.join(SUPPORTED_SHELLS)})"
        )

    env = format_env_assignments(env_values or {}, shell)
    logger.debug(f"Generating {shell} integration with {len(env_values or {})} embedded variables")

    if shell == "fish":
        return _FISH_TEMPLATE.format(
            cases=" ".join(NAVIGATING_COMMANDS), env=env, marker=CONTAINER_EXEC_MARKER
        )

    return _POSIX_TEMPLATE.format(
        cases="|".join(NAVIGATING_COMMANDS), env=env, marker=CONTAINER_EXEC_MARKER
    )
