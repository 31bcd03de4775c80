"""Help text for the fork command."""

import os
from typing import Optional

_SHELL_HINTS = {
    "bash": 'eval "$(fork sh bash)"   # Add to ~/.bashrc',
    "zsh": 'eval "$(fork sh zsh)"    # Add to ~/.zshrc',
    "fish": "fork sh fish | source    # Add to ~/.config/fish/config.fish",
}

_ALL_SHELL_HINTS = (
    'Bash/Zsh: eval "$(fork sh bash)"   # Add to ~/.bashrc or ~/.zshrc\n'
    "  Fish:     fork sh fish | source   # Add to ~/.config/fish/config.fish"
)

SHORT_HELP = """\
fork - Manage git worktrees like a forking boss

Usage: fork <command> [args]

Commands:
  new <branch>... [-t|--target <base>]    Create worktrees
  co <branch> [-c|--container]            Change to worktree
              [-k|--keep-alive]
  go <branch> [-t|--target <base>]        Change to worktree (create if needed)
              [-c|--container]
              [-k|--keep-alive]
  main                                    Go to main worktree
  rm [branch...] [-f|--force] [-a|--all]  Remove worktree(s)
                 [-c|--container]
  ls [-m|--merged] [-u|--unmerged]        List worktrees
     [-d|--dirty] [-c|--clean]
  clean                                   Remove merged and clean worktrees
  sh [bash|zsh|fish]                      Output shell integration function
  help [-v|--verbose]                     Show help

Convention: ../<repo>_forks/<branch>

Shell Integration:
  {shell_hint}

Configuration:
  Set FORK_ENV to load configuration from a file:
    export FORK_ENV=~/.config/fork/config.env

  Only FORK_* prefixed variables are loaded. Example config file:
    FORK_DIR_PATTERN=../{{repo}}_forks/{{branch}}
    FORK_BASE_BRANCH=main
    FORK_CONTAINER=1
    FORK_CONTAINER_IMAGE=ubuntu:latest
    FORK_CONTAINER_RUNTIME=podman

Examples:
  fork new feature-x
  fork go feature-x
  fork go feature-x -c              Open in container
  fork main
  fork ls
  fork rm feature-x
  fork rm feature-x -c              Remove worktree and container
  fork rm -a
  fork clean

Run 'fork help --verbose' for detailed documentation.
"""

VERBOSE_HELP = """\
fork - Manage git worktrees like a forking boss

Usage: fork [-v|--verbose] [--debug] <command> [args]

Commands:
  new <branch>... [-t|--target <base>]
      Create worktrees from the base branch (or --target base).
      Follows the remote branch when origin has it (a local branch behind it
      is fast-forwarded), otherwise uses the existing local branch, otherwise
      creates a new branch from the base.
      -t, --target <base>  Create from <base> instead of the base branch

  co <branch> [-c|--container] [-k|--keep-alive]
      Print the path of an existing worktree. Use: cd $(fork co <branch>)
      With -c, prints a command that opens a shell in a container instead.
      -c, --container  Open worktree in container
      -k, --keep-alive Keep container running in background

  go <branch> [-t|--target <base>] [-c|--container] [-k|--keep-alive]
      Like co, but creates the worktree first if it does not exist.

  main
      Go to the main repository checkout.

  rm [branch...] [-f|--force] [-a|--all] [-c|--container]
      Remove worktree(s). Defaults to the current worktree.
      Unmerged or dirty worktrees (uncommitted or untracked changes) are
      refused unless forced.
      -f, --force     Remove unmerged or dirty worktrees
      -a, --all       Remove all worktrees
      -c, --container Also remove associated containers

  ls [-m|--merged] [-u|--unmerged] [-d|--dirty] [-c|--clean]
      List worktrees as: <branch> <merged|unmerged> <dirty|clean> <path>

  clean
      Remove every merged and clean worktree, and its container. Worktrees
      with staged, unstaged or untracked changes are skipped.

  sh [bash|zsh|fish]
      Output the shell integration function (default: detected from $SHELL).

  help [-v|--verbose]
      Show this help.

Convention:
  Worktrees:  ../<repo>_forks/<branch>
  Containers: {prefix}_{branch}_fork or {branch}_fork

Shell Integration (required for cd-ing):
  Bash:  eval "$(fork sh bash)"   # Add to ~/.bashrc
  Zsh:   eval "$(fork sh zsh)"    # Add to ~/.zshrc
  Fish:  fork sh fish | source    # Add to ~/.config/fish/config.fish

  FORK_* values from FORK_ENV are embedded in the generated function and
  passed to every fork invocation.

Environment Variables:
  FORK_ENV                    Path to a configuration file of FORK_* lines
                              (values there override the environment)
  FORK_CD                     Set by the shell integration (do not set manually)
  FORK_DIR_PATTERN            Worktree location, must end in /{branch} and may
                              use {repo} (default: ../{repo}_forks/{branch})
  FORK_BASE_BRANCH            Base for new branches and merge checks (default: main)
  FORK_CONTAINER              Set to 1 to enable container mode by default
  FORK_CONTAINER_IMAGE        Pre-built image (default: ubuntu:latest)
  FORK_CONTAINER_DOCKERFILE   Override Dockerfile, used before auto-discovery
  FORK_CONTAINER_DEFAULT_DOCKERFILE
                              Fallback Dockerfile when nothing else matches
  FORK_CONTAINER_NAME         Container name prefix (default: none)
  FORK_CONTAINER_RUNTIME      docker (default) or podman
  FORK_CONTAINER_KEEP_ALIVE   Set to 1 to keep containers running

Container Mode:
  Each fork gets its own container with only the worktree mounted
  read-write at /<repo>. By default containers run with --rm and vanish on
  exit; keep-alive containers run in the background for faster re-entry.

  Image sources, first match wins:
    1. FORK_CONTAINER_DOCKERFILE, if the file exists
    2. Dockerfile.fork or Dockerfile.fork.<variant> in the current directory,
       its .docker/, the repository root or the root's .docker/
       (tagged fork_<branch>_image or fork_<branch>_<variant>_image)
    3. FORK_CONTAINER_DEFAULT_DOCKERFILE, if the file exists
    4. FORK_CONTAINER_IMAGE

Examples:
  fork new feat-a feat-b               Create multiple worktrees
  fork new bugfix --target develop     Create from develop
  fork go feature-x -c -k              Go to feature-x in a kept-alive container
  fork rm                              Remove current worktree
  fork ls -u                           List unmerged worktrees
  fork sh                              Output shell integration for $SHELL
"""


def shell_hint(shell_path: Optional[str]) -> str:
    """Shell integration line for the user's shell, or all of them."""
    name = os.path.basename(shell_path or "")
    return _SHELL_HINTS.get(name, _ALL_SHELL_HINTS)


def render_help(verbose: bool = False, shell_path: Optional[str] = None) -> str:
    """Build the short or detailed help text."""
    if verbose:
        return VERBOSE_HELP
    return SHORT_HELP.format(shell_hint=shell_hint(shell_path))
