"""Command-line argument parsing for git-fork."""

import argparse
from typing import List, Optional, Sequence

from git_fork.__version__ import __version__
from git_fork.exceptions import InvalidArgumentError

# Top-level verbs, aliases included
COMMANDS = ("new", "co", "checkout", "go", "main", "rm", "ls", "clean", "sh", "help")


class ForkArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of printing usage and exiting."""

    def error(self, message):
        raise InvalidArgumentError(message)


def find_command(argv: Sequence[str]) -> Optional[str]:
    """First positional token, which is the command (global flags take no values)."""
    for token in argv:
        if not token.startswith("-"):
            return token
    return None


def _add_container_flags(parser: argparse.ArgumentParser) -> None:
    # None means "use FORK_CONTAINER / FORK_CONTAINER_KEEP_ALIVE"
    parser.add_argument(
        "-c", "--container", action="store_const", const=True, default=None,
        help="Open the worktree in a container",
    )
    parser.add_argument(
        "-k", "--keep-alive", action="store_const", const=True, default=None,
        help="Keep the container running in the background",
    )


def build_parser() -> ForkArgumentParser:
    """Build the fork argument parser."""
    parser = ForkArgumentParser(
        prog="fork",
        description="Manage git worktrees, optionally inside containers",
        add_help=False,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("--version", action="version", version=f"git-fork {__version__}")

    subparsers = parser.add_subparsers(dest="command", parser_class=ForkArgumentParser)

    new = subparsers.add_parser("new", add_help=False, help="Create worktrees")
    new.add_argument("branches", nargs="+", metavar="branch")
    new.add_argument("-t", "--target", metavar="base", help="Create from <base>")
    new.set_defaults(handler="new")

    checkout = subparsers.add_parser(
        "co", aliases=["checkout"], add_help=False, help="Change to worktree"
    )
    checkout.add_argument("branch")
    _add_container_flags(checkout)
    checkout.set_defaults(handler="checkout")

    go = subparsers.add_parser("go", add_help=False, help="Change to worktree (create if needed)")
    go.add_argument("branch")
    go.add_argument("-t", "--target", metavar="base", help="Create from <base> if needed")
    _add_container_flags(go)
    go.set_defaults(handler="go")

    main = subparsers.add_parser("main", add_help=False, help="Go to main worktree")
    main.set_defaults(handler="main")

    rm = subparsers.add_parser("rm", add_help=False, help="Remove worktree(s)")
    rm.add_argument("branches", nargs="*", metavar="branch")
    rm.add_argument("-f", "--force", action="store_true", help="Remove unmerged or dirty worktrees")
    rm.add_argument("-a", "--all", dest="remove_all", action="store_true", help="Remove all worktrees")
    rm.add_argument(
        "-c", "--container", action="store_const", const=True, default=None,
        help="Also remove associated containers",
    )
    rm.set_defaults(handler="remove")

    ls = subparsers.add_parser("ls", add_help=False, help="List worktrees")
    merge_group = ls.add_mutually_exclusive_group()
    merge_group.add_argument(
        "-m", "--merged", dest="merge_filter", action="store_const", const="merged",
        help="List only merged worktrees",
    )
    merge_group.add_argument(
        "-u", "--unmerged", dest="merge_filter", action="store_const", const="unmerged",
        help="List only unmerged worktrees",
    )
    dirty_group = ls.add_mutually_exclusive_group()
    dirty_group.add_argument(
        "-d", "--dirty", dest="dirty_filter", action="store_const", const="dirty",
        help="List only dirty worktrees",
    )
    dirty_group.add_argument(
        "-c", "--clean", dest="dirty_filter", action="store_const", const="clean",
        help="List only clean worktrees",
    )
    ls.set_defaults(handler="list", merge_filter="all", dirty_filter="all")

    clean = subparsers.add_parser("clean", add_help=False, help="Remove merged and clean worktrees")
    clean.set_defaults(handler="clean")

    sh = subparsers.add_parser("sh", add_help=False, help="Output shell integration function")
    sh.add_argument("shell", nargs="?", help="bash, zsh or fish (default: from $SHELL)")
    sh.set_defaults(handler="sh")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Raises:
        InvalidArgumentError: On unknown options or missing arguments
    """
    return build_parser().parse_args(argv)
