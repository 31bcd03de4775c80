"""Command-line interface for git-fork"""

import os
import shutil
import sys
from typing import List, Optional

from git_fork.cli.args import COMMANDS, find_command, parse_args
from git_fork.cli.help import render_help
from git_fork.config import Config, load_env_file
from git_fork.constants import EXIT_FAILURE, EXIT_USAGE
from git_fork.exceptions import ForkError, MissingDependencyError
from git_fork.services.display_service import DisplayService, console
from git_fork.services.shell_service import detect_shell, generate_shell_function
from git_fork.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def show_help(verbose: bool = False) -> int:
    """Print help to stderr; help always exits with the usage code."""
    console.print(render_help(verbose, os.environ.get("SHELL")), markup=False, end="")
    return EXIT_USAGE


def run_shell(args, config: Config, display: DisplayService) -> int:
    """Print the shell integration function."""
    shell = args.shell or detect_shell(os.environ.get("SHELL"))
    display.output(generate_shell_function(shell, load_env_file(config.env_file)))
    return 0


def dispatch(keeper, args) -> int:
    """Route parsed arguments to the matching WorktreeKeeper handler."""
    handler = args.handler
    if handler == "new":
        return keeper.new(args.branches, target=args.target)
    if handler == "checkout":
        return keeper.checkout(args.branch, container=args.container, keep_alive=args.keep_alive)
    if handler == "go":
        return keeper.go(
            args.branch, target=args.target, container=args.container, keep_alive=args.keep_alive
        )
    if handler == "main":
        return keeper.main()
    if handler == "remove":
        return keeper.remove(
            args.branches, force=args.force, remove_all=args.remove_all, container=args.container
        )
    if handler == "list":
        return keeper.list(merge_filter=args.merge_filter, dirty_filter=args.dirty_filter)
    if handler == "clean":
        return keeper.clean()
    raise ValueError(f"No handler for {handler}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)

    display = DisplayService()
    command = find_command(argv)

    if command == "help":
        rest = argv[argv.index(command) + 1:]
        return show_help(verbose=bool({"-v", "--verbose"} & set(rest)))

    if command is None and "--version" not in argv:
        return show_help()

    if command is not None and command not in COMMANDS:
        display.error(f"unknown command: {command}")
        return show_help()

    debug = False
    try:
        args = parse_args(argv)
        debug = args.debug

        config = Config.from_environ(verbose=args.verbose, debug=args.debug)
        setup_logging(verbose=config.verbose, debug=config.debug)
        display = DisplayService(quiet=config.cd_mode)

        if config.debug:
            logger.debug("Configuration:")
            for key, value in config.to_dict().items():
                logger.debug(f"  {key}: {value}")

        if args.handler == "sh":
            return run_shell(args, config, display)

        if config.dir_pattern:
            display.notice(f"Config: FORK_DIR_PATTERN={config.dir_pattern}")

        # GitPython refuses to import without a git binary
        if shutil.which("git") is None:
            raise MissingDependencyError("git")

        from git_fork.core.worktree_keeper import WorktreeKeeper

        keeper = WorktreeKeeper(os.getcwd(), config, display=display)
        return dispatch(keeper, args)
    except KeyboardInterrupt:
        console.print("\nOperation cancelled by user", style="yellow")
        return EXIT_FAILURE
    except ForkError as e:
        display.error(str(e))
        if debug:
            console.print_exception()
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
