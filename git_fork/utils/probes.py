"""Ordered fallible probes.

Several decisions in git-fork are priority chains: which ref a new worktree
starts from, which image a container runs, whether a branch is merged. Each
link of a chain is a probe that returns a value or None; the first non-None
value wins and later probes never run.
"""

from typing import Callable, Iterable, Optional, TypeVar

T = TypeVar("T")


def first_match(probes: Iterable[Callable[[], Optional[T]]]) -> Optional[T]:
    """Run probes in order and return the first non-None result."""
    for probe in probes:
        result = probe()
        if result is not None:
            return result
    return None
