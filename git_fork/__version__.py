"""Version information for git-fork."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("git-fork")
except PackageNotFoundError:
    # Running from a source checkout without an installed distribution
    __version__ = "0.0.0+unknown"
