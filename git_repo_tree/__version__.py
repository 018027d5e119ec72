"""Version information for git-repo-tree."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("git-repo-tree")
except PackageNotFoundError:
    # Running from a source checkout that was never installed
    __version__ = "0.0.0+unknown"
