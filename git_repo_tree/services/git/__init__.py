"""Git-related services for git-repo-tree."""

from .metadata import RepositoryInspector
from .remotes import RemoteLocation, classify, parse_remote_listing
from .worktrees import parse as parse_worktrees

__all__ = [
    "RepositoryInspector",
    "RemoteLocation",
    "classify",
    "parse_remote_listing",
    "parse_worktrees",
]
