"""Services for git-repo-tree: discovery, grouping, tracking and storage."""

from .grouping import GroupingTreeBuilder, build_tree
from .scanner import DirectoryWalker, RepositoryScanner, ScanReport
from .storage import RepositoryStorage
from .workspace import NodeState, WorkspaceTracker, compute_expansion

__all__ = [
    "GroupingTreeBuilder",
    "build_tree",
    "DirectoryWalker",
    "RepositoryScanner",
    "ScanReport",
    "RepositoryStorage",
    "NodeState",
    "WorkspaceTracker",
    "compute_expansion",
]
