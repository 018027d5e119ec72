"""Data models for git-repo-tree."""

from .repository import RemoteRecord, RepositoryRecord, WorktreeRecord
from .tree import (
    DomainNode,
    EmptyStateNode,
    GroupingTree,
    LocalGroupNode,
    NodeKind,
    OwnerNode,
    RepositoryLeaf,
    TreeNode,
    WorktreeLeaf,
)

__all__ = [
    "RemoteRecord",
    "RepositoryRecord",
    "WorktreeRecord",
    "DomainNode",
    "EmptyStateNode",
    "GroupingTree",
    "LocalGroupNode",
    "NodeKind",
    "OwnerNode",
    "RepositoryLeaf",
    "TreeNode",
    "WorktreeLeaf",
]
