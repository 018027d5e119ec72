"""Core functionality for git-repo-tree."""

from .navigator import PickItem, RepositoryNavigator

__all__ = ["PickItem", "RepositoryNavigator"]
