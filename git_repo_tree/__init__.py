"""
git-repo-tree - Find git repositories and group them by remote host and owner
"""

from .__version__ import __version__
from .core import RepositoryNavigator
from .cli.main import main

__all__ = ["RepositoryNavigator", "main", "__version__"]
