"""Utility functions for git-repo-tree.

This package provides utility modules:
- paths: Path normalization and comparison
- threading: Worker pool sizing for Python 3.13+ free-threading support
"""

from .paths import normalize_path, same_path
from .threading import (
    is_free_threading_enabled,
    get_python_threading_mode,
    get_optimal_worker_count,
    get_threading_info,
)

__all__ = [
    # Paths
    "normalize_path",
    "same_path",
    # Threading
    "is_free_threading_enabled",
    "get_python_threading_mode",
    "get_optimal_worker_count",
    "get_threading_info",
]
