"""Path helpers shared by the scanner and the worktree parser."""

import os


def normalize_path(path: str) -> str:
    """Absolute, normalized form of `path` (no symlink resolution)."""
    return os.path.normpath(os.path.abspath(path))


def same_path(left: str, right: str) -> bool:
    """Compare two paths, falling back to resolved symlinks.

    git reports worktree paths with symlinks resolved, so a root reached
    through a symlinked parent only matches after resolution.
    """
    if normalize_path(left) == normalize_path(right):
        return True
    return os.path.realpath(left) == os.path.realpath(right)
