"""Custom exceptions for git-repo-tree"""

from typing import Optional


class GitRepoTreeError(Exception):
    """Base exception for all git-repo-tree errors."""
    pass


class ScanRootError(GitRepoTreeError):
    """Raised when a configured scan root cannot be read at all."""

    def __init__(self, root: str, message: Optional[str] = None):
        self.root = root
        self.message = message

        error_msg = f"Cannot scan root '{root}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class RepositoryExtractionError(GitRepoTreeError):
    """Raised when metadata for a whole repository cannot be extracted."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        self.message = message

        error_msg = f"Failed to read repository '{path}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class StorageError(GitRepoTreeError):
    """Raised when the repository store cannot be written."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        self.message = message

        error_msg = f"Repository storage at '{path}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)
