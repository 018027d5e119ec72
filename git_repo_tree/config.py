"""Configuration handling for git-repo-tree"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from git_repo_tree.constants import (
    APP_DIR_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_IGNORE_PATTERNS,
    MAX_SCAN_DEPTH,
    STORAGE_FILE_NAME,
)


def default_config_path() -> Path:
    """Location of the user configuration file."""
    return Path.home() / APP_DIR_NAME / CONFIG_FILE_NAME


def default_storage_path() -> Path:
    """Location of the stored repository list."""
    return Path.home() / APP_DIR_NAME / STORAGE_FILE_NAME


@dataclass
class Config:
    """Configuration for git-repo-tree with validation."""

    # Scan roots, in the order they are scanned
    paths: List[str] = field(default_factory=list)
    ignore_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    max_depth: int = MAX_SCAN_DEPTH

    # Presentation
    show_repository_count: bool = True

    # Execution modes
    verbose: bool = False
    debug: bool = False
    sequential: bool = False  # Extract repositories one at a time
    workers: Optional[int] = None  # None = auto-detect

    # Where the scanned repository list is kept (None = default location)
    storage_path: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_paths()
        self._validate_ignore_patterns()
        self._validate_max_depth()
        self._validate_workers()

    def _validate_paths(self):
        """Validate paths is a list of non-empty absolute roots."""
        if not isinstance(self.paths, list):
            raise ValueError("paths must be a list")

        cleaned = []
        for path in self.paths:
            if not isinstance(path, str) or not path.strip():
                continue
            path = path.strip()
            if not os.path.isabs(path):
                raise ValueError(f"paths must be absolute, got '{path}'")
            cleaned.append(os.path.normpath(path))
        self.paths = cleaned

    def _validate_ignore_patterns(self):
        """Validate ignore_patterns list."""
        if not isinstance(self.ignore_patterns, list):
            raise ValueError("ignore_patterns must be a list")
        if not all(isinstance(p, str) for p in self.ignore_patterns):
            raise ValueError("ignore_patterns must contain only strings")

    def _validate_max_depth(self):
        """Validate max_depth is non-negative."""
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")

    def _validate_workers(self):
        """Validate workers is positive when given."""
        if self.workers is not None and self.workers <= 0:
            raise ValueError(f"workers must be positive, got {self.workers}")

    def resolved_storage_path(self) -> Path:
        """Storage file to use for this configuration."""
        if self.storage_path:
            return Path(self.storage_path)
        return default_storage_path()

    def to_dict(self) -> dict:
        """Convert config to a plain dictionary."""
        return {
            "paths": list(self.paths),
            "ignore_patterns": list(self.ignore_patterns),
            "max_depth": self.max_depth,
            "show_repository_count": self.show_repository_count,
            "verbose": self.verbose,
            "debug": self.debug,
            "sequential": self.sequential,
            "workers": self.workers,
            "storage_path": self.storage_path,
        }

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {
            "paths",
            "ignore_patterns",
            "max_depth",
            "show_repository_count",
            "verbose",
            "debug",
            "sequential",
            "workers",
            "storage_path",
        }

        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)

    @classmethod
    def from_file(cls, path: Union[str, Path, None] = None) -> "Config":
        """Load configuration from a JSON file.

        A missing file yields the default configuration. Invalid JSON or
        invalid values raise ValueError.
        """
        config_path = Path(path) if path else default_config_path()
        if not config_path.exists():
            return cls()

        try:
            with open(config_path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {config_path}: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Config file {config_path} must contain a JSON object")
        return cls.from_dict(data)
