"""Shared constants for git-repo-tree."""

from typing import List

# Directory traversal
MAX_SCAN_DEPTH = 10

# Directory names that are never descended into
SKIP_DIRECTORIES = frozenset({
    "node_modules",
    ".vscode",
    "dist",
    "build",
    "target",
    ".git",
})

DEFAULT_IGNORE_PATTERNS: List[str] = [
    "**/node_modules/**",
    "**/.vscode/**",
    "**/dist/**",
    "**/build/**",
    "**/target/**",
]

# Porcelain / ref handling
HEADS_PREFIX = "refs/heads/"
SHORT_HASH_LENGTH = 8

# Fallback label for remotes we cannot decompose
UNKNOWN = "unknown"

# Node identity prefixes exposed to the presentation layer
DOMAIN_ID_PREFIX = "domain"
OWNER_ID_PREFIX = "owner"
REPO_ID_PREFIX = "repo"
WORKTREE_ID_PREFIX = "worktree"
LOCAL_GROUP_ID = "local-group"
EMPTY_STATE_ID = "empty-state"
LOCAL_OWNER_SCOPE = "local"

# Display strings
LOCAL_GROUP_LABEL = "Local"
EMPTY_STATE_LABEL = "No repositories found"
DETACHED_LABEL = "detached"
DESCRIPTION_SEPARATOR = " • "

# Symbol constants
SYMBOL_CURRENT = "●"
SYMBOL_COLLAPSED = "▸"
SYMBOL_WORKTREE = "⊢"

# Application home (config, storage, logs)
APP_DIR_NAME = ".git-repo-tree"
STORAGE_FILE_NAME = "repositories.json"
CONFIG_FILE_NAME = "config.json"
LOG_FILE_NAME = "git-repo-tree.log"
