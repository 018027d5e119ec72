"""Repository, remote and worktree data models."""

import os
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class RemoteRecord:
    """A configured git remote."""

    name: str
    fetch_url: Optional[str] = None
    push_url: Optional[str] = None

    def to_dict(self) -> dict:
        return {"name": self.name, "fetch_url": self.fetch_url, "push_url": self.push_url}

    @classmethod
    def from_dict(cls, data: dict) -> "RemoteRecord":
        return cls(
            name=data["name"],
            fetch_url=data.get("fetch_url"),
            push_url=data.get("push_url"),
        )


@dataclass(frozen=True)
class WorktreeRecord:
    """A working tree attached to a repository."""

    name: str
    path: str
    branch: Optional[str] = None
    is_main: bool = False  # Is this the repository's own working tree?
    is_detached: bool = False
    commit_hash: Optional[str] = None  # Short hash
    commit_message: Optional[str] = None  # First line only

    def __str__(self) -> str:
        ref = self.branch or ("detached" if self.is_detached else "?")
        main_marker = " (main)" if self.is_main else ""
        return f"{ref} @ {self.path}{main_marker}"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "path": self.path,
            "branch": self.branch,
            "is_main": self.is_main,
            "is_detached": self.is_detached,
            "commit_hash": self.commit_hash,
            "commit_message": self.commit_message,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorktreeRecord":
        return cls(
            name=data["name"],
            path=data["path"],
            branch=data.get("branch"),
            is_main=bool(data.get("is_main", False)),
            is_detached=bool(data.get("is_detached", False)),
            commit_hash=data.get("commit_hash"),
            commit_message=data.get("commit_message"),
        )


@dataclass
class RepositoryRecord:
    """A discovered repository. `path` is the unique key."""

    path: str
    name: str
    remotes: List[RemoteRecord] = field(default_factory=list)
    current_branch: Optional[str] = None
    is_submodule: bool = False
    worktrees: List[WorktreeRecord] = field(default_factory=list)
    last_scanned: str = ""  # ISO-8601 timestamp

    @property
    def primary_fetch_url(self) -> Optional[str]:
        """Fetch URL of the first remote, if it has one.

        Later remotes are never consulted, so a repository whose first
        remote lacks a fetch URL is grouped as local.
        """
        if self.remotes and self.remotes[0].fetch_url:
            return self.remotes[0].fetch_url
        return None

    @property
    def main_worktree(self) -> Optional[WorktreeRecord]:
        for worktree in self.worktrees:
            if worktree.is_main:
                return worktree
        return None

    @property
    def secondary_worktrees(self) -> List[WorktreeRecord]:
        """Linked worktrees ordered by name, then path."""
        return sorted(
            (wt for wt in self.worktrees if not wt.is_main),
            key=lambda wt: (wt.name, wt.path),
        )

    def contains_path(self, path: Optional[str]) -> bool:
        """True when `path` is this repository's root or one of its worktrees."""
        if not path:
            return False
        target = os.path.normpath(path)
        if os.path.normpath(self.path) == target:
            return True
        return any(os.path.normpath(wt.path) == target for wt in self.worktrees)

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "name": self.name,
            "remotes": [remote.to_dict() for remote in self.remotes],
            "current_branch": self.current_branch,
            "is_submodule": self.is_submodule,
            "worktrees": [wt.to_dict() for wt in self.worktrees],
            "last_scanned": self.last_scanned,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RepositoryRecord":
        return cls(
            path=data["path"],
            name=data.get("name") or os.path.basename(data["path"]),
            remotes=[RemoteRecord.from_dict(r) for r in data.get("remotes", [])],
            current_branch=data.get("current_branch"),
            is_submodule=bool(data.get("is_submodule", False)),
            worktrees=[WorktreeRecord.from_dict(w) for w in data.get("worktrees", [])],
            last_scanned=data.get("last_scanned", ""),
        )
