"""Grouping tree node types.

The tree is a closed set of node variants. Every variant exposes the same
small surface: ``kind``, ``node_id``, ``label``, ``description``,
``children`` (an immutable, already ordered tuple) and ``count`` (number of
repositories represented by the node and its descendants).
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterator, Optional, Tuple, Union

from git_repo_tree.constants import (
    DETACHED_LABEL,
    DOMAIN_ID_PREFIX,
    EMPTY_STATE_ID,
    EMPTY_STATE_LABEL,
    LOCAL_GROUP_ID,
    LOCAL_GROUP_LABEL,
    LOCAL_OWNER_SCOPE,
    OWNER_ID_PREFIX,
    REPO_ID_PREFIX,
    WORKTREE_ID_PREFIX,
)
from git_repo_tree.models.repository import RepositoryRecord, WorktreeRecord


class NodeKind(Enum):
    """Kind tag of a grouping tree node."""
    DOMAIN = "domain"
    OWNER = "owner"
    LOCAL_GROUP = "local-group"
    REPOSITORY = "repository"
    WORKTREE = "worktree"
    EMPTY = "empty"


@dataclass(frozen=True)
class WorktreeLeaf:
    """A linked (non-main) worktree shown under its repository."""

    worktree: WorktreeRecord

    kind: ClassVar[NodeKind] = NodeKind.WORKTREE

    @property
    def node_id(self) -> str:
        return f"{WORKTREE_ID_PREFIX}:{self.worktree.path}"

    @property
    def label(self) -> str:
        return self.worktree.name

    @property
    def description(self) -> str:
        if self.worktree.branch:
            return self.worktree.branch
        if self.worktree.is_detached:
            return DETACHED_LABEL
        return ""

    @property
    def children(self) -> Tuple[()]:
        return ()

    @property
    def count(self) -> int:
        return 0


@dataclass(frozen=True)
class RepositoryLeaf:
    """A single repository; children are its secondary worktrees."""

    record: RepositoryRecord
    children: Tuple[WorktreeLeaf, ...] = ()

    kind: ClassVar[NodeKind] = NodeKind.REPOSITORY

    @property
    def node_id(self) -> str:
        return f"{REPO_ID_PREFIX}:{self.record.path}"

    @property
    def label(self) -> str:
        return self.record.name

    @property
    def description(self) -> str:
        return self.record.current_branch or ""

    @property
    def count(self) -> int:
        return 1


@dataclass(frozen=True)
class OwnerNode:
    """One segment of an owner path (``org`` in ``org/team/proj``)."""

    segment: str
    full_path: str
    domain: str
    repositories: Tuple[RepositoryRecord, ...]  # attached directly to this node
    children: Tuple[Union["OwnerNode", RepositoryLeaf], ...]
    count: int

    kind: ClassVar[NodeKind] = NodeKind.OWNER

    @property
    def node_id(self) -> str:
        return f"{OWNER_ID_PREFIX}:{self.domain or LOCAL_OWNER_SCOPE}:{self.full_path}"

    @property
    def label(self) -> str:
        return self.segment

    @property
    def description(self) -> str:
        return self.full_path

    def child(self, segment: str) -> Optional["OwnerNode"]:
        """Return the child owner node for `segment`, if any."""
        for node in self.children:
            if isinstance(node, OwnerNode) and node.segment == segment:
                return node
        return None

    def all_repositories(self) -> Iterator[RepositoryRecord]:
        """Repositories in this node's bucket and every descendant bucket."""
        yield from self.repositories
        for node in self.children:
            if isinstance(node, OwnerNode):
                yield from node.all_repositories()


@dataclass(frozen=True)
class DomainNode:
    """All repositories whose first remote lives on `domain`."""

    domain: str
    repositories: Tuple[RepositoryRecord, ...]
    children: Tuple[Union[OwnerNode, RepositoryLeaf], ...]
    count: int

    kind: ClassVar[NodeKind] = NodeKind.DOMAIN

    @property
    def node_id(self) -> str:
        return f"{DOMAIN_ID_PREFIX}:{self.domain}"

    @property
    def label(self) -> str:
        return self.domain

    @property
    def description(self) -> str:
        return ""

    def child(self, segment: str) -> Optional[OwnerNode]:
        for node in self.children:
            if isinstance(node, OwnerNode) and node.segment == segment:
                return node
        return None


@dataclass(frozen=True)
class LocalGroupNode:
    """Repositories without a usable remote."""

    repositories: Tuple[RepositoryRecord, ...]
    children: Tuple[RepositoryLeaf, ...]
    count: int

    kind: ClassVar[NodeKind] = NodeKind.LOCAL_GROUP

    @property
    def node_id(self) -> str:
        return LOCAL_GROUP_ID

    @property
    def label(self) -> str:
        return LOCAL_GROUP_LABEL

    @property
    def description(self) -> str:
        return ""


@dataclass(frozen=True)
class EmptyStateNode:
    """Placeholder root shown when no repositories are known."""

    kind: ClassVar[NodeKind] = NodeKind.EMPTY

    @property
    def node_id(self) -> str:
        return EMPTY_STATE_ID

    @property
    def label(self) -> str:
        return EMPTY_STATE_LABEL

    @property
    def description(self) -> str:
        return ""

    @property
    def children(self) -> Tuple[()]:
        return ()

    @property
    def count(self) -> int:
        return 0


TreeNode = Union[DomainNode, OwnerNode, LocalGroupNode, RepositoryLeaf, WorktreeLeaf, EmptyStateNode]


@dataclass(frozen=True)
class GroupingTree:
    """Ordered root nodes of the grouping hierarchy."""

    roots: Tuple[TreeNode, ...]

    @property
    def is_empty(self) -> bool:
        return all(isinstance(node, EmptyStateNode) for node in self.roots)

    @property
    def repository_count(self) -> int:
        return sum(node.count for node in self.roots)

    def walk(self) -> Iterator[TreeNode]:
        """Yield every node in pre-order."""
        stack = list(reversed(self.roots))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find(self, node_id: str) -> Optional[TreeNode]:
        for node in self.walk():
            if node.node_id == node_id:
                return node
        return None

    def domain(self, name: str) -> Optional[DomainNode]:
        for node in self.roots:
            if isinstance(node, DomainNode) and node.domain == name:
                return node
        return None

    @property
    def local_group(self) -> Optional[LocalGroupNode]:
        for node in self.roots:
            if isinstance(node, LocalGroupNode):
                return node
        return None
