"""Build the domain -> owner -> repository grouping tree."""

from typing import Dict, Iterable, List, Tuple, Union

from git_repo_tree.logging_config import get_logger
from git_repo_tree.models.repository import RepositoryRecord
from git_repo_tree.models.tree import (
    DomainNode,
    EmptyStateNode,
    GroupingTree,
    LocalGroupNode,
    OwnerNode,
    RepositoryLeaf,
    TreeNode,
    WorktreeLeaf,
)
from git_repo_tree.services.git.remotes import RemoteLocation, classify

logger = get_logger(__name__)


def _repository_sort_key(record: RepositoryRecord) -> Tuple[str, str]:
    return (record.name, record.path)


def make_repository_leaf(record: RepositoryRecord) -> RepositoryLeaf:
    """Leaf for `record` with one child per secondary worktree."""
    worktrees = tuple(WorktreeLeaf(wt) for wt in record.secondary_worktrees)
    return RepositoryLeaf(record=record, children=worktrees)


class _OwnerBucket:
    """Mutable owner node used only while a domain is being built."""

    def __init__(self, segment: str, full_path: str):
        self.segment = segment
        self.full_path = full_path
        self.repositories: List[RepositoryRecord] = []
        self.children: Dict[str, "_OwnerBucket"] = {}

    def child(self, segment: str) -> "_OwnerBucket":
        bucket = self.children.get(segment)
        if bucket is None:
            full_path = f"{self.full_path}/{segment}" if self.full_path else segment
            bucket = _OwnerBucket(segment, full_path)
            self.children[segment] = bucket
        return bucket


class GroupingTreeBuilder:
    """Groups a flat repository list by remote domain and owner path.

    Only the first remote of a repository is used for grouping. The result
    does not depend on the order of the input records.
    """

    def build(self, records: Iterable[RepositoryRecord]) -> GroupingTree:
        records = list(records)
        if not records:
            return GroupingTree(roots=(EmptyStateNode(),))

        by_domain: Dict[str, List[Tuple[RepositoryRecord, RemoteLocation]]] = {}
        local: List[RepositoryRecord] = []

        for record in records:
            url = record.primary_fetch_url
            if not url:
                local.append(record)
                continue
            location = classify(url)
            by_domain.setdefault(location.domain, []).append((record, location))

        roots: List[TreeNode] = [
            self._build_domain(domain, by_domain[domain]) for domain in sorted(by_domain)
        ]

        if local:
            local_sorted = tuple(sorted(local, key=_repository_sort_key))
            roots.append(LocalGroupNode(
                repositories=local_sorted,
                children=tuple(make_repository_leaf(r) for r in local_sorted),
                count=len(local_sorted),
            ))

        logger.debug(f"Built grouping tree: {len(by_domain)} domain(s), {len(local)} local repositories")
        return GroupingTree(roots=tuple(roots))

    def _build_domain(self, domain: str, entries: List[Tuple[RepositoryRecord, RemoteLocation]]) -> DomainNode:
        root = _OwnerBucket("", "")
        for record, location in entries:
            bucket = root
            for segment in location.owner_segments:
                bucket = bucket.child(segment)
            bucket.repositories.append(record)

        children, count = self._freeze_children(root, domain)
        repositories = tuple(sorted((record for record, _ in entries), key=_repository_sort_key))
        return DomainNode(domain=domain, repositories=repositories, children=children, count=count)

    def _freeze_children(
        self, bucket: _OwnerBucket, domain: str
    ) -> Tuple[Tuple[Union[OwnerNode, RepositoryLeaf], ...], int]:
        """Ordered immutable children of `bucket` and its aggregated count.

        Owner nodes come first, by segment; repository leaves follow, by name.
        """
        owners = []
        count = len(bucket.repositories)
        for segment in sorted(bucket.children):
            node = self._freeze(bucket.children[segment], domain)
            count += node.count
            owners.append(node)

        leaves = [make_repository_leaf(r) for r in sorted(bucket.repositories, key=_repository_sort_key)]
        return tuple(owners) + tuple(leaves), count

    def _freeze(self, bucket: _OwnerBucket, domain: str) -> OwnerNode:
        children, count = self._freeze_children(bucket, domain)
        return OwnerNode(
            segment=bucket.segment,
            full_path=bucket.full_path,
            domain=domain,
            repositories=tuple(sorted(bucket.repositories, key=_repository_sort_key)),
            children=children,
            count=count,
        )


def build_tree(records: Iterable[RepositoryRecord]) -> GroupingTree:
    """Convenience wrapper around GroupingTreeBuilder.build."""
    return GroupingTreeBuilder().build(records)
