"""Core functionality for git-repo-tree"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from git_repo_tree.config import Config
from git_repo_tree.constants import DESCRIPTION_SEPARATOR, DETACHED_LABEL, LOCAL_GROUP_LABEL
from git_repo_tree.logging_config import get_logger
from git_repo_tree.models.repository import RepositoryRecord, WorktreeRecord
from git_repo_tree.models.tree import GroupingTree
from git_repo_tree.services.git.metadata import RepositoryInspector
from git_repo_tree.services.git.remotes import classify
from git_repo_tree.services.grouping import GroupingTreeBuilder
from git_repo_tree.services.scanner import RepositoryScanner, ScanReport
from git_repo_tree.services.storage import RepositoryStorage
from git_repo_tree.services.workspace import NodeState, WorkspaceTracker

logger = get_logger(__name__)


@dataclass(frozen=True)
class PickItem:
    """One entry of the flat repository picker."""

    group: str  # domain, or the local group label
    label: str
    description: str
    path: str  # what to open
    repository: RepositoryRecord
    worktree: Optional[WorktreeRecord] = None


def _worktree_description(worktree: WorktreeRecord) -> str:
    parts = []
    if worktree.branch:
        parts.append(worktree.branch)
    elif worktree.is_detached:
        parts.append(DETACHED_LABEL)
    if worktree.commit_hash:
        parts.append(worktree.commit_hash)
    if worktree.commit_message:
        parts.append(worktree.commit_message)
    return DESCRIPTION_SEPARATOR.join(parts)


class RepositoryNavigator:
    """Ties scanning, storage, grouping and workspace tracking together."""

    def __init__(
        self,
        config: Union[Config, dict],
        storage: Optional[RepositoryStorage] = None,
        inspector: Optional[RepositoryInspector] = None,
    ):
        """Initialize the navigator.

        Args:
            config: Configuration dict or Config object
            storage: Repository store; defaults to the configured location
            inspector: Metadata extractor handed to the scanner
        """
        if isinstance(config, dict):
            config = Config.from_dict(config)
        self.config = config
        self.storage = storage or RepositoryStorage(config.resolved_storage_path())
        self.scanner = RepositoryScanner(config, inspector=inspector)
        self.builder = GroupingTreeBuilder()
        self.tracker = WorkspaceTracker()

    def refresh(self) -> ScanReport:
        """Scan every configured root and replace the stored list."""
        report = self.scanner.scan_all()
        self.storage.save_repositories(report.repositories)
        return report

    def ensure_scanned(self) -> Optional[ScanReport]:
        """Scan only if nothing has been stored yet."""
        if self.storage.get_repositories():
            return None
        logger.info("No stored repositories, scanning configured paths")
        return self.refresh()

    def repositories(self) -> List[RepositoryRecord]:
        return self.storage.get_repositories()

    def build_tree(self) -> GroupingTree:
        return self.builder.build(self.repositories())

    def expansion(self, active_path: Optional[str], tree: Optional[GroupingTree] = None) -> Dict[str, NodeState]:
        """Node flags for `active_path` over `tree` (built fresh when omitted)."""
        if tree is None:
            tree = self.build_tree()
        return self.tracker.compute_expansion(tree, active_path)

    def quick_pick_items(self) -> List[PickItem]:
        """Flat, grouped list of everything that can be opened.

        Repositories with linked worktrees contribute one entry per
        worktree; other repositories contribute a single entry.
        """
        domains: Dict[str, List[RepositoryRecord]] = {}
        local: List[RepositoryRecord] = []
        for record in self.repositories():
            if record.primary_fetch_url:
                domains.setdefault(classify(record.primary_fetch_url).domain, []).append(record)
            else:
                local.append(record)

        items: List[PickItem] = []
        for domain in sorted(domains):
            for record in sorted(domains[domain], key=lambda r: (r.name, r.path)):
                prefix = classify(record.primary_fetch_url).owner_path
                items.extend(self._items_for(domain, prefix, record))

        for record in sorted(local, key=lambda r: (r.name, r.path)):
            items.extend(self._items_for(LOCAL_GROUP_LABEL, record.name, record))

        return items

    def _items_for(self, group: str, prefix: str, record: RepositoryRecord) -> List[PickItem]:
        if len(record.worktrees) <= 1:
            return [PickItem(
                group=group,
                label=prefix,
                description=record.current_branch or "",
                path=record.path,
                repository=record,
            )]

        worktrees = sorted(record.worktrees, key=lambda wt: (not wt.is_main, wt.name, wt.path))
        return [
            PickItem(
                group=group,
                label=f"{prefix}/{wt.name}",
                description=_worktree_description(wt),
                path=wt.path,
                repository=record,
                worktree=wt,
            )
            for wt in worktrees
        ]
