"""Expansion and "current" flags for the node holding the active location."""

import os
from dataclasses import dataclass
from typing import Dict, Optional

from git_repo_tree.models.tree import (
    DomainNode,
    GroupingTree,
    LocalGroupNode,
    OwnerNode,
    RepositoryLeaf,
    TreeNode,
    WorktreeLeaf,
)


@dataclass(frozen=True)
class NodeState:
    """Presentation flags of one tree node."""

    is_expanded: bool = False
    is_current: bool = False
    contains_active: bool = False  # active path is this node or below it


COLLAPSED = NodeState()


class WorkspaceTracker:
    """Derives per-node flags from a tree and an active filesystem path.

    Flags are returned as a side map keyed by node id; tree nodes are never
    modified, so computing twice with the same inputs gives equal maps.
    """

    def compute_expansion(self, tree: GroupingTree, active_path: Optional[str] = None) -> Dict[str, NodeState]:
        target = os.path.normpath(active_path) if active_path else None
        states: Dict[str, NodeState] = {}
        for root in tree.roots:
            self._visit(root, target, states)
        return states

    def current_node_id(self, tree: GroupingTree, active_path: Optional[str] = None) -> Optional[str]:
        """Id of the single node flagged current, if any."""
        for node_id, state in self.compute_expansion(tree, active_path).items():
            if state.is_current:
                return node_id
        return None

    def _visit(self, node: TreeNode, target: Optional[str], states: Dict[str, NodeState]) -> bool:
        if isinstance(node, RepositoryLeaf):
            contains = node.record.contains_path(target)
            is_current = target is not None and os.path.normpath(node.record.path) == target
            for child in node.children:
                self._visit(child, target, states)
            states[node.node_id] = NodeState(
                is_expanded=contains and bool(node.children),
                is_current=is_current,
                contains_active=contains,
            )
            return contains

        if isinstance(node, WorktreeLeaf):
            is_current = target is not None and os.path.normpath(node.worktree.path) == target
            states[node.node_id] = NodeState(is_current=is_current, contains_active=is_current)
            return is_current

        if isinstance(node, (DomainNode, OwnerNode, LocalGroupNode)):
            # Descend fully: the match can sit at any depth below this node
            contains = False
            for child in node.children:
                if self._visit(child, target, states):
                    contains = True
            states[node.node_id] = NodeState(is_expanded=contains, contains_active=contains)
            return contains

        states[node.node_id] = COLLAPSED
        return False


def compute_expansion(tree: GroupingTree, active_path: Optional[str] = None) -> Dict[str, NodeState]:
    """Convenience wrapper around WorkspaceTracker.compute_expansion."""
    return WorkspaceTracker().compute_expansion(tree, active_path)
