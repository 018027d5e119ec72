"""Console rendering of the grouping tree and the repository picker"""
from typing import Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from git_repo_tree.constants import SYMBOL_COLLAPSED, SYMBOL_CURRENT, SYMBOL_WORKTREE
from git_repo_tree.core.navigator import PickItem
from git_repo_tree.logging_config import get_logger
from git_repo_tree.models.tree import GroupingTree, NodeKind, TreeNode
from git_repo_tree.services.scanner import ScanReport
from git_repo_tree.services.workspace import COLLAPSED, NodeState

console = Console()
logger = get_logger(__name__)

GROUP_KINDS = (NodeKind.DOMAIN, NodeKind.OWNER, NodeKind.LOCAL_GROUP)


class DisplayService:
    def __init__(self, show_counts: bool = True, expand_all: bool = False, out: Optional[Console] = None):
        self.show_counts = show_counts
        self.expand_all = expand_all
        self.console = out or console

    def node_text(self, node: TreeNode, state: NodeState) -> Text:
        """Styled one-line label for a node."""
        text = Text()
        if state.is_current:
            text.append(f"{SYMBOL_CURRENT} ", style="bold green")
        elif node.children and not (state.is_expanded or self.expand_all):
            text.append(f"{SYMBOL_COLLAPSED} ", style="dim")

        if node.kind == NodeKind.WORKTREE:
            text.append(f"{SYMBOL_WORKTREE} ", style="magenta")

        if node.kind in GROUP_KINDS:
            style = "bold cyan" if state.contains_active else "bold"
        elif node.kind == NodeKind.EMPTY:
            style = "italic dim"
        else:
            style = "green" if state.contains_active else ""
        if state.is_current:
            style = "bold green"
        text.append(node.label, style=style)

        if self.show_counts and node.kind in GROUP_KINDS:
            text.append(f" ({node.count})", style="dim")
        if node.description and node.kind in (NodeKind.REPOSITORY, NodeKind.WORKTREE):
            text.append(f"  {node.description}", style="yellow")
        return text

    def render_tree(self, tree: GroupingTree, states: Optional[Dict[str, NodeState]] = None) -> Tree:
        """Build a rich Tree; collapsed nodes hide their children unless expand_all."""
        states = states or {}
        rendered = Tree(Text("Repositories", style="bold"), guide_style="dim")
        for root in tree.roots:
            self._add(rendered, root, states)
        return rendered

    def _add(self, parent: Tree, node: TreeNode, states: Dict[str, NodeState]) -> None:
        state = states.get(node.node_id, COLLAPSED)
        branch = parent.add(self.node_text(node, state))
        if state.is_expanded or self.expand_all:
            for child in node.children:
                self._add(branch, child, states)

    def display_tree(self, tree: GroupingTree, states: Optional[Dict[str, NodeState]] = None) -> None:
        self.console.print(self.render_tree(tree, states))

    def pick_table(self, items: List[PickItem], active_path: Optional[str] = None) -> Table:
        """Table of picker entries, grouped by domain then local."""
        table = Table()
        table.add_column("Group", style="cyan")
        table.add_column("Repository")
        table.add_column("Details", style="yellow")
        table.add_column("Path", style="dim")

        previous_group = None
        for item in items:
            group = item.group if item.group != previous_group else ""
            previous_group = item.group
            label = f"{SYMBOL_WORKTREE} {item.label}" if item.worktree and not item.worktree.is_main else item.label
            style = "bold green" if active_path and item.path == active_path else None
            table.add_row(group, label, item.description, item.path, style=style)
        return table

    def display_pick_items(self, items: List[PickItem], active_path: Optional[str] = None) -> None:
        if not items:
            self.console.print("[yellow]No repositories found. Add scan paths to the configuration.[/yellow]")
            return
        self.console.print(self.pick_table(items, active_path))

    def display_scan_failures(self, report: ScanReport) -> None:
        """One notification listing every root that could not be scanned."""
        if not report.has_failures:
            return
        lines = "\n".join(f"• {error.root}: {error.message or 'unreadable'}" for error in report.failed_roots)
        self.console.print(Panel(lines, title="Some paths could not be scanned", border_style="yellow"))

    def display_summary(self, tree: GroupingTree) -> None:
        domains = sum(1 for node in tree.roots if node.kind == NodeKind.DOMAIN)
        self.console.print(
            f"\n[dim]{tree.repository_count} repositories across {domains} domain(s)[/dim]"
        )
