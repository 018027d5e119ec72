"""Command-line interface for git-repo-tree"""

import os
import sys
from typing import List, Optional

from rich.console import Console

from git_repo_tree.cli.args import parse_args
from git_repo_tree.config import Config
from git_repo_tree.core.navigator import RepositoryNavigator
from git_repo_tree.logging_config import setup_logging
from git_repo_tree.services.display_service import DisplayService

console = Console()


def build_config(parsed_args) -> Config:
    """Configuration file values, overridden by command-line options."""
    values = Config.from_file(parsed_args.config).to_dict()

    if parsed_args.paths:
        values["paths"] = [os.path.abspath(path) for path in parsed_args.paths]
    if parsed_args.ignore is not None:
        values["ignore_patterns"] = parsed_args.ignore
    if parsed_args.max_depth is not None:
        values["max_depth"] = parsed_args.max_depth
    if parsed_args.no_counts:
        values["show_repository_count"] = False
    if parsed_args.workers is not None:
        values["workers"] = parsed_args.workers
    if parsed_args.sequential:
        values["sequential"] = True
    values["verbose"] = parsed_args.verbose or values["verbose"]
    values["debug"] = parsed_args.debug or values["debug"]

    return Config.from_dict(values)


def _print_debug_info(config: Config) -> None:
    from git_repo_tree.utils.threading import get_threading_info

    threading_info = get_threading_info()
    console.print("[yellow]Debug mode enabled[/yellow]")
    console.print("[yellow]Threading Information:[/yellow]")
    console.print(f"  Python version: {threading_info['python_version']}")
    console.print(f"  Threading mode: {threading_info['mode']}")
    console.print(f"  CPU count: {threading_info['cpu_count']}")
    console.print(f"  Optimal workers: {threading_info['optimal_workers']}")
    console.print("[yellow]Configuration:[/yellow]")
    for key, value in config.to_dict().items():
        console.print(f"  {key}: {value}")
    console.print("[dim]Note: Debug mode extracts repositories sequentially for readable logs[/dim]")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = None
    try:
        parsed_args = parse_args(argv)
        config = build_config(parsed_args)
        setup_logging(verbose=config.verbose, debug=config.debug)

        if config.debug:
            _print_debug_info(config)

        navigator = RepositoryNavigator(config)
        display = DisplayService(
            show_counts=config.show_repository_count,
            expand_all=parsed_args.expand_all,
        )

        # Explicit roots always rescan; stored results may come from other roots
        if parsed_args.refresh or parsed_args.paths:
            with console.status("Scanning for repositories..."):
                report = navigator.refresh()
        else:
            report = navigator.ensure_scanned()
        if report is not None:
            display.display_scan_failures(report)

        active_path = os.path.abspath(parsed_args.active) if parsed_args.active else os.getcwd()

        if parsed_args.json:
            console.print_json(data=[record.to_dict() for record in navigator.repositories()])
        elif parsed_args.list:
            display.display_pick_items(navigator.quick_pick_items(), active_path)
        else:
            tree = navigator.build_tree()
            display.display_tree(tree, navigator.expansion(active_path, tree))
            display.display_summary(tree)

        return 0
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if parsed_args is not None and parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
