"""Command-line argument parsing for git-repo-tree."""

import argparse
from typing import List, Optional

from git_repo_tree.__version__ import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-repo-tree",
        description="Find git repositories and show them grouped by remote host and owner",
        epilog="Scan roots and ignore patterns can also be set in ~/.git-repo-tree/config.json",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Directories to scan (overrides the configured paths)",
    )
    parser.add_argument("--version", action="version", version=f"git-repo-tree {__version__}")
    parser.add_argument("--config", metavar="FILE", help="Configuration file (JSON)")
    parser.add_argument(
        "--ignore",
        nargs="*",
        metavar="GLOB",
        help="Ignore patterns, replacing the configured ones (e.g. '**/vendor/**')",
    )
    parser.add_argument("--max-depth", type=int, metavar="N", help="Maximum directory depth to search")
    parser.add_argument("--refresh", action="store_true", help="Rescan instead of using stored results")
    parser.add_argument(
        "--active",
        metavar="PATH",
        help="Location to highlight in the tree (default: current directory)",
    )
    parser.add_argument("--expand-all", action="store_true", help="Show every node expanded")
    parser.add_argument("--list", action="store_true", help="Show a flat list of repositories and worktrees")
    parser.add_argument("--json", action="store_true", help="Print stored repository records as JSON")
    parser.add_argument("--no-counts", action="store_true", help="Hide repository counts on group nodes")
    parser.add_argument(
        "--workers",
        type=int,
        metavar="N",
        help="Number of parallel workers for repository extraction (default: auto-detect)",
    )
    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Extract repositories one at a time",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    return parser


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
