"""Parser for ``git worktree list --porcelain`` output."""

import os
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from git_repo_tree.constants import HEADS_PREFIX, SHORT_HASH_LENGTH
from git_repo_tree.logging_config import get_logger
from git_repo_tree.models.repository import WorktreeRecord
from git_repo_tree.utils.paths import normalize_path, same_path

logger = get_logger(__name__)

# Returns (short hash, first message line) for a worktree path
CommitLookup = Callable[[str], Optional[Tuple[str, str]]]


def _strip_heads(ref: str) -> str:
    if ref.startswith(HEADS_PREFIX):
        return ref[len(HEADS_PREFIX):]
    return ref


def _to_record(block: Dict[str, Any]) -> WorktreeRecord:
    path = normalize_path(block["path"])
    is_detached = block.get("detached", False)
    return WorktreeRecord(
        name="",
        path=path,
        branch=None if is_detached else block.get("branch"),
        is_main=False,
        is_detached=is_detached,
        commit_hash=block.get("hash"),
    )


def parse_porcelain_blocks(porcelain_text: str) -> List[WorktreeRecord]:
    """Parse porcelain text into raw worktree records.

    Format:
        worktree /path/to/worktree
        HEAD <sha>
        branch refs/heads/<name>     (or the line ``detached``)
        (blank line between worktrees)

    Lines that appear before any ``worktree`` line, and lines this parser
    does not know (``bare``, ``locked``, ``prunable``), are ignored.
    """
    records: List[WorktreeRecord] = []
    current: Dict[str, Any] = {}

    for raw_line in porcelain_text.split("\n"):
        line = raw_line.rstrip("\r")

        if not line.strip():
            # Empty line marks end of worktree entry
            if current.get("path"):
                records.append(_to_record(current))
            current = {}
            continue

        if line.startswith("worktree "):
            if current.get("path"):
                records.append(_to_record(current))
            path = line[len("worktree "):].strip()
            current = {"path": path} if path else {}
            continue

        if not current.get("path"):
            logger.debug(f"Ignoring porcelain line outside a worktree block: {line!r}")
            continue

        if line.startswith("HEAD "):
            if "head_seen" in current:
                continue
            ref = line[len("HEAD "):].strip()
            current["head_seen"] = True
            current["branch"] = _strip_heads(ref)
            current["hash"] = ref[:SHORT_HASH_LENGTH]
        elif line.startswith("branch "):
            current["branch"] = _strip_heads(line[len("branch "):].strip())
        elif line.strip() == "detached":
            current["detached"] = True

    # Handle last entry if no trailing blank line
    if current.get("path"):
        records.append(_to_record(current))

    return records


def parse(
    porcelain_text: str,
    repo_root_path: str,
    commit_lookup: Optional[CommitLookup] = None,
) -> List[WorktreeRecord]:
    """Parse worktree porcelain output for the repository at `repo_root_path`.

    After block parsing each record gets its name (final path segment) and
    its main flag. When `commit_lookup` is given it is queried once per
    worktree and replaces the provisional hash taken from `HEAD`; a failing
    or empty lookup keeps the worktree with hash and message unset.
    """
    root = normalize_path(repo_root_path)
    worktrees: List[WorktreeRecord] = []
    main_found = False

    for record in parse_porcelain_blocks(porcelain_text):
        is_main = not main_found and same_path(record.path, root)
        if is_main:
            main_found = True
        path = root if is_main else record.path
        worktrees.append(replace(
            record,
            name=os.path.basename(path),
            path=path,
            is_main=is_main,
        ))

    if commit_lookup is None:
        return worktrees

    return [_with_commit_metadata(wt, commit_lookup) for wt in worktrees]


def _with_commit_metadata(worktree: WorktreeRecord, commit_lookup: CommitLookup) -> WorktreeRecord:
    try:
        commit = commit_lookup(worktree.path)
    except Exception as e:
        logger.warning(f"Could not get commit info for worktree {worktree.path}: {e}")
        commit = None

    if not commit:
        return replace(worktree, commit_hash=None, commit_message=None)

    commit_hash, commit_message = commit
    return replace(worktree, commit_hash=commit_hash, commit_message=commit_message)
