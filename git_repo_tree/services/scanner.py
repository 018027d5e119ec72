"""Repository discovery: walk configured roots and extract repository records."""

import os
import re
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from functools import lru_cache
from threading import Lock
from typing import Iterator, List, Optional, Pattern, Sequence, Set, Union

from git_repo_tree.config import Config
from git_repo_tree.constants import MAX_SCAN_DEPTH, SKIP_DIRECTORIES
from git_repo_tree.exceptions import ScanRootError
from git_repo_tree.logging_config import get_logger
from git_repo_tree.models.repository import RepositoryRecord
from git_repo_tree.services.git.metadata import RepositoryInspector
from git_repo_tree.utils.paths import normalize_path
from git_repo_tree.utils.threading import get_optimal_worker_count

logger = get_logger(__name__)

GITDIR_PREFIX = "gitdir:"


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> Pattern[str]:
    """Compile an ignore glob into a regex over absolute paths.

    ``*`` and ``?`` stay within one path segment, ``**/`` spans any number
    of directories (including none) and a trailing ``/**`` matches the
    directory itself and everything below it.
    """
    parts = []
    i, n = 0, len(pattern)
    while i < n:
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("/**", i) and i + 3 == n:
            parts.append("(?:/.*)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        elif pattern[i] == "[":
            end = pattern.find("]", i + 2)
            if end == -1:
                parts.append(re.escape("["))
                i += 1
                continue
            body = pattern[i + 1:end]
            if body.startswith("!"):
                body = "^" + body[1:]
            parts.append("[" + body.replace("\\", "\\\\") + "]")
            i = end + 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts))


def matches_ignore_pattern(path: str, patterns: Sequence[str]) -> bool:
    """Case-sensitive glob match of an absolute path against ignore patterns."""
    return any(glob_to_regex(pattern).fullmatch(path) for pattern in patterns)


def is_linked_worktree(git_file: str) -> bool:
    """True if a ``.git`` file points at a linked worktree's admin directory.

    Linked worktrees live in ``<gitdir>/worktrees/<name>``, which holds a
    ``commondir`` file. Submodule git dirs never have one, even when the
    submodule itself is named ``worktrees``.
    """
    try:
        with open(git_file, "r", encoding="utf-8", errors="replace") as f:
            first_line = f.readline().strip()
    except OSError as e:
        logger.debug(f"Could not read {git_file}: {e}")
        return False

    if not first_line.startswith(GITDIR_PREFIX):
        return False
    gitdir = first_line[len(GITDIR_PREFIX):].strip()
    if not os.path.isabs(gitdir):
        gitdir = os.path.join(os.path.dirname(git_file), gitdir)
    gitdir = os.path.normpath(gitdir)

    if os.path.basename(os.path.dirname(gitdir)) != "worktrees":
        return False
    return os.path.isfile(os.path.join(gitdir, "commondir"))


@dataclass(frozen=True)
class RepositoryRoot:
    """A directory holding a ``.git`` entry."""

    path: str
    is_submodule: bool  # .git is a file rather than a directory


class DirectoryWalker:
    """Depth-bounded search for repository roots.

    Symlinked directories are never followed and a repository is never
    searched below its own root.
    """

    def __init__(self, ignore_patterns: Optional[Sequence[str]] = None, max_depth: int = MAX_SCAN_DEPTH):
        self.ignore_patterns = list(ignore_patterns or [])
        self.max_depth = max_depth

    def should_ignore(self, path: str) -> bool:
        return matches_ignore_pattern(path, self.ignore_patterns)

    def find_roots(self, root_path: str) -> Iterator[RepositoryRoot]:
        """Yield repository roots below `root_path` in depth-first order.

        Raises ScanRootError when `root_path` itself cannot be listed.
        Unreadable directories further down are logged and skipped.
        """
        root = normalize_path(root_path)
        if not os.path.isdir(root):
            raise ScanRootError(root, "not a directory")
        if self.should_ignore(root):
            logger.debug(f"Scan root {root} matches an ignore pattern")
            return
        try:
            entries = self._list(root)
        except OSError as e:
            raise ScanRootError(root, e.strerror or str(e))

        yield from self._visit(root, entries, 0)

    def _list(self, path: str) -> List[os.DirEntry]:
        with os.scandir(path) as it:
            return list(it)

    def _walk(self, path: str, depth: int) -> Iterator[RepositoryRoot]:
        if depth > self.max_depth:
            return
        if self.should_ignore(path):
            return
        try:
            entries = self._list(path)
        except OSError as e:
            logger.warning(f"Cannot access {path}: {e.strerror or e}")
            return
        yield from self._visit(path, entries, depth)

    def _visit(self, path: str, entries: List[os.DirEntry], depth: int) -> Iterator[RepositoryRoot]:
        git_entry = next((e for e in entries if e.name == ".git"), None)
        if git_entry is not None:
            try:
                is_file = git_entry.is_file()
                is_dir = git_entry.is_dir()
            except OSError as e:
                logger.warning(f"Cannot inspect {git_entry.path}: {e}")
                return

            if is_file and is_linked_worktree(git_entry.path):
                # Reported through the owning repository's worktree list
                logger.debug(f"Skipping linked worktree {path}")
                return
            if is_file or is_dir:
                yield RepositoryRoot(path=path, is_submodule=is_file)
                return

        subdirs = []
        for entry in entries:
            try:
                if not entry.is_dir(follow_symlinks=False):
                    continue
            except OSError:
                continue
            if entry.name in SKIP_DIRECTORIES:
                continue
            subdirs.append(entry.path)

        for subdir in sorted(subdirs):
            yield from self._walk(subdir, depth + 1)


@dataclass
class ScanReport:
    """Result of scanning every configured root."""

    repositories: List[RepositoryRecord] = field(default_factory=list)
    failed_roots: List[ScanRootError] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_roots)


class RepositoryScanner:
    """Finds repositories under the configured roots and extracts their metadata.

    Only one scan runs at a time; a scan requested while another is in
    flight waits for it to finish and then runs.
    """

    def __init__(self, config: Union[Config, dict], inspector: Optional[RepositoryInspector] = None):
        if isinstance(config, dict):
            config = Config.from_dict(config)
        self.config = config
        self.inspector = inspector or RepositoryInspector()
        self._scan_lock = Lock()
        self._seen_lock = Lock()

    def _walker(self) -> DirectoryWalker:
        return DirectoryWalker(self.config.ignore_patterns, self.config.max_depth)

    def _worker_count(self) -> int:
        if self.config.sequential or self.config.debug:
            return 1
        return get_optimal_worker_count(self.config.workers)

    def scan(self, root_path: str) -> List[RepositoryRecord]:
        """Scan a single root. An unreadable root yields no records."""
        report = self.scan_all([root_path])
        return report.repositories

    def scan_all(self, roots: Optional[Sequence[str]] = None) -> ScanReport:
        """Scan `roots` (default: configured paths) and merge the results.

        A repository reachable from several roots is extracted once.
        """
        roots = list(self.config.paths if roots is None else roots)
        with self._scan_lock:
            logger.info(f"Scanning {len(roots)} root(s)")
            report = self._scan_locked(roots)
            logger.info(
                f"Found {len(report.repositories)} repositories"
                + (f", {len(report.failed_roots)} root(s) failed" if report.failed_roots else "")
            )
            return report

    def _claim(self, seen: Set[str], path: str) -> bool:
        """Record `path` as taken; False if another root already reached it."""
        key = os.path.realpath(path)
        with self._seen_lock:
            if key in seen:
                return False
            seen.add(key)
            return True

    def _inspect(self, repo_root: RepositoryRoot) -> Optional[RepositoryRecord]:
        """Extract one repository; any failure drops only that repository."""
        try:
            return self.inspector.inspect(repo_root.path, repo_root.is_submodule)
        except Exception as e:
            logger.error(f"Failed to extract repository {repo_root.path}: {e}")
            return None

    def _scan_locked(self, roots: List[str]) -> ScanReport:
        report = ScanReport()
        seen: Set[str] = set()
        walker = self._walker()
        max_workers = self._worker_count()

        if max_workers == 1:
            for root in roots:
                for repo_root in self._discover(walker, root, seen, report):
                    record = self._inspect(repo_root)
                    if record:
                        report.repositories.append(record)
        else:
            logger.debug(f"Extracting repositories with {max_workers} workers")
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures: List[Future] = []
                for root in roots:
                    for repo_root in self._discover(walker, root, seen, report):
                        futures.append(executor.submit(self._inspect, repo_root))

                for future in as_completed(futures):
                    record = future.result()
                    if record:
                        report.repositories.append(record)

        report.repositories.sort(key=lambda r: r.path)
        return report

    def _discover(
        self, walker: DirectoryWalker, root: str, seen: Set[str], report: ScanReport
    ) -> Iterator[RepositoryRoot]:
        try:
            for repo_root in walker.find_roots(root):
                if self._claim(seen, repo_root.path):
                    yield repo_root
                else:
                    logger.debug(f"Already scanned {repo_root.path}, skipping")
        except ScanRootError as e:
            logger.warning(str(e))
            report.failed_roots.append(e)
