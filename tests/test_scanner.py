"""Tests for repository discovery"""

import os
import threading
import time
from unittest.mock import Mock, patch

import pytest

from git_repo_tree.exceptions import ScanRootError
from git_repo_tree.services.git.metadata import RepositoryInspector
from git_repo_tree.services.scanner import (
    DirectoryWalker,
    RepositoryScanner,
    ScanReport,
    is_linked_worktree,
    matches_ignore_pattern,
)


def make_fake_repo(path):
    """Create a directory that looks like a repository root."""
    os.makedirs(os.path.join(path, ".git"), exist_ok=True)
    return str(path)


def make_worktree_admin(git_dir, name):
    """Create the admin directory git keeps for a linked worktree."""
    admin = os.path.join(str(git_dir), "worktrees", name)
    os.makedirs(admin, exist_ok=True)
    with open(os.path.join(admin, "commondir"), "w") as f:
        f.write("../..\n")
    return admin


def nested(base, depth):
    """Path `depth` directories below `base`."""
    parts = [f"d{i}" for i in range(1, depth + 1)]
    return os.path.join(str(base), *parts)


def found_paths(walker, root):
    return [r.path for r in walker.find_roots(str(root))]


@pytest.fixture
def mock_inspector(record_factory):
    inspector = Mock(spec=RepositoryInspector)
    inspector.inspect.side_effect = lambda path, is_submodule=False: record_factory(path)
    return inspector


class TestIgnorePatterns:
    """Test glob matching of ignore patterns."""

    def test_double_star_pattern(self):
        assert matches_ignore_pattern("/home/u/src/node_modules/pkg", ["**/node_modules/**"])
        assert matches_ignore_pattern("/home/u/src/node_modules", ["**/node_modules/**"])
        assert not matches_ignore_pattern("/home/u/src/app", ["**/node_modules/**"])

    def test_case_sensitive(self):
        assert not matches_ignore_pattern("/home/u/Vendor", ["**/vendor"])

    def test_no_patterns(self):
        assert not matches_ignore_pattern("/anything", [])

    def test_single_star_stays_in_one_segment(self):
        """Test `*` does not cross directory separators."""
        assert matches_ignore_pattern("/root/keep/tmp", ["/root/*/tmp"])
        assert not matches_ignore_pattern("/root/keep/a/b/tmp", ["/root/*/tmp"])

    def test_double_star_in_middle(self):
        """Test `/**/` spans zero or more directories."""
        assert matches_ignore_pattern("/root/a/cache", ["/root/**/cache"])
        assert matches_ignore_pattern("/root/a/b/c/cache", ["/root/**/cache"])
        assert matches_ignore_pattern("/root/cache", ["/root/**/cache"])

    def test_question_mark_and_class(self):
        assert matches_ignore_pattern("/src/tmp1", ["/src/tmp?"])
        assert not matches_ignore_pattern("/src/tmp/1", ["/src/tmp?"])
        assert matches_ignore_pattern("/src/v2", ["/src/v[0-9]"])
        assert not matches_ignore_pattern("/src/v2", ["/src/v[!0-9]"])

    def test_literal_characters_escaped(self):
        assert matches_ignore_pattern("/src/a.b+c", ["/src/a.b+c"])
        assert not matches_ignore_pattern("/src/axb+c", ["/src/a.b+c"])


class TestDirectoryWalker:
    """Test the depth-bounded directory walk."""

    def test_finds_repositories(self, temp_dir):
        """Test sibling repositories are found in path order."""
        make_fake_repo(temp_dir / "b")
        make_fake_repo(temp_dir / "a")
        (temp_dir / "plain").mkdir()

        assert found_paths(DirectoryWalker(), temp_dir) == [str(temp_dir / "a"), str(temp_dir / "b")]

    def test_root_itself_is_repository(self, temp_dir):
        """Test a scan root that is a repository yields itself."""
        make_fake_repo(temp_dir)
        assert found_paths(DirectoryWalker(), temp_dir) == [str(temp_dir)]

    def test_depth_limit(self, temp_dir):
        """Test repositories at depth 10 are found but not at depth 11."""
        shallow = make_fake_repo(nested(temp_dir / "x", 5))
        edge = make_fake_repo(nested(temp_dir / "y", 9))
        deep = make_fake_repo(nested(temp_dir / "z", 10))

        paths = found_paths(DirectoryWalker(), temp_dir)

        assert shallow in paths
        assert edge in paths
        assert deep not in paths

    def test_only_repository_too_deep(self, temp_dir):
        """Test a tree whose only repository is at depth 11 yields nothing."""
        make_fake_repo(nested(temp_dir, 11))
        assert found_paths(DirectoryWalker(), temp_dir) == []

    def test_custom_max_depth(self, temp_dir):
        """Test a lower max depth bounds the walk."""
        make_fake_repo(nested(temp_dir, 2))
        assert found_paths(DirectoryWalker(max_depth=1), temp_dir) == []
        assert len(found_paths(DirectoryWalker(max_depth=2), temp_dir)) == 1

    def test_nested_repository_not_reported(self, temp_dir):
        """Test the walk stops at a repository root."""
        outer = make_fake_repo(temp_dir / "outer")
        make_fake_repo(temp_dir / "outer" / "vendor" / "inner")

        assert found_paths(DirectoryWalker(), temp_dir) == [outer]

    @pytest.mark.parametrize("name", ["node_modules", ".vscode", "dist", "build", "target"])
    def test_skip_directories(self, temp_dir, name):
        """Test denylisted directory names are never entered."""
        make_fake_repo(temp_dir / name / "pkg")
        assert found_paths(DirectoryWalker(), temp_dir) == []

    def test_ignore_patterns(self, temp_dir):
        """Test configured ignore patterns prune directories."""
        make_fake_repo(temp_dir / "archive" / "old")
        keep = make_fake_repo(temp_dir / "work" / "new")

        walker = DirectoryWalker(ignore_patterns=["**/archive/**"])
        assert found_paths(walker, temp_dir) == [keep]

    def test_single_star_pattern_prunes_one_level(self, temp_dir):
        """Test a one-level pattern leaves deeper directories of the same name alone."""
        make_fake_repo(temp_dir / "skip" / "tmp")
        deep = make_fake_repo(temp_dir / "keep" / "a" / "b" / "tmp")

        walker = DirectoryWalker(ignore_patterns=[f"{temp_dir}/*/tmp"])
        assert found_paths(walker, temp_dir) == [deep]

    def test_ignored_directory_never_listed(self, temp_dir):
        """Test ignored directories are pruned before they are read."""
        make_fake_repo(temp_dir / "archive" / "old")
        walker = DirectoryWalker(ignore_patterns=["**/archive/**"])
        listed = []
        original = walker._list

        def recording_list(path):
            listed.append(path)
            return original(path)

        with patch.object(walker, "_list", side_effect=recording_list):
            assert found_paths(walker, temp_dir) == []

        assert str(temp_dir / "archive") not in listed

    def test_ignored_root(self, temp_dir):
        make_fake_repo(temp_dir / "repo")
        walker = DirectoryWalker(ignore_patterns=[str(temp_dir)])
        assert found_paths(walker, temp_dir) == []

    def test_symlinks_not_followed(self, temp_dir):
        """Test symlinked directories are not traversed."""
        real = make_fake_repo(temp_dir / "real" / "repo")
        os.symlink(temp_dir / "real", temp_dir / "link")

        assert found_paths(DirectoryWalker(), temp_dir) == [real]

    def test_git_file_marks_submodule(self, temp_dir):
        """Test a .git file that is not a linked worktree is a repository root."""
        sub = temp_dir / "sub"
        sub.mkdir()
        (sub / ".git").write_text("gitdir: ../.git/modules/sub\n")

        roots = list(DirectoryWalker().find_roots(str(temp_dir)))

        assert len(roots) == 1
        assert roots[0].path == str(sub)
        assert roots[0].is_submodule is True

    def test_linked_worktree_skipped(self, temp_dir):
        """Test linked worktree checkouts are not reported as repositories."""
        main = make_fake_repo(temp_dir / "main")
        admin = make_worktree_admin(temp_dir / "main" / ".git", "main-wt")
        wt = temp_dir / "main-wt"
        wt.mkdir()
        (wt / ".git").write_text(f"gitdir: {admin}\n")

        assert found_paths(DirectoryWalker(), temp_dir) == [main]

    def test_submodule_named_worktrees_kept(self, temp_dir):
        """Test a submodule whose git dir sits under modules/worktrees is still found."""
        parent = temp_dir / "parent"
        module_dir = parent / ".git" / "modules" / "worktrees" / "lib"
        module_dir.mkdir(parents=True)
        sub = parent / "vendor"
        sub.mkdir()
        (sub / ".git").write_text(f"gitdir: {module_dir}\n")

        roots = list(DirectoryWalker().find_roots(str(sub)))

        assert [r.path for r in roots] == [str(sub)]
        assert roots[0].is_submodule is True

    def test_missing_root_raises(self, temp_dir):
        """Test a nonexistent root raises ScanRootError."""
        with pytest.raises(ScanRootError) as exc_info:
            list(DirectoryWalker().find_roots(str(temp_dir / "missing")))
        assert exc_info.value.root == str(temp_dir / "missing")

    def test_unreadable_subdirectory_skipped(self, temp_dir):
        """Test a listing failure below the root only prunes that branch."""
        locked = temp_dir / "locked"
        make_fake_repo(locked / "hidden")
        ok = make_fake_repo(temp_dir / "open")

        walker = DirectoryWalker()
        original = walker._list

        def failing_list(path):
            if path == str(locked):
                raise PermissionError(13, "Permission denied", path)
            return original(path)

        with patch.object(walker, "_list", side_effect=failing_list):
            assert found_paths(walker, temp_dir) == [ok]


class TestIsLinkedWorktree:
    """Test .git file inspection."""

    def test_worktree_gitdir(self, temp_dir):
        admin = make_worktree_admin(temp_dir / "repo" / ".git", "feature")
        git_file = temp_dir / ".git"
        git_file.write_text(f"gitdir: {admin}\n")
        assert is_linked_worktree(str(git_file)) is True

    def test_relative_worktree_gitdir(self, temp_dir):
        make_worktree_admin(temp_dir / "repo" / ".git", "feature")
        checkout = temp_dir / "feature"
        checkout.mkdir()
        git_file = checkout / ".git"
        git_file.write_text("gitdir: ../repo/.git/worktrees/feature\n")
        assert is_linked_worktree(str(git_file)) is True

    def test_worktrees_path_without_commondir(self, temp_dir):
        """Test a git dir merely named like a worktree admin dir is not one."""
        module_dir = temp_dir / "repo" / ".git" / "modules" / "worktrees" / "lib"
        module_dir.mkdir(parents=True)
        git_file = temp_dir / ".git"
        git_file.write_text(f"gitdir: {module_dir}\n")
        assert is_linked_worktree(str(git_file)) is False

    def test_submodule_gitdir(self, temp_dir):
        git_file = temp_dir / ".git"
        git_file.write_text("gitdir: ../.git/modules/lib\n")
        assert is_linked_worktree(str(git_file)) is False

    def test_unreadable_file(self, temp_dir):
        assert is_linked_worktree(str(temp_dir / "nope")) is False


class TestRepositoryScanner:
    """Test scanning and merging across roots."""

    def test_scan_all_configured_paths(self, temp_dir, mock_config, mock_inspector):
        """Test repositories are extracted and sorted by path."""
        make_fake_repo(temp_dir / "zeta")
        make_fake_repo(temp_dir / "alpha")

        report = RepositoryScanner(mock_config, inspector=mock_inspector).scan_all()

        assert isinstance(report, ScanReport)
        assert [r.name for r in report.repositories] == ["alpha", "zeta"]
        assert not report.has_failures

    def test_overlapping_roots_deduplicated(self, temp_dir, mock_config, mock_inspector):
        """Test a repository reachable from two roots is extracted once."""
        repo = make_fake_repo(temp_dir / "group" / "repo")
        mock_config["paths"] = [str(temp_dir), str(temp_dir / "group")]

        report = RepositoryScanner(mock_config, inspector=mock_inspector).scan_all()

        assert [r.path for r in report.repositories] == [repo]
        assert mock_inspector.inspect.call_count == 1

    def test_symlinked_root_deduplicated(self, temp_dir, mock_config, mock_inspector):
        """Test a root reached through a symlink resolves to the same repository."""
        make_fake_repo(temp_dir / "real" / "repo")
        os.symlink(temp_dir / "real", temp_dir / "alias")
        mock_config["paths"] = [str(temp_dir / "real"), str(temp_dir / "alias")]

        report = RepositoryScanner(mock_config, inspector=mock_inspector).scan_all()

        assert len(report.repositories) == 1

    def test_failed_root_reported(self, temp_dir, mock_config, mock_inspector):
        """Test an unreadable root is reported while others are scanned."""
        repo = make_fake_repo(temp_dir / "ok" / "repo")
        missing = str(temp_dir / "missing")
        mock_config["paths"] = [missing, str(temp_dir / "ok")]

        report = RepositoryScanner(mock_config, inspector=mock_inspector).scan_all()

        assert [r.path for r in report.repositories] == [repo]
        assert report.has_failures
        assert [e.root for e in report.failed_roots] == [missing]

    def test_extraction_failure_dropped(self, temp_dir, mock_config, mock_inspector, record_factory):
        """Test repositories the inspector rejects are left out."""
        make_fake_repo(temp_dir / "good")
        make_fake_repo(temp_dir / "bad")
        mock_inspector.inspect.side_effect = (
            lambda path, is_submodule=False: None if path.endswith("bad") else record_factory(path)
        )

        report = RepositoryScanner(mock_config, inspector=mock_inspector).scan_all()

        assert [r.name for r in report.repositories] == ["good"]

    @pytest.mark.parametrize("sequential", [True, False])
    def test_unexpected_inspector_error_isolated(self, temp_dir, mock_config, mock_inspector, record_factory, sequential):
        """Test an unexpected error in one repository keeps its siblings in both modes."""
        for name in ["a", "b", "c"]:
            make_fake_repo(temp_dir / name)

        def inspect(path, is_submodule=False):
            if path.endswith(os.sep + "b"):
                raise RuntimeError("object database corrupted")
            return record_factory(path)

        mock_inspector.inspect.side_effect = inspect
        mock_config["sequential"] = sequential
        mock_config["workers"] = None if sequential else 3

        report = RepositoryScanner(mock_config, inspector=mock_inspector).scan_all()

        assert [r.name for r in report.repositories] == ["a", "c"]

    def test_parallel_matches_sequential(self, temp_dir, mock_config, mock_inspector):
        """Test worker pool and sequential mode give identical results."""
        for name in ["c", "a", "b", "d"]:
            make_fake_repo(temp_dir / name)

        sequential = RepositoryScanner(mock_config, inspector=mock_inspector).scan_all()
        mock_config["sequential"] = False
        mock_config["workers"] = 4
        parallel = RepositoryScanner(mock_config, inspector=mock_inspector).scan_all()

        assert [r.path for r in parallel.repositories] == [r.path for r in sequential.repositories]

    def test_scan_single_root(self, temp_dir, mock_config, mock_inspector):
        """Test scan() returns records and swallows root failures."""
        make_fake_repo(temp_dir / "one")
        scanner = RepositoryScanner(mock_config, inspector=mock_inspector)

        assert [r.name for r in scanner.scan(str(temp_dir))] == ["one"]
        assert scanner.scan(str(temp_dir / "missing")) == []

    def test_debug_forces_single_worker(self, mock_config, mock_inspector):
        mock_config["sequential"] = False
        mock_config["debug"] = True
        mock_config["workers"] = 8
        assert RepositoryScanner(mock_config, inspector=mock_inspector)._worker_count() == 1

    def test_scans_do_not_overlap(self, temp_dir, mock_config, mock_inspector):
        """Test concurrent scan requests run one after another."""
        scanner = RepositoryScanner(mock_config, inspector=mock_inspector)
        active = []
        overlaps = []
        original = scanner._scan_locked

        def slow_scan(roots):
            active.append(1)
            if len(active) > 1:
                overlaps.append(True)
            time.sleep(0.05)
            result = original(roots)
            active.pop()
            return result

        with patch.object(scanner, "_scan_locked", side_effect=slow_scan):
            threads = [threading.Thread(target=scanner.scan_all) for _ in range(3)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        assert overlaps == []
