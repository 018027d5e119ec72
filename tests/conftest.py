"""Pytest fixtures for git-repo-tree tests"""
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

import git
import pytest

from git_repo_tree.models.repository import RemoteRecord, RepositoryRecord, WorktreeRecord


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(os.path.realpath(tmpdir))


@pytest.fixture
def mock_config(temp_dir):
    """Create a configuration dictionary pointing at the temp directory."""
    return {
        'paths': [str(temp_dir)],
        'ignore_patterns': [],
        'max_depth': 10,
        'show_repository_count': True,
        'verbose': False,
        'debug': False,
        'sequential': True,
        'workers': None,
        'storage_path': str(temp_dir / 'store' / 'repositories.json'),
    }


def init_repo(path: Path, remote_url: Optional[str] = 'git@github.com:test/test-repo.git') -> git.Repo:
    """Initialize a repository with one commit on `main`."""
    path.mkdir(parents=True, exist_ok=True)
    repo = git.Repo.init(path)

    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    readme = path / "README.md"
    readme.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit\n\nLonger description")

    repo.git.branch('-M', 'main')

    if remote_url:
        repo.create_remote('origin', remote_url)
    return repo


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository for testing."""
    repo = init_repo(temp_dir / "test_repo")
    yield repo
    repo.close()


@pytest.fixture
def git_repo_with_worktree(git_repo, temp_dir):
    """Repository with a linked worktree on branch feature/wt."""
    worktree_path = temp_dir / "test_repo-wt"
    git_repo.git.worktree("add", "-b", "feature/wt", str(worktree_path))
    yield git_repo, worktree_path


def make_record(
    path: str,
    url: Optional[str] = None,
    worktree_paths: Sequence[str] = (),
    name: Optional[str] = None,
    remotes: Optional[List[RemoteRecord]] = None,
    branch: Optional[str] = "main",
) -> RepositoryRecord:
    """Build a repository record without touching git."""
    if remotes is None:
        remotes = [RemoteRecord("origin", url, url)] if url else []
    worktrees = [WorktreeRecord(name=os.path.basename(path), path=path, branch=branch, is_main=True)]
    for wt_path in worktree_paths:
        worktrees.append(WorktreeRecord(
            name=os.path.basename(wt_path),
            path=wt_path,
            branch=f"feature/{os.path.basename(wt_path)}",
        ))
    return RepositoryRecord(
        path=path,
        name=name or os.path.basename(path),
        remotes=remotes,
        current_branch=branch,
        worktrees=worktrees,
        last_scanned="2026-01-01T00:00:00+00:00",
    )


@pytest.fixture
def record_factory():
    """Factory for RepositoryRecord objects."""
    return make_record


@pytest.fixture
def sample_records(record_factory):
    """A small mixed set of repositories."""
    return [
        record_factory("/src/widgets", "git@github.com:acme/widgets.git"),
        record_factory("/src/gadgets", "https://github.com/acme/gadgets.git"),
        record_factory("/src/proj", "https://gitlab.com/org/team/proj.git", worktree_paths=["/src/proj-wt"]),
        record_factory("/src/notes"),
    ]


@pytest.fixture
def repo_factory():
    """Factory creating real repositories; closed at teardown."""
    created = []

    def factory(path: Path, remote_url: Optional[str] = 'git@github.com:test/test-repo.git') -> git.Repo:
        repo = init_repo(path, remote_url)
        created.append(repo)
        return repo

    yield factory
    for repo in created:
        repo.close()
