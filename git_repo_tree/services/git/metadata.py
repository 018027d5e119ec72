"""Repository metadata extraction using GitPython."""

import os
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import git

from git_repo_tree.constants import SHORT_HASH_LENGTH
from git_repo_tree.exceptions import RepositoryExtractionError
from git_repo_tree.logging_config import get_logger
from git_repo_tree.models.repository import RemoteRecord, RepositoryRecord, WorktreeRecord
from git_repo_tree.services.git.worktrees import parse as parse_worktrees
from git_repo_tree.services.git.remotes import parse_remote_listing
from git_repo_tree.utils.paths import normalize_path

logger = get_logger(__name__)

DETACHED_HEAD_MARKER = "(detached)"


def _describe_git_error(e: git.exc.GitCommandError) -> str:
    stderr = (e.stderr if hasattr(e, "stderr") else str(e)).strip()
    status = e.status if hasattr(e, "status") else "unknown"
    if stderr:
        return f"exit {status}: {stderr}"
    return f"exit code {status}"


class RepositoryInspector:
    """Reads remotes, branch and worktrees of a single repository.

    Each call opens its own ``git.Repo`` so one inspector can be shared by
    several worker threads.
    """

    def _get_repo(self, path: str) -> git.Repo:
        return git.Repo(path)

    def inspect(self, repo_path: str, is_submodule: bool = False) -> Optional[RepositoryRecord]:
        """Extract a record, or return None when the repository is unusable."""
        try:
            return self.extract(repo_path, is_submodule)
        except RepositoryExtractionError as e:
            logger.error(str(e))
            return None

    def extract(self, repo_path: str, is_submodule: bool = False) -> RepositoryRecord:
        """Extract a record for the repository rooted at `repo_path`.

        Missing remotes, branch or commit details leave the matching fields
        unset. Raises RepositoryExtractionError when the repository itself
        cannot be opened or disappears while being read.
        """
        root = normalize_path(repo_path)
        try:
            repo = self._get_repo(root)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise RepositoryExtractionError(root, f"not a usable repository ({type(e).__name__})")
        except OSError as e:
            raise RepositoryExtractionError(root, str(e))

        try:
            current_branch = self.get_current_branch(repo, root)
            remotes = self.get_remotes(repo, root)
            worktrees = self.get_worktrees(repo, root, current_branch)
        finally:
            repo.close()

        if not os.path.isdir(root):
            raise RepositoryExtractionError(root, "repository disappeared during extraction")

        record = RepositoryRecord(
            path=root,
            name=os.path.basename(root),
            remotes=remotes,
            current_branch=current_branch,
            is_submodule=is_submodule,
            worktrees=worktrees,
            last_scanned=datetime.now(timezone.utc).isoformat(),
        )
        logger.debug(f"Extracted {record.name}: {len(remotes)} remote(s), {len(worktrees)} worktree(s)")
        return record

    def get_current_branch(self, repo: git.Repo, root: str) -> Optional[str]:
        """Current branch from a porcelain v2 status query; None when detached."""
        try:
            output = repo.git.status("--porcelain=v2", "--branch", "--untracked-files=no")
        except git.exc.GitCommandError as e:
            logger.warning(f"Could not get status for {root}: {_describe_git_error(e)}")
            return None

        for line in output.splitlines():
            if line.startswith("# branch.head "):
                head = line[len("# branch.head "):].strip()
                if head and head != DETACHED_HEAD_MARKER:
                    return head
                return None
        return None

    def get_remotes(self, repo: git.Repo, root: str) -> List[RemoteRecord]:
        """Remotes in the order git lists them."""
        try:
            output = repo.git.remote("-v")
        except git.exc.GitCommandError as e:
            logger.warning(f"Could not get remotes for {root}: {_describe_git_error(e)}")
            return []
        return parse_remote_listing(output)

    def get_worktrees(self, repo: git.Repo, root: str, current_branch: Optional[str]) -> List[WorktreeRecord]:
        """Worktrees of the repository, always including the main one."""
        worktrees: List[WorktreeRecord] = []
        try:
            output = repo.git.worktree("list", "--porcelain")
            # Listing finishes before any per-worktree commit lookup starts
            worktrees = parse_worktrees(output, root, commit_lookup=self.get_last_commit)
        except git.exc.GitCommandError as e:
            logger.warning(f"Could not get worktrees for {root}: {_describe_git_error(e)}")

        if not any(wt.is_main for wt in worktrees):
            logger.debug(f"No main worktree reported for {root}, adding it")
            worktrees.insert(0, self._main_worktree(root, current_branch))

        for wt in worktrees:
            logger.debug(f"  {wt}")
        return worktrees

    def _main_worktree(self, root: str, current_branch: Optional[str]) -> WorktreeRecord:
        commit_hash = commit_message = None
        try:
            commit = self.get_last_commit(root)
            if commit:
                commit_hash, commit_message = commit
        except Exception as e:
            logger.debug(f"Could not get commit info for {root}: {e}")

        return WorktreeRecord(
            name=os.path.basename(root),
            path=root,
            branch=current_branch,
            is_main=True,
            is_detached=current_branch is None,
            commit_hash=commit_hash,
            commit_message=commit_message,
        )

    def get_last_commit(self, worktree_path: str) -> Optional[Tuple[str, str]]:
        """Short hash and subject of HEAD in `worktree_path`.

        Returns None for a repository without commits.
        """
        repo = self._get_repo(worktree_path)
        try:
            try:
                commit = repo.head.commit
            except ValueError:
                # Unborn branch: HEAD points at a ref with no commits yet
                return None
            message = commit.message
            if isinstance(message, bytes):
                message = message.decode("utf-8", errors="replace")
            subject = message.split("\n", 1)[0].strip()
            return commit.hexsha[:SHORT_HASH_LENGTH], subject
        finally:
            repo.close()
