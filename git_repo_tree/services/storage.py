"""JSON file storage for the discovered repository list."""
import json
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, List, Optional, Union

from git_repo_tree.config import default_storage_path
from git_repo_tree.exceptions import StorageError
from git_repo_tree.logging_config import get_logger
from git_repo_tree.models.repository import RepositoryRecord

# Import fcntl for POSIX file locking (Unix/Linux/macOS)
try:
    import fcntl
    HAS_FCNTL = True
except ImportError:
    HAS_FCNTL = False

logger = get_logger(__name__)

STORAGE_VERSION = 1

RepositoriesListener = Callable[[List[RepositoryRecord]], None]


class RepositoryStorage:
    """Stores the repository list and notifies subscribers when it changes."""

    def __init__(self, path: Union[str, Path, None] = None):
        """Initialize storage.

        Args:
            path: JSON file to use; defaults to ~/.git-repo-tree/repositories.json
        """
        self.path = Path(path) if path else default_storage_path()
        self._listeners: List[RepositoriesListener] = []
        self._listeners_lock = Lock()

    @contextmanager
    def _acquire_lock(self, file_handle, operation: str = "read"):
        """Acquire a shared (read) or exclusive (write) lock on an open file."""
        if not HAS_FCNTL:
            yield
            return

        lock_type = fcntl.LOCK_EX if operation == "write" else fcntl.LOCK_SH
        fcntl.flock(file_handle.fileno(), lock_type)
        try:
            yield
        finally:
            try:
                fcntl.flock(file_handle.fileno(), fcntl.LOCK_UN)
            except OSError as e:
                logger.debug(f"Error releasing lock: {e}")

    def subscribe(self, listener: RepositoriesListener) -> Callable[[], None]:
        """Register `listener` for change notifications.

        Returns:
            A callable that removes the listener again
        """
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, records: List[RepositoryRecord]) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(list(records))
            except Exception as e:
                logger.warning(f"Repository change listener failed: {e}")

    def get_repositories(self) -> List[RepositoryRecord]:
        """Stored repositories; empty if nothing was saved or the file is unreadable."""
        if not self.path.exists():
            logger.debug("No repository store found")
            return []

        try:
            with open(self.path, "r") as f:
                with self._acquire_lock(f, operation="read"):
                    data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in repository store: {e}")
            return []
        except OSError as e:
            logger.warning(f"Failed to read repository store: {e}")
            return []

        if not isinstance(data, dict) or not isinstance(data.get("repositories"), list):
            logger.warning("Repository store has an unexpected layout, ignoring it")
            return []

        records = []
        for entry in data["repositories"]:
            try:
                records.append(RepositoryRecord.from_dict(entry))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed stored repository {entry!r}: {e}")
        logger.debug(f"Loaded {len(records)} repositories from {self.path}")
        return records

    def save_repositories(self, records: List[RepositoryRecord]) -> None:
        """Replace the stored set and notify subscribers.

        Raises StorageError if the file cannot be written.
        """
        # Last record wins for a repeated path
        unique: Dict[str, RepositoryRecord] = {}
        for record in records:
            unique[record.path] = record
        records = list(unique.values())

        data = {
            "version": STORAGE_VERSION,
            "last_updated": datetime.now().isoformat(),
            "repositories": [record.to_dict() for record in records],
        }

        temp_file = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Atomic write: write to temp file, then rename
            with open(temp_file, "w") as f:
                with self._acquire_lock(f, operation="write"):
                    json.dump(data, f, indent=2)
                    f.flush()
            temp_file.replace(self.path)
        except OSError as e:
            raise StorageError(str(self.path), str(e))
        finally:
            if temp_file.exists():
                try:
                    temp_file.unlink()
                except OSError:
                    pass

        logger.debug(f"Saved {len(records)} repositories to {self.path}")
        self._notify(records)

    def add_repository(self, record: RepositoryRecord) -> None:
        """Insert `record`, replacing a stored record with the same path."""
        records = self.get_repositories()
        for index, existing in enumerate(records):
            if existing.path == record.path:
                records[index] = record
                break
        else:
            records.append(record)
        self.save_repositories(records)

    def remove_repository(self, path: str) -> None:
        """Remove the record stored for `path`, if any."""
        records = [r for r in self.get_repositories() if r.path != path]
        self.save_repositories(records)

    def clear(self) -> None:
        self.save_repositories([])

    def find(self, path: str) -> Optional[RepositoryRecord]:
        for record in self.get_repositories():
            if record.path == path:
                return record
        return None
