"""Remote URL classification and remote listing parser."""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import urlparse

from git_repo_tree.constants import UNKNOWN
from git_repo_tree.logging_config import get_logger
from git_repo_tree.models.repository import RemoteRecord

logger = get_logger(__name__)

# git@github.com:org/repo.git
SCP_LIKE_RE = re.compile(r"^[^@/\s]+@(?P<host>[^:/\s]+):(?P<path>.*)$")
# origin	git@github.com:org/repo.git (fetch)
REMOTE_LINE_RE = re.compile(r"^(?P<name>\S+)\s+(?P<url>.+?)\s+\((?P<kind>fetch|push)\)$")


@dataclass(frozen=True)
class RemoteLocation:
    """A remote URL decomposed into its hosting domain and path.

    ``owner_path`` is everything after the host, without a trailing
    ``.git``, e.g. ``acme/widgets`` for ``git@github.com:acme/widgets.git``.
    """

    domain: str
    owner_path: str

    @property
    def segments(self) -> List[str]:
        return [s for s in self.owner_path.split("/") if s]

    @property
    def owner(self) -> str:
        """Owner hierarchy without the repository name (``org/team``)."""
        segments = self.segments
        if not segments:
            return UNKNOWN
        if len(segments) == 1:
            return segments[0]
        return "/".join(segments[:-1])

    @property
    def owner_segments(self) -> List[str]:
        return self.owner.split("/")

    @property
    def repository(self) -> Optional[str]:
        """Repository name, when the path has an owner part."""
        segments = self.segments
        if len(segments) < 2:
            return None
        return segments[-1]


def _strip_repo_suffix(path: str) -> str:
    path = path.strip().strip("/")
    if path.endswith(".git"):
        path = path[:-4]
    return path.strip("/")


def _authority(netloc: str) -> str:
    """Host part of a URL authority with any credentials dropped."""
    return netloc.rsplit("@", 1)[-1].lower()


def classify(url: Optional[str]) -> RemoteLocation:
    """Decompose a remote URL into (domain, owner path).

    Recognized forms, tried in order: scp-like SSH
    (``git@host:owner/repo.git``), ``ssh://[user@]host[:port]/owner/repo.git``
    and ``http(s)://host/owner/repo.git``. Never raises; anything else maps
    to ``unknown``.
    """
    if not url or not url.strip():
        return RemoteLocation(UNKNOWN, UNKNOWN)

    url = url.strip()
    domain = None
    path = ""

    match = SCP_LIKE_RE.match(url)
    if match and "://" not in url:
        domain = match.group("host").lower()
        path = match.group("path")
    else:
        try:
            parsed = urlparse(url)
            scheme = parsed.scheme.lower()
            if scheme == "ssh" and parsed.hostname:
                # Host only; a port is not part of the grouping domain
                domain = parsed.hostname
                path = parsed.path
            elif scheme in ("http", "https") and parsed.netloc:
                domain = _authority(parsed.netloc)
                path = parsed.path
        except ValueError as e:
            logger.debug(f"Could not parse remote URL {url!r}: {e}")

    if not domain:
        return RemoteLocation(UNKNOWN, UNKNOWN)

    owner_path = _strip_repo_suffix(path)
    return RemoteLocation(domain, owner_path or UNKNOWN)


def parse_remote_listing(output: str) -> List[RemoteRecord]:
    """Parse ``git remote -v`` output into remotes, in first-seen order.

    Lines that do not look like ``<name> <url> (fetch|push)`` are skipped.
    """
    urls: Dict[str, Dict[str, str]] = {}
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue

        match = REMOTE_LINE_RE.match(line)
        if not match:
            logger.debug(f"Skipping unrecognized remote line: {line!r}")
            continue

        entry = urls.setdefault(match.group("name"), {})
        # First URL wins when a remote has several of the same kind
        entry.setdefault(match.group("kind"), match.group("url"))

    return [
        RemoteRecord(name=name, fetch_url=entry.get("fetch"), push_url=entry.get("push"))
        for name, entry in urls.items()
    ]
