"""Git probing through a FileAccess."""

import logging
from datetime import datetime
from typing import Optional

from projectrag.access import CommandError
from projectrag.models import RepoInfo
from projectrag.protocols import FileAccess

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 5.0
LIST_TIMEOUT = 60.0


class GitProbe:
    """Helper for git queries against a scope root.

    Commands go through the scope's FileAccess, so the same probe works
    for local projects and for containers.
    """

    def __init__(self, access: FileAccess):
        self.access = access

    def _git(self, root: str, *args: str, timeout: float = PROBE_TIMEOUT) -> str:
        out = self.access.run(["git", "-C", root, *args], timeout=timeout)
        return out.decode("utf-8", errors="replace")

    def _query(self, root: str, *args: str) -> Optional[str]:
        try:
            value = self._git(root, *args).strip()
        except CommandError as e:
            logger.debug("git %s failed: %s", args[0], e)
            return None
        return value or None

    def is_repository(self, root: str) -> bool:
        """Check if root is inside a git work tree.

        A missing git binary or a timeout count as "not a repository".
        """
        return self._query(root, "rev-parse", "--git-dir") is not None

    def list_tracked_files(self, root: str) -> list[str]:
        """List tracked files relative to root (ignored files are never listed).

        Raises:
            CommandError: If git cannot list the files
        """
        out = self._git(root, "ls-files", timeout=LIST_TIMEOUT)
        return [line.strip() for line in out.split("\n") if line.strip()]

    def remote_url(self, root: str) -> Optional[str]:
        return self._query(root, "config", "--get", "remote.origin.url")

    def branch(self, root: str) -> Optional[str]:
        return self._query(root, "rev-parse", "--abbrev-ref", "HEAD")

    def last_commit(self, root: str) -> tuple[Optional[str], Optional[str]]:
        """Return (hash, subject) of HEAD, or (None, None) without commits."""
        out = self._query(root, "log", "-1", "--pretty=format:%H|%s")
        if not out:
            return None, None
        commit, _, message = out.partition("|")
        return commit or None, message or None

    def repo_metadata(self, root: str) -> RepoInfo:
        """Collect remote, branch and last commit; each degrades to None."""
        commit, message = self.last_commit(root)
        return RepoInfo(
            remote_url=self.remote_url(root),
            branch=self.branch(root),
            last_commit=commit,
            last_commit_message=message,
            last_indexed=datetime.now(),
        )
