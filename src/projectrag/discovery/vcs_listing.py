"""Listing strategy backed by git's index."""

from projectrag.protocols import FileAccess
from projectrag.utils.paths import to_relative
from projectrag.vcs import GitProbe


class NotARepository(Exception):
    """The root is not inside a git work tree."""


class VcsListing:
    """List tracked files with `git ls-files`.

    Git already leaves out everything matched by .gitignore.
    """

    name = "git"

    def list_files(self, access: FileAccess, root: str) -> list[str]:
        probe = GitProbe(access)
        if not probe.is_repository(root):
            raise NotARepository(root)
        return [to_relative(path, root) for path in probe.list_tracked_files(root)]
