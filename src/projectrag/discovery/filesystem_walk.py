"""Listing strategy that walks the filesystem."""

from projectrag.discovery.filters import IGNORED_NAMES
from projectrag.protocols import FileAccess
from projectrag.utils.paths import to_relative


class FilesystemWalk:
    """Recursive walk of the root, pruning well-known non-source directories."""

    name = "walk"

    def __init__(self, prune: frozenset[str] = IGNORED_NAMES):
        self.prune = prune

    def list_files(self, access: FileAccess, root: str) -> list[str]:
        return [to_relative(path, root) for path in access.walk(root, self.prune)]
