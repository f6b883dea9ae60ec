"""Protocol for reaching the files of a scope."""

from typing import Optional, Protocol, Sequence, runtime_checkable

from projectrag.models import FileStat


@runtime_checkable
class FileAccess(Protocol):
    """Protocol for filesystem access to a scope root.

    Implementations read the local disk or proxy commands into a
    container. Paths passed in and returned are absolute.
    """

    @property
    def source_type(self) -> str:
        """Return identifier for this access kind (e.g., 'local', 'container')."""
        ...

    def is_alive(self) -> bool:
        """Check that the underlying filesystem is reachable."""
        ...

    def join(self, root: str, relative: str) -> str:
        """Join a root-relative path onto root using the target's separator."""
        ...

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> bytes:
        """Run a command and return its stdout. Raises CommandError on failure."""
        ...

    def walk(self, root: str, prune: frozenset[str]) -> list[str]:
        """List regular files under root, skipping directories named in prune."""
        ...

    def stat(self, paths: Sequence[str]) -> dict[str, FileStat]:
        """Return size and mtime for each path that exists."""
        ...

    def read_bytes(self, path: str) -> bytes:
        """Read a file's raw content."""
        ...
