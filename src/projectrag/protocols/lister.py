"""Protocol for file listing strategies."""

from typing import Protocol, runtime_checkable

from projectrag.protocols.file_access import FileAccess


@runtime_checkable
class ListingStrategy(Protocol):
    """Protocol for one way of enumerating the files under a root.

    File discovery tries its strategies in order; the first one that
    returns a non-empty list wins.
    """

    @property
    def name(self) -> str:
        """Return identifier for this strategy (e.g., 'git', 'walk')."""
        ...

    def list_files(self, access: FileAccess, root: str) -> list[str]:
        """List candidate files as root-relative paths.

        Raises any error to signal that the next strategy should be tried.
        """
        ...
