"""Protocol for splitting file text into chunks."""

from typing import Protocol, runtime_checkable

from projectrag.models import Chunk


@runtime_checkable
class ChunkingStrategy(Protocol):
    """Turns the decoded text of one file into indexable windows.

    Implementations must terminate on any input and number chunks from 0.
    """

    def chunk(self, text: str, file_path: str) -> list[Chunk]:
        """Return the file's chunks in order, with character offsets."""
        ...
