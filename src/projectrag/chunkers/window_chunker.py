"""Fixed-size window chunking with overlap."""

import logging

from projectrag.models import Chunk

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1000
CHUNK_OVERLAP = 200
MAX_CHUNKS = 10000


def split_text(
    text: str,
    chunk_size: int = CHUNK_SIZE,
    overlap: int = CHUNK_OVERLAP,
    max_chunks: int = MAX_CHUNKS,
) -> list[tuple[int, int]]:
    """Compute overlapping window bounds over text.

    Each window is [start, min(start + chunk_size, len(text))). The next
    window starts `overlap` characters before the previous end, but always
    at least one character after the previous start, so the loop
    terminates even when overlap >= chunk_size.

    Args:
        text: The text to split
        chunk_size: Window length in characters
        overlap: Characters shared by consecutive windows
        max_chunks: Hard ceiling on the number of windows

    Returns:
        List of (start, end) offsets
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")
    if overlap < 0:
        raise ValueError("overlap must not be negative")

    if len(text) <= chunk_size:
        return [(0, len(text))]

    windows: list[tuple[int, int]] = []
    start = 0

    while start < len(text):
        if len(windows) >= max_chunks:
            logger.warning(
                "Text exceeded maximum chunks (%d), truncating at offset %d", max_chunks, start
            )
            break

        end = min(start + chunk_size, len(text))
        windows.append((start, end))
        if end >= len(text):
            break

        next_start = end - overlap
        if next_start <= start:
            next_start = start + 1
        start = next_start

    return windows


class WindowChunker:
    """Default chunking: fixed windows of CHUNK_SIZE chars overlapping by CHUNK_OVERLAP.

    Overlap keeps statements that straddle a boundary intact in at least
    one chunk. MAX_CHUNKS bounds the work spent on pathological files.
    """

    def __init__(
        self,
        chunk_size: int = CHUNK_SIZE,
        overlap: int = CHUNK_OVERLAP,
        max_chunks: int = MAX_CHUNKS,
    ):
        self.chunk_size = chunk_size
        self.overlap = overlap
        self.max_chunks = max_chunks

    def chunk(self, text: str, file_path: str) -> list[Chunk]:
        """Split text into chunks with metadata.

        Args:
            text: The text content to chunk
            file_path: Path to the source file (for metadata)

        Returns:
            List of Chunk objects with position information
        """
        windows = split_text(text, self.chunk_size, self.overlap, self.max_chunks)
        return [
            Chunk(
                text=text[start:end],
                file_path=file_path,
                chunk_index=idx,
                start_char=start,
                end_char=end,
            )
            for idx, (start, end) in enumerate(windows)
        ]
