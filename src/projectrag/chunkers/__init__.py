"""Text chunking strategies."""

from projectrag.chunkers.window_chunker import (
    CHUNK_OVERLAP,
    CHUNK_SIZE,
    MAX_CHUNKS,
    WindowChunker,
    split_text,
)

__all__ = ["WindowChunker", "split_text", "CHUNK_SIZE", "CHUNK_OVERLAP", "MAX_CHUNKS"]
