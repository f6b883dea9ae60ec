"""Protocol definitions for extensible components."""

from projectrag.protocols.chunker import ChunkingStrategy
from projectrag.protocols.embedder import EmbeddingStrategy
from projectrag.protocols.file_access import FileAccess
from projectrag.protocols.lister import ListingStrategy

__all__ = ["FileAccess", "ListingStrategy", "EmbeddingStrategy", "ChunkingStrategy"]
