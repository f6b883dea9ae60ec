"""Core data models for chunks, search results and scope snapshots."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class Chunk:
    """A window of a file's text."""

    text: str
    file_path: str
    chunk_index: int
    start_char: int
    end_char: int


@dataclass(frozen=True)
class FileStat:
    """Size and modification time of a file."""

    size: int
    mtime: float


@dataclass
class SearchResult:
    """A chunk ranked against a query."""

    id: int
    file_path: str
    content: str
    chunk_index: int
    similarity: float


@dataclass
class FileTreeEntry:
    """One file or directory of a scope's tree snapshot."""

    path: str
    is_directory: bool
    parent_path: Optional[str] = None
    last_indexed: Optional[datetime] = None


@dataclass
class RepoInfo:
    """Version control metadata for a scope root."""

    remote_url: Optional[str] = None
    branch: Optional[str] = None
    last_commit: Optional[str] = None
    last_commit_message: Optional[str] = None
    last_indexed: datetime = field(default_factory=datetime.now)


@dataclass
class StoreStats:
    """Row counts of an index store."""

    total_chunks: int = 0
    total_embeddings: int = 0
    total_tree_entries: int = 0
    total_repos: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total_chunks": self.total_chunks,
            "total_embeddings": self.total_embeddings,
            "total_tree_entries": self.total_tree_entries,
            "total_repos": self.total_repos,
        }
