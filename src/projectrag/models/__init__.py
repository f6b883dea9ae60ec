"""Data models for projectrag."""

from projectrag.models.records import (
    Chunk,
    FileStat,
    FileTreeEntry,
    RepoInfo,
    SearchResult,
    StoreStats,
)
from projectrag.models.scope import ContainerScope, ProjectScope, Scope

__all__ = [
    "Chunk",
    "FileStat",
    "FileTreeEntry",
    "RepoInfo",
    "SearchResult",
    "StoreStats",
    "Scope",
    "ProjectScope",
    "ContainerScope",
]
