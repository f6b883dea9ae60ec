"""Shared test fixtures for projectrag."""

import posixpath
from pathlib import Path
from typing import Optional, Sequence

import pytest

from projectrag.access import CommandError
from projectrag.embedders import EmbeddingCache, EmbeddingProvider, HashedEmbedder
from projectrag.models import FileStat
from projectrag.storage import IndexStore
from projectrag.utils import split_parts

MTIME = 1_700_000_000.0


class MemoryFileAccess:
    """FileAccess over a dict of absolute path -> bytes.

    Stands in for a container: git answers come from `tracked` (None
    means "not a repository") and nothing touches the real filesystem.
    """

    source_type = "memory"

    def __init__(
        self,
        files: dict[str, bytes],
        tracked: Optional[list[str]] = None,
        alive: bool = True,
        remote: str = "https://example.com/acme/app.git",
    ):
        self.files = files
        self.tracked = tracked
        self.alive = alive
        self.remote = remote
        self.reads: list[str] = []

    def is_alive(self) -> bool:
        return self.alive

    def join(self, root: str, relative: str) -> str:
        return posixpath.join(root, relative)

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> bytes:
        if list(args[:2]) != ["git", "-C"] or self.tracked is None:
            raise CommandError(args, "not a git repository", 128)
        sub = list(args[3:])
        if sub == ["rev-parse", "--git-dir"]:
            return b".git\n"
        if sub == ["ls-files"]:
            return "\n".join(self.tracked).encode()
        if sub == ["config", "--get", "remote.origin.url"]:
            return self.remote.encode()
        if sub == ["rev-parse", "--abbrev-ref", "HEAD"]:
            return b"main\n"
        if sub[:2] == ["log", "-1"]:
            return b"0123456789abcdef|Initial commit"
        raise CommandError(args, "unsupported", 1)

    def walk(self, root: str, prune: frozenset[str]) -> list[str]:
        return sorted(
            path for path in self.files
            if path.startswith(root.rstrip("/") + "/")
            and not any(part in prune for part in split_parts(path))
        )

    def stat(self, paths: Sequence[str]) -> dict[str, FileStat]:
        return {
            path: FileStat(size=len(self.files[path]), mtime=MTIME)
            for path in paths
            if path in self.files
        }

    def read_bytes(self, path: str) -> bytes:
        self.reads.append(path)
        try:
            return self.files[path]
        except KeyError:
            raise OSError(f"No such file: {path}") from None


class FailingStrategy:
    """Embedding strategy that always raises."""

    name = "failing"
    dimension = 384

    def __init__(self, fail_on_load: bool = False):
        self.fail_on_load = fail_on_load
        self.calls = 0

    def load(self) -> None:
        if self.fail_on_load:
            raise RuntimeError("model unavailable")

    def embed(self, text: str):
        self.calls += 1
        raise RuntimeError("inference failed")


@pytest.fixture
def make_access():
    """Build a MemoryFileAccess rooted at /workspace from relative paths."""

    def factory(
        files: dict[str, str | bytes],
        root: str = "/workspace",
        **kwargs,
    ) -> MemoryFileAccess:
        contents = {
            posixpath.join(root, rel): data.encode() if isinstance(data, str) else data
            for rel, data in files.items()
        }
        return MemoryFileAccess(contents, **kwargs)

    return factory


@pytest.fixture
def embedder() -> EmbeddingProvider:
    """Provider backed only by the hashed strategy (no model download)."""
    return EmbeddingProvider([HashedEmbedder()], cache=EmbeddingCache())


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "rag-index.db"


@pytest.fixture
def store(store_path: Path):
    """Opened snapshot-backed store, closed after the test."""
    s = IndexStore(store_path)
    s.open()
    yield s
    if s.is_open:
        s.close()
