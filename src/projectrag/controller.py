"""Indexing pipeline: discovery, chunking, embedding and storage per scope."""

import asyncio
import enum
import logging
import time
from datetime import datetime
from typing import Callable, Optional

from projectrag.chunkers import WindowChunker
from projectrag.discovery import MAX_FILE_SIZE, FileDiscovery
from projectrag.embedders import EmbeddingProvider
from projectrag.models import Scope
from projectrag.protocols import ChunkingStrategy, FileAccess
from projectrag.storage import IndexStore, StoreError
from projectrag.utils import has_null_bytes, is_binary_content
from projectrag.vcs import GitProbe

logger = logging.getLogger(__name__)

StatusCallback = Callable[[Optional[str]], None]

PROGRESS_INTERVAL = 10
FLUSH_INTERVAL = 50
THROTTLE_SECONDS = 0.1
SLOW_EMBEDDING_SECONDS = 1.0
LARGE_FILE_CHUNKS = 10


class IndexState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


class IndexingAborted(Exception):
    """The job was cancelled; files indexed so far are kept."""

    def __init__(self, files_indexed: int):
        super().__init__(f"Indexing aborted after {files_indexed} files")
        self.files_indexed = files_indexed


class IndexingFailed(Exception):
    """The job stopped on an error it cannot skip past."""


class IndexingBusy(Exception):
    """A job is already running on this controller."""


class SkipFile(Exception):
    """A single file cannot be indexed; the job moves on."""


class BinaryContentError(SkipFile):
    pass


class FileTooLargeError(SkipFile):
    pass


class EmptyFileError(SkipFile):
    pass


class EmbeddingExhausted(SkipFile):
    """No chunk of the file could be embedded; its old rows are kept."""


class CancellationToken:
    """Cooperative cancellation flag for one indexing job."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self, files_indexed: int = 0) -> None:
        if self._cancelled:
            raise IndexingAborted(files_indexed)


class IndexingController:
    """Runs indexing jobs, one at a time.

    Each file is read, checked, chunked, embedded and stored before the
    next one starts. The store is flushed every FLUSH_INTERVAL files and
    at the end of the job, so an abort or crash loses at most one batch.
    """

    def __init__(
        self,
        store: IndexStore,
        embedder: EmbeddingProvider,
        chunker: Optional[ChunkingStrategy] = None,
        discovery: Optional[FileDiscovery] = None,
        max_file_size: int = MAX_FILE_SIZE,
    ):
        self.store = store
        self.embedder = embedder
        self.chunker = chunker or WindowChunker()
        self.discovery = discovery or FileDiscovery(max_file_size=max_file_size)
        self.max_file_size = max_file_size
        self.state = IndexState.IDLE
        self._token: Optional[CancellationToken] = None

    @property
    def is_running(self) -> bool:
        return self.state is IndexState.RUNNING

    def abort(self) -> bool:
        """Cancel the running job.

        Returns:
            True if a job was running
        """
        if self._token is None:
            return False
        self._token.cancel()
        logger.info("Indexing abort requested")
        return True

    async def index_scope(
        self,
        scope: Scope,
        root: str,
        access: FileAccess,
        status: Optional[StatusCallback] = None,
    ) -> int:
        """Index every discoverable file of a scope.

        Args:
            scope: Scope the rows are tagged with
            root: Scope root (project path or container working directory)
            access: Filesystem access for the scope
            status: Optional progress callback; receives None when the job ends

        Returns:
            Number of files indexed

        Raises:
            IndexingBusy: Another job is running
            IndexingAborted: The job was cancelled through abort()
            IndexingFailed: The store could not be written
        """
        if self.is_running:
            raise IndexingBusy(f"Indexing already running; cannot start {scope}")

        token = CancellationToken()
        self._token = token
        self.state = IndexState.RUNNING
        try:
            count = await self._run(scope, root, access, token, status)
        except IndexingAborted as e:
            self.state = IndexState.ABORTED
            logger.info("Indexing of %s aborted after %d files", scope, e.files_indexed)
            raise
        except asyncio.CancelledError:
            self.state = IndexState.ABORTED
            raise
        except StoreError as e:
            self.state = IndexState.FAILED
            logger.error("Indexing of %s failed: %s", scope, e)
            raise IndexingFailed(str(e)) from e
        except Exception as e:
            self.state = IndexState.FAILED
            logger.exception("Indexing of %s failed", scope)
            raise IndexingFailed(str(e)) from e
        else:
            self.state = IndexState.COMPLETED
            return count
        finally:
            self._token = None
            _notify(status, None)

    async def _run(
        self,
        scope: Scope,
        root: str,
        access: FileAccess,
        token: CancellationToken,
        status: Optional[StatusCallback],
    ) -> int:
        if not await asyncio.to_thread(access.is_alive):
            logger.warning("Cannot index %s: source is not reachable", scope)
            _notify(status, f"Cannot index {scope}: not running")
            return 0

        _notify(status, "Discovering files...")
        result = await asyncio.to_thread(self.discovery.discover, access, root)
        total = len(result.files)
        logger.info(
            "Found %d indexable files in %s (%s listing)",
            total,
            scope,
            result.strategy or "no",
        )
        _notify(status, f"Found {total} files to index")

        self.store.build_file_tree(scope, result.files, root)
        if result.is_repository:
            info = await asyncio.to_thread(GitProbe(access).repo_metadata, root)
            self.store.upsert_repo_metadata(scope, info)

        indexed = 0
        started = time.monotonic()

        for processed, path in enumerate(result.files, start=1):
            token.raise_if_cancelled(indexed)

            stat = result.stats.get(path)
            last_modified = datetime.fromtimestamp(stat.mtime) if stat else datetime.now()
            try:
                content = await self._read(access, access.join(root, path))
                await self.index_file(scope, path, content, last_modified, status)
            except SkipFile as e:
                logger.debug("Skipping %s: %s", path, e)
            except StoreError:
                raise
            except Exception as e:
                logger.warning("Failed to index %s: %s", path, e)
            else:
                indexed += 1

            if processed % PROGRESS_INTERVAL == 0:
                elapsed = time.monotonic() - started
                rate = processed / elapsed if elapsed > 0 else 0.0
                message = f"Indexed {processed}/{total} files ({rate:.1f} files/sec)"
                logger.info(message)
                _notify(status, message)

            if processed % FLUSH_INTERVAL == 0:
                self.store.flush()
                await asyncio.sleep(THROTTLE_SECONDS)

        self.store.flush()

        elapsed = time.monotonic() - started
        message = f"Indexed {indexed} files from {scope} in {elapsed:.1f}s"
        logger.info(message)
        _notify(status, message)
        return indexed

    async def _read(self, access: FileAccess, full_path: str) -> str:
        """Read and decode one file, rejecting content that is not indexable."""
        raw = await asyncio.to_thread(access.read_bytes, full_path)
        if not raw:
            raise EmptyFileError("empty file")
        if len(raw) > self.max_file_size:
            raise FileTooLargeError(f"{len(raw) / 1024 / 1024:.2f}MB")
        if has_null_bytes(raw):
            raise BinaryContentError("null bytes")

        text = raw.decode("utf-8", errors="replace")
        if is_binary_content(text):
            raise BinaryContentError("binary content")
        if not text.strip():
            raise EmptyFileError("whitespace only")
        return text

    async def index_file(
        self,
        scope: Scope,
        file_path: str,
        content: str,
        last_modified: datetime,
        status: Optional[StatusCallback] = None,
    ) -> int:
        """Chunk, embed and store one file, replacing its previous chunks.

        Args:
            scope: Scope the rows are tagged with
            file_path: Scope-relative path
            content: Decoded file text
            last_modified: File modification time
            status: Optional progress callback

        Returns:
            Number of chunks stored

        Raises:
            EmbeddingExhausted: No chunk could be embedded
        """
        chunks = self.chunker.chunk(content, file_path)
        if len(chunks) > LARGE_FILE_CHUNKS:
            _notify(status, f"Embedding {len(chunks)} chunks of {file_path}")

        vectors = []
        for chunk in chunks:
            started = time.monotonic()
            vector = await self.embedder.embed(chunk.text)
            elapsed = time.monotonic() - started
            if elapsed > SLOW_EMBEDDING_SECONDS:
                logger.warning(
                    "Slow embedding for %s chunk %d: %.1fs", file_path, chunk.chunk_index, elapsed
                )
            vectors.append(vector)

        if all(vector is None for vector in vectors):
            raise EmbeddingExhausted(f"no chunk of {file_path} could be embedded")

        stored = self.store.replace_file(scope, file_path, chunks, vectors, last_modified)
        logger.debug("Indexed %s: %d chunks", file_path, stored)
        return stored


def _notify(status: Optional[StatusCallback], message: Optional[str]) -> None:
    if status is not None:
        status(message)
