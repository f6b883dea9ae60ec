"""In-memory SQLite index store, snapshotted whole to a single file."""

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Sequence

import numpy as np

from projectrag.models import (
    Chunk,
    FileTreeEntry,
    RepoInfo,
    Scope,
    SearchResult,
    StoreStats,
)
from projectrag.storage.schema import SCHEMA
from projectrag.utils.paths import split_parts, to_relative

logger = logging.getLogger(__name__)

_SCOPE_FILTER = "scope_kind = ? AND scope_key = ?"


class StoreError(Exception):
    """The store could not load or write its snapshot."""


def _scope_params(scope: Scope) -> tuple[str, str]:
    return (scope.kind, scope.key)


class IndexStore:
    """Index of chunks, embeddings, file trees and repo metadata.

    The database lives in memory and `flush()` writes it whole to `path`
    through a temporary file, so a crash never leaves a half-written
    snapshot behind. Rows are always tagged with their scope and no
    query ever mixes scopes. A store without a path is never persisted.
    """

    def __init__(self, path: Optional[Path | str] = None):
        self.path = Path(path) if path is not None else None
        self._conn: Optional[sqlite3.Connection] = None

    # Lifecycle

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError("Index store is not open")
        return self._conn

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> None:
        """Load the snapshot if present and create the schema."""
        self._conn = self._load()
        logger.info("Index store ready (%s)", self.path or "memory only")

    def close(self) -> None:
        """Flush and release the in-memory database."""
        if self._conn is None:
            return
        try:
            self.flush()
        finally:
            self._conn.close()
            self._conn = None

    def _load(self) -> sqlite3.Connection:
        conn = sqlite3.connect(":memory:")
        conn.row_factory = sqlite3.Row
        try:
            if self.path is not None and self.path.exists():
                snapshot = sqlite3.connect(self.path)
                try:
                    snapshot.backup(conn)
                finally:
                    snapshot.close()
                logger.debug("Loaded index snapshot from %s", self.path)
            conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            conn.close()
            raise StoreError(f"Cannot load index snapshot {self.path}: {e}") from e
        return conn

    def flush(self) -> None:
        """Write the whole database to the snapshot file.

        On failure the in-memory state is rolled back to the last
        successful snapshot before StoreError is raised.
        """
        if self.path is None:
            return

        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if tmp_path.exists():
                tmp_path.unlink()
            target = sqlite3.connect(tmp_path)
            try:
                self.conn.backup(target)
            finally:
                target.close()
            os.replace(tmp_path, self.path)
        except (OSError, sqlite3.Error) as e:
            logger.error("Failed to flush index store to %s: %s", self.path, e)
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.debug("Could not remove %s: %s", tmp_path, cleanup_error)
            self._restore()
            raise StoreError(f"Cannot write index snapshot {self.path}: {e}") from e

    def _restore(self) -> None:
        """Replace the in-memory database with the last snapshot."""
        previous = self._conn
        try:
            self._conn = self._load()
        except StoreError:
            logger.exception("Snapshot unreadable; keeping unflushed state in memory")
            return
        if previous is not None:
            previous.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements atomically against the in-memory database."""
        conn = self.conn
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    # Chunks and embeddings

    def replace_file(
        self,
        scope: Scope,
        file_path: str,
        chunks: Sequence[Chunk],
        vectors: Sequence[Optional[np.ndarray]],
        last_modified: datetime,
    ) -> int:
        """Replace every chunk of (scope, file_path) in one transaction.

        Chunks whose vector is None are not stored: a chunk without an
        embedding can never be retrieved. Not flushed; the caller flushes
        after a batch of files.

        Returns:
            Number of chunks stored
        """
        if len(chunks) != len(vectors):
            raise ValueError("chunks and vectors must have the same length")

        stored = 0
        timestamp = last_modified.isoformat()
        with self.transaction() as conn:
            self._delete_file(conn, scope, file_path)
            for chunk, vector in zip(chunks, vectors):
                if vector is None:
                    continue
                vector = np.asarray(vector, dtype=np.float32)
                cursor = conn.execute(
                    """INSERT INTO file_chunks
                       (scope_kind, scope_key, file_path, content, chunk_index,
                        last_modified, embedding_dimension)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (
                        *_scope_params(scope),
                        file_path,
                        chunk.text,
                        chunk.chunk_index,
                        timestamp,
                        int(vector.shape[0]),
                    ),
                )
                conn.execute(
                    "INSERT INTO file_chunk_embeddings (chunk_id, embedding) VALUES (?, ?)",
                    (cursor.lastrowid, vector.tobytes()),
                )
                stored += 1
        return stored

    def _delete_file(self, conn: sqlite3.Connection, scope: Scope, file_path: str) -> None:
        conn.execute(
            f"""DELETE FROM file_chunk_embeddings WHERE chunk_id IN
                (SELECT id FROM file_chunks WHERE {_SCOPE_FILTER} AND file_path = ?)""",
            (*_scope_params(scope), file_path),
        )
        conn.execute(
            f"DELETE FROM file_chunks WHERE {_SCOPE_FILTER} AND file_path = ?",
            (*_scope_params(scope), file_path),
        )

    def similarity_search(
        self,
        scope: Scope,
        query_vector: np.ndarray,
        top_k: int = 5,
        min_similarity: float = 0.0,
    ) -> list[SearchResult]:
        """Rank a scope's embedded chunks by cosine similarity.

        Args:
            scope: Only chunks of this scope are considered
            query_vector: Query embedding
            top_k: Maximum number of results
            min_similarity: Results below this score are dropped

        Returns:
            Results ordered by descending similarity
        """
        if top_k <= 0:
            return []

        query = np.asarray(query_vector, dtype=np.float32).reshape(-1)
        rows = self.conn.execute(
            f"""SELECT c.id, c.file_path, c.content, c.chunk_index,
                       c.embedding_dimension, e.embedding
                FROM file_chunks c JOIN file_chunk_embeddings e ON c.id = e.chunk_id
                WHERE c.scope_kind = ? AND c.scope_key = ?""",
            _scope_params(scope),
        ).fetchall()

        candidates = []
        vectors = []
        skipped = 0
        for row in rows:
            if row["embedding_dimension"] != query.shape[0]:
                skipped += 1
                continue
            candidates.append(row)
            vectors.append(np.frombuffer(row["embedding"], dtype=np.float32))

        if skipped:
            logger.warning(
                "Skipped %d chunks in %s whose embedding dimension differs from %d",
                skipped,
                scope,
                query.shape[0],
            )
        if not candidates:
            return []

        similarities = self._cosine_similarities(query, np.vstack(vectors))

        results = [
            SearchResult(
                id=row["id"],
                file_path=row["file_path"],
                content=row["content"],
                chunk_index=row["chunk_index"],
                similarity=float(score),
            )
            for row, score in zip(candidates, similarities)
            if score >= min_similarity
        ]
        results.sort(key=lambda r: (-r.similarity, r.id))
        return results[:top_k]

    @staticmethod
    def _cosine_similarities(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
        """Cosine similarity of query against each row; zero vectors score 0."""
        query_norm = np.linalg.norm(query)
        row_norms = np.linalg.norm(matrix, axis=1)
        denom = row_norms * query_norm
        dots = matrix @ query
        return np.divide(dots, denom, out=np.zeros_like(dots), where=denom > 0)

    def has_indexed_files(self, scope: Scope) -> bool:
        row = self.conn.execute(
            f"SELECT 1 FROM file_chunks WHERE {_SCOPE_FILTER} LIMIT 1",
            _scope_params(scope),
        ).fetchone()
        return row is not None

    def list_files(self, scope: Scope) -> list[str]:
        """List the indexed file paths of a scope."""
        cursor = self.conn.execute(
            f"SELECT DISTINCT file_path FROM file_chunks WHERE {_SCOPE_FILTER} ORDER BY file_path",
            _scope_params(scope),
        )
        return [row["file_path"] for row in cursor]

    # File tree

    def build_file_tree(self, scope: Scope, files: Sequence[str], root_path: str) -> int:
        """Replace a scope's tree snapshot with the given files.

        Args:
            scope: Scope owning the tree
            files: File paths, absolute under root_path or already relative
            root_path: Scope root used to relativize absolute paths

        Returns:
            Number of tree entries written (directories + files)
        """
        directories: dict[str, Optional[str]] = {}
        file_rows: dict[str, Optional[str]] = {}

        for file_path in files:
            parts = split_parts(to_relative(file_path, root_path))
            if not parts:
                continue
            for depth in range(1, len(parts)):
                dir_path = "/".join(parts[:depth])
                directories.setdefault(dir_path, "/".join(parts[: depth - 1]) or None)
            file_rows["/".join(parts)] = "/".join(parts[:-1]) or None

        timestamp = datetime.now().isoformat()
        rows = [
            (*_scope_params(scope), path, 1, parent, timestamp)
            for path, parent in sorted(directories.items())
        ] + [
            (*_scope_params(scope), path, 0, parent, timestamp)
            for path, parent in sorted(file_rows.items())
            if path not in directories
        ]

        with self.transaction() as conn:
            conn.execute(f"DELETE FROM file_tree WHERE {_SCOPE_FILTER}", _scope_params(scope))
            conn.executemany(
                """INSERT OR REPLACE INTO file_tree
                   (scope_kind, scope_key, file_path, is_directory, parent_path, last_indexed)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                rows,
            )
        self.flush()

        logger.info(
            "Built file tree for %s: %d directories, %d files",
            scope,
            len(directories),
            len(rows) - len(directories),
        )
        return len(rows)

    def get_file_tree(self, scope: Scope) -> list[FileTreeEntry]:
        cursor = self.conn.execute(
            f"""SELECT file_path, is_directory, parent_path, last_indexed
                FROM file_tree WHERE {_SCOPE_FILTER} ORDER BY file_path""",
            _scope_params(scope),
        )
        return [
            FileTreeEntry(
                path=row["file_path"],
                is_directory=bool(row["is_directory"]),
                parent_path=row["parent_path"],
                last_indexed=datetime.fromisoformat(row["last_indexed"]),
            )
            for row in cursor
        ]

    # Repo metadata

    def upsert_repo_metadata(self, scope: Scope, info: RepoInfo) -> None:
        with self.transaction() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO repo_metadata
                   (scope_kind, scope_key, remote_url, branch, last_commit,
                    last_commit_message, last_indexed)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    *_scope_params(scope),
                    info.remote_url,
                    info.branch,
                    info.last_commit,
                    info.last_commit_message,
                    info.last_indexed.isoformat(),
                ),
            )
        self.flush()
        logger.info("Indexed repo info for %s: %s", scope, info.branch or "unknown branch")

    def get_repo_metadata(self, scope: Scope) -> Optional[RepoInfo]:
        row = self.conn.execute(
            f"""SELECT remote_url, branch, last_commit, last_commit_message, last_indexed
                FROM repo_metadata WHERE {_SCOPE_FILTER}""",
            _scope_params(scope),
        ).fetchone()
        if row is None:
            return None
        return RepoInfo(
            remote_url=row["remote_url"],
            branch=row["branch"],
            last_commit=row["last_commit"],
            last_commit_message=row["last_commit_message"],
            last_indexed=datetime.fromisoformat(row["last_indexed"]),
        )

    # Store-wide metadata

    def set_metadata(self, key: str, value: str) -> None:
        """Store a metadata key-value pair."""
        with self.transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                (key, value),
            )
        self.flush()

    def get_metadata(self, key: str) -> Optional[str]:
        """Retrieve a metadata value by key."""
        row = self.conn.execute("SELECT value FROM metadata WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    # Stats and clearing

    def stats(self, scope: Optional[Scope] = None) -> StoreStats:
        """Count rows, store-wide or for one scope."""
        if scope is None:
            where, params = "", ()
        else:
            where, params = f" WHERE {_SCOPE_FILTER}", _scope_params(scope)

        def count(sql: str) -> int:
            return self.conn.execute(sql + where, params).fetchone()[0]

        return StoreStats(
            total_chunks=count("SELECT COUNT(*) FROM file_chunks"),
            total_embeddings=count(
                "SELECT COUNT(*) FROM file_chunk_embeddings e "
                "JOIN file_chunks c ON c.id = e.chunk_id"
            ),
            total_tree_entries=count("SELECT COUNT(*) FROM file_tree"),
            total_repos=count("SELECT COUNT(*) FROM repo_metadata"),
        )

    def clear_scope(self, scope: Scope) -> None:
        """Delete every row of one scope and flush."""
        params = _scope_params(scope)
        with self.transaction() as conn:
            conn.execute(
                f"""DELETE FROM file_chunk_embeddings WHERE chunk_id IN
                    (SELECT id FROM file_chunks WHERE {_SCOPE_FILTER})""",
                params,
            )
            conn.execute(f"DELETE FROM file_chunks WHERE {_SCOPE_FILTER}", params)
            conn.execute(f"DELETE FROM file_tree WHERE {_SCOPE_FILTER}", params)
            conn.execute(f"DELETE FROM repo_metadata WHERE {_SCOPE_FILTER}", params)
        self.flush()
        logger.info("Cleared index data for %s", scope)

    def clear_all(self) -> None:
        """Delete every row of every scope and flush."""
        with self.transaction() as conn:
            conn.execute("DELETE FROM file_chunk_embeddings")
            conn.execute("DELETE FROM file_chunks")
            conn.execute("DELETE FROM file_tree")
            conn.execute("DELETE FROM repo_metadata")
        self.flush()
        logger.info("Cleared all index data")
