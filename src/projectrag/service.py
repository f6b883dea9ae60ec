"""RagService: the API consumers use to index and query scopes."""

import logging
from pathlib import Path
from typing import Any, Optional

from projectrag.access import access_for
from projectrag.config import ConfigManager, RagConfig, config_path, index_path
from projectrag.controller import IndexingController, StatusCallback
from projectrag.embedders import EmbeddingProvider
from projectrag.models import ContainerScope, ProjectScope, Scope, SearchResult
from projectrag.protocols import FileAccess
from projectrag.retriever import MAX_CONTEXT_LENGTH, ContextRetriever
from projectrag.storage import IndexStore

logger = logging.getLogger(__name__)

CONTAINER_ROOT = "/workspace"


class RagService:
    """Facade over the store, embedder, retriever and indexing controller.

    Args:
        home: Directory holding rag-config.json and rag-index.db
            (default: ~/.projectrag)
        embedder: Embedding provider; built from the configured model if omitted
        store: Index store; a snapshot-backed store under home if omitted
        persist: If False and no store is given, the index lives in memory only
    """

    def __init__(
        self,
        home: Optional[Path] = None,
        embedder: Optional[EmbeddingProvider] = None,
        store: Optional[IndexStore] = None,
        persist: bool = True,
    ):
        self.home = Path(home) if home is not None else None
        self.config_manager = ConfigManager(config_path(self.home))
        self.store = store or IndexStore(index_path(self.home) if persist else None)
        self._embedder = embedder
        self._retriever: Optional[ContextRetriever] = None
        self._controller: Optional[IndexingController] = None

    @property
    def initialized(self) -> bool:
        return self._controller is not None

    @property
    def embedder(self) -> EmbeddingProvider:
        if self._embedder is None:
            raise RuntimeError("RagService is not initialized")
        return self._embedder

    @property
    def retriever(self) -> ContextRetriever:
        if self._retriever is None:
            raise RuntimeError("RagService is not initialized")
        return self._retriever

    @property
    def controller(self) -> IndexingController:
        if self._controller is None:
            raise RuntimeError("RagService is not initialized")
        return self._controller

    async def initialize(self) -> None:
        """Open the store, load config and load the embedding strategies."""
        if self.initialized:
            return

        config = self.config_manager.load()
        if not self.store.is_open:
            self.store.open()

        if self._embedder is None:
            self._embedder = EmbeddingProvider.default(config.embedding_model)
        await self._embedder.load()
        self._check_embedding_metadata(config)

        self._retriever = ContextRetriever(self.store, self._embedder, config)
        self._controller = IndexingController(self.store, self._embedder)
        logger.info("RAG service initialized")

    def _check_embedding_metadata(self, config: RagConfig) -> None:
        dimension = str(self.embedder.dimension)
        stored = self.store.get_metadata("embedding_dimension")
        if stored is not None and stored != dimension:
            logger.warning(
                "Index was built with %sD embeddings, now using %sD; re-index to search old scopes",
                stored,
                dimension,
            )
        self.store.set_metadata("embedding_model", config.embedding_model)
        self.store.set_metadata("embedding_dimension", dimension)

    # Indexing

    async def index_scope(
        self,
        scope: Scope,
        root: Optional[str] = None,
        status: Optional[StatusCallback] = None,
        access: Optional[FileAccess] = None,
    ) -> int:
        """Index a project or container.

        Args:
            scope: Scope to index
            root: Root path; the project path, or CONTAINER_ROOT for containers
            status: Optional progress callback
            access: Filesystem access; picked from the scope if omitted

        Returns:
            Number of files indexed
        """
        if root is None:
            root = scope.path if isinstance(scope, ProjectScope) else CONTAINER_ROOT
        elif len(root) > 1:
            root = root.rstrip("/")
        return await self.controller.index_scope(
            scope, root, access or access_for(scope), status
        )

    def abort_indexing(self) -> bool:
        return self.controller.abort()

    # Retrieval

    async def build_context(
        self,
        query: str,
        scope: Scope,
        max_budget: int = MAX_CONTEXT_LENGTH,
    ) -> str:
        return await self.retriever.build_context(query, scope, max_budget)

    async def search(
        self,
        query: str,
        scope: Scope,
        limit: Optional[int] = None,
    ) -> list[SearchResult]:
        return await self.retriever.search(query, scope, limit)

    def get_stats(self, scope: Optional[Scope] = None) -> dict[str, Any]:
        """Row counts plus the current config."""
        stats = self.store.stats(scope).to_dict()
        stats["config"] = self.config_manager.get().to_dict()
        return stats

    # Config

    def get_config(self) -> RagConfig:
        return self.config_manager.get()

    def update_config(self, **changes: Any) -> RagConfig:
        """Update and persist config; the next query uses the new values.

        Raises:
            ValueError: Unknown key or invalid value
        """
        config = self.config_manager.update(**changes)
        if self._retriever is not None:
            self._retriever.config = self.config_manager.config
        if "embedding_model" in changes:
            logger.info("Embedding model change takes effect on the next start")
        return config

    # Maintenance

    def clear_scope(self, scope: Scope) -> None:
        self.store.clear_scope(scope)
        if self._embedder is not None:
            self._embedder.cache.clear()

    def clear_all(self) -> None:
        self.store.clear_all()
        if self._embedder is not None:
            self._embedder.cache.clear()

    def close(self) -> None:
        """Abort any running job and flush the store."""
        if self._controller is not None:
            self._controller.abort()
        self.store.close()
        logger.info("RAG service closed")


def parse_scope(project: Optional[str] = None, container: Optional[str] = None) -> Scope:
    """Build a scope from exactly one of a project path or a container id."""
    if bool(project) == bool(container):
        raise ValueError("Give exactly one of a project path or a container id")
    if container:
        return ContainerScope(container)
    return ProjectScope(str(Path(project).expanduser().resolve()))

