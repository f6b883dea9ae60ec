"""Embedding provider: ordered strategies behind one async interface."""

import asyncio
import logging
from typing import Optional, Sequence

import numpy as np

from projectrag.embedders.cache import EmbeddingCache
from projectrag.embedders.hashed import DEFAULT_DIMENSION, HashedEmbedder
from projectrag.protocols import EmbeddingStrategy

logger = logging.getLogger(__name__)


class EmbeddingProvider:
    """Maps text to a fixed-dimension vector.

    Strategies are tried in order for every call and the first one that
    returns a vector of the right dimension wins. A strategy whose
    `load()` fails is disabled for the provider's lifetime. Blocking
    work (model loading, inference) runs in a worker thread so the
    event loop stays responsive.
    """

    def __init__(
        self,
        strategies: Sequence[EmbeddingStrategy],
        dimension: int = DEFAULT_DIMENSION,
        cache: Optional[EmbeddingCache] = None,
    ):
        if not strategies:
            raise ValueError("EmbeddingProvider needs at least one strategy")
        self.dimension = dimension
        self.cache = cache if cache is not None else EmbeddingCache()
        self._strategies = list(strategies)
        self._disabled: set[int] = set()
        self._loaded = False

    @classmethod
    def default(
        cls,
        model_name: Optional[str] = None,
        dimension: int = DEFAULT_DIMENSION,
        cache: Optional[EmbeddingCache] = None,
    ) -> "EmbeddingProvider":
        """Primary sentence-transformers model backed by the hashed fallback."""
        # Import here to avoid loading torch unless needed
        from projectrag.embedders.sentence_transformer import SentenceTransformerEmbedder

        return cls(
            [SentenceTransformerEmbedder(model_name), HashedEmbedder(dimension)],
            dimension=dimension,
            cache=cache,
        )

    @property
    def strategies(self) -> list[EmbeddingStrategy]:
        """Strategies still enabled, in order of preference."""
        return [s for i, s in enumerate(self._strategies) if i not in self._disabled]

    @property
    def active_strategy(self) -> Optional[str]:
        enabled = self.strategies
        return enabled[0].name if enabled else None

    async def load(self) -> None:
        """Load every strategy once, disabling the ones that fail."""
        if self._loaded:
            return
        for i, strategy in enumerate(self._strategies):
            try:
                await asyncio.to_thread(strategy.load)
            except Exception as e:
                logger.warning("Embedding strategy %s failed to load: %s", strategy.name, e)
                self._disabled.add(i)
                continue
            if strategy.dimension != self.dimension:
                logger.warning(
                    "Embedding strategy %s produces %dD vectors, store expects %dD; disabling it",
                    strategy.name,
                    strategy.dimension,
                    self.dimension,
                )
                self._disabled.add(i)
                continue
            logger.info("Embedding strategy %s ready", strategy.name)
        self._loaded = True
        if self.active_strategy:
            logger.info("Using %s embeddings (%dD)", self.active_strategy, self.dimension)

    async def embed(self, text: str) -> Optional[np.ndarray]:
        """Embed text, falling back through strategies.

        Args:
            text: Chunk or query text

        Returns:
            float32 vector of length `dimension`, or None if every strategy
            failed. Callers skip the text on None; it is never a zero vector.
        """
        cached = self.cache.get(text)
        if cached is not None:
            return cached

        for strategy in self.strategies:
            try:
                vector = await asyncio.to_thread(strategy.embed, text)
            except Exception as e:
                logger.warning("Embedding with %s failed, trying next: %s", strategy.name, e)
                continue

            vector = np.asarray(vector, dtype=np.float32).reshape(-1)
            if vector.shape[0] != self.dimension:
                logger.warning(
                    "Embedding from %s has dimension %d, expected %d",
                    strategy.name,
                    vector.shape[0],
                    self.dimension,
                )
                continue

            self.cache.put(text, vector)
            return vector

        logger.error("All embedding strategies failed for text of length %d", len(text))
        return None
