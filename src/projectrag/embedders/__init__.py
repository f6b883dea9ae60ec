"""Embedding strategies and the provider that chains them."""

from projectrag.embedders.cache import EmbeddingCache
from projectrag.embedders.hashed import DEFAULT_DIMENSION, HashedEmbedder
from projectrag.embedders.provider import EmbeddingProvider

__all__ = ["EmbeddingProvider", "EmbeddingCache", "HashedEmbedder", "DEFAULT_DIMENSION"]
