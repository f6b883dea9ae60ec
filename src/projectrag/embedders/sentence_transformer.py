"""Primary embedding strategy backed by a sentence-transformers model."""

import logging
from typing import Optional

import numpy as np
from sentence_transformers import SentenceTransformer

from projectrag.config import DEFAULT_EMBEDDING_MODEL

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder:
    """Embeds chunks and queries with a local sentence-transformers model.

    The default all-MiniLM-L6-v2 yields 384D mean-pooled vectors. Vectors
    come back unit-length so the store's cosine ranking reduces to a dot
    product. Loading pulls in torch and may download weights, so the
    provider calls `load()` off the event loop.
    """

    def __init__(self, model_name: Optional[str] = None, device: Optional[str] = None):
        """
        Args:
            model_name: sentence-transformers model id (default: all-MiniLM-L6-v2)
            device: Torch device; the library picks one when None
        """
        self._model_name = model_name or DEFAULT_EMBEDDING_MODEL
        self._device = device
        self._model: Optional[SentenceTransformer] = None

    @property
    def name(self) -> str:
        return self._model_name

    @property
    def model(self) -> SentenceTransformer:
        if self._model is None:
            logger.info("Loading embedding model %s", self._model_name)
            self._model = SentenceTransformer(self._model_name, device=self._device)
        return self._model

    @property
    def dimension(self) -> int:
        return self.model.get_sentence_embedding_dimension()

    def load(self) -> None:
        """Load the model weights now rather than on the first chunk."""
        _ = self.model

    def embed(self, text: str) -> np.ndarray:
        """Embed one chunk or query.

        Returns:
            float32 array of shape (dimension,)
        """
        vector = self.model.encode(
            text,
            convert_to_numpy=True,
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        return np.asarray(vector, dtype=np.float32).reshape(-1)
