"""Protocol for embedding strategies."""

from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class EmbeddingStrategy(Protocol):
    """Protocol for a single way of turning text into a vector.

    Allows swapping between local models (sentence-transformers),
    deterministic feature hashing, or custom implementations. An
    EmbeddingProvider tries its strategies in order.
    """

    @property
    def name(self) -> str:
        """Return identifier for the model or method used."""
        ...

    @property
    def dimension(self) -> int:
        """Return the embedding dimension."""
        ...

    def load(self) -> None:
        """Load any heavy resources. Raises if the strategy is unusable."""
        ...

    def embed(self, text: str) -> np.ndarray:
        """Embed one text.

        Returns: numpy array of shape (dimension,)
        """
        ...
