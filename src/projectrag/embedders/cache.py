"""Bounded embedding cache."""

from collections import OrderedDict
from typing import Optional

import numpy as np

DEFAULT_MAX_ENTRIES = 1000
DEFAULT_KEY_LENGTH = 500


class EmbeddingCache:
    """Bounded mapping from text to embedding.

    Keys are the first `key_length` characters of the text. When full,
    the oldest inserted entry is evicted.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        key_length: int = DEFAULT_KEY_LENGTH,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self.key_length = key_length
        self._entries: "OrderedDict[str, np.ndarray]" = OrderedDict()

    def key(self, text: str) -> str:
        return text[: self.key_length]

    def get(self, text: str) -> Optional[np.ndarray]:
        return self._entries.get(self.key(text))

    def put(self, text: str, embedding: np.ndarray) -> None:
        key = self.key(text)
        if key not in self._entries:
            while len(self._entries) >= self.max_entries:
                self._entries.popitem(last=False)
        self._entries[key] = embedding

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, text: str) -> bool:
        return self.key(text) in self._entries
