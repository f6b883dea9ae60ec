"""Deterministic feature-hashing embedding strategy."""

import re
import zlib

import numpy as np

DEFAULT_DIMENSION = 384

_LETTERS = 26
_WORD = re.compile(r"[a-z0-9_]+")


def _bucket(token: str, buckets: int) -> int:
    return zlib.crc32(token.encode("utf-8")) % buckets


class HashedEmbedder:
    """Embedding strategy built from hashed text features.

    Needs no model and always succeeds, so it backs up the primary model.
    Quality is far below a trained model but identical inputs always map
    to identical vectors.

    Layout:
    - [0, 26): frequency of each letter a-z
    - 26: average word length / 10
    - [27, dimension): hashed counts of words and word bigrams
    """

    name = "hashed"

    def __init__(self, dimension: int = DEFAULT_DIMENSION):
        if dimension <= _LETTERS + 1:
            raise ValueError(f"dimension must be greater than {_LETTERS + 1}")
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    def load(self) -> None:
        pass

    def embed(self, text: str) -> np.ndarray:
        vector = np.zeros(self._dimension, dtype=np.float32)
        normalized = text.lower()

        if normalized:
            letters = np.frombuffer(normalized.encode("ascii", errors="ignore"), dtype=np.uint8)
            letters = letters[(letters >= ord("a")) & (letters <= ord("z"))] - ord("a")
            counts = np.bincount(letters, minlength=_LETTERS)[:_LETTERS]
            vector[:_LETTERS] = counts / len(normalized)

        words = _WORD.findall(normalized)
        if words:
            vector[_LETTERS] = sum(len(w) for w in words) / len(words) / 10

            buckets = self._dimension - _LETTERS - 1
            offset = _LETTERS + 1
            for word in words:
                vector[offset + _bucket(word, buckets)] += 1.0
            for first, second in zip(words, words[1:]):
                vector[offset + _bucket(f"{first} {second}", buckets)] += 1.0

        norm = np.linalg.norm(vector)
        if norm > 0:
            vector /= norm
        return vector
