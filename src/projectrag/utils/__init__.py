"""Utility functions for projectrag."""

from projectrag.utils.binary import has_null_bytes, is_binary_content
from projectrag.utils.paths import normalize_separators, split_parts, to_relative

__all__ = [
    "has_null_bytes",
    "is_binary_content",
    "normalize_separators",
    "split_parts",
    "to_relative",
]
