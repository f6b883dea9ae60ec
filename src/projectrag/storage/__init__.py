"""Index storage."""

from projectrag.storage.store import IndexStore, StoreError

__all__ = ["IndexStore", "StoreError"]
