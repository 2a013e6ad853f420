"""Persistence collaborator implementations."""

import logging
from typing import Optional

from heirloom.config import TaggingConfig
from heirloom.store.base import MediaItemStore
from heirloom.store.memory_store import InMemoryItemStore

logger = logging.getLogger(__name__)


def create_item_store(
    backend: str = "memory",
    config: Optional[TaggingConfig] = None,
) -> MediaItemStore:
    """
    Factory function for item stores.

    Args:
        backend: "memory" or "sqlite"
        config: Tagging configuration. If None, uses global config.

    Raises:
        ValueError: If backend is unsupported
    """
    if backend == "memory":
        return InMemoryItemStore()

    if backend == "sqlite":
        from heirloom.store.sqlite_store import SqliteItemStore
        return SqliteItemStore(config)

    raise ValueError(
        f"Unsupported storage backend: {backend}\n"
        f"Supported backends: 'memory', 'sqlite'"
    )


__all__ = ["MediaItemStore", "InMemoryItemStore", "create_item_store"]
