"""Abstract base class for media item persistence backends."""

from abc import ABC, abstractmethod
from typing import List, Optional

from heirloom.core.models import MediaItem


class MediaItemStore(ABC):
    """
    Interface of the persistence collaborator.

    The tagging engine never reads or writes storage on its own; callers pass
    items in and hand results (flat tag lists, bulk updates) to a store.
    """

    async def initialize(self) -> None:
        """Prepare the backend. Default: nothing to do."""

    async def close(self) -> None:
        """Release backend resources. Default: nothing to do."""

    @abstractmethod
    async def get_item(self, item_id: str) -> Optional[MediaItem]:
        """
        Fetch one item.

        Returns:
            The item, or None if not found.

        Raises:
            StorageError: If the backend fails.
        """

    @abstractmethod
    async def list_items(self) -> List[MediaItem]:
        """All items, in insertion order."""

    @abstractmethod
    async def save_item(self, item: MediaItem) -> None:
        """Insert or replace an item."""

    @abstractmethod
    async def update_tags(self, item_id: str, tags: List[str]) -> bool:
        """
        Replace an item's flat tag list.

        Returns:
            bool: True if updated, False if the item does not exist.

        Raises:
            StorageError: If the backend fails.
        """

    @abstractmethod
    async def delete_item(self, item_id: str) -> bool:
        """
        Delete an item.

        Returns:
            bool: True if deleted, False if not found.
        """
