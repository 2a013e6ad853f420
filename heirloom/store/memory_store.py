"""Dictionary-backed item store."""

from typing import Dict, Iterable, List, Optional

from heirloom.core.models import MediaItem
from heirloom.store.base import MediaItemStore


class InMemoryItemStore(MediaItemStore):
    """MediaItemStore kept in a dict; items are copied in and out."""

    def __init__(self, items: Iterable[MediaItem] = ()):
        self._items: Dict[str, MediaItem] = {item.id: item.model_copy(deep=True) for item in items}

    async def get_item(self, item_id: str) -> Optional[MediaItem]:
        item = self._items.get(item_id)
        return item.model_copy(deep=True) if item else None

    async def list_items(self) -> List[MediaItem]:
        return [item.model_copy(deep=True) for item in self._items.values()]

    async def save_item(self, item: MediaItem) -> None:
        self._items[item.id] = item.model_copy(deep=True)

    async def update_tags(self, item_id: str, tags: List[str]) -> bool:
        item = self._items.get(item_id)
        if item is None:
            return False
        self._items[item_id] = item.model_copy(update={"tags": list(tags)})
        return True

    async def delete_item(self, item_id: str) -> bool:
        return self._items.pop(item_id, None) is not None
