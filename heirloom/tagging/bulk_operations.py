"""
Bulk tag operations module.

Applies a set of tag names to many media items at once, with previews,
per-item failure reporting, batched commits and progress tracking.
"""

from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from heirloom.config import TaggingConfig, get_config
from heirloom.core.exceptions import ValidationError
from heirloom.core.models import MediaItem
from heirloom.log_utils import get_logger
from heirloom.store.base import MediaItemStore
from heirloom.tagging.models import TagNode
from heirloom.tagging.tag_tree import TagTreeStore

logger = get_logger(__name__)


# Type alias for progress callbacks: (done, total, message)
ProgressCallback = Callable[[int, int, str], None]


class SortField(str, Enum):
    """Columns the bulk editor can sort by."""

    DATE = "date"
    TITLE = "title"
    TYPE = "type"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class UpdatedItem(BaseModel):
    """New tag list of one item after a bulk apply."""

    memory_id: str = Field(description="ID of the updated item")
    tags: List[str] = Field(description="Full tag list after the union")
    added: List[str] = Field(description="Names newly introduced on this item")


class BulkTagResult(BaseModel):
    """
    Result of a bulk apply (or its preview).

    Items that already carried every requested name are listed as unchanged,
    not as updated.
    """

    dry_run: bool = Field(default=False, description="Whether nothing was mutated")
    tag_names: List[str] = Field(default_factory=list, description="Requested names, deduplicated")
    updated: List[UpdatedItem] = Field(default_factory=list)
    unchanged: List[str] = Field(default_factory=list, description="IDs needing no change")
    failed: List[str] = Field(default_factory=list, description="IDs that could not be updated")
    errors: List[str] = Field(default_factory=list)

    @property
    def total_updated(self) -> int:
        return len(self.updated)

    @property
    def success(self) -> bool:
        return not self.failed


class BulkCommitResult(BaseModel):
    """Result of pushing a bulk apply to the persistence collaborator."""

    success: bool = Field(description="Whether every item was committed")
    total_committed: int = Field(description="Number of items written")
    failed: List[str] = Field(description="IDs the store rejected or failed on")
    errors: List[str] = Field(description="Error messages encountered")
    execution_time: float = Field(description="Execution time in seconds")


def union_tags(existing: List[str], tag_names: List[str]) -> List[str]:
    """Existing names first, then new names in request order. Exact-match set union."""
    result = list(existing)
    present = set(result)
    for name in tag_names:
        if name not in present:
            present.add(name)
            result.append(name)
    return result


def _dedupe(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class BulkTagOperator:
    """
    Applies tag sets across a selection of media items.

    Features:
    - Order-preserving union of tag names, idempotent by construction
    - Per-item failures that never roll back other items
    - Dry-run previews
    - Batched commits with progress tracking
    - Title/tag filtering and sorting for the selection list

    The operator keeps its own catalog of items; apply_tags updates the catalog
    but never writes to storage. commit() is the only step that does.
    """

    def __init__(
        self,
        tree: TagTreeStore,
        items: Iterable[MediaItem] = (),
        config: Optional[TaggingConfig] = None,
    ):
        """
        Initialize the bulk tag operator.

        Args:
            tree: Shared tag taxonomy
            items: Media items available for selection
            config: Tagging configuration (defaults to the global config)
        """
        self.tree = tree
        self.config = config or get_config()
        self._items: Dict[str, MediaItem] = {item.id: item for item in items}

    @property
    def items(self) -> List[MediaItem]:
        return list(self._items.values())

    def get_item(self, memory_id: str) -> Optional[MediaItem]:
        return self._items.get(memory_id)

    # ------------------------------------------------------------------
    # Selection helpers
    # ------------------------------------------------------------------

    def filter_items(self, query: str = "") -> List[MediaItem]:
        """Items whose title or any tag contains the query, case-insensitively."""
        needle = query.strip().casefold()
        if not needle:
            return self.items
        return [
            item
            for item in self._items.values()
            if needle in item.title.casefold()
            or any(needle in tag.casefold() for tag in item.tags)
        ]

    @staticmethod
    def sort_items(
        items: Iterable[MediaItem],
        sort_by: SortField = SortField.DATE,
        order: SortOrder = SortOrder.DESC,
    ) -> List[MediaItem]:
        """
        Sort items for display. Undated items always go last.

        Args:
            items: Items to sort
            sort_by: date, title or type
            order: asc or desc

        Returns:
            New sorted list
        """
        sort_by = SortField(sort_by)
        reverse = SortOrder(order) == SortOrder.DESC
        items = list(items)

        if sort_by == SortField.DATE:
            dated = [item for item in items if item.date is not None]
            undated = [item for item in items if item.date is None]
            return sorted(dated, key=lambda item: item.date, reverse=reverse) + undated

        if sort_by == SortField.TITLE:
            key = lambda item: item.title.casefold()  # noqa: E731
        else:
            key = lambda item: item.media_type.value  # noqa: E731
        return sorted(items, key=key, reverse=reverse)

    def available_tags(self, query: str = "") -> List[str]:
        """Distinct tag names from the taxonomy, filtered by substring and sorted."""
        matches = self.tree.search(query) if query else (node for node, _ in self.tree.walk())
        return sorted(_dedupe(node.name for node in matches), key=str.casefold)

    def create_tag(self, name: str) -> TagNode:
        """
        Add a brand-new root tag to the taxonomy.

        Raises:
            ValidationError: If the name is empty or already a root tag
        """
        return self.tree.add_tag(None, name)

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------

    def preview(self, memory_ids: Iterable[str], tag_names: Iterable[str]) -> BulkTagResult:
        """What apply_tags would do, without touching the catalog or the tree."""
        return self._compute(memory_ids, tag_names, dry_run=True)

    def apply_tags(self, memory_ids: Iterable[str], tag_names: Iterable[str]) -> BulkTagResult:
        """
        Union a set of tag names into every selected item.

        Empty selections are a no-op. Unknown item IDs are reported as
        failures while every other item is still updated. Taxonomy tags whose
        name is newly added to an item get their usage count bumped.

        Requested names are stripped of surrounding whitespace and blank
        names are dropped, matching how the tag tree stores names. The union
        itself compares names exactly, so "family" and "Family" stay distinct.

        Args:
            memory_ids: Selected item IDs
            tag_names: Names to add

        Returns:
            Result listing updated, unchanged and failed items

        Raises:
            ValidationError: If the selection exceeds the configured limit
        """
        result = self._compute(memory_ids, tag_names, dry_run=False)

        for update in result.updated:
            self._items[update.memory_id] = self._items[update.memory_id].model_copy(
                update={"tags": update.tags}
            )
            self._record_usage(update.added, 1)

        if result.updated or result.failed:
            logger.info_ctx(
                "Bulk tags applied",
                tags=result.tag_names,
                updated=result.total_updated,
                unchanged=len(result.unchanged),
                failed=len(result.failed),
            )
        return result

    def _compute(
        self, memory_ids: Iterable[str], tag_names: Iterable[str], dry_run: bool
    ) -> BulkTagResult:
        ids = _dedupe(memory_ids)
        names = _dedupe(name.strip() for name in tag_names if name and name.strip())

        if not ids or not names:
            return BulkTagResult(dry_run=dry_run, tag_names=names)

        max_items = self.config.bulk.max_items
        if len(ids) > max_items:
            raise ValidationError(
                f"Bulk selection of {len(ids)} items exceeds the limit of {max_items}",
                solution="Select fewer items or raise HEIRLOOM_BULK__MAX_ITEMS.",
            )

        result = BulkTagResult(dry_run=dry_run, tag_names=names)
        for memory_id in ids:
            item = self._items.get(memory_id)
            if item is None:
                result.failed.append(memory_id)
                result.errors.append(f"Item {memory_id} not found")
                logger.warning_ctx("Bulk tag target not found", memory_id=memory_id)
                continue

            new_tags = union_tags(item.tags, names)
            added = new_tags[len(item.tags):]
            if added:
                result.updated.append(
                    UpdatedItem(memory_id=memory_id, tags=new_tags, added=added)
                )
            else:
                result.unchanged.append(memory_id)

        return result

    def _record_usage(self, names: Iterable[str], delta: int) -> None:
        for name in names:
            node = self.tree.find_by_name(name)
            if node is not None:
                self.tree.record_usage(node.id, delta)

    def _revert(self, update: UpdatedItem) -> None:
        """Undo one item's apply after the store failed to take it."""
        item = self._items.get(update.memory_id)
        if item is None or item.tags != update.tags:
            return
        added = set(update.added)
        self._items[update.memory_id] = item.model_copy(
            update={"tags": [tag for tag in item.tags if tag not in added]}
        )
        self._record_usage(update.added, -1)

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    async def commit(
        self,
        result: BulkTagResult,
        store: MediaItemStore,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BulkCommitResult:
        """
        Write the updated items of an apply result to a store.

        Items are processed in batches. A failure on one item is recorded and
        never rolls back the others. The failed item's catalog entry and the
        usage counts its apply recorded are restored, so it can be applied
        again later.

        Args:
            result: Result returned by apply_tags
            store: Persistence collaborator
            progress_callback: Optional callback for progress updates

        Returns:
            Commit statistics

        Raises:
            ValidationError: If given a dry-run result
        """
        if result.dry_run:
            raise ValidationError(
                "Cannot commit a preview",
                solution="Call apply_tags() and commit its result instead.",
            )

        start_time = datetime.now()
        updates = result.updated
        total_count = len(updates)
        batch_size = self.config.bulk.batch_size

        committed = 0
        failed: List[str] = []
        errors: List[str] = []

        for i in range(0, total_count, batch_size):
            batch = updates[i : i + batch_size]

            for update in batch:
                try:
                    if await store.update_tags(update.memory_id, update.tags):
                        committed += 1
                    else:
                        failed.append(update.memory_id)
                        errors.append(f"Item {update.memory_id} not found in store")
                        self._revert(update)
                except Exception as e:
                    failed.append(update.memory_id)
                    errors.append(f"Error updating {update.memory_id}: {str(e)}")
                    logger.warning_ctx(
                        "Failed to commit tags", memory_id=update.memory_id, error=str(e)
                    )
                    self._revert(update)

                if progress_callback:
                    progress_callback(
                        committed,
                        total_count,
                        f"Committed {committed}/{total_count}",
                    )

        execution_time = (datetime.now() - start_time).total_seconds()

        return BulkCommitResult(
            success=not failed,
            total_committed=committed,
            failed=failed,
            errors=errors,
            execution_time=round(execution_time, 2),
        )
