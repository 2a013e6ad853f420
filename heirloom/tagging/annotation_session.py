"""Per-item annotation workflow: review candidate tags and produce a flat tag list.

A session holds every candidate and confirmed tag for one media item, grouped
by category. Nothing leaves the session until save(); discard() drops it all.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

from heirloom.config import TaggingConfig, get_config
from heirloom.core.exceptions import NotFoundError, SessionClosedError, ValidationError
from heirloom.core.models import (
    ConfidenceTier,
    MediaItem,
    ReviewAction,
    TagCategory,
    TagSource,
    TagState,
)
from heirloom.log_utils import get_logger
from heirloom.tagging.confidence import confidence_tier
from heirloom.tagging.identity import IdentityRegistry
from heirloom.tagging.models import AnnotationTag

logger = get_logger(__name__)


class SuggestionSource(Protocol):
    """External producer of candidate tags (e.g. an inference service)."""

    async def fetch(self, media_item_id: str) -> Mapping[TagCategory, List[AnnotationTag]]:
        """Return one batch of candidates per category for a media item."""
        ...


def transition(state: TagState, action: ReviewAction) -> TagState:
    """
    Next review state for a tag.

    Depends only on the action: accept always lands in ACCEPTED and reject in
    REJECTED, from any state. Re-invoking the opposite action is how a
    decision is undone.
    """
    if action == ReviewAction.ACCEPT:
        return TagState.ACCEPTED
    return TagState.REJECTED


class AnnotationSession:
    """
    Working set of annotation tags for exactly one media item.

    Features:
    - Ingest suggestion batches per category (always pending)
    - Accept / reject / undo transitions, no-ops on stale tag IDs
    - User-authored tags and face-to-identity binding
    - Save into the item's flat tag list, or discard
    """

    def __init__(
        self,
        media_item_id: str,
        existing_tags: Sequence[str] = (),
        config: Optional[TaggingConfig] = None,
    ):
        """
        Initialize an empty session.

        Args:
            media_item_id: ID of the item being annotated
            existing_tags: The item's persisted flat tag list
            config: Tagging configuration (defaults to the global config)
        """
        self.media_item_id = media_item_id
        self.config = config or get_config()
        self._existing_tags: List[str] = list(existing_tags)
        self._tags: Dict[TagCategory, List[AnnotationTag]] = {c: [] for c in TagCategory}
        self._open = True
        self._dirty = False

    @classmethod
    def open(
        cls,
        item: MediaItem,
        suggestions: Optional[Mapping[TagCategory, Iterable[AnnotationTag]]] = None,
        existing_annotations: Iterable[AnnotationTag] = (),
        config: Optional[TaggingConfig] = None,
    ) -> "AnnotationSession":
        """
        Open a session seeded from an item and an optional suggestion batch.

        Args:
            item: The media item being annotated
            suggestions: Candidate tags per category, ingested as pending
            existing_annotations: Previously confirmed structured tags, shown as
                accepted with source "existing"
            config: Tagging configuration
        """
        session = cls(item.id, existing_tags=item.tags, config=config)

        for annotation in existing_annotations:
            seeded = annotation.model_copy(
                update={"source": TagSource.EXISTING, "state": TagState.ACCEPTED}
            )
            session._insert(seeded)

        for category, batch in (suggestions or {}).items():
            session.ingest_suggestions(category, list(batch))

        logger.debug_ctx(
            "Opened annotation session", media_item_id=item.id, tags=len(session.all_tags())
        )
        return session

    @classmethod
    async def open_with_source(
        cls,
        item: MediaItem,
        source: SuggestionSource,
        existing_annotations: Iterable[AnnotationTag] = (),
        config: Optional[TaggingConfig] = None,
    ) -> "AnnotationSession":
        """Fetch one suggestion batch from the source, then open a session with it."""
        suggestions = await source.fetch(item.id)
        return cls.open(
            item,
            suggestions=suggestions,
            existing_annotations=existing_annotations,
            config=config,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def has_changes(self) -> bool:
        """True once the reviewer has made any effective edit."""
        return self._dirty

    @property
    def existing_tags(self) -> List[str]:
        return list(self._existing_tags)

    def tags(self, category: TagCategory) -> List[AnnotationTag]:
        return list(self._tags[category])

    def all_tags(self) -> List[AnnotationTag]:
        """Every tag, in category order then insertion order."""
        return [tag for category in TagCategory for tag in self._tags[category]]

    def find(
        self, tag_id: str, category: Optional[TagCategory] = None
    ) -> Optional[AnnotationTag]:
        located = self._locate(tag_id, category)
        if located is None:
            return None
        found_category, index = located
        return self._tags[found_category][index]

    def search(
        self, query: str, category: Optional[TagCategory] = None
    ) -> List[AnnotationTag]:
        """Tags whose name contains the query, case-insensitively."""
        needle = query.casefold()
        pool = self.tags(category) if category else self.all_tags()
        return [tag for tag in pool if needle in tag.name.casefold()]

    def counts(self) -> Dict[TagCategory, Dict[TagState, int]]:
        """Number of tags per state, per category."""
        result: Dict[TagCategory, Dict[TagState, int]] = {}
        for category, tags in self._tags.items():
            per_state = {state: 0 for state in TagState}
            for tag in tags:
                per_state[tag.state] += 1
            result[category] = per_state
        return result

    def tier(self, tag: AnnotationTag) -> ConfidenceTier:
        return confidence_tier(tag.confidence, self.config.confidence)

    def accepted_names(self) -> List[str]:
        """Names of accepted tags, deduplicated, in category order."""
        names: List[str] = []
        for tag in self.all_tags():
            if tag.state == TagState.ACCEPTED and tag.name not in names:
                names.append(tag.name)
        return names

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def ingest_suggestions(
        self, category: TagCategory, suggestions: Sequence[AnnotationTag]
    ) -> None:
        """
        Append a batch of candidates to a category.

        Every candidate starts pending, whatever its confidence. Duplicate names
        are kept here and collapse only when saved.

        Raises:
            ValidationError: If a candidate belongs to another category or
                reuses a tag ID already present in this category
            SessionClosedError: If the session is closed
        """
        self._ensure_open()

        seen_ids = {tag.id for tag in self._tags[category]}
        batch: List[AnnotationTag] = []
        for suggestion in suggestions:
            if suggestion.category != category:
                raise ValidationError(
                    f"Suggestion '{suggestion.name}' is '{suggestion.category.value}', "
                    f"not '{category.value}'"
                )
            if suggestion.id in seen_ids:
                raise ValidationError(
                    f"Duplicate tag ID '{suggestion.id}' in category '{category.value}'"
                )
            seen_ids.add(suggestion.id)
            batch.append(suggestion.model_copy(update={"state": TagState.PENDING}))

        self._tags[category].extend(batch)
        logger.debug_ctx(
            "Ingested suggestions",
            media_item_id=self.media_item_id,
            category=category.value,
            count=len(batch),
        )

    def apply(
        self,
        tag_id: str,
        action: ReviewAction,
        category: Optional[TagCategory] = None,
    ) -> Optional[AnnotationTag]:
        """
        Apply a review action to a tag.

        Returns:
            The updated tag, or None if the ID is unknown (stale reference)
        """
        self._ensure_open()

        located = self._locate(tag_id, category)
        if located is None:
            logger.debug_ctx(
                "Ignoring review action for unknown tag", action=action.value, tag_id=tag_id
            )
            return None

        found_category, index = located
        tag = self._tags[found_category][index]
        new_state = transition(tag.state, action)
        if new_state == tag.state:
            return tag

        updated = tag.model_copy(update={"state": new_state})
        self._tags[found_category][index] = updated
        self._dirty = True
        return updated

    def accept(
        self, tag_id: str, category: Optional[TagCategory] = None
    ) -> Optional[AnnotationTag]:
        return self.apply(tag_id, ReviewAction.ACCEPT, category)

    def reject(
        self, tag_id: str, category: Optional[TagCategory] = None
    ) -> Optional[AnnotationTag]:
        return self.apply(tag_id, ReviewAction.REJECT, category)

    def add_custom_tag(self, category: TagCategory, name: str) -> AnnotationTag:
        """
        Add a tag typed in by the reviewer: accepted, confidence 1.0, source user.

        Raises:
            ValidationError: If the name is empty
            SessionClosedError: If the session is closed
        """
        self._ensure_open()

        clean_name = name.strip() if name else ""
        if not clean_name:
            raise ValidationError("Tag name cannot be empty")

        tag = AnnotationTag.user_tag(category, clean_name)
        self._insert(tag)
        self._dirty = True
        return tag

    def assign_face_to_identity(
        self, tag_id: str, identity_id: str, resolved_name: str
    ) -> Optional[AnnotationTag]:
        """
        Bind a detected face to a known identity.

        Sets metadata.identity_id, replaces the name with resolved_name and
        forces the tag to accepted. The identity must already exist in the
        registry; creating it is the caller's job.

        Returns:
            The updated tag, or None if the ID is unknown

        Raises:
            ValidationError: If the tag is not a people tag or the name is empty
        """
        self._ensure_open()

        clean_name = resolved_name.strip() if resolved_name else ""
        if not clean_name:
            raise ValidationError("Resolved identity name cannot be empty")

        located = self._locate(tag_id, TagCategory.PEOPLE)
        if located is None:
            if self._locate(tag_id) is not None:
                raise ValidationError(f"Tag '{tag_id}' is not a people tag")
            logger.debug_ctx("Ignoring identity binding for unknown tag", tag_id=tag_id)
            return None

        _, index = located
        tag = self._tags[TagCategory.PEOPLE][index]
        updated = tag.model_copy(
            update={
                "name": clean_name,
                "state": TagState.ACCEPTED,
                "metadata": tag.metadata.model_copy(update={"identity_id": identity_id}),
            }
        )
        self._tags[TagCategory.PEOPLE][index] = updated
        self._dirty = True

        logger.info_ctx(
            "Bound face to identity",
            tag_id=tag_id,
            identity_id=identity_id,
            media_item_id=self.media_item_id,
        )
        return updated

    def assign_face_to_new_identity(
        self, tag_id: str, name: str, registry: IdentityRegistry
    ) -> Optional[AnnotationTag]:
        """Create an identity in the registry from a name, then bind the face to it."""
        self._ensure_open()
        if self.find(tag_id, TagCategory.PEOPLE) is None:
            # Check category before touching the registry
            if self.find(tag_id) is not None:
                raise ValidationError(f"Tag '{tag_id}' is not a people tag")
            return None

        identity = registry.create(name)
        return self.assign_face_to_identity(tag_id, identity.id, identity.name)

    def remove_face(self, tag_id: str) -> Optional[AnnotationTag]:
        """Reject a detected face as a false positive."""
        return self.reject(tag_id, TagCategory.PEOPLE)

    # ------------------------------------------------------------------
    # Closing
    # ------------------------------------------------------------------

    def save(self) -> List[str]:
        """
        Close the session and return the item's new flat tag list.

        The persisted tags come first, unchanged, followed by the name of
        every accepted tag not already present (exact, case-sensitive match).
        Pending and rejected tags are dropped.

        Raises:
            SessionClosedError: If the session is already closed
        """
        flat = self.flat_tags()
        self._close()
        logger.info_ctx(
            "Saved annotation session",
            media_item_id=self.media_item_id,
            new_tags=len(flat) - len(self._existing_tags),
        )
        return flat

    def flat_tags(self) -> List[str]:
        """The list save() would produce, without closing the session."""
        self._ensure_open()

        flat = list(self._existing_tags)
        present = set(flat)
        for name in self.accepted_names():
            if name not in present:
                present.add(name)
                flat.append(name)
        return flat

    async def save_to(self, store) -> List[str]:
        """
        Write the flat tag list to a MediaItemStore, then close the session.

        The session stays open when the write fails, so nothing the reviewer
        accepted is lost.

        Raises:
            SessionClosedError: If the session is already closed
            NotFoundError: If the store has no item with this ID
        """
        flat = self.flat_tags()
        if not await store.update_tags(self.media_item_id, flat):
            raise NotFoundError("MediaItem", self.media_item_id)
        return self.save()

    def discard(self) -> None:
        """Close the session without producing anything. Safe to call repeatedly."""
        if self._open:
            self._close()
            logger.debug_ctx("Discarded annotation session", media_item_id=self.media_item_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if not self._open:
            raise SessionClosedError(self.media_item_id)

    def _close(self) -> None:
        self._open = False
        self._tags = {c: [] for c in TagCategory}

    def _insert(self, tag: AnnotationTag) -> None:
        if any(existing.id == tag.id for existing in self._tags[tag.category]):
            raise ValidationError(
                f"Duplicate tag ID '{tag.id}' in category '{tag.category.value}'"
            )
        self._tags[tag.category].append(tag)

    def _locate(
        self, tag_id: str, category: Optional[TagCategory] = None
    ) -> Optional[Tuple[TagCategory, int]]:
        categories = [category] if category else list(TagCategory)
        for current in categories:
            for index, tag in enumerate(self._tags[current]):
                if tag.id == tag_id:
                    return current, index
        return None
