"""Tag taxonomy, per-item annotation review and bulk tagging."""

from heirloom.tagging.models import (
    AnnotationTag,
    CategoryMetadata,
    GeoPoint,
    NormalizedBox,
    Suggestion,
    TagNode,
    TagTreeSnapshot,
)
from heirloom.tagging.tag_tree import TagTreeStore
from heirloom.tagging.confidence import confidence_tier
from heirloom.tagging.identity import Identity, IdentityRegistry, InMemoryIdentityRegistry
from heirloom.tagging.annotation_session import AnnotationSession, SuggestionSource, transition
from heirloom.tagging.bulk_operations import BulkTagOperator, BulkTagResult, UpdatedItem
from heirloom.tagging.suggestion_carousel import SuggestionCarousel

__all__ = [
    "AnnotationSession",
    "AnnotationTag",
    "BulkTagOperator",
    "BulkTagResult",
    "CategoryMetadata",
    "GeoPoint",
    "Identity",
    "IdentityRegistry",
    "InMemoryIdentityRegistry",
    "NormalizedBox",
    "Suggestion",
    "SuggestionCarousel",
    "SuggestionSource",
    "TagNode",
    "TagTreeSnapshot",
    "TagTreeStore",
    "UpdatedItem",
    "confidence_tier",
    "transition",
]
