"""Data models for the tagging system."""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import date as calendar_date, datetime, UTC
from typing import Optional, List
from uuid import uuid4

from heirloom.core.models import TagCategory, TagSource, TagState


class TagNode(BaseModel):
    """One entry of the hierarchical taxonomy. Children are derived, never stored."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(..., min_length=1)
    usage_count: int = Field(default=0, ge=0)
    color: Optional[str] = None
    parent_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Strip surrounding whitespace; reject blank names."""
        v = v.strip()
        if not v:
            raise ValueError("Tag name cannot be empty")
        return v


class TagTreeSnapshot(BaseModel):
    """Serializable copy of a tag tree, in insertion order."""

    version: int = 1
    tags: List[TagNode] = Field(default_factory=list)


class NormalizedBox(BaseModel):
    """Rectangle relative to the unscaled media frame, all values in [0, 1]."""

    x: float = Field(..., ge=0.0, le=1.0)
    y: float = Field(..., ge=0.0, le=1.0)
    width: float = Field(..., ge=0.0, le=1.0)
    height: float = Field(..., ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_inside_frame(self) -> "NormalizedBox":
        # Small tolerance for detector float noise
        if self.x + self.width > 1.0 + 1e-9 or self.y + self.height > 1.0 + 1e-9:
            raise ValueError("Bounding box extends past the media frame")
        return self


class GeoPoint(BaseModel):
    """Latitude/longitude pair for location tags."""

    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class CategoryMetadata(BaseModel):
    """
    Category-specific fields of an annotation tag.

    people -> identity_id, locations -> address/coordinates, events -> date,
    emotions -> intensity, text -> text. Objects carry nothing.
    """

    identity_id: Optional[str] = None
    address: Optional[str] = None
    coordinates: Optional[GeoPoint] = None
    date: Optional[calendar_date] = None
    intensity: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    text: Optional[str] = None


# Which metadata fields each category may carry
CATEGORY_FIELDS = {
    TagCategory.PEOPLE: {"identity_id"},
    TagCategory.OBJECTS: set(),
    TagCategory.LOCATIONS: {"address", "coordinates"},
    TagCategory.EVENTS: {"date"},
    TagCategory.EMOTIONS: {"intensity"},
    TagCategory.TEXT: {"text"},
}

# Categories whose tags may carry a bounding box
BOXED_CATEGORIES = (TagCategory.PEOPLE, TagCategory.OBJECTS, TagCategory.TEXT)


class AnnotationTag(BaseModel):
    """A category-scoped label candidate (or confirmed label) on one media item."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    category: TagCategory
    name: str = Field(..., min_length=1)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    source: TagSource = TagSource.AI
    state: TagState = TagState.PENDING
    bounding_box: Optional[NormalizedBox] = None
    metadata: CategoryMetadata = Field(default_factory=CategoryMetadata)

    @model_validator(mode="after")
    def validate_category_shape(self) -> "AnnotationTag":
        """Check source invariants and that metadata matches the category."""
        if self.source == TagSource.USER and self.confidence != 1.0:
            raise ValueError("User-authored tags must have confidence 1.0")

        allowed = CATEGORY_FIELDS[self.category]
        foreign = [
            field
            for field in self.metadata.model_fields_set
            if field not in allowed and getattr(self.metadata, field) is not None
        ]
        if foreign:
            raise ValueError(
                f"Metadata {sorted(foreign)} not valid for category '{self.category.value}'"
            )

        if self.bounding_box is not None and self.category not in BOXED_CATEGORIES:
            raise ValueError(
                f"Category '{self.category.value}' does not carry bounding boxes"
            )

        if self.category == TagCategory.TEXT and self.metadata.text is None:
            # Recognized text defaults to the label itself
            self.metadata = self.metadata.model_copy(update={"text": self.name})

        return self

    @property
    def identity_id(self) -> Optional[str]:
        return self.metadata.identity_id

    @classmethod
    def user_tag(cls, category: TagCategory, name: str, **kwargs) -> "AnnotationTag":
        """Create a tag typed in by a family member: accepted, full confidence."""
        return cls(
            category=category,
            name=name,
            confidence=1.0,
            source=TagSource.USER,
            state=TagState.ACCEPTED,
            **kwargs,
        )


class Suggestion(BaseModel):
    """Flat, cross-item suggestion shown in the review carousel."""

    id: str
    name: str
    category: TagCategory
    confidence: float = Field(..., ge=0.0, le=1.0)
