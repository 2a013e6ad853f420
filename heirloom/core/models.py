"""Core data models for the Heirloom tagging engine."""

from pydantic import BaseModel, Field, field_validator, ConfigDict
from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import uuid4


class TagCategory(str, Enum):
    """Annotation categories, in review-tab order."""

    PEOPLE = "people"
    OBJECTS = "objects"
    LOCATIONS = "locations"
    EVENTS = "events"
    EMOTIONS = "emotions"
    TEXT = "text"


class TagSource(str, Enum):
    """Where an annotation tag came from."""

    AI = "ai"  # Produced by a suggestion source
    USER = "user"  # Typed in by a family member
    EXISTING = "existing"  # Already persisted on the item


class TagState(str, Enum):
    """Review state of an annotation tag."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ReviewAction(str, Enum):
    """Decisions a reviewer can apply to a tag."""

    ACCEPT = "accept"
    REJECT = "reject"


class ConfidenceTier(str, Enum):
    """Advisory display tier for a confidence score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MediaType(str, Enum):
    """Kinds of family memories."""

    PHOTO = "photo"
    VIDEO = "video"
    AUDIO = "audio"
    STORY = "story"


class MediaItem(BaseModel):
    """A stored memory with its flat, persisted tag list."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str = ""
    media_type: MediaType = MediaType.PHOTO
    tags: List[str] = Field(default_factory=list)
    date: Optional[datetime] = None

    model_config = ConfigDict(use_enum_values=False)

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: List[str]) -> List[str]:
        """Drop repeated names while keeping first-seen order."""
        seen = set()
        result = []
        for name in v:
            if name not in seen:
                seen.add(name)
                result.append(name)
        return result
