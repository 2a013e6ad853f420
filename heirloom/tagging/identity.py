"""Identity registry boundary: the family-member directory faces are bound to."""

from typing import Dict, List, Optional, Protocol
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from heirloom.core.exceptions import ValidationError
from heirloom.log_utils import get_logger

logger = get_logger(__name__)


class Identity(BaseModel):
    """A known family member."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    avatar: Optional[str] = None
    relationship: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Identity name cannot be empty")
        return v


class IdentityRegistry(Protocol):
    """Protocol for the external identity directory."""

    def get(self, identity_id: str) -> Optional[Identity]:
        """Look an identity up by ID."""
        ...

    def resolve_name(self, identity_id: str) -> Optional[str]:
        """Display name for an identity, or None if unknown."""
        ...

    def create(self, name: str, relationship: Optional[str] = None) -> Identity:
        """Create a new identity from a name."""
        ...

    def list(self) -> List[Identity]:
        """All identities, in creation order."""
        ...


class InMemoryIdentityRegistry:
    """Dictionary-backed IdentityRegistry for tests and embedding callers."""

    def __init__(self, identities: Optional[List[Identity]] = None):
        self._identities: Dict[str, Identity] = {}
        for identity in identities or []:
            self._identities[identity.id] = identity

    def get(self, identity_id: str) -> Optional[Identity]:
        return self._identities.get(identity_id)

    def resolve_name(self, identity_id: str) -> Optional[str]:
        identity = self._identities.get(identity_id)
        return identity.name if identity else None

    def create(self, name: str, relationship: Optional[str] = None) -> Identity:
        """
        Create a new identity.

        Raises:
            ValidationError: If the name is empty
        """
        if not name or not name.strip():
            raise ValidationError("Identity name cannot be empty")

        identity = Identity(name=name, relationship=relationship)
        self._identities[identity.id] = identity
        logger.info_ctx("Created identity", identity_id=identity.id, name=identity.name)
        return identity

    def list(self) -> List[Identity]:
        return list(self._identities.values())
