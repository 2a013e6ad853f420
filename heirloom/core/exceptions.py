"""Custom exceptions for the Heirloom tagging engine with actionable solutions."""

from typing import Optional


class HeirloomError(Exception):
    """Base exception for all tagging engine errors with actionable solutions."""

    error_code = "E000"  # Default error code, overridden by subclasses

    def __init__(
        self, message: str, solution: Optional[str] = None, docs_url: Optional[str] = None
    ):
        """
        Initialize error with actionable guidance.

        Args:
            message: Error description
            solution: Suggested solution or next steps
            docs_url: Link to relevant documentation
        """
        self.message = message
        self.solution = solution
        self.docs_url = docs_url

        full_message = f"[{self.error_code}] {message}"
        if solution:
            full_message += f"\n\n💡 Solution: {solution}"
        if docs_url:
            full_message += f"\n📖 Docs: {docs_url}"

        super().__init__(full_message)


class ValidationError(HeirloomError):
    """Raised when input validation fails (empty or duplicate names, bad values)."""

    error_code = "E001"


class CycleError(ValidationError):
    """Raised when a reparent would make a tag its own ancestor."""

    error_code = "E002"

    def __init__(self, tag_id: str, new_parent_id: str):
        self.tag_id = tag_id
        self.new_parent_id = new_parent_id

        if tag_id == new_parent_id:
            message = f"Cannot move tag '{tag_id}' under itself"
        else:
            message = (
                f"Cannot move tag '{tag_id}' under its descendant '{new_parent_id}'"
            )
        solution = "Move the descendant out of the subtree first, or pick another parent."

        super().__init__(message, solution)


class NotFoundError(HeirloomError):
    """Raised when a structural edit targets a tag or item that no longer exists."""

    error_code = "E003"

    def __init__(self, kind: str, object_id: str):
        self.kind = kind
        self.object_id = object_id
        super().__init__(f"{kind} with ID '{object_id}' not found")


class SessionClosedError(HeirloomError):
    """Raised when an annotation session is used after save() or discard()."""

    error_code = "E004"

    def __init__(self, media_item_id: str):
        self.media_item_id = media_item_id
        super().__init__(
            f"Annotation session for item '{media_item_id}' is closed",
            solution="Open a new session for the item to continue editing.",
        )


class StorageError(HeirloomError):
    """Raised when the persistence collaborator fails."""

    error_code = "E005"
