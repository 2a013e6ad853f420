"""Circular accept/reject walk over a flat queue of cross-item suggestions."""

from typing import Callable, Iterable, Optional

from heirloom.config import TaggingConfig, get_config
from heirloom.core.models import ConfidenceTier
from heirloom.log_utils import get_logger
from heirloom.tagging.confidence import confidence_tier
from heirloom.tagging.models import Suggestion

logger = get_logger(__name__)

SuggestionHandler = Callable[[Suggestion], None]


class SuggestionCarousel:
    """
    Cursor over a fixed suggestion queue.

    Decisions go to external handlers; the queue itself never changes, so a
    second lap revisits everything. The cursor always wraps. With an empty
    queue every operation does nothing and returns None.
    """

    def __init__(
        self,
        suggestions: Iterable[Suggestion],
        on_accept: Optional[SuggestionHandler] = None,
        on_reject: Optional[SuggestionHandler] = None,
        config: Optional[TaggingConfig] = None,
    ):
        self._queue = tuple(suggestions)
        self._on_accept = on_accept
        self._on_reject = on_reject
        self.config = config or get_config()
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def position(self) -> int:
        return self._cursor

    def current(self) -> Optional[Suggestion]:
        if not self._queue:
            return None
        return self._queue[self._cursor]

    def tier(self) -> Optional[ConfidenceTier]:
        """Display tier of the current suggestion."""
        suggestion = self.current()
        if suggestion is None:
            return None
        return confidence_tier(suggestion.confidence, self.config.confidence)

    def next(self) -> Optional[Suggestion]:
        return self._step(1)

    def previous(self) -> Optional[Suggestion]:
        return self._step(-1)

    def accept(self) -> Optional[Suggestion]:
        """
        Hand the current suggestion to the accept handler, then advance.

        Returns:
            The suggestion that was decided on, or None for an empty queue
        """
        return self._decide(self._on_accept, "accept")

    def reject(self) -> Optional[Suggestion]:
        """Hand the current suggestion to the reject handler, then advance."""
        return self._decide(self._on_reject, "reject")

    def _decide(self, handler: Optional[SuggestionHandler], action: str) -> Optional[Suggestion]:
        suggestion = self.current()
        if suggestion is None:
            return None
        if handler is not None:
            handler(suggestion)
        logger.debug_ctx("Carousel decision", action=action, suggestion_id=suggestion.id)
        self._step(1)
        return suggestion

    def _step(self, offset: int) -> Optional[Suggestion]:
        if not self._queue:
            return None
        self._cursor = (self._cursor + offset) % len(self._queue)
        return self._queue[self._cursor]
