"""Accumulation of one in-flight assistant turn.

Hidden design decisions:
- Deltas append in arrival order to the last assistant message
- Every mutation re-checks that the owning conversation is still targeted
- An empty turn is finalized with a fixed fallback message
"""

import logging
from collections.abc import Callable, Iterable

from ..config import FALLBACK_ERROR_MESSAGE
from .models import Conversation, Message, Role, Source, TurnSnapshot

logger = logging.getLogger(__name__)


class ConversationAccumulator:
    """Owns the growing assistant text and source list for one turn.

    Args:
        conversation: Conversation whose last message is the in-flight
            assistant message
        is_target: Returns False once the session has moved on to another
            conversation; deltas and source updates are then ignored
    """

    def __init__(
        self,
        conversation: Conversation,
        is_target: Callable[[], bool] | None = None,
    ) -> None:
        if not conversation.messages or conversation.messages[-1].role != Role.ASSISTANT:
            raise ValueError("Conversation must end with the in-flight assistant message")
        self._conversation = conversation
        self._message = conversation.messages[-1]
        self._is_target = is_target or (lambda: True)
        self._error: str | None = None
        self._finalized = False

    @property
    def conversation(self) -> Conversation:
        return self._conversation

    @property
    def message(self) -> Message:
        return self._message

    @property
    def content(self) -> str:
        return self._message.content

    @property
    def sources(self) -> list[Source]:
        return self._conversation.sources

    @property
    def error(self) -> str | None:
        """Error reported by the server or transport during this turn."""
        return self._error

    @property
    def finalized(self) -> bool:
        return self._finalized

    def _accepts_updates(self) -> bool:
        if self._finalized:
            logger.debug("Ignoring update for finalized turn in %s", self._conversation.id)
            return False
        if not self._is_target():
            logger.debug("Ignoring stale update for conversation %s", self._conversation.id)
            return False
        return True

    def apply_delta(self, text: str) -> str | None:
        """Append a delta to the assistant message.

        Args:
            text: Incremental text, applied in arrival order

        Returns:
            The new full content, or None if the update was not applied
        """
        if not self._accepts_updates():
            return None
        self._message.content += text
        self._conversation.touch()
        return self._message.content

    def reset_sources(self) -> None:
        """Clear the source list at the start of a turn."""
        self._conversation.sources = []

    def replace_sources(self, sources: Iterable[Source]) -> bool:
        """Replace the source list wholesale.

        Returns:
            True if the sources were applied
        """
        if not self._accepts_updates():
            return False
        self._conversation.sources = list(sources)
        self._conversation.touch()
        return True

    def record_error(self, error: str) -> None:
        """Remember an error without touching the message content."""
        self._error = error

    def finalize(self, error: str | None = None) -> Message:
        """Close the turn, guaranteeing the assistant message is non-empty.

        Args:
            error: Optional description of why the stream ended early

        Returns:
            The finalized assistant message
        """
        if error is not None:
            self._error = error
        if not self._message.content:
            if self._error:
                logger.warning("Turn ended without content: %s", self._error)
            self._message.content = FALLBACK_ERROR_MESSAGE
            self._conversation.touch()
        self._finalized = True
        return self._message

    def snapshot(self, markup: str = "") -> TurnSnapshot:
        """Immutable view of the turn for the presentation layer."""
        return TurnSnapshot(
            conversation_id=self._conversation.id,
            content=self._message.content,
            sources=[s.model_copy() for s in self._conversation.sources],
            markup=markup,
            done=self._finalized,
            error=self._error,
        )
