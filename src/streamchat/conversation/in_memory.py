"""In-memory conversation store.

Simple dict-based storage for session-only conversations.
Data is lost when the application exits.
"""

from .base import ConversationStore
from .models import Conversation


class InMemoryConversationStore(ConversationStore):
    """In-memory conversation store (session-only)."""

    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}

    def create(self, use_search: bool = False) -> Conversation:
        conversation = Conversation(use_search=use_search)
        self._conversations[conversation.id] = conversation
        return conversation

    def get(self, conversation_id: str) -> Conversation | None:
        return self._conversations.get(conversation_id)

    def list_conversations(self) -> list[Conversation]:
        return sorted(self._conversations.values(), key=lambda c: c.updated_at, reverse=True)

    def delete(self, conversation_id: str) -> bool:
        return self._conversations.pop(conversation_id, None) is not None

    @property
    def backend_type(self) -> str:
        return "memory"
