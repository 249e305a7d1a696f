"""Abstract base class for conversation stores.

The abstraction hides where conversations live (memory, files,
a database); the session only creates, looks up and deletes them.
"""

from abc import ABC, abstractmethod

from .models import Conversation


class ConversationStore(ABC):
    """Abstract conversation store."""

    @abstractmethod
    def create(self, use_search: bool = False) -> Conversation:
        """Create and register an empty conversation."""

    @abstractmethod
    def get(self, conversation_id: str) -> Conversation | None:
        """Look up a conversation by id."""

    @abstractmethod
    def list_conversations(self) -> list[Conversation]:
        """All conversations, most recently updated first."""

    @abstractmethod
    def delete(self, conversation_id: str) -> bool:
        """Delete a conversation. Returns False if it did not exist."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""
