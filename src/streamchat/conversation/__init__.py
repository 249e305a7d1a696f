"""Conversation state for streamchat.

Provides the message/source models, the in-flight turn accumulator
and conversation storage.
"""

from .accumulator import ConversationAccumulator
from .base import ConversationStore
from .in_memory import InMemoryConversationStore
from .models import Conversation, Message, Role, Source, TurnSnapshot

__all__ = [
    "Conversation",
    "ConversationAccumulator",
    "ConversationStore",
    "InMemoryConversationStore",
    "Message",
    "Role",
    "Source",
    "TurnSnapshot",
]
