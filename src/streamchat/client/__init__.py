"""Chat server client: transport and session."""

from .models import ChatRequest, HistoryEntry
from .session import ChatSession, derive_title
from .transport import ChatTransport

__all__ = [
    "ChatRequest",
    "ChatSession",
    "ChatTransport",
    "HistoryEntry",
    "derive_title",
]
