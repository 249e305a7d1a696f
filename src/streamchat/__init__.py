"""
streamchat: a streaming chat client with incremental, sanitized Markdown rendering.

Each module hides one design decision: how the event stream is decoded,
how a turn accumulates, how Markdown becomes safe HTML, and how the
server is reached.
"""

__version__ = "0.1.0"

from .client import ChatSession, ChatTransport
from .conversation import Conversation, ConversationAccumulator, Message, Source, TurnSnapshot
from .rendering import MarkdownPipeline, MathRenderer, RenderConfig, UrlSanitizer
from .stream import StreamDecoder, StreamEvent, StreamRouter

__all__ = [
    "ChatSession",
    "ChatTransport",
    "Conversation",
    "ConversationAccumulator",
    "MarkdownPipeline",
    "MathRenderer",
    "Message",
    "RenderConfig",
    "Source",
    "StreamDecoder",
    "StreamEvent",
    "StreamRouter",
    "TurnSnapshot",
    "UrlSanitizer",
]
