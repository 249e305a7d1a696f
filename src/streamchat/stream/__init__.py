"""Event stream decoding and routing."""

from .decoder import StreamDecoder, decode_events
from .models import ChatCompletionChunk, StreamEvent
from .router import RouteKind, RouteResult, StreamRouter

__all__ = [
    "ChatCompletionChunk",
    "RouteKind",
    "RouteResult",
    "StreamDecoder",
    "StreamEvent",
    "StreamRouter",
    "decode_events",
]
