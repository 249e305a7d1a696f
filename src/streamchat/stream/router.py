"""Classification and dispatch of decoded stream events.

Hidden design decisions:
- 'sources' events replace the source list wholesale
- Malformed sources are logged and dropped, never fatal
- Non-content frames (keep-alives, role-only chunks) are dropped silently
"""

import logging
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from ..conversation.accumulator import ConversationAccumulator
from ..conversation.models import Source
from .models import ERROR_EVENT_NAME, SOURCES_EVENT_NAME, ChatCompletionChunk, StreamEvent

logger = logging.getLogger(__name__)

_sources_adapter = TypeAdapter(list[Source])


class RouteKind(StrEnum):
    """What an event turned out to be."""

    DELTA = "delta"
    SOURCES = "sources"
    ERROR = "error"
    DONE = "done"
    DROPPED = "dropped"


class RouteResult(BaseModel):
    """Outcome of routing one event."""

    model_config = ConfigDict(frozen=True)

    kind: RouteKind
    delta: str | None = None
    sources: list[Source] | None = None

    @property
    def changed(self) -> bool:
        """Whether the turn state changed and needs a re-render."""
        return self.kind in (RouteKind.DELTA, RouteKind.SOURCES)


def parse_sources(data: str) -> list[Source]:
    """Parse a sources payload.

    Raises:
        ValidationError: If the payload is not a JSON array of source objects
    """
    return _sources_adapter.validate_json(data)


def extract_delta(data: str) -> str | None:
    """Return the first choice's delta content, or None for non-content frames."""
    try:
        chunk = ChatCompletionChunk.model_validate_json(data)
    except ValidationError:
        return None
    return chunk.delta_content


class StreamRouter:
    """Routes decoded events into a turn accumulator."""

    def __init__(self, accumulator: ConversationAccumulator) -> None:
        self._accumulator = accumulator

    def route(self, event: StreamEvent) -> RouteResult:
        """Apply one event to the accumulator.

        Args:
            event: Decoded stream event

        Returns:
            RouteResult describing what was applied
        """
        if event.is_done:
            return RouteResult(kind=RouteKind.DONE)

        if event.name == SOURCES_EVENT_NAME:
            return self._route_sources(event)

        if event.name == ERROR_EVENT_NAME:
            logger.warning("Server reported a stream error: %s", event.data)
            self._accumulator.record_error(event.data or "stream error")
            return RouteResult(kind=RouteKind.ERROR)

        delta = extract_delta(event.data)
        if not delta:
            logger.debug("Dropping non-content event %r", event.name)
            return RouteResult(kind=RouteKind.DROPPED)

        if self._accumulator.apply_delta(delta) is None:
            return RouteResult(kind=RouteKind.DROPPED)
        return RouteResult(kind=RouteKind.DELTA, delta=delta)

    def _route_sources(self, event: StreamEvent) -> RouteResult:
        try:
            sources = parse_sources(event.data)
        except ValidationError as e:
            logger.warning("Dropping malformed sources payload: %s", e.errors(include_url=False)[:1])
            return RouteResult(kind=RouteKind.DROPPED)

        if not self._accumulator.replace_sources(sources):
            return RouteResult(kind=RouteKind.DROPPED)
        return RouteResult(kind=RouteKind.SOURCES, sources=sources)
