"""Incremental decoder for server-sent-event bodies.

Hidden design decisions:
- Event blocks are delimited by a blank line; CRLF is normalized first
- The unterminated tail of a fragment is buffered until more text arrives
- Multiple 'data:' lines join with newlines into one payload
- An unterminated tail at end of stream is discarded
"""

import logging
import re
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator

from .models import DEFAULT_EVENT_NAME, StreamEvent

logger = logging.getLogger(__name__)

_BLOCK_DELIMITER = "\n\n"
_CR_BEFORE_LF_RE = re.compile(r"\r+\n")


class StreamDecoder:
    """Turns arbitrarily split text fragments into whole stream events.

    The decoder is push-driven: the caller owns the read loop and hands
    each fragment to :meth:`feed`. Decoding does not depend on how the
    body was split, so feeding ``a + b`` yields the same events as
    feeding ``a`` then ``b``.

    Usage:
        decoder = StreamDecoder()
        async for chunk in response.aiter_text():
            for event in decoder.feed(chunk):
                ...
        decoder.flush()
    """

    def __init__(self) -> None:
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Buffered text that does not yet form a complete event."""
        return self._buffer

    def feed(self, chunk: str) -> list[StreamEvent]:
        """Consume one fragment and return every event it completes.

        Args:
            chunk: Next piece of the body, in arrival order

        Returns:
            Events completed by this fragment, possibly empty
        """
        if not chunk:
            return []

        # Trailing "\r" stays buffered so a "\r\n" split across
        # fragments still normalizes once the "\n" arrives.
        self._buffer = _CR_BEFORE_LF_RE.sub("\n", self._buffer + chunk)

        events: list[StreamEvent] = []
        while True:
            idx = self._buffer.find(_BLOCK_DELIMITER)
            if idx == -1:
                break
            block = self._buffer[:idx]
            self._buffer = self._buffer[idx + len(_BLOCK_DELIMITER):]
            event = parse_event_block(block)
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> list[StreamEvent]:
        """Signal end of stream and drop any unterminated tail."""
        if self._buffer.strip():
            logger.debug("Discarding unterminated event tail (%d chars)", len(self._buffer))
        self._buffer = ""
        return []

    def iter_events(self, chunks: Iterable[str]) -> Iterator[StreamEvent]:
        """Lazily decode a synchronous sequence of fragments."""
        for chunk in chunks:
            yield from self.feed(chunk)
        self.flush()

    async def aiter_events(self, chunks: AsyncIterable[str]) -> AsyncIterator[StreamEvent]:
        """Lazily decode an asynchronous sequence of fragments."""
        async for chunk in chunks:
            for event in self.feed(chunk):
                yield event
        self.flush()


def parse_event_block(block: str) -> StreamEvent | None:
    """Parse one blank-line-delimited block into an event.

    Returns:
        The event, or None when the block carries no 'data:' line
    """
    if not block.strip():
        return None

    name = DEFAULT_EVENT_NAME
    data_lines: list[str] = []

    for line in block.split("\n"):
        if line.startswith("event:"):
            name = line[len("event:"):].strip() or DEFAULT_EVENT_NAME
        elif line.startswith("data:"):
            value = line[len("data:"):]
            if value.startswith(" "):
                value = value[1:]
            data_lines.append(value.rstrip("\r"))
        # Comments (":...") and id/retry fields are not used by the chat stream

    if not data_lines:
        return None

    return StreamEvent(name=name, data="\n".join(data_lines))


def decode_events(body: str) -> list[StreamEvent]:
    """Decode a complete body in one call."""
    return list(StreamDecoder().iter_events([body]))
