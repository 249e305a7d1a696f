"""Data models for the chat event stream."""

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_EVENT_NAME = "message"
SOURCES_EVENT_NAME = "sources"
ERROR_EVENT_NAME = "error"
DONE_SENTINEL = "[DONE]"


class StreamEvent(BaseModel):
    """One decoded server-sent event.

    ``data`` stays an opaque string until the router parses it
    according to ``name``.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(default=DEFAULT_EVENT_NAME, description="Event name from the 'event:' field")
    data: str = Field(default="", description="Joined 'data:' lines")

    @property
    def is_done(self) -> bool:
        """Whether this event is the end-of-stream sentinel."""
        return self.data.strip() == DONE_SENTINEL


class ChunkDelta(BaseModel):
    """Incremental content carried by one completion choice."""

    model_config = ConfigDict(extra="allow")

    content: str | None = None


class ChunkChoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    delta: ChunkDelta = Field(default_factory=ChunkDelta)


class ChatCompletionChunk(BaseModel):
    """Payload of a default stream event: ``{choices: [{delta: {content}}]}``."""

    model_config = ConfigDict(extra="allow")

    choices: list[ChunkChoice] = Field(default_factory=list)

    @property
    def delta_content(self) -> str | None:
        """Text delta of the first choice, if any."""
        if not self.choices:
            return None
        return self.choices[0].delta.content
