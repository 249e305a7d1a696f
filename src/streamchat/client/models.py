"""Outbound request models."""

from pydantic import BaseModel, ConfigDict, Field


class HistoryEntry(BaseModel):
    """A prior message as sent to the server."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="'user' or 'assistant'")
    content: str = Field(description="Full message content")


class ChatRequest(BaseModel):
    """Body of a streaming chat request."""

    model_config = ConfigDict(frozen=True)

    message: str = Field(description="The new user message, attachment text included")
    use_search: bool = Field(default=False, description="Let the server run a web search first")
    history: list[HistoryEntry] = Field(default_factory=list, description="Earlier turns, oldest first")
