"""Data models for conversations.

These models define the structure of conversation state independent
of where conversations are kept.
"""

from datetime import UTC, datetime
from enum import StrEnum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from ..config import DEFAULT_CONVERSATION_TITLE


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Role(StrEnum):
    """Sender of a message."""

    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """One chat message.

    ``content`` is what goes to (or comes from) the model and may carry
    appended attachment text; ``display_content`` is what the user typed.
    """

    role: Role = Field(description="Role of the message sender")
    content: str = Field(default="", description="Full message text")
    display_content: str | None = Field(default=None, description="Text shown instead of content")

    @property
    def visible_text(self) -> str:
        """Text a presentation layer should show for this message."""
        return self.display_content if self.display_content is not None else self.content

    def to_history_entry(self) -> dict[str, str]:
        """Shape used in the outbound request history."""
        return {"role": self.role.value, "content": self.content}


class Source(BaseModel):
    """A retrieved web source, cited 1-indexed as ``link [n]``.

    The server sends ``title`` and ``snippet`` as well; any extra
    metadata is kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    url: str | None = Field(default=None, description="Source location")

    @property
    def title(self) -> str:
        extra = self.model_extra or {}
        return str(extra.get("title") or self.url or "")


class Conversation(BaseModel):
    """Ordered messages plus the source list of the latest turn."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str = Field(default=DEFAULT_CONVERSATION_TITLE)
    messages: list[Message] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)
    use_search: bool = Field(default=False)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def add_message(self, message: Message) -> Message:
        """Append a message and bump ``updated_at``."""
        self.messages.append(message)
        self.touch()
        return message

    def touch(self) -> None:
        self.updated_at = _utcnow()

    def history(self) -> list[dict[str, str]]:
        """All messages as ``{role, content}`` dicts, oldest first."""
        return [m.to_history_entry() for m in self.messages]


class TurnSnapshot(BaseModel):
    """State of an in-flight turn handed to the presentation layer."""

    model_config = ConfigDict(frozen=True)

    conversation_id: str
    content: str
    sources: list[Source] = Field(default_factory=list)
    markup: str = ""
    done: bool = False
    error: str | None = None
