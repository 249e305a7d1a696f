"""Data models for attachments."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class AttachmentType(StrEnum):
    TEXT = "text"
    PDF = "pdf"


class Attachment(BaseModel):
    """Plain text extracted from a user-supplied file."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Original file name")
    type: AttachmentType = Field(description="How the text was extracted")
    text: str = Field(description="Cleaned, possibly truncated text")
    size: int = Field(default=0, ge=0, description="File size in bytes")

    def as_prompt_text(self) -> str:
        """Block appended to the outbound message content."""
        return f"\n\n[Attachment: {self.name}]\n{self.text}"
