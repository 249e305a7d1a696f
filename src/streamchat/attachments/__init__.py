"""Attachment reading for outbound messages."""

from .models import Attachment, AttachmentType
from .reader import format_file_size, read_attachment, sanitize_text

__all__ = [
    "Attachment",
    "AttachmentType",
    "format_file_size",
    "read_attachment",
    "sanitize_text",
]
