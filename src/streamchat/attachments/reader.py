"""Attachment text extraction.

Hidden design decisions:
- pypdf for PDF text, page by page, stopping once enough text is gathered
- Extension and size checks happen before any content is read
- Extracted text is normalized and truncated to a fixed length
"""

import math
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..config import MAX_ATTACHMENT_BYTES, MAX_ATTACHMENT_TEXT_LENGTH
from ..errors import AttachmentError
from .models import Attachment, AttachmentType

TEXT_EXTENSIONS = {".txt", ".md", ".log", ".csv", ".json", ".tsv", ".text"}
PDF_EXTENSIONS = {".pdf"}
TRUNCATION_MARKER = "\n...[truncated]"


def sanitize_text(text: str | None) -> str:
    """Normalize newlines, drop NUL characters and cap the length."""
    if not text:
        return ""
    cleaned = text.replace("\r\n", "\n").replace("\x00", "").strip()
    if len(cleaned) > MAX_ATTACHMENT_TEXT_LENGTH:
        cleaned = cleaned[:MAX_ATTACHMENT_TEXT_LENGTH] + TRUNCATION_MARKER
    return cleaned


def _extract_pdf_text(file_path: Path) -> str:
    try:
        reader = PdfReader(file_path)
        combined: list[str] = []
        length = 0
        for page in reader.pages:
            page_text = (page.extract_text() or "") + "\n"
            combined.append(page_text)
            length += len(page_text)
            if length >= MAX_ATTACHMENT_TEXT_LENGTH:
                break
    except (PdfReadError, OSError, ValueError) as e:
        raise AttachmentError(f"{file_path.name} could not be read as PDF: {e}") from e
    return sanitize_text("".join(combined))


def _extract_text_file(file_path: Path) -> str:
    try:
        return sanitize_text(file_path.read_text(encoding="utf-8", errors="replace"))
    except OSError as e:
        raise AttachmentError(f"{file_path.name} could not be read: {e}") from e


def read_attachment(file_path: Path | str) -> Attachment:
    """Extract the text of a supported file.

    Args:
        file_path: Path to a text or PDF file

    Returns:
        Attachment with cleaned text

    Raises:
        AttachmentError: If the file is missing, too large or unsupported
    """
    path = Path(file_path)
    if not path.is_file():
        raise AttachmentError(f"{path.name} does not exist.")

    size = path.stat().st_size
    if size > MAX_ATTACHMENT_BYTES:
        raise AttachmentError(f"{path.name} is larger than {format_file_size(MAX_ATTACHMENT_BYTES)}.")

    suffix = path.suffix.lower()
    if suffix in PDF_EXTENSIONS:
        return Attachment(name=path.name, type=AttachmentType.PDF, text=_extract_pdf_text(path), size=size)
    if suffix in TEXT_EXTENSIONS:
        return Attachment(name=path.name, type=AttachmentType.TEXT, text=_extract_text_file(path), size=size)

    raise AttachmentError(f"{path.name} is not a supported file type.")


def format_file_size(num_bytes: float) -> str:
    """Human readable size: '512 B', '1.5 KB', '2.0 MB'."""
    if not isinstance(num_bytes, (int, float)) or not math.isfinite(num_bytes):
        return ""
    if num_bytes < 1024:
        return f"{int(num_bytes)} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"
