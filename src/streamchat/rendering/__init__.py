"""Sanitized Markdown rendering for streamed chat text."""

from .citations import CitationRewriter
from .config import RenderConfig
from .math_renderer import MathRenderer
from .pipeline import MarkdownPipeline, plain_text_fallback
from .urls import PLACEHOLDER_URL, UrlSanitizer

__all__ = [
    "CitationRewriter",
    "MarkdownPipeline",
    "MathRenderer",
    "PLACEHOLDER_URL",
    "RenderConfig",
    "UrlSanitizer",
    "plain_text_fallback",
]
