"""Markdown-to-HTML pipeline for streamed assistant text.

Hidden design decisions:
- Using markdown-it-py with a fixed set of chat extensions
- Citation and badge rewriting happen on the raw string first
- Every call re-renders the whole text; partial renders are never patched
- Raw HTML is escaped except for a closed allow-list
- Any failure degrades to escaped plain text
"""

import html
import logging
import re
from collections.abc import Callable, Sequence
from typing import Any

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml, unescapeAll
from markdown_it.token import Token

from ..conversation.models import Source
from .citations import LINE_BREAK_RE, CitationRewriter
from .config import RenderConfig
from .markdown_rules import install_rules
from .math_renderer import MathRenderer
from .urls import UrlSanitizer

logger = logging.getLogger(__name__)

RenderRule = Callable[[Any, Sequence[Token], int, Any, Any], str]

_LANGUAGE_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_+-]")


def plain_text_fallback(text: str) -> str:
    """Escape text and keep its line breaks visible."""
    return html.escape(text).replace("\n", "<br>\n")


def _as_render_rule(method: RenderRule) -> RenderRule:
    """Wrap a bound method so markdown-it can bind its renderer as first argument."""

    def rule(renderer, tokens, idx, options, env):
        return method(renderer, tokens, idx, options, env)

    return rule


def language_token(info: str) -> str:
    """Reduce a fence info string to a CSS-class-safe language name."""
    info = unescapeAll(info).strip()
    if not info:
        return ""
    return _LANGUAGE_UNSAFE_RE.sub("", info.split(maxsplit=1)[0])[:32]


class MarkdownPipeline:
    """Renders chat Markdown (with math, code, citations and badges) to HTML.

    The pipeline is a pure function of ``(text, sources)``: the parser is
    configured once at construction and never mutated afterwards, so
    ``render`` can be called on every growing prefix of a stream.

    Usage:
        pipeline = MarkdownPipeline(RenderConfig())
        markup = pipeline.render("See link [1]", sources)
    """

    def __init__(
        self,
        config: RenderConfig | None = None,
        math_renderer: MathRenderer | None = None,
    ) -> None:
        self._config = config or RenderConfig()
        self._sanitizer = UrlSanitizer(self._config)
        self._math = math_renderer or MathRenderer(sanitizer=self._sanitizer)
        self._citations = CitationRewriter(self._sanitizer, self._config)
        self._md = self._build_parser()

    @property
    def config(self) -> RenderConfig:
        return self._config

    @property
    def sanitizer(self) -> UrlSanitizer:
        return self._sanitizer

    def render(self, text: str, sources: Sequence[Source] = ()) -> str:
        """Render text to sanitized HTML.

        Args:
            text: Accumulated assistant text, possibly incomplete
            sources: Sources that ``link [n]`` markers refer to

        Returns:
            HTML markup; never raises
        """
        try:
            prepared = self._citations.rewrite(text, sources)
            prepared = self._citations.compose_badges(prepared)
            return self._md.render(prepared)
        except Exception:
            logger.warning("Markdown rendering failed, using plain text", exc_info=True)
            return plain_text_fallback(text)

    def _build_parser(self) -> MarkdownIt:
        md = MarkdownIt("commonmark", {"html": True, "breaks": True, "linkify": False})
        if self._config.enable_tables:
            md.enable("table")
        if self._config.enable_strikethrough:
            md.enable("strikethrough")
        install_rules(md)
        for name, rule in self._render_rules().items():
            md.add_render_rule(name, _as_render_rule(rule))
        return md

    def _render_rules(self) -> dict[str, RenderRule]:
        """Dispatch table from token type to render function."""
        return {
            "math_block": self._render_math_block,
            "math_inline": self._render_math_inline,
            "fence": self._render_fence,
            "code_block": self._render_code_block,
            "code_inline": self._render_code_inline,
            "link_open": self._render_link_open,
            "image": self._render_image,
            "image_link": self._render_image_link,
            "html_inline": self._render_html_inline,
            "html_block": self._render_html_block,
        }

    # Render functions receive the markdown-it renderer as first argument

    def _render_math_block(self, renderer, tokens, idx, options, env) -> str:
        token = tokens[idx]
        markup = self._math.render(token.content, display_mode=True)
        return markup + "\n" if token.block else markup

    def _render_math_inline(self, renderer, tokens, idx, options, env) -> str:
        return self._math.render(tokens[idx].content, display_mode=False)

    def _render_fence(self, renderer, tokens, idx, options, env) -> str:
        token = tokens[idx]
        return self._code_block_html(token.content, language_token(token.info))

    def _render_code_block(self, renderer, tokens, idx, options, env) -> str:
        return self._code_block_html(tokens[idx].content, "")

    def _code_block_html(self, code: str, language: str) -> str:
        label = language or "text"
        code_class = f' class="language-{language}"' if language else ""
        return (
            f'<div class="{self._config.code_block_class}" data-language="{label}">'
            f'<div class="code-block-header"><span class="code-block-language">{label}</span>'
            f'<button type="button" class="copy-code-button" data-copy-code>'
            f"{escapeHtml(self._config.copy_button_label)}</button></div>"
            f"<pre><code{code_class}>{escapeHtml(code.rstrip())}</code></pre></div>\n"
        )

    def _render_code_inline(self, renderer, tokens, idx, options, env) -> str:
        return f'<code class="inline-code">{escapeHtml(tokens[idx].content)}</code>'

    def _render_link_open(self, renderer, tokens, idx, options, env) -> str:
        token = tokens[idx]
        token.attrSet("href", self._sanitizer(str(token.attrGet("href") or "")))
        token.attrSet("target", self._config.link_target)
        token.attrSet("rel", self._config.link_rel)
        return renderer.renderToken(tokens, idx, options, env)

    def _render_image(self, renderer, tokens, idx, options, env) -> str:
        return self._image_html(renderer, tokens[idx], options, env)

    def _image_html(self, renderer, token: Token, options, env) -> str:
        src = self._sanitizer(str(token.attrGet("src") or ""))
        alt = renderer.renderInlineAsText(token.children or [], options, env)
        title = token.attrGet("title")
        title_attr = f' title="{escapeHtml(str(title))}"' if title else ""
        return f'<img src="{escapeHtml(src)}" alt="{escapeHtml(alt)}"{title_attr}>'

    def _render_image_link(self, renderer, tokens, idx, options, env) -> str:
        token = tokens[idx]
        href = self._sanitizer(str(token.attrGet("href") or ""))
        image = self._image_html(renderer, token.children[0], options, env)
        return (
            f'<a href="{escapeHtml(href)}" target="{self._config.link_target}" '
            f'rel="{self._config.link_rel}">{image}</a>'
        )

    def _allowed_html(self, content: str) -> str | None:
        stripped = content.strip()
        if LINE_BREAK_RE.fullmatch(stripped):
            return "<br>"
        return self._citations.revalidate_badge(stripped)

    def _render_html_inline(self, renderer, tokens, idx, options, env) -> str:
        content = tokens[idx].content
        allowed = self._allowed_html(content)
        return allowed if allowed is not None else escapeHtml(content)

    def _render_html_block(self, renderer, tokens, idx, options, env) -> str:
        content = tokens[idx].content
        allowed = self._allowed_html(content)
        if allowed is not None:
            return allowed + "\n"
        return f"<p>{plain_text_fallback(content.rstrip())}</p>\n"
