"""Pre-tokenizer text rewrites: citation markers and badge links.

Both rewrites run on the raw Markdown string before markdown-it sees
it, so they also apply while the surrounding text is still incomplete.
"""

import html
import re
from collections.abc import Sequence

from ..conversation.models import Source
from .config import RenderConfig
from .urls import UrlSanitizer

# "[link [3]]" or bare "link [3]" not preceded by a word character;
# the bracketed form wins at the same position
CITATION_RE = re.compile(r"\[link \[(\d+)\]\]|(?<!\w)link \[(\d+)\]")

# [![alt](image-url)](target-url)
BADGE_MARKDOWN_RE = re.compile(r"\[!\[([^\]\n]*)\]\(([^()\s]+)\)\]\(([^()\s]+)\)")

# The exact anchor+image shape emitted by compose_badges
BADGE_HTML_RE = re.compile(
    r'<a href="([^"<>]*)" target="[A-Za-z_]*" rel="[a-z ]*">'
    r'<img src="([^"<>]*)" alt="([^"<>]*)" class="badge"></a>'
)

LINE_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)


def _link_destination(url: str) -> str:
    """Quote a URL for use inside a pointy-bracket link destination."""
    return (
        url.replace("\\", "%5C")
        .replace(" ", "%20")
        .replace("<", "%3C")
        .replace(">", "%3E")
        .replace("\n", "")
    )


class CitationRewriter:
    """Rewrites citation markers and badge idioms into linkable text."""

    def __init__(self, sanitizer: UrlSanitizer, config: RenderConfig | None = None) -> None:
        self._sanitize = sanitizer
        self._config = config or RenderConfig()

    def rewrite(self, text: str, sources: Sequence[Source]) -> str:
        """Replace ``link [n]`` markers with Markdown links.

        Args:
            text: Raw assistant text
            sources: Sources of the current turn, cited 1-indexed

        Returns:
            Text with resolvable markers turned into links; markers with an
            out-of-range index or a source without a URL are left as-is
        """
        if not sources or "link [" not in text:
            return text

        def _replace(match: re.Match[str]) -> str:
            digits = (match.group(1) or match.group(2)).lstrip("0") or "0"
            if len(digits) > len(str(len(sources))):
                return match.group(0)
            index = int(digits)
            if index < 1 or index > len(sources):
                return match.group(0)
            url = sources[index - 1].url
            if not url:
                return match.group(0)
            target = _link_destination(self._sanitize(url))
            return f"[link &#91;{index}&#93;](<{target}>)"

        return CITATION_RE.sub(_replace, text)

    def compose_badges(self, text: str) -> str:
        """Rewrite ``[![alt](img)](href)`` into a single anchor+image tag."""
        if "[![" not in text:
            return text
        return BADGE_MARKDOWN_RE.sub(
            lambda m: self.badge_html(href=m.group(3), src=m.group(2), alt=m.group(1)),
            text,
        )

    def badge_html(self, href: str, src: str, alt: str) -> str:
        """Build the badge markup from untrusted parts."""
        return (
            f'<a href="{html.escape(self._sanitize(href))}" '
            f'target="{self._config.link_target}" rel="{self._config.link_rel}">'
            f'<img src="{html.escape(self._sanitize(src))}" alt="{html.escape(alt)}" class="badge"></a>'
        )

    def revalidate_badge(self, markup: str) -> str | None:
        """Rebuild an allow-listed badge tag, or None if it is not one.

        Raw HTML in the text can imitate the badge shape, so the URLs are
        unescaped and sanitized again before the tag passes through.
        """
        match = BADGE_HTML_RE.fullmatch(markup)
        if match is None:
            return None
        href, src, alt = (html.unescape(g) for g in match.groups())
        return self.badge_html(href=href, src=src, alt=alt)
