"""Tokenizer extensions for markdown-it-py.

Adds the token types the chat renderer needs on top of CommonMark:

- ``math_block``: ``$$...$$`` or ``\\[...\\]``, display mode
- ``math_inline``: ``$...$`` (single line) or ``\\(...\\)``
- ``html_inline`` carrying a whole composed badge tag
- ``image_link``: a link whose only child is an image

All rules are plain functions registered on a parser instance; they
keep no state between calls.
"""

from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock
from markdown_it.rules_core import StateCore
from markdown_it.rules_inline import StateInline
from markdown_it.token import Token

from .citations import BADGE_HTML_RE

# (opener, closer) pairs in priority order: at one position the display
# form is tried before the inline form, so "$$" never becomes two spans
BLOCK_MATH_DELIMITERS = (("$$", "$$"), ("\\[", "\\]"))
INLINE_MATH_DELIMITERS = (("$", "$"), ("\\(", "\\)"))


def math_block_rule(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    """Block-level display math starting at the beginning of a line.

    The closing delimiter may sit on the same or a later line but must
    end its line; otherwise the text is left to the paragraph rule.
    """
    # indented code
    if state.sCount[startLine] - state.blkIndent >= 4:
        return False

    start = state.bMarks[startLine] + state.tShift[startLine]
    for opener, closer in BLOCK_MATH_DELIMITERS:
        if state.src.startswith(opener, start):
            break
    else:
        return False

    content_start = start + len(opener)
    line = startLine
    close_idx = -1
    while line < endLine:
        line_start = content_start if line == startLine else state.bMarks[line] + state.tShift[line]
        line_end = state.eMarks[line]
        if line > startLine and state.sCount[line] < state.blkIndent and line_start < line_end:
            # dedented past the enclosing container
            return False
        close_idx = state.src.find(closer, line_start, line_end)
        if close_idx != -1:
            if state.src[close_idx + len(closer):line_end].strip():
                return False
            break
        line += 1

    if close_idx == -1 or close_idx == content_start:
        return False

    if silent:
        return True

    token = state.push("math_block", "math", 0)
    token.block = True
    token.content = state.src[content_start:close_idx]
    token.markup = opener
    token.map = [startLine, line + 1]
    state.line = line + 1
    return True


def math_inline_rule(state: StateInline, silent: bool) -> bool:
    """Inline math, plus display math that appears mid-paragraph."""
    src = state.src
    pos = state.pos
    if src[pos] not in "$\\":
        return False

    for (opener, closer), display in _inline_candidates():
        if not src.startswith(opener, pos):
            continue
        content_start = pos + len(opener)
        close_idx = src.find(closer, content_start, state.posMax)
        if close_idx == -1 or close_idx == content_start:
            continue
        content = src[content_start:close_idx]
        if opener == "$" and "\n" in content:
            continue

        if not silent:
            token = state.push("math_block" if display else "math_inline", "math", 0)
            token.content = content
            token.markup = opener
        state.pos = close_idx + len(closer)
        return True

    return False


def _inline_candidates() -> list[tuple[tuple[str, str], bool]]:
    return [
        (BLOCK_MATH_DELIMITERS[0], True),
        (INLINE_MATH_DELIMITERS[0], False),
        (BLOCK_MATH_DELIMITERS[1], True),
        (INLINE_MATH_DELIMITERS[1], False),
    ]


def badge_html_rule(state: StateInline, silent: bool) -> bool:
    """Keep a composed badge tag together as one html_inline token."""
    if state.src[state.pos] != "<":
        return False
    match = BADGE_HTML_RE.match(state.src, state.pos, state.posMax)
    if match is None:
        return False
    if not silent:
        token = state.push("html_inline", "", 0)
        token.content = match.group(0)
    state.pos = match.end()
    return True


def collapse_image_links(state: StateCore) -> None:
    """Replace link_open, image, link_close runs with one image_link token."""
    for block_token in state.tokens:
        if block_token.type != "inline" or not block_token.children:
            continue
        children = block_token.children
        collapsed: list[Token] = []
        i = 0
        while i < len(children):
            token = children[i]
            if (
                token.type == "link_open"
                and i + 2 < len(children)
                and children[i + 1].type == "image"
                and children[i + 2].type == "link_close"
            ):
                image_link = Token("image_link", "a", 0)
                image_link.attrSet("href", str(token.attrGet("href") or ""))
                image_link.children = [children[i + 1]]
                collapsed.append(image_link)
                i += 3
                continue
            collapsed.append(token)
            i += 1
        block_token.children = collapsed


def _accept_all_links(url: str) -> bool:
    # Every destination is tokenized; UrlSanitizer decides at render time
    return True


def install_rules(md: MarkdownIt) -> MarkdownIt:
    """Register the chat extensions on a parser instance."""
    md.validateLink = _accept_all_links  # type: ignore[method-assign]
    md.block.ruler.before(
        "fence",
        "math_block",
        math_block_rule,
        {"alt": ["paragraph", "reference", "blockquote", "list"]},
    )
    md.inline.ruler.before("escape", "math_inline", math_inline_rule)
    md.inline.ruler.before("html_inline", "badge_html", badge_html_rule)
    md.core.ruler.after("inline", "image_links", collapse_image_links)
    return md
