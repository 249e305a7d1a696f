"""LaTeX math rendering via latex2mathml.

Hidden design decisions:
- MathML output, so no client-side math library is required
- The element tree is serialized here, so every text node is escaped
- Link targets produced by \\href go through the URL sanitizer
- Failures degrade to the escaped source expression, never to nothing
"""

import html
import logging
from collections.abc import Callable
from xml.etree.ElementTree import Element, tostring

from latex2mathml.converter import convert_to_element

from .urls import UrlSanitizer

logger = logging.getLogger(__name__)

Converter = Callable[..., Element]

_URL_ATTRIBUTES = ("href", "src")


class MathRenderer:
    """Converts LaTeX expressions into MathML markup.

    Args:
        converter: Callable with latex2mathml's
            ``convert_to_element(latex, display=...)`` signature; injectable
            for tests
        sanitizer: Sanitizer applied to link targets inside the MathML
    """

    def __init__(
        self,
        converter: Converter | None = None,
        sanitizer: UrlSanitizer | None = None,
    ) -> None:
        self._convert = converter or convert_to_element
        self._sanitize = sanitizer or UrlSanitizer()

    def render(self, expr: str, display_mode: bool = False) -> str:
        """Render an expression.

        Args:
            expr: LaTeX source without delimiters
            display_mode: True for block (display) math

        Returns:
            MathML wrapped in a div (display) or span (inline). On failure
            the escaped expression is wrapped in the same container with a
            ``math-error`` class.
        """
        tag = "div" if display_mode else "span"
        kind = "math-display" if display_mode else "math-inline"
        source = expr.strip()

        try:
            tree = self._convert(source, display="block" if display_mode else "inline")
            mathml = self._serialize(tree)
        except Exception as e:
            logger.warning("Math rendering failed for %r: %s", source[:80], e)
            return f'<{tag} class="math math-error" title="Invalid math">{html.escape(source)}</{tag}>'

        return f'<{tag} class="math {kind}">{mathml}</{tag}>'

    def _serialize(self, tree: Element) -> str:
        """Serialize MathML with escaped text and sanitized link targets.

        latex2mathml stores symbols as character references inside text
        nodes; they are decoded to characters first so the serializer
        escapes each node exactly once.
        """
        for element in tree.iter():
            if element.text:
                element.text = html.unescape(element.text)
            if element.tail:
                element.tail = html.unescape(element.tail)
            for name, value in list(element.attrib.items()):
                value = html.unescape(value)
                if name.lower() in _URL_ATTRIBUTES:
                    value = self._sanitize(value)
                element.set(name, value)
        return tostring(tree, encoding="unicode")
