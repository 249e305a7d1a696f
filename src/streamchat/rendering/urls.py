"""URL sanitization for rendered links and images."""

import logging
from urllib.parse import urljoin, urlsplit

from .config import RenderConfig

logger = logging.getLogger(__name__)

PLACEHOLDER_URL = "#"


class UrlSanitizer:
    """Validates URLs before they reach an href or src attribute.

    Relative URLs are resolved against the configured origin so that
    scheme detection sees what a browser would. Safe URLs are returned
    as given, which keeps sanitization idempotent.
    """

    def __init__(self, config: RenderConfig | None = None) -> None:
        self._config = config or RenderConfig()

    def sanitize(self, url: str | None) -> str:
        """Return a safe URL or the '#' placeholder.

        Args:
            url: Untrusted URL text

        Returns:
            The stripped URL, or '#' for empty, unparseable or blocked URLs
        """
        if not url:
            return PLACEHOLDER_URL
        candidate = url.strip()
        if not candidate:
            return PLACEHOLDER_URL

        try:
            resolved = urlsplit(urljoin(self._config.base_origin + "/", candidate))
            scheme = resolved.scheme.lower()
        except ValueError:
            logger.debug("Unparseable URL replaced: %r", candidate)
            return PLACEHOLDER_URL

        if scheme in self._config.blocked_schemes:
            logger.debug("Blocked %s: URL", scheme)
            return PLACEHOLDER_URL
        return candidate

    def __call__(self, url: str | None) -> str:
        return self.sanitize(url)
