"""Client configuration and shared constants.

Centralizes magic numbers and environment-driven settings so the
stream, session and CLI modules never read the environment directly.
"""

import logging
import os

from pydantic import BaseModel, ConfigDict, Field
from rich.logging import RichHandler


class LogLevel:
    """Log level constants with numeric values for comparison.

    Mirrors the standard logging hierarchy: DEBUG < INFO < WARNING < ERROR.
    """

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR

    _from_string = {
        "debug": DEBUG,
        "info": INFO,
        "warning": WARNING,
        "error": ERROR,
    }

    @classmethod
    def from_string(cls, level_str: str) -> int:
        """Convert string to log level. Returns WARNING if invalid."""
        return cls._from_string.get(level_str.strip().lower(), cls.WARNING)


# Shown on the assistant turn when the stream produced no content
FALLBACK_ERROR_MESSAGE = "Error: no response received from the server. Please try again."

# Server endpoint that emits the event stream
STREAM_ENDPOINT = "/api/chat/stream"

# Attachment limits
MAX_ATTACHMENT_BYTES = 2 * 1024 * 1024
MAX_ATTACHMENT_TEXT_LENGTH = 20000

# Conversation titles derive from the first user message
CONVERSATION_TITLE_LENGTH = 40
DEFAULT_CONVERSATION_TITLE = "New chat"


class ClientConfig(BaseModel):
    """Settings for talking to the chat server."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(default="http://127.0.0.1:3000", description="Chat server origin")
    timeout: float = Field(default=120.0, gt=0, description="Request timeout in seconds")
    use_search: bool = Field(default=False, description="Ask the server to run web search")
    log_level: str = Field(default="warning", description="Root log level name")

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build configuration from environment variables.

        Environment variables:
            STREAMCHAT_BASE_URL: Server origin (default: http://127.0.0.1:3000)
            STREAMCHAT_TIMEOUT: Request timeout in seconds (default: 120)
            STREAMCHAT_USE_SEARCH: "1"/"true" enables web search (default: off)
            STREAMCHAT_LOG_LEVEL: debug, info, warning or error (default: warning)
        """
        return cls(
            base_url=os.getenv("STREAMCHAT_BASE_URL", "http://127.0.0.1:3000").rstrip("/"),
            timeout=float(os.getenv("STREAMCHAT_TIMEOUT", "120")),
            use_search=os.getenv("STREAMCHAT_USE_SEARCH", "").lower() in ("1", "true", "yes"),
            log_level=os.getenv("STREAMCHAT_LOG_LEVEL", "warning"),
        )


def configure_logging(level: str | int = "warning") -> None:
    """Route package logging through a Rich handler."""
    if isinstance(level, str):
        level = LogLevel.from_string(level)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
