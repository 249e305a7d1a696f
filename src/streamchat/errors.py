"""Exception hierarchy for streamchat."""


class StreamChatError(Exception):
    """Base class for all streamchat errors."""


class TransportError(StreamChatError):
    """The chat server could not be reached or answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AttachmentError(StreamChatError):
    """An attachment could not be read or is not supported."""
