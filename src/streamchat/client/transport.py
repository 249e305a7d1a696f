"""HTTP transport for the streaming chat endpoint.

Hidden design decisions:
- httpx AsyncClient with a configurable base URL and timeout
- The body is yielded as decoded text fragments exactly as they arrive
- Non-success statuses and network failures become TransportError
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from ..config import STREAM_ENDPOINT, ClientConfig
from ..errors import TransportError
from .models import ChatRequest

logger = logging.getLogger(__name__)


class ChatTransport:
    """Issues streaming chat requests.

    Supports async context manager protocol for proper resource cleanup:
        async with ChatTransport(config) as transport:
            async for chunk in transport.stream_chat(request):
                ...
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            config: Client configuration (base URL, timeout)
            client: Optional preconfigured client; it is not closed by
                this transport
        """
        self._config = config or ClientConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout,
        )

    async def stream_chat(self, request: ChatRequest) -> AsyncIterator[str]:
        """Send a chat request and yield the response body as text.

        Args:
            request: Message, search flag and history

        Yields:
            Text fragments in arrival order

        Raises:
            TransportError: On a non-success status or network failure
        """
        try:
            async with self._client.stream(
                "POST",
                STREAM_ENDPOINT,
                json=request.model_dump(),
                headers={"Accept": "text/event-stream"},
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise TransportError(
                        f"Chat server answered {response.status_code}",
                        status_code=response.status_code,
                    )
                logger.debug("Streaming response from %s", response.url)
                async for chunk in response.aiter_text():
                    yield chunk
        except httpx.HTTPError as e:
            raise TransportError(f"Chat request failed: {e}") from e

    async def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ChatTransport":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
