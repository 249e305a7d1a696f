"""Pytest configuration and shared fixtures."""
import json
from xml.etree.ElementTree import Element

import httpx
import pytest

from streamchat.client import ChatTransport
from streamchat.conversation import Conversation, Message, Role, Source
from streamchat.rendering import MarkdownPipeline, MathRenderer, RenderConfig


def sse_event(data: str, name: str | None = None) -> str:
    """Serialize one event the way the chat server does."""
    lines = []
    if name is not None:
        lines.append(f"event: {name}")
    lines.extend(f"data: {line}" for line in data.split("\n"))
    return "\n".join(lines) + "\n\n"


def delta_event(content: str) -> str:
    return sse_event(json.dumps({"choices": [{"delta": {"content": content}}]}))


def sources_event(sources: list[dict]) -> str:
    return sse_event(json.dumps(sources), name="sources")


def failing_converter(latex: str, display: str = "inline") -> Element:
    raise ValueError(f"cannot convert {latex!r}")


@pytest.fixture
def render_config():
    """Return the default rendering configuration."""
    return RenderConfig()


@pytest.fixture
def pipeline(render_config):
    """Return a pipeline with the real math renderer."""
    return MarkdownPipeline(render_config)


@pytest.fixture
def broken_math_pipeline(render_config):
    """Return a pipeline whose math renderer always fails."""
    return MarkdownPipeline(render_config, MathRenderer(converter=failing_converter))


@pytest.fixture
def sample_sources():
    """Return three sources, the second without a URL."""
    return [
        Source(url="https://example.com/a", title="A", snippet="first"),
        Source(title="No URL"),
        Source(url="https://example.com/c", title="C"),
    ]


@pytest.fixture
def in_flight_conversation():
    """Return a conversation whose last message is an empty assistant message."""
    conversation = Conversation()
    conversation.add_message(Message(role=Role.USER, content="hi"))
    conversation.add_message(Message(role=Role.ASSISTANT))
    return conversation


@pytest.fixture
def make_transport():
    """Build a ChatTransport backed by httpx.MockTransport.

    Each response is either a body string, a list of body chunks (streamed
    one by one), an int status code, or an exception to raise.
    Sent requests are recorded on ``transport.requests``.
    """
    def _make(*responses):
        queue = list(responses)
        requests: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            response = queue.pop(0)
            if isinstance(response, Exception):
                raise response
            if isinstance(response, int):
                return httpx.Response(response, text="upstream failure")
            if isinstance(response, list):
                async def body():
                    for chunk in response:
                        yield chunk.encode("utf-8")
                return httpx.Response(200, content=body(), headers={"content-type": "text/event-stream"})
            return httpx.Response(200, text=response, headers={"content-type": "text/event-stream"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
        transport = ChatTransport(client=client)
        transport.requests = requests  # type: ignore[attr-defined]
        return transport

    return _make
