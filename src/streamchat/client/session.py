"""Chat session: conversations, turns and the in-flight stream.

Hidden design decisions:
- One stream at a time; a new send cancels the previous one
- Cancellation is cooperative, checked before each received chunk
- The whole accumulated text is re-rendered after every mutation
- A turn always ends with a non-empty assistant message
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from contextlib import aclosing

from ..attachments.models import Attachment
from ..config import CONVERSATION_TITLE_LENGTH, DEFAULT_CONVERSATION_TITLE
from ..conversation.accumulator import ConversationAccumulator
from ..conversation.base import ConversationStore
from ..conversation.in_memory import InMemoryConversationStore
from ..conversation.models import Conversation, Message, Role, TurnSnapshot
from ..errors import TransportError
from ..rendering.pipeline import MarkdownPipeline
from ..stream.decoder import StreamDecoder
from ..stream.router import StreamRouter
from .models import ChatRequest, HistoryEntry
from .transport import ChatTransport

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[TurnSnapshot], None]

CANCELLED_ERROR = "Request cancelled"


def derive_title(text: str) -> str:
    """Conversation title from the first user message."""
    title = " ".join(text.split())
    if not title:
        return DEFAULT_CONVERSATION_TITLE
    if len(title) > CONVERSATION_TITLE_LENGTH:
        return title[:CONVERSATION_TITLE_LENGTH].rstrip() + "..."
    return title


class ChatSession:
    """Owns conversations and drives one streamed turn at a time.

    Args:
        transport: Transport used to reach the chat server
        pipeline: Markdown pipeline used for every re-render
        store: Conversation store (in-memory by default)
        use_search: Default search flag for new conversations
    """

    def __init__(
        self,
        transport: ChatTransport,
        pipeline: MarkdownPipeline | None = None,
        store: ConversationStore | None = None,
        use_search: bool = False,
    ) -> None:
        self._transport = transport
        self._pipeline = pipeline or MarkdownPipeline()
        self._store = store or InMemoryConversationStore()
        self._use_search = use_search
        self._selected_id: str | None = None
        self._abort: asyncio.Event | None = None

    @property
    def store(self) -> ConversationStore:
        return self._store

    @property
    def pipeline(self) -> MarkdownPipeline:
        return self._pipeline

    @property
    def selected(self) -> Conversation | None:
        """Currently selected conversation, if any."""
        if self._selected_id is None:
            return None
        return self._store.get(self._selected_id)

    @property
    def is_streaming(self) -> bool:
        return self._abort is not None and not self._abort.is_set()

    def new_conversation(self, use_search: bool | None = None) -> Conversation:
        """Create a conversation and select it."""
        conversation = self._store.create(
            use_search=self._use_search if use_search is None else use_search
        )
        self._selected_id = conversation.id
        return conversation

    def select(self, conversation_id: str) -> Conversation:
        """Switch the selected conversation.

        Raises:
            KeyError: If no conversation has this id
        """
        conversation = self._store.get(conversation_id)
        if conversation is None:
            raise KeyError(conversation_id)
        self._selected_id = conversation_id
        return conversation

    def delete_conversation(self, conversation_id: str) -> bool:
        """Delete a conversation, clearing the selection if it was selected."""
        if conversation_id == self._selected_id:
            self.cancel()
            self._selected_id = None
        return self._store.delete(conversation_id)

    def cancel(self) -> None:
        """Ask the in-flight stream, if any, to stop at its next read."""
        if self._abort is not None:
            self._abort.set()

    def build_request(self, conversation: Conversation, message: str) -> ChatRequest:
        """Request for a new message given the conversation so far."""
        return ChatRequest(
            message=message,
            use_search=conversation.use_search,
            history=[HistoryEntry(**entry) for entry in conversation.history()],
        )

    def render(self, content: str, conversation: Conversation) -> str:
        return self._pipeline.render(content, conversation.sources)

    async def send(
        self,
        text: str,
        attachments: Sequence[Attachment] = (),
        on_update: UpdateCallback | None = None,
    ) -> TurnSnapshot:
        """Send a user message and stream the assistant reply.

        Args:
            text: What the user typed
            attachments: Attachments whose text is appended to the message
            on_update: Called with a fresh snapshot after every change

        Returns:
            Snapshot of the finished turn
        """
        self.cancel()
        abort = asyncio.Event()
        self._abort = abort

        conversation = self.selected or self.new_conversation()
        content = text + "".join(a.as_prompt_text() for a in attachments)
        request = self.build_request(conversation, content)

        if not conversation.messages:
            conversation.title = derive_title(text)
        conversation.add_message(
            Message(role=Role.USER, content=content, display_content=text if attachments else None)
        )
        conversation.add_message(Message(role=Role.ASSISTANT))

        conversation_id = conversation.id
        accumulator = ConversationAccumulator(
            conversation,
            is_target=lambda: self._selected_id == conversation_id and not abort.is_set(),
        )
        accumulator.reset_sources()
        router = StreamRouter(accumulator)
        decoder = StreamDecoder()

        error: str | None = None
        try:
            async with aclosing(self._transport.stream_chat(request)) as chunks:
                async for chunk in chunks:
                    if abort.is_set():
                        logger.info("Stream for %s cancelled", conversation_id)
                        error = CANCELLED_ERROR
                        break
                    for event in decoder.feed(chunk):
                        if router.route(event).changed:
                            self._publish(accumulator, on_update)
            decoder.flush()
        except TransportError as e:
            logger.warning("Chat stream failed: %s", e)
            error = str(e)
        except asyncio.CancelledError:
            error = CANCELLED_ERROR
            raise
        finally:
            accumulator.finalize(error)
            if self._abort is abort:
                self._abort = None

        return self._publish(accumulator, on_update)

    def _publish(
        self,
        accumulator: ConversationAccumulator,
        on_update: UpdateCallback | None,
    ) -> TurnSnapshot:
        markup = self._pipeline.render(accumulator.content, accumulator.sources)
        snapshot = accumulator.snapshot(markup)
        if on_update is not None:
            on_update(snapshot)
        return snapshot
