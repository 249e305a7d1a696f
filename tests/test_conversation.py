"""Unit tests for conversation state and storage."""
import pytest

from streamchat.client import derive_title
from streamchat.config import FALLBACK_ERROR_MESSAGE
from streamchat.conversation import (
    Conversation,
    ConversationAccumulator,
    ConversationStore,
    InMemoryConversationStore,
    Message,
    Role,
    Source,
)


class TestMessage:
    """Tests for Message."""

    def test_visible_text_defaults_to_content(self):
        message = Message(role=Role.USER, content="hello")

        assert message.visible_text == "hello"

    def test_visible_text_prefers_display_content(self):
        message = Message(role=Role.USER, content="hello\n\n[Attachment: a.txt]\nbody", display_content="hello")

        assert message.visible_text == "hello"
        assert message.to_history_entry() == {"role": "user", "content": message.content}


class TestSource:
    """Tests for Source."""

    def test_extra_fields_are_kept(self):
        """Test that unknown server fields survive a round through the model."""
        source = Source.model_validate({"url": "http://a", "title": "A", "rank": 2})

        assert source.title == "A"
        assert source.model_dump() == {"url": "http://a", "title": "A", "rank": 2}

    def test_title_falls_back_to_url(self):
        assert Source(url="http://a").title == "http://a"
        assert Source().title == ""


class TestConversationAccumulator:
    """Tests for ConversationAccumulator."""

    def test_requires_in_flight_assistant_message(self):
        """Test that a conversation not ending with an assistant message is rejected."""
        conversation = Conversation()
        conversation.add_message(Message(role=Role.USER, content="hi"))

        with pytest.raises(ValueError):
            ConversationAccumulator(conversation)

    def test_deltas_append_in_order(self, in_flight_conversation):
        """Test that content equals the concatenation of applied deltas."""
        accumulator = ConversationAccumulator(in_flight_conversation)

        assert accumulator.apply_delta("Hel") == "Hel"
        assert accumulator.apply_delta("lo") == "Hello"
        assert accumulator.apply_delta("") == "Hello"

        assert in_flight_conversation.messages[-1].content == "Hello"

    def test_delta_bumps_updated_at(self, in_flight_conversation):
        before = in_flight_conversation.updated_at
        accumulator = ConversationAccumulator(in_flight_conversation)

        accumulator.apply_delta("x")

        assert in_flight_conversation.updated_at >= before

    def test_stale_target_ignores_updates(self, in_flight_conversation):
        """Test that updates are dropped once the conversation is no longer targeted."""
        targeted = True
        accumulator = ConversationAccumulator(in_flight_conversation, is_target=lambda: targeted)
        accumulator.apply_delta("kept")

        targeted = False

        assert accumulator.apply_delta(" dropped") is None
        assert accumulator.replace_sources([Source(url="http://a")]) is False
        assert accumulator.content == "kept"
        assert accumulator.sources == []

    def test_replace_sources_is_wholesale(self, in_flight_conversation):
        accumulator = ConversationAccumulator(in_flight_conversation)
        accumulator.replace_sources([Source(url="http://a"), Source(url="http://b")])

        assert accumulator.replace_sources([Source(url="http://c")])

        assert [s.url for s in accumulator.sources] == ["http://c"]

    def test_reset_sources(self, in_flight_conversation):
        in_flight_conversation.sources = [Source(url="http://old")]
        accumulator = ConversationAccumulator(in_flight_conversation)

        accumulator.reset_sources()

        assert accumulator.sources == []

    def test_finalize_empty_turn_uses_fallback(self, in_flight_conversation):
        """Test that a turn without content ends with the fallback message."""
        accumulator = ConversationAccumulator(in_flight_conversation)

        message = accumulator.finalize("Chat server answered 500")

        assert message.content == FALLBACK_ERROR_MESSAGE
        assert accumulator.error == "Chat server answered 500"
        assert accumulator.finalized

    def test_finalize_keeps_partial_content(self, in_flight_conversation):
        """Test that streamed text survives an error at the end of the turn."""
        accumulator = ConversationAccumulator(in_flight_conversation)
        accumulator.apply_delta("partial")

        accumulator.finalize("Request cancelled")

        assert accumulator.content == "partial"
        assert accumulator.error == "Request cancelled"

    def test_finalized_turn_rejects_updates(self, in_flight_conversation):
        accumulator = ConversationAccumulator(in_flight_conversation)
        accumulator.apply_delta("done")
        accumulator.finalize()

        assert accumulator.apply_delta("late") is None
        assert accumulator.content == "done"

    def test_record_error_keeps_content(self, in_flight_conversation):
        accumulator = ConversationAccumulator(in_flight_conversation)
        accumulator.apply_delta("text")

        accumulator.record_error("stream error")

        assert accumulator.content == "text"
        assert accumulator.error == "stream error"

    def test_snapshot_is_detached(self, in_flight_conversation):
        """Test that snapshots do not change with later updates."""
        accumulator = ConversationAccumulator(in_flight_conversation)
        accumulator.apply_delta("a")
        accumulator.replace_sources([Source(url="http://a")])

        snapshot = accumulator.snapshot("<p>a</p>")
        accumulator.apply_delta("b")
        accumulator.replace_sources([])

        assert snapshot.conversation_id == in_flight_conversation.id
        assert snapshot.content == "a"
        assert snapshot.markup == "<p>a</p>"
        assert [s.url for s in snapshot.sources] == ["http://a"]
        assert not snapshot.done


class TestInMemoryConversationStore:
    """Tests for InMemoryConversationStore."""

    def test_store_is_abstract(self):
        """Test that ConversationStore cannot be instantiated directly."""
        with pytest.raises(TypeError):
            ConversationStore()  # type: ignore

    def test_create_and_get(self):
        store = InMemoryConversationStore()

        conversation = store.create(use_search=True)

        assert store.get(conversation.id) is conversation
        assert conversation.use_search
        assert conversation.messages == []
        assert store.backend_type == "memory"

    def test_get_unknown(self):
        assert InMemoryConversationStore().get("missing") is None

    def test_list_most_recent_first(self):
        """Test that listing orders by last update."""
        store = InMemoryConversationStore()
        first = store.create()
        second = store.create()

        first.add_message(Message(role=Role.USER, content="bump"))

        listed = store.list_conversations()
        assert [c.id for c in listed][0] == first.id
        assert {c.id for c in listed} == {first.id, second.id}

    def test_delete(self):
        store = InMemoryConversationStore()
        conversation = store.create()

        assert store.delete(conversation.id)
        assert not store.delete(conversation.id)
        assert store.list_conversations() == []


class TestDeriveTitle:
    """Tests for conversation title derivation."""

    @pytest.mark.parametrize("text,expected", [
        ("Hello there", "Hello there"),
        ("  spaced\n\nout  ", "spaced out"),
        ("", "New chat"),
        ("   ", "New chat"),
    ])
    def test_short_titles(self, text, expected):
        assert derive_title(text) == expected

    def test_long_title_is_truncated(self):
        title = derive_title("word " * 30)

        assert title.endswith("...")
        assert len(title) <= 43
