"""Tests for MessageSender."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from pairchat.core.errors import SendError, StoreError
from pairchat.core.sender import MessageSender
from pairchat.core.typing_signaler import TypingSignaler
from pairchat.models.identity import AuthUser
from pairchat.models.message import MESSAGE_SCHEMA_VERSION
from pairchat.store.memory import InMemoryDocumentStore
from pairchat.telemetry.base import SpanKind
from pairchat.telemetry.mock import MockTelemetryProvider

PATH = "chats/alice_bob/messages"


class TestMessageSender:
    async def test_send_appends_trimmed_message(
        self, store: InMemoryDocumentStore, alice: AuthUser
    ) -> None:
        sender = MessageSender(store, PATH, alice)
        msg_id = await sender.send("  hi there \n")

        assert msg_id is not None
        doc = store.documents(PATH)[msg_id]
        assert doc["text"] == "hi there"
        assert doc["status"] == "sent"
        assert doc["sender_id"] == "alice"
        assert doc["timestamp"] is not None
        assert doc["schema_version"] == MESSAGE_SCHEMA_VERSION

    @pytest.mark.parametrize("text", ["", "   ", "\n\t "])
    async def test_blank_input_writes_nothing(
        self, store: InMemoryDocumentStore, alice: AuthUser, text: str
    ) -> None:
        sender = MessageSender(store, PATH, alice)
        assert await sender.send(text) is None
        assert store.write_count == 0

    async def test_captures_author_profile_at_send_time(
        self, store: InMemoryDocumentStore, alice: AuthUser
    ) -> None:
        sender = MessageSender(store, PATH, alice)
        msg_id = await sender.send("hello")
        assert msg_id is not None

        # A later profile change does not rewrite history.
        renamed = alice.model_copy(update={"display_name": "Alice L.", "photo_url": None})
        await MessageSender(store, PATH, renamed).send("again")

        doc = store.documents(PATH)[msg_id]
        assert doc["sender_name"] == "Alice Liddell"
        assert doc["sender_photo_url"] == "https://example.com/alice.png"

    async def test_send_clears_typing(
        self, store: InMemoryDocumentStore, alice: AuthUser
    ) -> None:
        typing = TypingSignaler(store, "alice_bob", "alice", timeout=5)
        sender = MessageSender(store, PATH, alice, typing=typing)
        await typing.keystroke()
        assert typing.timer_pending

        await sender.send("done typing")

        assert not typing.is_typing
        assert not typing.timer_pending
        assert await store.get("chats/alice_bob/typingStatus", "alice") == {"typing": False}
        await typing.close()

    async def test_backend_failure_raises_send_error(
        self, store: InMemoryDocumentStore, alice: AuthUser
    ) -> None:
        store.append = AsyncMock(side_effect=StoreError("offline"))  # type: ignore[method-assign]
        telemetry = MockTelemetryProvider()
        sender = MessageSender(store, PATH, alice, telemetry=telemetry)

        with pytest.raises(SendError) as exc_info:
            await sender.send("lost")
        assert isinstance(exc_info.value.__cause__, StoreError)
        (span,) = telemetry.get_spans(SpanKind.MESSAGE_SEND)
        assert span.status == "error"

    async def test_failed_send_still_clears_typing(
        self, store: InMemoryDocumentStore, alice: AuthUser
    ) -> None:
        typing = TypingSignaler(store, "alice_bob", "alice", timeout=5)
        sender = MessageSender(store, PATH, alice, typing=typing)
        await typing.keystroke()
        store.append = AsyncMock(side_effect=StoreError("offline"))  # type: ignore[method-assign]

        with pytest.raises(SendError):
            await sender.send("lost")

        assert not typing.is_typing
        assert not typing.timer_pending
        assert await store.get("chats/alice_bob/typingStatus", "alice") == {"typing": False}
        await typing.close()

    async def test_author_update_applies_to_next_send(
        self, store: InMemoryDocumentStore, alice: AuthUser
    ) -> None:
        sender = MessageSender(store, PATH, alice)
        sender.author = alice.model_copy(update={"photo_url": "https://example.com/new.png"})
        msg_id = await sender.send("new face")

        assert msg_id is not None
        assert store.documents(PATH)[msg_id]["sender_photo_url"] == "https://example.com/new.png"

    async def test_author_cannot_change_identity(
        self, store: InMemoryDocumentStore, alice: AuthUser, bob: AuthUser
    ) -> None:
        sender = MessageSender(store, PATH, alice)
        with pytest.raises(ValueError):
            sender.author = bob

    async def test_records_send_span(self, store: InMemoryDocumentStore, alice: AuthUser) -> None:
        telemetry = MockTelemetryProvider()
        sender = MessageSender(
            store, PATH, alice, conversation_key="alice_bob", telemetry=telemetry
        )
        msg_id = await sender.send("hey")

        (span,) = telemetry.get_spans(SpanKind.MESSAGE_SEND)
        assert span.conversation_key == "alice_bob"
        assert span.attributes["message.id"] == msg_id
        assert span.attributes["message.length"] == 3
