"""Tests for ConversationView."""

from __future__ import annotations

import pytest

from pairchat.core.avatars import AvatarFallbacks
from pairchat.core.config import ChatConfig
from pairchat.core.conversation import ConversationView
from pairchat.models.enums import MessageStatus, StatusBadge
from pairchat.models.identity import AuthUser
from pairchat.models.user import UserRecord
from pairchat.store.base import DocumentSnapshot, QuerySnapshot
from pairchat.store.memory import InMemoryDocumentStore
from tests.conftest import until

MESSAGES = "chats/alice_bob/messages"


def _peer(user: AuthUser) -> UserRecord:
    return UserRecord(id=user.uid, display_name=user.display_name, photo_url=user.photo_url)


def _view(
    store: InMemoryDocumentStore, me: AuthUser, peer: AuthUser, **kwargs: object
) -> ConversationView:
    return ConversationView(store, me, _peer(peer), **kwargs)  # type: ignore[arg-type]


class TestConversationLifecycle:
    async def test_key_is_shared(
        self, store: InMemoryDocumentStore, alice: AuthUser, bob: AuthUser
    ) -> None:
        assert _view(store, alice, bob).key == _view(store, bob, alice).key == "alice_bob"

    async def test_close_tears_down_subscriptions(
        self, store: InMemoryDocumentStore, alice: AuthUser, bob: AuthUser
    ) -> None:
        view = _view(store, alice, bob)
        await view.open()
        assert view.is_open
        assert store.subscription_count == 2

        await view.close()
        await view.close()
        assert not view.is_open
        assert store.subscription_count == 0

    async def test_reopen_after_close_raises(
        self, store: InMemoryDocumentStore, alice: AuthUser, bob: AuthUser
    ) -> None:
        view = _view(store, alice, bob)
        async with view:
            pass
        with pytest.raises(RuntimeError):
            await view.open()

    async def test_no_updates_after_close(
        self, store: InMemoryDocumentStore, alice: AuthUser, bob: AuthUser
    ) -> None:
        view = _view(store, alice, bob)
        async with view:
            pass
        async with _view(store, bob, alice) as other:
            await other.send("are you there?")
            await until(lambda: len(other.messages) == 1)
        assert view.messages == []


class TestScenarios:
    async def test_send_then_peer_opens(
        self, store: InMemoryDocumentStore, alice: AuthUser, bob: AuthUser
    ) -> None:
        async with _view(store, alice, bob) as mine:
            msg_id = await mine.send("hi")
            assert msg_id is not None
            await until(lambda: len(mine.messages) == 1)
            assert mine.messages[0].status == MessageStatus.SENT
            assert mine.badges == {msg_id: StatusBadge.SENT}

            async with _view(store, bob, alice) as theirs:
                await until(lambda: mine.badges == {msg_id: StatusBadge.SEEN})
                await until(lambda: theirs.messages[0].status == MessageStatus.SEEN)

            assert store.documents(MESSAGES)[msg_id]["status"] == "seen"

    async def test_messages_in_send_order(
        self, store: InMemoryDocumentStore, alice: AuthUser, bob: AuthUser
    ) -> None:
        async with _view(store, alice, bob) as mine, _view(store, bob, alice) as theirs:
            await mine.send("hi")
            await mine.send("there")
            await until(lambda: len(theirs.messages) == 2)
            assert [m.text for m in theirs.messages] == ["hi", "there"]

    async def test_own_messages_are_never_advanced_by_sender(
        self, store: InMemoryDocumentStore, alice: AuthUser, bob: AuthUser
    ) -> None:
        async with _view(store, alice, bob) as mine:
            msg_id = await mine.send("anyone?")
            await until(lambda: len(mine.messages) == 1)
            await mine.reconciler.wait()
            assert store.documents(MESSAGES)[msg_id]["status"] == "sent"

    async def test_pending_timestamps_display_last(self, alice: AuthUser, bob: AuthUser) -> None:
        store = InMemoryDocumentStore(defer_server_timestamps=True)
        async with _view(store, alice, bob) as view:
            await view.send("first")
            await store.resolve_pending_timestamps()
            await view.send("second")
            await until(lambda: len(view.messages) == 2)
            assert [m.text for m in view.messages] == ["first", "second"]
            assert view.messages[1].timestamp_pending
            assert view.format_time(view.messages[1]) == ""

            await store.resolve_pending_timestamps()
            await until(lambda: not view.messages[1].timestamp_pending)
            assert view.format_time(view.messages[1]) != ""


class TestTyping:
    async def test_peer_typing_visible_then_cleared_on_send(
        self, store: InMemoryDocumentStore, alice: AuthUser, bob: AuthUser
    ) -> None:
        config = ChatConfig(typing_timeout_seconds=5)
        async with (
            _view(store, alice, bob, config=config) as mine,
            _view(store, bob, alice, config=config) as theirs,
        ):
            await mine.keystroke()
            await until(lambda: theirs.peer_typing)
            assert not mine.peer_typing

            await mine.send("done")
            await until(lambda: not theirs.peer_typing)

    async def test_typing_auto_clears(
        self, store: InMemoryDocumentStore, alice: AuthUser, bob: AuthUser
    ) -> None:
        config = ChatConfig(typing_timeout_seconds=0.05)
        async with (
            _view(store, alice, bob, config=config) as mine,
            _view(store, bob, alice, config=config) as theirs,
        ):
            await mine.keystroke()
            await until(lambda: theirs.peer_typing)
            await until(lambda: not theirs.peer_typing)


class TestSnapshots:
    async def test_stale_snapshot_is_dropped(
        self, store: InMemoryDocumentStore, alice: AuthUser, bob: AuthUser
    ) -> None:
        async with _view(store, alice, bob) as view:
            await view.send("fresh")
            await until(lambda: len(view.messages) == 1)

            stale = QuerySnapshot(collection=MESSAGES, version=0, documents=[])
            await view._handle_messages(stale)
            assert [m.text for m in view.messages] == ["fresh"]

    async def test_malformed_documents_are_skipped(
        self, store: InMemoryDocumentStore, alice: AuthUser, bob: AuthUser
    ) -> None:
        async with _view(store, alice, bob) as view:
            snapshot = QuerySnapshot(
                collection=MESSAGES,
                version=99,
                documents=[
                    DocumentSnapshot(id="ok", data={"sender_id": "bob", "text": "fine"}),
                    DocumentSnapshot(id="bad", data={"sender_id": ["not", "a", "string"]}),
                ],
            )
            await view._handle_messages(snapshot)
            assert [m.id for m in view.messages] == ["ok"]

    async def test_change_callback_errors_are_contained(
        self, store: InMemoryDocumentStore, alice: AuthUser, bob: AuthUser
    ) -> None:
        calls: list[int] = []

        async def on_change(view: ConversationView) -> None:
            calls.append(len(view.messages))
            raise RuntimeError("render failed")

        async with _view(store, alice, bob, on_change=on_change) as view:
            await view.send("hi")
            await until(lambda: 1 in calls)

    async def test_avatar_falls_back_after_failure(
        self, store: InMemoryDocumentStore, alice: AuthUser, bob: AuthUser
    ) -> None:
        avatars = AvatarFallbacks()
        async with _view(store, alice, bob, avatars=avatars) as view:
            await view.send("hello")
            await until(lambda: len(view.messages) == 1)
            message = view.messages[0]
            assert view.avatar_for(message) == "https://example.com/alice.png"

            avatars.mark_broken(message.id)
            assert view.avatar_for(message) == "AL"
