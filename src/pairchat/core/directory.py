"""The user list: peers, presence, unread counts and last messages."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from pairchat.core._snapshots import parse_messages, parse_users
from pairchat.core.avatars import AvatarFallbacks
from pairchat.core.config import ChatConfig
from pairchat.core.conversation_key import conversation_key
from pairchat.core.reconciler import StatusReconciler
from pairchat.core.unread import last_message, order_users, unread_count
from pairchat.models.conversation import ConversationSummary
from pairchat.models.identity import AuthUser
from pairchat.models.message import Message
from pairchat.models.user import UserRecord
from pairchat.store.base import DocumentStore, QuerySnapshot
from pairchat.telemetry.base import Attr, Metric, TelemetryProvider
from pairchat.telemetry.noop import NoopTelemetryProvider

logger = logging.getLogger("pairchat.directory")

DirectoryCallback = Callable[["UserDirectory"], Awaitable[None]]


@dataclass
class _PeerStream:
    key: str
    subscription_id: str
    reconciler: StatusReconciler
    messages: list[Message] = field(default_factory=list)
    version: int = -1


class UserDirectory:
    """Live list of every other user with per-conversation derived state.

    Subscribes to the users collection and to each peer's shared message
    stream. Each message snapshot recomputes the unread count and last
    message from scratch and marks newly received messages ``delivered``.
    """

    def __init__(
        self,
        store: DocumentStore,
        me: AuthUser,
        *,
        config: ChatConfig | None = None,
        telemetry: TelemetryProvider | None = None,
        on_change: DirectoryCallback | None = None,
        avatars: AvatarFallbacks | None = None,
    ) -> None:
        self._store = store
        self._me = me
        self._config = config or ChatConfig()
        self._telemetry = telemetry or NoopTelemetryProvider()
        self._on_change = on_change
        self._avatars = avatars or AvatarFallbacks(self._config.default_avatar_url)
        self._users: dict[str, UserRecord] = {}
        self._streams: dict[str, _PeerStream] = {}
        self._users_subscription: str | None = None
        self._closed = False

    @property
    def peers(self) -> list[UserRecord]:
        return list(self._users.values())

    @property
    def unread_counts(self) -> dict[str, int]:
        return {
            peer_id: unread_count(stream.messages, peer_id)
            for peer_id, stream in self._streams.items()
        }

    @property
    def stream_count(self) -> int:
        """Number of per-peer message subscriptions currently held."""
        return len(self._streams)

    def avatar_for(self, peer: UserRecord) -> str:
        return self._avatars.resolve(peer.id, peer.photo_url, peer.display_name)

    def summaries(self) -> list[ConversationSummary]:
        """Peers with derived conversation state, in user-list order."""
        rows = []
        for peer in self._users.values():
            stream = self._streams.get(peer.id)
            messages = stream.messages if stream is not None else []
            rows.append(
                ConversationSummary(
                    peer=peer,
                    conversation_key=conversation_key(
                        self._me.uid, peer.id, self._config.key_separator
                    ),
                    unread_count=unread_count(messages, peer.id),
                    last_message=last_message(messages),
                )
            )
        return order_users(rows)

    async def open(self) -> UserDirectory:
        if self._closed:
            raise RuntimeError("User directory was closed")
        if self._users_subscription is None:
            self._users_subscription = await self._store.subscribe(
                self._config.paths.users, self._handle_users
            )
        return self

    async def close(self) -> None:
        """Tear down the users subscription and every peer stream. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._users_subscription is not None:
            await self._store.unsubscribe(self._users_subscription)
            self._users_subscription = None
        for peer_id in list(self._streams):
            await self._drop_stream(peer_id)

    async def __aenter__(self) -> UserDirectory:
        return await self.open()

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def _handle_users(self, snapshot: QuerySnapshot) -> None:
        if self._closed:
            return
        separator = self._config.key_separator
        users: dict[str, UserRecord] = {}
        for user in parse_users(snapshot):
            if user.id == self._me.uid:
                continue
            if separator in user.id:
                logger.warning("Skipping user %r: ID contains the key separator", user.id)
                continue
            users[user.id] = user
        self._users = users

        for peer_id in [p for p in self._streams if p not in users]:
            await self._drop_stream(peer_id)
        for peer_id in users:
            if peer_id not in self._streams:
                await self._add_stream(peer_id)
                if self._closed:
                    return
        await self._notify()

    async def _add_stream(self, peer_id: str) -> None:
        key = conversation_key(self._me.uid, peer_id, self._config.key_separator)
        path = self._config.paths.messages(key)
        reconciler = StatusReconciler(
            self._store,
            path,
            self._me.uid,
            viewing=False,
            conversation_key=key,
            telemetry=self._telemetry,
        )

        async def on_messages(snapshot: QuerySnapshot) -> None:
            await self._handle_peer_messages(peer_id, snapshot)

        # Register before subscribing so the initial snapshot finds its stream.
        stream = _PeerStream(key=key, subscription_id="", reconciler=reconciler)
        self._streams[peer_id] = stream
        stream.subscription_id = await self._store.subscribe(
            path, on_messages, order_by="timestamp"
        )

    async def _drop_stream(self, peer_id: str) -> None:
        stream = self._streams.pop(peer_id, None)
        if stream is None:
            return
        await self._store.unsubscribe(stream.subscription_id)
        await stream.reconciler.close()

    async def _handle_peer_messages(self, peer_id: str, snapshot: QuerySnapshot) -> None:
        stream = self._streams.get(peer_id)
        if self._closed or stream is None or snapshot.version < stream.version:
            return
        stream.version = snapshot.version
        stream.messages = parse_messages(snapshot)
        stream.reconciler.submit(stream.messages)
        self._telemetry.record_metric(
            Metric.UNREAD_COUNT,
            unread_count(stream.messages, peer_id),
            attributes={Attr.CONVERSATION_KEY: stream.key},
        )
        await self._notify()

    async def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            await self._on_change(self)
        except Exception:
            logger.exception("Directory change callback failed")
