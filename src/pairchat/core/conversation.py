"""A single open conversation and its subscriptions."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from pairchat.core._snapshots import parse_messages, parse_typing
from pairchat.core.avatars import AvatarFallbacks
from pairchat.core.badges import compute_badges
from pairchat.core.config import ChatConfig
from pairchat.core.conversation_key import conversation_key
from pairchat.core.formatting import format_time
from pairchat.core.reconciler import StatusReconciler
from pairchat.core.sender import MessageSender
from pairchat.core.typing_signaler import TypingSignaler
from pairchat.models.enums import StatusBadge
from pairchat.models.identity import AuthUser
from pairchat.models.message import Message
from pairchat.models.user import UserRecord
from pairchat.store.base import DocumentStore, QuerySnapshot
from pairchat.telemetry.base import TelemetryProvider
from pairchat.telemetry.noop import NoopTelemetryProvider

logger = logging.getLogger("pairchat.conversation")

ChangeCallback = Callable[["ConversationView"], Awaitable[None]]


class ConversationView:
    """The signed-in user's view of one two-party conversation.

    Owns the message and typing subscriptions, the status reconciler, and
    the typing signaler. Use as an async context manager, or call
    :meth:`open` and :meth:`close` explicitly; every subscription is torn
    down on close.
    """

    def __init__(
        self,
        store: DocumentStore,
        me: AuthUser,
        peer: UserRecord,
        *,
        config: ChatConfig | None = None,
        telemetry: TelemetryProvider | None = None,
        on_change: ChangeCallback | None = None,
        avatars: AvatarFallbacks | None = None,
    ) -> None:
        self._store = store
        self._config = config or ChatConfig()
        self._telemetry = telemetry or NoopTelemetryProvider()
        self._me = me
        self._peer = peer
        self._on_change = on_change
        self._avatars = avatars or AvatarFallbacks(self._config.default_avatar_url)
        self._key = conversation_key(me.uid, peer.id, self._config.key_separator)

        paths = self._config.paths
        self._messages_path = paths.messages(self._key)
        self._typing_path = paths.typing_status(self._key)
        self._typing = TypingSignaler(
            store,
            self._key,
            me.uid,
            paths=paths,
            timeout=self._config.typing_timeout_seconds,
            telemetry=self._telemetry,
        )
        self._sender = MessageSender(
            store,
            self._messages_path,
            me,
            typing=self._typing,
            conversation_key=self._key,
            telemetry=self._telemetry,
        )
        self._reconciler = StatusReconciler(
            store,
            self._messages_path,
            me.uid,
            viewing=True,
            conversation_key=self._key,
            telemetry=self._telemetry,
        )

        self._messages: list[Message] = []
        self._typing_flags: dict[str, bool] = {}
        self._messages_version = -1
        self._subscriptions: list[str] = []
        self._opened = False
        self._closed = False

    @property
    def key(self) -> str:
        return self._key

    @property
    def peer(self) -> UserRecord:
        return self._peer

    @property
    def is_open(self) -> bool:
        return self._opened and not self._closed

    @property
    def messages(self) -> list[Message]:
        """Messages from the latest snapshot, in display order."""
        return list(self._messages)

    @property
    def peer_typing(self) -> bool:
        return self._typing_flags.get(self._peer.id, False)

    @property
    def badges(self) -> dict[str, StatusBadge]:
        return compute_badges(self._messages, self._me.uid)

    @property
    def reconciler(self) -> StatusReconciler:
        return self._reconciler

    @property
    def typing(self) -> TypingSignaler:
        return self._typing

    def update_profile(self, me: AuthUser) -> None:
        """Use *me*'s current name and avatar for messages sent from now on."""
        self._sender.author = me
        self._me = me

    def format_time(self, message: Message) -> str:
        return format_time(message.timestamp)

    def avatar_for(self, message: Message) -> str:
        """Sender avatar captured at send time, or its sticky fallback."""
        return self._avatars.resolve(message.id, message.sender_photo_url, message.sender_name)

    async def open(self) -> ConversationView:
        """Subscribe to the message and typing streams."""
        if self._closed:
            raise RuntimeError(f"Conversation {self._key} was closed")
        if self._opened:
            return self
        self._opened = True
        self._subscriptions.append(
            await self._store.subscribe(
                self._messages_path, self._handle_messages, order_by="timestamp"
            )
        )
        self._subscriptions.append(
            await self._store.subscribe(self._typing_path, self._handle_typing)
        )
        logger.debug("Opened conversation %s", self._key)
        return self

    async def close(self) -> None:
        """Unsubscribe and cancel pending work. Idempotent."""
        if self._closed:
            return
        self._closed = True
        subscriptions, self._subscriptions = self._subscriptions, []
        for sub_id in subscriptions:
            await self._store.unsubscribe(sub_id)
        await self._reconciler.close()
        await self._typing.close()
        logger.debug("Closed conversation %s", self._key)

    async def __aenter__(self) -> ConversationView:
        return await self.open()

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def send(self, text: str) -> str | None:
        """Send a message; empty input is ignored and returns ``None``."""
        return await self._sender.send(text)

    async def keystroke(self) -> None:
        await self._typing.keystroke()

    async def _handle_messages(self, snapshot: QuerySnapshot) -> None:
        if self._closed:
            return
        if snapshot.version < self._messages_version:
            logger.debug(
                "Dropping stale snapshot v%d (have v%d) for %s",
                snapshot.version,
                self._messages_version,
                self._key,
            )
            return
        self._messages_version = snapshot.version
        self._messages = parse_messages(snapshot)
        self._reconciler.submit(self._messages)
        await self._notify()

    async def _handle_typing(self, snapshot: QuerySnapshot) -> None:
        if self._closed:
            return
        self._typing_flags = parse_typing(snapshot)
        await self._notify()

    async def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            await self._on_change(self)
        except Exception:
            logger.exception("Conversation change callback failed for %s", self._key)
