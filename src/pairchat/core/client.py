"""PairChat - central client for two-party conversations."""

from __future__ import annotations

import asyncio
import logging

from pairchat.core.avatars import AvatarFallbacks
from pairchat.core.config import ChatConfig
from pairchat.core.conversation import ChangeCallback, ConversationView
from pairchat.core.directory import DirectoryCallback, UserDirectory
from pairchat.core.errors import (
    DocumentNotFoundError,
    NotSignedInError,
    PairChatError,
    SendError,
    SignInError,
    StoreError,
)
from pairchat.core.presence import PresenceTracker
from pairchat.identity.base import IdentityProvider
from pairchat.models.identity import AuthUser
from pairchat.models.user import USER_SCHEMA_VERSION, UserRecord
from pairchat.store.base import SERVER_TIMESTAMP, DocumentStore
from pairchat.store.memory import InMemoryDocumentStore
from pairchat.telemetry.base import Attr, SpanKind, TelemetryProvider
from pairchat.telemetry.noop import NoopTelemetryProvider

# Re-export the error types alongside the client
__all__ = [
    "DocumentNotFoundError",
    "NotSignedInError",
    "PairChat",
    "PairChatError",
    "SendError",
    "SignInError",
    "StoreError",
]

logger = logging.getLogger("pairchat.client")


class PairChat:
    """Ties identity, presence, the user list and conversations together.

    At most one conversation is open at a time; opening another closes the
    previous one. Explicit :meth:`sign_out` is the authoritative way to go
    offline; :meth:`unload` and :meth:`close` only attempt it.
    """

    def __init__(
        self,
        store: DocumentStore | None = None,
        identity: IdentityProvider | None = None,
        *,
        config: ChatConfig | None = None,
        telemetry: TelemetryProvider | None = None,
    ) -> None:
        """Initialise the client.

        Args:
            store: Document-store backend. Defaults to ``InMemoryDocumentStore``.
            identity: Identity provider used by :meth:`sign_in`. Required
                before signing in.
            config: Client configuration. Defaults to ``ChatConfig()``.
            telemetry: Optional telemetry provider. Defaults to
                ``NoopTelemetryProvider``.
        """
        self._store = store or InMemoryDocumentStore()
        self._identity = identity
        self._config = config or ChatConfig()
        self._telemetry = telemetry or NoopTelemetryProvider()
        self._paths = self._config.paths
        self._presence = PresenceTracker(self._store, self._paths, self._telemetry)
        self._avatars = AvatarFallbacks(self._config.default_avatar_url)
        self._user: AuthUser | None = None
        self._conversation: ConversationView | None = None
        self._directory: UserDirectory | None = None

    @property
    def store(self) -> DocumentStore:
        """The backing document store."""
        return self._store

    @property
    def config(self) -> ChatConfig:
        return self._config

    @property
    def presence(self) -> PresenceTracker:
        return self._presence

    @property
    def avatars(self) -> AvatarFallbacks:
        """Sticky avatar-load failure tracking shared by every view."""
        return self._avatars

    @property
    def telemetry(self) -> TelemetryProvider:
        return self._telemetry

    @property
    def user(self) -> AuthUser | None:
        """The signed-in user, or ``None``."""
        return self._user

    @property
    def conversation(self) -> ConversationView | None:
        """The currently open conversation, if any."""
        return self._conversation

    def _require_user(self) -> AuthUser:
        if self._user is None:
            raise NotSignedInError("Sign in first")
        return self._user

    # -- Session --

    async def sign_in(self) -> AuthUser:
        """Sign in, upsert the user record, and mark the user online.

        Raises:
            SignInError: If no identity provider is configured or the flow
                failed.
        """
        if self._identity is None:
            raise SignInError("No identity provider configured")

        with self._telemetry.span(SpanKind.SIGN_IN, "session.sign_in") as span_id:
            user = await self._identity.sign_in()
            if not user.uid:
                raise SignInError("Identity provider returned a user without uid")
            self._telemetry.set_attribute(span_id, Attr.USER_ID, user.uid)
            self._user = user
            await self._upsert_profile(user, last_login=True)
            await self._presence.mark_online(user.uid)

        logger.info("Signed in as %s", user.uid)
        return user

    async def sign_out(self) -> None:
        """Close views, mark the user offline, and end the session."""
        user = self._require_user()
        with self._telemetry.span(SpanKind.SIGN_OUT, "session.sign_out", user_id=user.uid):
            await self._close_views()
            await self._presence.mark_offline(user.uid)
            if self._identity is not None:
                await self._identity.sign_out()
            self._user = None
        logger.info("Signed out %s", user.uid)

    async def reconnect(self) -> None:
        """Re-assert presence after the app returns to the foreground."""
        user = self._require_user()
        await self.sync_profile()
        await self._presence.mark_online(user.uid)

    async def sync_profile(self) -> bool:
        """Upsert the user record if its avatar URL drifted from the provider's.

        Returns:
            True if the stored record was updated.
        """
        user = self._require_user()
        current = self._identity.current_user if self._identity is not None else None
        if current is not None and current.uid == user.uid:
            user = current
            self._user = user
            if self._conversation is not None:
                self._conversation.update_profile(user)

        try:
            stored = await self._store.get(self._paths.users, user.uid)
        except Exception:
            logger.exception("Could not read user record for %s", user.uid)
            return False

        stored_url = stored.get("photo_url") if stored is not None else None
        if stored is not None and stored_url == user.photo_url:
            return False
        logger.info(
            "Avatar URL drift for %s, updating user record",
            user.uid,
            extra={"user_id": user.uid},
        )
        return await self._upsert_profile(user, last_login=False)

    def unload(self) -> asyncio.Task[bool] | None:
        """Best-effort offline write for page-unload; not awaited, not guaranteed."""
        if self._user is None:
            return None
        return self._presence.mark_offline_best_effort(self._user.uid)

    async def close(self) -> None:
        """Tear down every subscription; attempts (does not guarantee) going offline."""
        await self._close_views()
        self.unload()

    async def __aenter__(self) -> PairChat:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # -- Views --

    async def open_conversation(
        self,
        peer: UserRecord | str,
        *,
        on_change: ChangeCallback | None = None,
    ) -> ConversationView:
        """Open the conversation with *peer*, closing any other open conversation."""
        user = self._require_user()
        if isinstance(peer, str):
            peer = await self._load_user(peer)
        if peer.id == user.uid:
            raise ValueError("Cannot open a conversation with yourself")

        await self.close_conversation()
        view = ConversationView(
            self._store,
            user,
            peer,
            config=self._config,
            telemetry=self._telemetry,
            on_change=on_change,
            avatars=self._avatars,
        )
        self._conversation = view
        await view.open()
        return view

    async def close_conversation(self) -> None:
        view, self._conversation = self._conversation, None
        if view is not None:
            await view.close()

    async def open_directory(self, *, on_change: DirectoryCallback | None = None) -> UserDirectory:
        """Open (or return the already open) user list."""
        user = self._require_user()
        if self._directory is None:
            self._directory = UserDirectory(
                self._store,
                user,
                config=self._config,
                telemetry=self._telemetry,
                on_change=on_change,
                avatars=self._avatars,
            )
            await self._directory.open()
        return self._directory

    async def close_directory(self) -> None:
        directory, self._directory = self._directory, None
        if directory is not None:
            await directory.close()

    # -- Internals --

    async def _close_views(self) -> None:
        await self.close_conversation()
        await self.close_directory()

    async def _load_user(self, user_id: str) -> UserRecord:
        data = await self._store.get(self._paths.users, user_id)
        if data is None:
            return UserRecord(id=user_id)
        return UserRecord.from_document(user_id, data)

    async def _upsert_profile(self, user: AuthUser, *, last_login: bool) -> bool:
        fields: dict[str, object] = {
            "display_name": user.display_name,
            "email": user.email,
            "photo_url": user.photo_url,
            "schema_version": USER_SCHEMA_VERSION,
        }
        if last_login:
            fields["last_login"] = SERVER_TIMESTAMP
        try:
            await self._store.upsert(self._paths.users, user.uid, fields, merge=True)
        except Exception:
            logger.exception("Profile upsert failed for %s", user.uid)
            return False
        return True
