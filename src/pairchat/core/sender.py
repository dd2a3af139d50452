"""Sending messages into a conversation."""

from __future__ import annotations

import logging

from pairchat.core.errors import SendError
from pairchat.core.typing_signaler import TypingSignaler
from pairchat.models.enums import MessageStatus
from pairchat.models.identity import AuthUser
from pairchat.models.message import MESSAGE_SCHEMA_VERSION
from pairchat.store.base import SERVER_TIMESTAMP, DocumentStore
from pairchat.telemetry.base import Attr, SpanKind, TelemetryProvider
from pairchat.telemetry.noop import NoopTelemetryProvider

logger = logging.getLogger("pairchat.sender")


class MessageSender:
    """Appends messages authored by the signed-in user.

    The sender's name and avatar URL are captured at send time, so later
    profile changes never rewrite history.
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        author: AuthUser,
        *,
        typing: TypingSignaler | None = None,
        conversation_key: str | None = None,
        telemetry: TelemetryProvider | None = None,
    ) -> None:
        self._store = store
        self._collection = collection
        self._author = author
        self._typing = typing
        self._key = conversation_key
        self._telemetry = telemetry or NoopTelemetryProvider()

    @property
    def author(self) -> AuthUser:
        return self._author

    @author.setter
    def author(self, user: AuthUser) -> None:
        if user.uid != self._author.uid:
            raise ValueError(f"Cannot change author from {self._author.uid!r} to {user.uid!r}")
        self._author = user

    async def send(self, text: str) -> str | None:
        """Send *text* after trimming.

        Returns:
            The new message ID, or ``None`` if the input was empty or
            whitespace-only (nothing is written in that case).

        Raises:
            SendError: If the backend rejected the append.
        """
        body = text.strip()
        if not body:
            return None

        with self._telemetry.span(
            SpanKind.MESSAGE_SEND,
            "message.send",
            conversation_key=self._key,
            user_id=self._author.uid,
            attributes={Attr.MESSAGE_LENGTH: len(body)},
        ) as span_id:
            try:
                message_id = await self._store.append(
                    self._collection,
                    {
                        "sender_id": self._author.uid,
                        "sender_name": self._author.display_name,
                        "sender_photo_url": self._author.photo_url,
                        "text": body,
                        "status": MessageStatus.SENT.value,
                        "timestamp": SERVER_TIMESTAMP,
                        "schema_version": MESSAGE_SCHEMA_VERSION,
                    },
                )
            except Exception as exc:
                raise SendError(f"Could not send message to {self._collection}") from exc
            finally:
                # Sending ends the typing burst whether or not the append landed.
                if self._typing is not None:
                    await self._typing.clear()
            self._telemetry.set_attribute(span_id, Attr.MESSAGE_ID, message_id)

        logger.debug("Sent message %s", message_id, extra={"conversation_key": self._key})
        return message_id
