"""Parse query snapshots into record models."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from pairchat.models.message import Message, sort_messages
from pairchat.models.typing_flag import TypingFlag
from pairchat.models.user import UserRecord
from pairchat.store.base import QuerySnapshot

logger = logging.getLogger("pairchat.snapshots")


def parse_messages(snapshot: QuerySnapshot) -> list[Message]:
    """Return the snapshot's messages in display order, skipping malformed ones."""
    messages: list[Message] = []
    for doc in snapshot.documents:
        try:
            messages.append(Message.from_document(doc.id, doc.data))
        except ValidationError as exc:
            logger.warning(
                "Skipping malformed message %s in %s: %s",
                doc.id,
                snapshot.collection,
                exc.error_count(),
            )
    return sort_messages(messages)


def parse_users(snapshot: QuerySnapshot) -> list[UserRecord]:
    users: list[UserRecord] = []
    for doc in snapshot.documents:
        try:
            users.append(UserRecord.from_document(doc.id, doc.data))
        except ValidationError:
            logger.warning("Skipping malformed user record %s", doc.id)
    return users


def parse_typing(snapshot: QuerySnapshot) -> dict[str, bool]:
    return {
        doc.id: TypingFlag.from_document(doc.id, doc.data).typing for doc in snapshot.documents
    }
