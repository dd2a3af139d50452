"""Derived aggregates: unread counts, last message, user-list ordering."""

from __future__ import annotations

from datetime import UTC

from pairchat.models.conversation import ConversationSummary
from pairchat.models.enums import MessageStatus
from pairchat.models.message import Message, sort_messages


def unread_count(messages: list[Message], peer_id: str) -> int:
    """Count messages authored by *peer_id* that are not yet seen.

    Always a full rescan of the snapshot; nothing incremental is trusted.
    """
    return sum(1 for m in messages if m.sender_id == peer_id and m.status != MessageStatus.SEEN)


def last_message(messages: list[Message]) -> Message | None:
    """Return the message that displays last, or ``None`` for an empty thread."""
    if not messages:
        return None
    return sort_messages(messages)[-1]


def _activity(summary: ConversationSummary) -> float:
    message = summary.last_message
    if message is None:
        return float("-inf")
    if message.timestamp is None:
        # A pending timestamp is a message that was just sent.
        return float("inf")
    return message.timestamp.astimezone(UTC).timestamp()


def order_users(summaries: list[ConversationSummary]) -> list[ConversationSummary]:
    """Order the user list: online first, then most recent activity, then name."""
    return sorted(
        summaries,
        key=lambda s: (
            not s.peer.online,
            -_activity(s),
            s.peer.display_name.casefold(),
            s.peer.id,
        ),
    )
