"""All string enums for pairchat."""

from __future__ import annotations

from enum import StrEnum, unique


@unique
class MessageStatus(StrEnum):
    """Lifecycle of a message. Only ever moves forward."""

    SENT = "sent"
    DELIVERED = "delivered"
    SEEN = "seen"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    def advance(self, target: MessageStatus) -> MessageStatus:
        """Return the more advanced of ``self`` and *target*."""
        return target if target.rank > self.rank else self


_STATUS_RANK: dict[MessageStatus, int] = {
    MessageStatus.SENT: 0,
    MessageStatus.DELIVERED: 1,
    MessageStatus.SEEN: 2,
}


@unique
class StatusBadge(StrEnum):
    SENT = "sent"
    DELIVERED = "delivered"
    SEEN = "seen"


@unique
class PresenceStatus(StrEnum):
    ONLINE = "online"
    OFFLINE = "offline"
