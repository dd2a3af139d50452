"""Status badge display policy."""

from __future__ import annotations

from pairchat.models.enums import MessageStatus, StatusBadge
from pairchat.models.message import Message, sort_messages


def compute_badges(messages: list[Message], me: str) -> dict[str, StatusBadge]:
    """Map message IDs to the badge they should display.

    Only the latest message by *me* may carry a ``sent``/``delivered``
    badge, and only the latest of my ``seen`` messages carries ``seen``.
    Everything else shows no badge, however long the history.
    """
    mine = [m for m in sort_messages(messages) if m.sender_id == me]
    if not mine:
        return {}

    badges: dict[str, StatusBadge] = {}
    latest = mine[-1]
    if latest.status != MessageStatus.SEEN:
        badges[latest.id] = StatusBadge(latest.status.value)

    for message in reversed(mine):
        if message.status == MessageStatus.SEEN:
            badges[message.id] = StatusBadge.SEEN
            break
    return badges
