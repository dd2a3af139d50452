"""Canonical keys for two-party conversations."""

from __future__ import annotations

DEFAULT_SEPARATOR = "_"


def conversation_key(user_a: str, user_b: str, separator: str = DEFAULT_SEPARATOR) -> str:
    """Return the order-independent key for the conversation between two users.

    ``conversation_key(a, b) == conversation_key(b, a)`` for every pair.
    Identifiers containing *separator* are rejected.
    """
    if not user_a or not user_b:
        raise ValueError("conversation participants must be non-empty identifiers")
    for user_id in (user_a, user_b):
        if separator in user_id:
            raise ValueError(f"identifier {user_id!r} contains the key separator {separator!r}")
    first, second = sorted((user_a, user_b))
    return f"{first}{separator}{second}"


def peer_of(key: str, me: str, separator: str = DEFAULT_SEPARATOR) -> str:
    """Return the other participant of *key*, as seen by *me*."""
    head = f"{me}{separator}"
    tail = f"{separator}{me}"
    if key.startswith(head) and key[len(head) :]:
        return key[len(head) :]
    if key.endswith(tail) and key[: -len(tail)]:
        return key[: -len(tail)]
    raise ValueError(f"{me!r} is not a participant of conversation {key!r}")
