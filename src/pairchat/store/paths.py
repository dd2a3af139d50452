"""Collection path helpers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CollectionPaths:
    """Builds the collection paths the chat layer reads and writes."""

    users: str = "users"
    chats: str = "chats"

    def messages(self, conversation_key: str) -> str:
        return f"{self.chats}/{conversation_key}/messages"

    def typing_status(self, conversation_key: str) -> str:
        return f"{self.chats}/{conversation_key}/typingStatus"
