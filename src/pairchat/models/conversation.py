"""Derived conversation aggregates."""

from __future__ import annotations

from pydantic import BaseModel

from pairchat.models.message import Message
from pairchat.models.user import UserRecord


class ConversationSummary(BaseModel):
    """One row of the user list: a peer plus derived conversation state."""

    peer: UserRecord
    conversation_key: str
    unread_count: int = 0
    last_message: Message | None = None
