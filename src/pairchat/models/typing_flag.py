"""Typing flag model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class TypingFlag(BaseModel):
    """Ephemeral per-(conversation, user) typing flag, overwritten in place."""

    user_id: str
    typing: bool = False

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> TypingFlag:
        return cls(user_id=doc_id, typing=bool(data.get("typing", False)))
