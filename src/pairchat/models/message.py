"""Message model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from pairchat.models._timestamps import coerce_timestamp
from pairchat.models.enums import MessageStatus

MESSAGE_SCHEMA_VERSION = 1


class Message(BaseModel):
    """A message in a two-party conversation.

    Content fields are written once by the sender; only ``status`` is
    updated afterwards, and only by the receiving side.
    """

    id: str
    order: int = Field(default=0, ge=0)
    sender_id: str
    sender_name: str = ""
    sender_photo_url: str | None = None
    text: str
    status: MessageStatus = MessageStatus.SENT
    timestamp: datetime | None = None
    schema_version: int = Field(default=MESSAGE_SCHEMA_VERSION, ge=1)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _lenient_timestamp(cls, v: Any) -> datetime | None:
        return coerce_timestamp(v)

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, v: Any) -> Any:
        # Unknown or missing values are treated as the least advanced state.
        if not isinstance(v, str) or v not in MessageStatus._value2member_map_:
            return MessageStatus.SENT
        return v

    @property
    def timestamp_pending(self) -> bool:
        return self.timestamp is None

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> Message:
        return cls.model_validate({**data, "id": doc_id})


def sort_messages(messages: list[Message]) -> list[Message]:
    """Order messages for display.

    Resolved server timestamps first in time order; messages whose
    timestamp is still pending go last. Ties fall back to store order.
    """
    return sorted(
        messages,
        key=lambda m: (
            m.timestamp is None,
            m.timestamp.timestamp() if m.timestamp is not None else 0.0,
            m.order,
        ),
    )
