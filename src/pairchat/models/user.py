"""User record model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from pairchat.models._timestamps import coerce_timestamp
from pairchat.models.enums import PresenceStatus

USER_SCHEMA_VERSION = 1


class UserRecord(BaseModel):
    """A user as stored in the ``users`` collection.

    Every field except ``id`` has a default so records written before a
    field existed (``online``, ``last_seen``, ``photo_url``) still parse.
    """

    id: str
    display_name: str = ""
    photo_url: str | None = None
    email: str | None = None
    online: bool = False
    last_seen: datetime | None = None
    last_login: datetime | None = None
    schema_version: int = Field(default=USER_SCHEMA_VERSION, ge=1)

    @field_validator("last_seen", "last_login", mode="before")
    @classmethod
    def _lenient_timestamp(cls, v: Any) -> datetime | None:
        return coerce_timestamp(v)

    @property
    def presence(self) -> PresenceStatus:
        return PresenceStatus.ONLINE if self.online else PresenceStatus.OFFLINE

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> UserRecord:
        return cls.model_validate({**data, "id": doc_id})

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(exclude={"id"})
