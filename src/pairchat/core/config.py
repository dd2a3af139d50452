"""Client configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from pairchat.store.paths import CollectionPaths


class ChatConfig(BaseModel):
    """Configuration for :class:`~pairchat.core.client.PairChat`."""

    typing_timeout_seconds: float = Field(default=2.0, gt=0)
    key_separator: str = "_"
    users_collection: str = "users"
    chats_collection: str = "chats"
    default_avatar_url: str | None = None

    @field_validator("key_separator", "users_collection", "chats_collection")
    @classmethod
    def _not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("users_collection", "chats_collection")
    @classmethod
    def _no_slash(cls, v: str) -> str:
        if "/" in v:
            raise ValueError(f"collection name must not contain '/', got {v!r}")
        return v

    @property
    def paths(self) -> CollectionPaths:
        return CollectionPaths(users=self.users_collection, chats=self.chats_collection)
