"""Identity provider models."""

from __future__ import annotations

from pydantic import BaseModel


class AuthUser(BaseModel):
    """The signed-in user as reported by the identity provider."""

    uid: str
    display_name: str = ""
    email: str | None = None
    photo_url: str | None = None
