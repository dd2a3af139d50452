"""Exception hierarchy for pairchat."""

from __future__ import annotations

__all__ = [
    "DocumentNotFoundError",
    "NotSignedInError",
    "PairChatError",
    "SendError",
    "SignInError",
    "StoreError",
]


class PairChatError(Exception):
    """Base exception for all pairchat errors."""


class NotSignedInError(PairChatError):
    """Operation requires a signed-in user."""


class SignInError(PairChatError):
    """The identity provider did not return a usable user."""


class SendError(PairChatError):
    """A message could not be appended to the conversation."""


class StoreError(PairChatError):
    """A document-store operation failed."""


class DocumentNotFoundError(StoreError):
    """Document does not exist."""
