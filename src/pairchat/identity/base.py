"""Abstract base class for the identity provider."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pairchat.models.identity import AuthUser


class IdentityProvider(ABC):
    """Interactive sign-in against an external identity provider."""

    @abstractmethod
    async def sign_in(self) -> AuthUser:
        """Run the sign-in flow.

        Returns:
            The signed-in user with a stable ``uid``.

        Raises:
            SignInError: If the flow was cancelled or failed.
        """
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        """Invalidate the current session."""
        ...

    @property
    @abstractmethod
    def current_user(self) -> AuthUser | None:
        """The signed-in user, or ``None`` if signed out."""
        ...
