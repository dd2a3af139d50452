"""Mock identity provider for testing."""

from __future__ import annotations

from pairchat.core.errors import SignInError
from pairchat.identity.base import IdentityProvider
from pairchat.models.identity import AuthUser


class MockIdentityProvider(IdentityProvider):
    """Signs in as a pre-configured user.

    Passing ``user=None`` simulates a cancelled sign-in popup.
    """

    def __init__(self, user: AuthUser | None = None) -> None:
        self._user = user
        self._current: AuthUser | None = None
        self.sign_in_calls = 0
        self.sign_out_calls = 0

    def set_user(self, user: AuthUser | None) -> None:
        """Change the account returned by the next sign-in (e.g. a new avatar)."""
        self._user = user

    async def sign_in(self) -> AuthUser:
        self.sign_in_calls += 1
        if self._user is None:
            raise SignInError("Sign-in cancelled")
        self._current = self._user
        return self._current

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        self._current = None

    @property
    def current_user(self) -> AuthUser | None:
        return self._current
