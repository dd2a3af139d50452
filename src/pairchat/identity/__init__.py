"""Identity provider integrations."""

from pairchat.identity.base import IdentityProvider
from pairchat.identity.mock import MockIdentityProvider

__all__ = ["IdentityProvider", "MockIdentityProvider"]
