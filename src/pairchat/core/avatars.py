"""Avatar fallback tracking."""

from __future__ import annotations

import logging

logger = logging.getLogger("pairchat.avatars")


def initials(display_name: str, *, max_letters: int = 2) -> str:
    """Return up to *max_letters* uppercase initials, or ``"?"``."""
    letters = [part[0] for part in display_name.split() if part]
    if not letters:
        return "?"
    return "".join(letters[:max_letters]).upper()


class AvatarFallbacks:
    """Remembers which avatar URLs failed to load.

    Keys are caller-chosen (a user ID, or a message ID for the sender photo
    captured at send time). Once a key is marked broken its URL is never
    offered again; the fallback is sticky for the lifetime of the tracker.
    """

    def __init__(self, default_url: str | None = None) -> None:
        self._default_url = default_url
        self._broken: set[str] = set()

    def mark_broken(self, key: str) -> None:
        if key not in self._broken:
            logger.debug("Avatar for %s failed to load, using fallback", key)
        self._broken.add(key)

    def is_broken(self, key: str) -> bool:
        return key in self._broken

    def resolve(self, key: str, url: str | None, display_name: str) -> str:
        """Return the URL to load, or the fallback (default image or initials)."""
        if url and key not in self._broken:
            return url
        return self._default_url or initials(display_name)
