"""Tests for avatar fallbacks and time formatting."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from pairchat.core.avatars import AvatarFallbacks, initials
from pairchat.core.formatting import format_time


class TestInitials:
    def test_two_words(self) -> None:
        assert initials("alice liddell") == "AL"

    def test_truncates(self) -> None:
        assert initials("Mary Jane Watson") == "MJ"
        assert initials("Mary Jane Watson", max_letters=3) == "MJW"

    def test_blank_name(self) -> None:
        assert initials("   ") == "?"


class TestAvatarFallbacks:
    def test_uses_url_until_broken(self) -> None:
        avatars = AvatarFallbacks()
        assert avatars.resolve("bob", "https://x/b.png", "Bob Stone") == "https://x/b.png"
        avatars.mark_broken("bob")
        assert avatars.is_broken("bob")
        assert avatars.resolve("bob", "https://x/b.png", "Bob Stone") == "BS"

    def test_fallback_is_sticky(self) -> None:
        avatars = AvatarFallbacks("https://x/default.png")
        avatars.mark_broken("bob")
        # Even a new URL for the same key is not retried.
        assert avatars.resolve("bob", "https://x/new.png", "Bob") == "https://x/default.png"

    def test_missing_url(self) -> None:
        avatars = AvatarFallbacks()
        assert avatars.resolve("eve", None, "Eve") == "E"
        assert not avatars.is_broken("eve")


class TestFormatTime:
    def test_none_is_empty(self) -> None:
        assert format_time(None) == ""

    def test_formats_in_requested_zone(self) -> None:
        ts = datetime(2024, 5, 1, 12, 30, tzinfo=UTC)
        plus_two = timezone(timedelta(hours=2))
        assert format_time(ts, tz=plus_two) == "2024-05-01 14:30:00"
        assert format_time(ts, fmt="%H:%M", tz=UTC) == "12:30"
