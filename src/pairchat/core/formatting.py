"""Display formatting helpers."""

from __future__ import annotations

from datetime import datetime, tzinfo

DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_time(
    timestamp: datetime | None,
    *,
    fmt: str = DEFAULT_TIME_FORMAT,
    tz: tzinfo | None = None,
) -> str:
    """Format a message timestamp in local time.

    Unknown timestamps (pending or malformed) render as an empty label.
    """
    if timestamp is None:
        return ""
    try:
        return timestamp.astimezone(tz).strftime(fmt)
    except (ValueError, OverflowError, OSError):
        return ""
