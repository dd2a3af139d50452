"""Lenient timestamp coercion shared by record models."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger("pairchat.models")


def coerce_timestamp(value: Any) -> datetime | None:
    """Best-effort conversion of a stored timestamp to an aware ``datetime``.

    Pending server timestamps and anything unparseable become ``None``
    ("timestamp unknown") instead of failing validation.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        try:
            return datetime.fromtimestamp(value, UTC)
        except (OverflowError, OSError, ValueError):
            logger.warning("Dropping out-of-range timestamp %r", value)
            return None
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            logger.warning("Dropping malformed timestamp %r", value)
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    to_datetime = getattr(value, "to_datetime", None)
    if callable(to_datetime):
        return coerce_timestamp(to_datetime())
    logger.warning("Dropping timestamp of unsupported type %s", type(value).__name__)
    return None
