"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from pairchat.models.enums import MessageStatus
from pairchat.models.identity import AuthUser
from pairchat.models.message import Message
from pairchat.store.memory import InMemoryDocumentStore

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def advance() -> Callable[[int], Coroutine[Any, Any, None]]:
    """Yield control to let pending tasks run without real delay.

        await advance()       # 10 yields (default)
        await advance(50)     # more yields for longer snapshot chains
    """

    async def _advance(n: int = 10) -> None:
        for _ in range(n):
            await asyncio.sleep(0)

    return _advance


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def alice() -> AuthUser:
    return AuthUser(
        uid="alice",
        display_name="Alice Liddell",
        email="alice@example.com",
        photo_url="https://example.com/alice.png",
    )


@pytest.fixture
def bob() -> AuthUser:
    return AuthUser(uid="bob", display_name="Bob Stone", email="bob@example.com")


async def until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Poll *predicate* until it holds, failing the test after *timeout* seconds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.001)


def make_message(
    id: str = "m1",
    sender_id: str = "alice",
    status: MessageStatus = MessageStatus.SENT,
    order: int = 0,
    text: str = "hello",
    minutes: int | None = 0,
    **kwargs: Any,
) -> Message:
    """Build a message; ``minutes=None`` leaves the server timestamp pending."""
    return Message(
        id=id,
        order=order,
        sender_id=sender_id,
        sender_name=sender_id.title(),
        text=text,
        status=status,
        timestamp=None if minutes is None else BASE_TIME + timedelta(minutes=minutes),
        **kwargs,
    )
