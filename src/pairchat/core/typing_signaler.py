"""Typing indicators with debounce-based auto-clear."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from pairchat.store.base import DocumentStore
from pairchat.store.paths import CollectionPaths
from pairchat.telemetry.base import Attr, Metric, SpanKind, TelemetryProvider
from pairchat.telemetry.noop import NoopTelemetryProvider

logger = logging.getLogger("pairchat.typing")

DEFAULT_TYPING_TIMEOUT = 2.0


async def set_typing(
    store: DocumentStore,
    paths: CollectionPaths,
    conversation_key: str,
    user_id: str,
    is_typing: bool,
) -> None:
    """Overwrite the typing flag of *user_id* in a conversation."""
    await store.upsert(
        paths.typing_status(conversation_key), user_id, {"typing": is_typing}, merge=False
    )


class TypingSignaler:
    """Owns one user's typing flag in one conversation.

    ``keystroke()`` sets the flag (once per typing burst) and re-arms a
    single auto-clear timer; the timer writes ``False`` after ``timeout``
    seconds without keystrokes. ``clear()`` is for sends, ``close()`` for
    leaving the conversation.
    """

    def __init__(
        self,
        store: DocumentStore,
        conversation_key: str,
        user_id: str,
        *,
        paths: CollectionPaths | None = None,
        timeout: float = DEFAULT_TYPING_TIMEOUT,
        telemetry: TelemetryProvider | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self._store = store
        self._paths = paths or CollectionPaths()
        self._key = conversation_key
        self._user_id = user_id
        self._timeout = timeout
        self._telemetry = telemetry or NoopTelemetryProvider()
        self._timer: asyncio.Task[None] | None = None
        self._flag_set = False
        self._closed = False

    @property
    def is_typing(self) -> bool:
        """Whether this client believes its flag is currently set."""
        return self._flag_set

    @property
    def timer_pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    async def keystroke(self) -> None:
        """Record a keystroke: set the flag if needed and re-arm the timer."""
        if self._closed:
            return
        self._arm_timer()
        if not self._flag_set:
            self._flag_set = True
            await self._write(True)

    async def clear(self) -> None:
        """Cancel the pending timer and write ``False`` immediately."""
        self._cancel_timer()
        self._flag_set = False
        if not self._closed:
            await self._write(False)

    async def close(self) -> None:
        """Cancel the pending timer without writing. Idempotent."""
        self._closed = True
        timer = self._cancel_timer()
        if timer is not None and timer is not asyncio.current_task():
            with contextlib.suppress(asyncio.CancelledError):
                await timer

    def _arm_timer(self) -> None:
        self._cancel_timer()
        self._timer = asyncio.create_task(self._auto_clear())

    def _cancel_timer(self) -> asyncio.Task[None] | None:
        timer, self._timer = self._timer, None
        if timer is not None and not timer.done():
            timer.cancel()
        return timer

    async def _auto_clear(self) -> None:
        await asyncio.sleep(self._timeout)
        self._timer = None
        if self._closed:
            return
        self._flag_set = False
        logger.debug("Typing timeout for %s in %s", self._user_id, self._key)
        await self._write(False)

    async def _write(self, is_typing: bool) -> None:
        span_id = self._telemetry.start_span(
            SpanKind.TYPING_WRITE,
            "typing.start" if is_typing else "typing.stop",
            conversation_key=self._key,
            user_id=self._user_id,
        )
        try:
            await set_typing(self._store, self._paths, self._key, self._user_id, is_typing)
        except Exception as exc:
            logger.exception(
                "Typing write failed",
                extra={
                    Attr.CONVERSATION_KEY: self._key,
                    Attr.USER_ID: self._user_id,
                    "typing": is_typing,
                },
            )
            self._telemetry.end_span(span_id, status="error", error_message=str(exc))
            self._telemetry.record_metric(
                Metric.SOFT_WRITE_FAILURE, 1, attributes={"kind": "typing"}
            )
            return
        self._telemetry.end_span(span_id)
