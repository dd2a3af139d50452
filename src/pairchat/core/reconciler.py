"""Message status reconciliation (sent -> delivered -> seen)."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from pairchat.models.enums import MessageStatus
from pairchat.models.message import Message
from pairchat.store.base import DocumentStore
from pairchat.telemetry.base import Attr, Metric, SpanKind, TelemetryProvider
from pairchat.telemetry.noop import NoopTelemetryProvider

logger = logging.getLogger("pairchat.reconciler")


def next_status(message: Message, observer_id: str, *, viewing: bool) -> MessageStatus | None:
    """Return the status *observer_id* should advance *message* to, or ``None``.

    Only the receiving party advances a message. A receiver that has the
    conversation open marks it ``seen``; a receiver whose client merely
    observed the stream (user list) marks a ``sent`` message ``delivered``.
    """
    if message.sender_id == observer_id:
        return None
    if viewing:
        return MessageStatus.SEEN if message.status != MessageStatus.SEEN else None
    if message.status == MessageStatus.SENT:
        return MessageStatus.DELIVERED
    return None


def plan_transitions(
    messages: list[Message], observer_id: str, *, viewing: bool
) -> list[tuple[Message, MessageStatus]]:
    """Compute every forward transition implied by one snapshot."""
    plan: list[tuple[Message, MessageStatus]] = []
    for message in messages:
        target = next_status(message, observer_id, viewing=viewing)
        if target is not None and target.rank > message.status.rank:
            plan.append((message, target))
    return plan


def _stored_status(doc: dict[str, Any]) -> MessageStatus:
    value = doc.get("status")
    if isinstance(value, str) and value in MessageStatus._value2member_map_:
        return MessageStatus(value)
    return MessageStatus.SENT


class StatusReconciler:
    """Applies status transitions for one observer in one conversation.

    Each snapshot replaces the previous one: submitting a new snapshot
    cancels reconciliation still running for an older one. Writes are
    conditional on the stored status being less advanced than the target,
    so ``seen`` is never overwritten by a late ``delivered``.
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        observer_id: str,
        *,
        viewing: bool,
        conversation_key: str | None = None,
        telemetry: TelemetryProvider | None = None,
    ) -> None:
        self._store = store
        self._collection = collection
        self._observer_id = observer_id
        self._viewing = viewing
        self._key = conversation_key
        self._telemetry = telemetry or NoopTelemetryProvider()
        self._applied: dict[str, MessageStatus] = {}
        self._task: asyncio.Task[int] | None = None
        self._closed = False

    @property
    def viewing(self) -> bool:
        return self._viewing

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def submit(self, messages: list[Message]) -> asyncio.Task[int] | None:
        """Reconcile the latest snapshot in the background, superseding older work."""
        if self._closed:
            return None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = asyncio.create_task(self.reconcile(messages))
        return self._task

    async def wait(self) -> None:
        """Wait for the current reconciliation pass, if any."""
        task = self._task
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def reconcile(self, messages: list[Message]) -> int:
        """Apply the transitions implied by *messages*. Returns writes applied."""
        plan = [
            (message, target)
            for message, target in plan_transitions(
                messages, self._observer_id, viewing=self._viewing
            )
            if target.rank > self._applied.get(message.id, MessageStatus.SENT).rank
        ]
        if not plan:
            return 0

        applied = 0
        with self._telemetry.span(
            SpanKind.STATUS_RECONCILE,
            "status.reconcile",
            conversation_key=self._key,
            user_id=self._observer_id,
            attributes={
                Attr.RECONCILE_SNAPSHOT_SIZE: len(messages),
                Attr.RECONCILE_VIEWING: self._viewing,
            },
        ) as span_id:
            for message, target in plan:
                if await self._advance(message, target):
                    applied += 1
            self._telemetry.set_attribute(span_id, Attr.RECONCILE_WRITES, applied)
        return applied

    async def close(self) -> None:
        """Cancel in-flight reconciliation. Idempotent."""
        self._closed = True
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _advance(self, message: Message, target: MessageStatus) -> bool:
        try:
            changed = await self._store.update(
                self._collection,
                message.id,
                {"status": target.value},
                only_if=lambda doc: _stored_status(doc).rank < target.rank,
            )
        except Exception:
            logger.exception(
                "Status update to %s failed for message %s",
                target,
                message.id,
                extra={"conversation_key": self._key, "observer_id": self._observer_id},
            )
            self._telemetry.record_metric(
                Metric.SOFT_WRITE_FAILURE, 1, attributes={"kind": "status"}
            )
            return False

        # Either we advanced it or someone already advanced it at least as far.
        self._applied[message.id] = target
        if changed:
            logger.debug("Message %s: %s -> %s", message.id, message.status, target)
            self._telemetry.record_metric(
                Metric.STATUS_TRANSITION,
                1,
                attributes={Attr.STATUS_FROM: str(message.status), Attr.STATUS_TO: str(target)},
            )
        return changed
