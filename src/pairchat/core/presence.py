"""Online/offline presence tracking."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pairchat.models.enums import PresenceStatus
from pairchat.store.base import SERVER_TIMESTAMP, DocumentStore
from pairchat.store.paths import CollectionPaths
from pairchat.telemetry.base import Attr, Metric, SpanKind, TelemetryProvider
from pairchat.telemetry.noop import NoopTelemetryProvider

logger = logging.getLogger("pairchat.presence")


class PresenceTracker:
    """Maintains the ``online`` flag and ``last_seen`` time on user records.

    Presence is a soft signal: every write is fire-and-forget. Failures are
    logged and reported as ``False`` but never raised and never retried.
    """

    def __init__(
        self,
        store: DocumentStore,
        paths: CollectionPaths | None = None,
        telemetry: TelemetryProvider | None = None,
    ) -> None:
        self._store = store
        self._paths = paths or CollectionPaths()
        self._telemetry = telemetry or NoopTelemetryProvider()
        self._background: set[asyncio.Task[bool]] = set()

    async def mark_online(self, user_id: str) -> bool:
        """Set ``online=True`` and clear ``last_seen``. Idempotent."""
        return await self._write(
            user_id, PresenceStatus.ONLINE, {"online": True, "last_seen": None}
        )

    async def mark_offline(self, user_id: str) -> bool:
        """Set ``online=False`` and stamp ``last_seen`` with the server clock."""
        return await self._write(
            user_id, PresenceStatus.OFFLINE, {"online": False, "last_seen": SERVER_TIMESTAMP}
        )

    def mark_offline_best_effort(self, user_id: str) -> asyncio.Task[bool] | None:
        """Schedule ``mark_offline`` without waiting for it (page-unload path).

        Advisory only: the process may exit before the write is delivered.
        Returns the scheduled task, or ``None`` when no event loop is running.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running loop, skipping best-effort offline for %s", user_id)
            return None
        task = loop.create_task(
            self._write(
                user_id,
                PresenceStatus.OFFLINE,
                {"online": False, "last_seen": SERVER_TIMESTAMP},
                best_effort=True,
            )
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    @property
    def pending_writes(self) -> int:
        """Number of best-effort writes still in flight."""
        return len(self._background)

    async def _write(
        self,
        user_id: str,
        status: PresenceStatus,
        fields: dict[str, Any],
        *,
        best_effort: bool = False,
    ) -> bool:
        span_id = self._telemetry.start_span(
            SpanKind.PRESENCE_WRITE,
            f"presence.{status}",
            user_id=user_id,
            attributes={Attr.PRESENCE_STATUS: str(status), Attr.PRESENCE_BEST_EFFORT: best_effort},
        )
        try:
            await self._store.upsert(self._paths.users, user_id, fields, merge=True)
        except Exception as exc:
            logger.exception(
                "Presence write failed for %s",
                user_id,
                extra={"user_id": user_id, "status": str(status), "best_effort": best_effort},
            )
            self._telemetry.end_span(span_id, status="error", error_message=str(exc))
            self._telemetry.record_metric(
                Metric.SOFT_WRITE_FAILURE, 1, attributes={"kind": "presence"}
            )
            return False
        self._telemetry.end_span(span_id)
        logger.debug("Marked %s %s", user_id, status)
        return True
