"""In-memory implementation of DocumentStore."""

from __future__ import annotations

import asyncio
import contextlib
import copy
import logging
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pairchat.core.errors import DocumentNotFoundError
from pairchat.store.base import (
    ORDER_FIELD,
    DocumentSnapshot,
    DocumentStore,
    Precondition,
    QuerySnapshot,
    ServerTimestamp,
    SnapshotCallback,
)

logger = logging.getLogger("pairchat.store")


class InMemoryDocumentStore(DocumentStore):
    """Dict-based document store with push snapshots, for development and testing.

    Server timestamps are stamped at write time. With
    ``defer_server_timestamps=True`` they stay pending (``None``) until
    :meth:`resolve_pending_timestamps` is called, which mimics a hosted
    backend confirming a write after the local echo.
    """

    def __init__(self, *, defer_server_timestamps: bool = False) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._sequences: dict[str, int] = {}
        self._versions: dict[str, int] = {}
        self._subscriptions: dict[str, _Subscription] = {}
        self._watchers: dict[str, set[str]] = {}  # collection -> subscription_ids
        self._pending: list[tuple[str, str, str]] = []
        self._defer_server_timestamps = defer_server_timestamps
        self._write_count = 0
        self._closed = False

    # Writes

    async def upsert(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        *,
        merge: bool = True,
    ) -> None:
        docs = self._collections.setdefault(collection, {})
        if not merge:
            self._pending = [p for p in self._pending if p[:2] != (collection, doc_id)]
        resolved = self._stamp(collection, doc_id, data)
        existing = docs.get(doc_id)
        if merge and existing is not None:
            existing.update(resolved)
        else:
            docs[doc_id] = resolved
        self._written(collection)

    async def append(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid4().hex
        seq = self._sequences.get(collection, 0)
        self._sequences[collection] = seq + 1
        resolved = self._stamp(collection, doc_id, data)
        resolved[ORDER_FIELD] = seq
        self._collections.setdefault(collection, {})[doc_id] = resolved
        self._written(collection)
        return doc_id

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        *,
        only_if: Precondition | None = None,
    ) -> bool:
        doc = self._collections.get(collection, {}).get(doc_id)
        if doc is None:
            raise DocumentNotFoundError(f"{collection}/{doc_id}")
        if only_if is not None and not only_if(copy.deepcopy(doc)):
            return False
        doc.update(self._stamp(collection, doc_id, fields))
        self._written(collection)
        return True

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        doc = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def resolve_pending_timestamps(self) -> int:
        """Stamp every pending server timestamp. Returns how many were resolved."""
        pending, self._pending = self._pending, []
        now = datetime.now(UTC)
        touched: set[str] = set()
        for collection, doc_id, key in pending:
            doc = self._collections.get(collection, {}).get(doc_id)
            if doc is not None and doc.get(key) is None:
                doc[key] = now
                touched.add(collection)
        for collection in touched:
            self._written(collection)
        return len(pending)

    # Subscriptions

    async def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        *,
        order_by: str | None = None,
    ) -> str:
        sub_id = uuid4().hex
        sub = _Subscription(sub_id=sub_id, collection=collection, callback=callback)
        sub.order_by = order_by
        self._subscriptions[sub_id] = sub
        self._watchers.setdefault(collection, set()).add(sub_id)
        sub.start()
        sub.offer(self._snapshot(collection, order_by))
        return sub_id

    async def unsubscribe(self, subscription_id: str) -> bool:
        sub = self._subscriptions.pop(subscription_id, None)
        if sub is None:
            return False

        watchers = self._watchers.get(sub.collection)
        if watchers:
            watchers.discard(subscription_id)
            if not watchers:
                del self._watchers[sub.collection]

        await sub.stop()
        return True

    async def close(self) -> None:
        """Stop all subscriptions and clean up."""
        self._closed = True
        for sub in list(self._subscriptions.values()):
            await sub.stop()
        self._subscriptions.clear()
        self._watchers.clear()

    @property
    def subscription_count(self) -> int:
        """Return the number of active subscriptions."""
        return len(self._subscriptions)

    @property
    def write_count(self) -> int:
        """Return the number of writes applied since creation."""
        return self._write_count

    def documents(self, collection: str) -> dict[str, dict[str, Any]]:
        """Return a copy of every document in *collection*, keyed by ID."""
        return copy.deepcopy(self._collections.get(collection, {}))

    # Internals

    def _stamp(self, collection: str, doc_id: str, data: dict[str, Any]) -> dict[str, Any]:
        resolved: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, ServerTimestamp):
                if self._defer_server_timestamps:
                    resolved[key] = None
                    self._pending.append((collection, doc_id, key))
                else:
                    resolved[key] = datetime.now(UTC)
            else:
                # An explicit value supersedes a stamp still pending for the field.
                self._cancel_pending(collection, doc_id, key)
                resolved[key] = copy.deepcopy(value)
        return resolved

    def _cancel_pending(self, collection: str, doc_id: str, key: str) -> None:
        if self._pending:
            self._pending = [p for p in self._pending if p != (collection, doc_id, key)]

    def _written(self, collection: str) -> None:
        self._write_count += 1
        self._versions[collection] = self._versions.get(collection, 0) + 1
        if self._closed:
            return
        for sub_id in self._watchers.get(collection, set()):
            sub = self._subscriptions.get(sub_id)
            if sub is not None:
                sub.offer(self._snapshot(collection, sub.order_by))

    def _snapshot(self, collection: str, order_by: str | None) -> QuerySnapshot:
        docs = self._collections.get(collection, {})
        items = list(docs.items())
        if order_by is not None:
            items.sort(key=lambda item: _sort_key(item[1], order_by))
        return QuerySnapshot(
            collection=collection,
            version=self._versions.get(collection, 0),
            documents=[
                DocumentSnapshot(id=doc_id, data=copy.deepcopy(data)) for doc_id, data in items
            ],
        )


def _sort_key(data: dict[str, Any], order_by: str) -> tuple[bool, float, int]:
    value = data.get(order_by)
    if isinstance(value, datetime):
        primary = value.timestamp()
    elif isinstance(value, int | float) and not isinstance(value, bool):
        primary = float(value)
    else:
        # Pending or unknown values sort last.
        return (True, 0.0, data.get(ORDER_FIELD, 0))
    return (False, primary, data.get(ORDER_FIELD, 0))


class _Subscription:
    """Internal subscription holding only the latest undelivered snapshot."""

    def __init__(self, sub_id: str, collection: str, callback: SnapshotCallback) -> None:
        self.sub_id = sub_id
        self.collection = collection
        self.callback = callback
        self.order_by: str | None = None
        self._latest: QuerySnapshot | None = None
        self._event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._stopped = False

    def offer(self, snapshot: QuerySnapshot) -> None:
        """Replace any undelivered snapshot with *snapshot*."""
        if self._stopped:
            return
        self._latest = snapshot
        self._event.set()

    def start(self) -> None:
        """Start the background task that delivers snapshots."""
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background task."""
        self._stopped = True
        self._event.set()
        if self._task is not None:
            if self._task is asyncio.current_task():
                # Unsubscribed from inside its own callback.
                self._task = None
                return
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _run(self) -> None:
        while not self._stopped:
            await self._event.wait()
            self._event.clear()

            snapshot, self._latest = self._latest, None
            if snapshot is None or self._stopped:
                continue
            try:
                await self.callback(snapshot)
            except Exception:
                logger.exception(
                    "Error in snapshot callback for subscription %s",
                    self.sub_id,
                    extra={"collection": self.collection},
                )
