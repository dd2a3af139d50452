"""Abstract base class and types for the document-store backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any, Final

ORDER_FIELD: Final = "order"


class ServerTimestamp:
    """Sentinel asking the backend to stamp the field with its own clock."""

    _instance: ServerTimestamp | None = None

    def __new__(cls) -> ServerTimestamp:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP: Final = ServerTimestamp()


@dataclass(frozen=True)
class DocumentSnapshot:
    """A single document inside a query snapshot."""

    id: str
    data: dict[str, Any]


@dataclass
class QuerySnapshot:
    """Point-in-time result set of a subscribed collection.

    ``version`` increases with every write to the collection, so a consumer
    can tell a stale snapshot from a newer one.
    """

    collection: str
    version: int
    documents: list[DocumentSnapshot] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.documents)


SnapshotCallback = Callable[[QuerySnapshot], Coroutine[Any, Any, None]]
Precondition = Callable[[dict[str, Any]], bool]


class DocumentStore(ABC):
    """Backend collaborator holding users, messages and typing flags.

    Implement this ABC to plug in a hosted document database. Collections
    are addressed by slash-separated paths such as ``users`` or
    ``chats/{key}/messages``. The library ships with
    ``InMemoryDocumentStore`` for development and testing.
    """

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        *,
        merge: bool = True,
    ) -> None:
        """Create or overwrite a document.

        With ``merge=True`` only the given fields are written and the rest
        of an existing document is kept.
        """
        ...

    @abstractmethod
    async def append(self, collection: str, data: dict[str, Any]) -> str:
        """Append a new document to an ordered collection.

        The backend assigns a monotonic per-collection sequence number under
        ``ORDER_FIELD``.

        Returns:
            The generated document ID.
        """
        ...

    @abstractmethod
    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        *,
        only_if: Precondition | None = None,
    ) -> bool:
        """Partially update an existing document.

        If *only_if* is given it is evaluated atomically against the current
        document and the update is skipped when it returns ``False``.

        Returns:
            True if the update was applied.

        Raises:
            DocumentNotFoundError: If the document does not exist.
        """
        ...

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Fetch a single document, or ``None`` if it doesn't exist."""
        ...

    @abstractmethod
    async def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        *,
        order_by: str | None = None,
    ) -> str:
        """Subscribe to live snapshots of a collection.

        The callback receives the current result set immediately and again
        after every change. Documents are ordered by *order_by* (missing or
        pending values last) and then by ``ORDER_FIELD``.

        Returns:
            A subscription ID that can be used to unsubscribe.
        """
        ...

    @abstractmethod
    async def unsubscribe(self, subscription_id: str) -> bool:
        """Cancel a subscription.

        Returns:
            True if the subscription existed and was removed.
        """
        ...

    async def close(self) -> None:
        """Clean up resources.

        Override this method in subclasses that need cleanup.
        The default implementation does nothing.
        """
        return None
