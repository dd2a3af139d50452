"""Document-store backends."""

from pairchat.core.errors import DocumentNotFoundError, StoreError
from pairchat.store.base import (
    ORDER_FIELD,
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    DocumentStore,
    Precondition,
    QuerySnapshot,
    ServerTimestamp,
    SnapshotCallback,
)
from pairchat.store.memory import InMemoryDocumentStore
from pairchat.store.paths import CollectionPaths

__all__ = [
    "ORDER_FIELD",
    "SERVER_TIMESTAMP",
    "CollectionPaths",
    "DocumentNotFoundError",
    "DocumentSnapshot",
    "DocumentStore",
    "InMemoryDocumentStore",
    "Precondition",
    "QuerySnapshot",
    "ServerTimestamp",
    "SnapshotCallback",
    "StoreError",
]
