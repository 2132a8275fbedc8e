"""Contract between the mead core and the remote document store.

The store owns document ids and pushes full-collection snapshots to
subscribers after every change. Nothing in the core talks to a concrete
store directly; a store is injected into SyncCoordinator per session.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol

Document = dict[str, Any]
Snapshot = Mapping[str, Document]
SnapshotHandler = Callable[[Snapshot], None]
ErrorHandler = Callable[[Exception], None]
Unsubscribe = Callable[[], None]

FAVORITES_COLLECTION = "favorites"
BATCHES_COLLECTION = "batches"


class _ServerTimestamp:
    """Placeholder replaced by the store's own clock when a document is written."""

    _instance: _ServerTimestamp | None = None

    def __new__(cls) -> _ServerTimestamp:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def collection_path(app_id: str, user_id: str, collection: str) -> str:
    return f"artifacts/{app_id}/users/{user_id}/{collection}"


class DocumentStore(Protocol):
    async def create_document(self, path: str, record: Document) -> str: ...

    async def update_document(self, path: str, doc_id: str, partial: Document) -> None: ...

    async def delete_document(self, path: str, doc_id: str) -> None: ...

    def subscribe_collection(
        self,
        path: str,
        on_snapshot: SnapshotHandler,
        on_error: ErrorHandler,
    ) -> Unsubscribe: ...


class DocumentNotFoundError(KeyError):
    """Raised by a store when an update or delete targets a missing document."""
