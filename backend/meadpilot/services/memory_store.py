from __future__ import annotations

import copy
import json
import logging
from uuid import uuid4

from meadpilot.core.timestamps import utcnow
from meadpilot.services.document_store import (
    SERVER_TIMESTAMP,
    Document,
    DocumentNotFoundError,
    ErrorHandler,
    Snapshot,
    SnapshotHandler,
    Unsubscribe,
)

logger = logging.getLogger("meadpilot.store")


def resolve_server_timestamps(record: Document) -> Document:
    now = utcnow()
    return {key: now if value is SERVER_TIMESTAMP else copy.deepcopy(value) for key, value in record.items()}


class InMemoryDocumentStore:
    """Document store kept in process memory.

    Every write pushes a full snapshot of the touched collection to its
    subscribers before the write coroutine returns.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = {}
        self._subscribers: dict[str, list[tuple[SnapshotHandler, ErrorHandler]]] = {}

    async def create_document(self, path: str, record: Document) -> str:
        doc_id = uuid4().hex[:20]
        self._collections.setdefault(path, {})[doc_id] = resolve_server_timestamps(record)
        logger.debug(json.dumps({"event": "document_created", "path": path, "doc_id": doc_id}))
        self._publish(path)
        return doc_id

    async def update_document(self, path: str, doc_id: str, partial: Document) -> None:
        documents = self._collections.get(path, {})
        if doc_id not in documents:
            raise DocumentNotFoundError(f"{path}/{doc_id}")
        documents[doc_id].update(resolve_server_timestamps(partial))
        logger.debug(
            json.dumps({"event": "document_updated", "path": path, "doc_id": doc_id, "fields": sorted(partial)})
        )
        self._publish(path)

    async def delete_document(self, path: str, doc_id: str) -> None:
        self._collections.get(path, {}).pop(doc_id, None)
        logger.debug(json.dumps({"event": "document_deleted", "path": path, "doc_id": doc_id}))
        self._publish(path)

    def subscribe_collection(
        self,
        path: str,
        on_snapshot: SnapshotHandler,
        on_error: ErrorHandler,
    ) -> Unsubscribe:
        entry = (on_snapshot, on_error)
        self._subscribers.setdefault(path, []).append(entry)
        on_snapshot(self.snapshot(path))

        def unsubscribe() -> None:
            subscribers = self._subscribers.get(path, [])
            if entry in subscribers:
                subscribers.remove(entry)

        return unsubscribe

    def snapshot(self, path: str) -> dict[str, Document]:
        return copy.deepcopy(self._collections.get(path, {}))

    def subscriber_count(self, path: str) -> int:
        return len(self._subscribers.get(path, []))

    def push_snapshot(self, path: str, snapshot: Snapshot) -> None:
        """Deliver an arbitrary snapshot, e.g. one that was delayed in transit."""
        for on_snapshot, _ in list(self._subscribers.get(path, [])):
            on_snapshot(copy.deepcopy(dict(snapshot)))

    def push_error(self, path: str, error: Exception) -> None:
        for _, on_error in list(self._subscribers.get(path, [])):
            on_error(error)

    def _publish(self, path: str) -> None:
        self.push_snapshot(path, self._collections.get(path, {}))
