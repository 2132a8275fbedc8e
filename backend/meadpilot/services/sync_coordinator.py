"""Optimistic local mirror of a user's favourites and batches.

Invariants:
    - update() patches the mirror before it yields; the remote write runs later
    - a failed update is logged and recorded, never rolled back locally
    - every snapshot replaces the mirror for its collection wholesale, so the
      latest snapshot wins even over an optimistic patch still in flight
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from types import MappingProxyType

from meadpilot.core.config import settings
from meadpilot.core.errors import RemoteWriteError
from meadpilot.core.timestamps import utcnow
from meadpilot.services.document_store import (
    BATCHES_COLLECTION,
    FAVORITES_COLLECTION,
    Document,
    DocumentStore,
    Snapshot,
    Unsubscribe,
    collection_path,
)
from meadpilot.services.observability import observability_tracker

logger = logging.getLogger("meadpilot.sync")

SYNCED_COLLECTIONS = (FAVORITES_COLLECTION, BATCHES_COLLECTION)


@dataclass
class FailedWrite:
    collection: str
    doc_id: str
    partial: Document
    error: Exception
    failed_at: datetime = field(default_factory=utcnow)


class SyncCoordinator:
    def __init__(self, store: DocumentStore, *, user_id: str, app_id: str | None = None) -> None:
        self._store = store
        self.user_id = user_id
        self.app_id = app_id or settings.app_id

        self._mirrors: dict[str, dict[str, Document]] = {name: {} for name in SYNCED_COLLECTIONS}
        self._unsubscribes: dict[str, Unsubscribe] = {}
        self._pending: set[asyncio.Task[None]] = set()
        self.failed_writes: list[FailedWrite] = []

        self._focused_batch_id: str | None = None
        self._on_focus_vanished: Callable[[], None] | None = None

    def path(self, collection: str) -> str:
        return collection_path(self.app_id, self.user_id, collection)

    @property
    def is_open(self) -> bool:
        return bool(self._unsubscribes)

    def open(self) -> None:
        for collection in SYNCED_COLLECTIONS:
            if collection in self._unsubscribes:
                continue
            self._unsubscribes[collection] = self._store.subscribe_collection(
                self.path(collection),
                partial(self._apply_snapshot, collection),
                partial(self._report_subscription_error, collection),
            )
        logger.info(json.dumps({"event": "sync_opened", "user_id": self.user_id}))

    def close(self) -> None:
        for unsubscribe in self._unsubscribes.values():
            unsubscribe()
        self._unsubscribes.clear()
        self.release_focus()
        logger.info(json.dumps({"event": "sync_closed", "user_id": self.user_id, "pending_writes": len(self._pending)}))

    def documents(self, collection: str) -> Mapping[str, Document]:
        return MappingProxyType(self._mirrors[collection])

    def get(self, collection: str, doc_id: str) -> Document | None:
        """Return a detached copy; changes reach the mirror only through update()."""
        document = self._mirrors[collection].get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def create(self, collection: str, record: Document) -> str:
        path = self.path(collection)
        try:
            doc_id = await self._store.create_document(path, record)
        except Exception as exc:
            logger.exception(json.dumps({"event": "remote_write_failed", "operation": "create", "path": path}))
            observability_tracker.record_sync_event("remote_write_failed", collection=collection)
            raise RemoteWriteError(f"Could not create document in {collection}", operation="create", path=path) from exc

        logger.info(json.dumps({"event": "document_created", "path": path, "doc_id": doc_id}))
        return doc_id

    def update(self, collection: str, doc_id: str, partial_record: Document) -> asyncio.Task[None]:
        """Patch the mirror now and commit the patch to the store in the background."""
        document = self._mirrors[collection].get(doc_id)
        if document is not None:
            document.update(copy.deepcopy(partial_record))

        task = asyncio.get_running_loop().create_task(self._commit_update(collection, doc_id, partial_record))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def delete(self, collection: str, doc_id: str) -> None:
        path = self.path(collection)
        try:
            await self._store.delete_document(path, doc_id)
        except Exception as exc:
            logger.exception(
                json.dumps({"event": "remote_write_failed", "operation": "delete", "path": path, "doc_id": doc_id})
            )
            observability_tracker.record_sync_event("remote_write_failed", collection=collection)
            raise RemoteWriteError(f"Could not delete {doc_id} from {collection}", operation="delete", path=path) from exc

        logger.info(json.dumps({"event": "document_deleted", "path": path, "doc_id": doc_id}))

    async def drain(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def retry(self, failure: FailedWrite) -> asyncio.Task[None]:
        if failure in self.failed_writes:
            self.failed_writes.remove(failure)
        return self.update(failure.collection, failure.doc_id, failure.partial)

    def focus_batch(self, batch_id: str, on_vanished: Callable[[], None]) -> None:
        self._focused_batch_id = batch_id
        self._on_focus_vanished = on_vanished

    def release_focus(self) -> None:
        self._focused_batch_id = None
        self._on_focus_vanished = None

    @property
    def focused_batch_id(self) -> str | None:
        return self._focused_batch_id

    async def _commit_update(self, collection: str, doc_id: str, partial_record: Document) -> None:
        path = self.path(collection)
        try:
            await self._store.update_document(path, doc_id, partial_record)
        except Exception as exc:
            logger.error(
                json.dumps(
                    {
                        "event": "remote_write_failed",
                        "operation": "update",
                        "path": path,
                        "doc_id": doc_id,
                        "fields": sorted(partial_record),
                    }
                ),
                exc_info=exc,
            )
            self.failed_writes.append(
                FailedWrite(collection=collection, doc_id=doc_id, partial=partial_record, error=exc)
            )
            observability_tracker.record_sync_event("remote_write_failed", collection=collection)

    def _apply_snapshot(self, collection: str, snapshot: Snapshot) -> None:
        self._mirrors[collection] = {doc_id: copy.deepcopy(dict(document)) for doc_id, document in snapshot.items()}
        logger.debug(json.dumps({"event": "snapshot_applied", "collection": collection, "count": len(snapshot)}))
        observability_tracker.record_sync_event("snapshot_applied", collection=collection)

        if collection != BATCHES_COLLECTION or self._focused_batch_id is None:
            return
        if self._focused_batch_id in snapshot:
            return

        on_vanished = self._on_focus_vanished
        logger.info(json.dumps({"event": "focused_batch_vanished", "batch_id": self._focused_batch_id}))
        observability_tracker.record_sync_event("focused_batch_vanished", collection=collection)
        self.release_focus()
        if on_vanished is not None:
            on_vanished()

    def _report_subscription_error(self, collection: str, error: Exception) -> None:
        logger.error(
            json.dumps({"event": "subscription_error", "collection": collection, "error": str(error)}),
            exc_info=error,
        )
