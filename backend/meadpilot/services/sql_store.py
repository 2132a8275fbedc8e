from __future__ import annotations

import asyncio
import copy
import json
import logging
import threading
from datetime import date, datetime
from uuid import uuid4

from sqlalchemy.orm import Session, sessionmaker

from meadpilot.models.document import StoredDocument
from meadpilot.services.document_store import (
    Document,
    DocumentNotFoundError,
    ErrorHandler,
    SnapshotHandler,
    Unsubscribe,
)
from meadpilot.services.memory_store import resolve_server_timestamps

logger = logging.getLogger("meadpilot.store")


def _json_default(value: object) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _encode_payload(document: Document) -> str:
    return json.dumps(document, default=_json_default)


def _decode_payload(raw_payload: str | None) -> Document:
    if not raw_payload:
        return {}

    try:
        payload = json.loads(raw_payload)
    except json.JSONDecodeError:
        return {}

    if not isinstance(payload, dict):
        return {}
    return payload


class SqlDocumentStore:
    """Document store persisted in the ``stored_documents`` table.

    Session work runs in a worker thread; snapshots are pushed to in-process
    subscribers on the event loop after each committed write.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._subscribers: dict[str, list[tuple[SnapshotHandler, ErrorHandler]]] = {}
        # writes and their snapshot pushes complete one at a time, in call order
        self._write_lock = asyncio.Lock()
        # guards the connection against the inline read in subscribe_collection
        self._session_lock = threading.Lock()

    async def create_document(self, path: str, record: Document) -> str:
        doc_id = uuid4().hex[:20]
        payload_json = _encode_payload(resolve_server_timestamps(record))
        async with self._write_lock:
            await asyncio.to_thread(self._insert_row, path, doc_id, payload_json)
            logger.debug(json.dumps({"event": "document_created", "path": path, "doc_id": doc_id}))
            await self._publish(path)
        return doc_id

    async def update_document(self, path: str, doc_id: str, partial: Document) -> None:
        async with self._write_lock:
            await asyncio.to_thread(self._merge_row, path, doc_id, resolve_server_timestamps(partial))
            logger.debug(
                json.dumps({"event": "document_updated", "path": path, "doc_id": doc_id, "fields": sorted(partial)})
            )
            await self._publish(path)

    async def delete_document(self, path: str, doc_id: str) -> None:
        async with self._write_lock:
            await asyncio.to_thread(self._delete_row, path, doc_id)
            logger.debug(json.dumps({"event": "document_deleted", "path": path, "doc_id": doc_id}))
            await self._publish(path)

    def subscribe_collection(
        self,
        path: str,
        on_snapshot: SnapshotHandler,
        on_error: ErrorHandler,
    ) -> Unsubscribe:
        entry = (on_snapshot, on_error)
        self._subscribers.setdefault(path, []).append(entry)
        # the initial snapshot is read inline so it arrives before subscribe returns
        try:
            documents = self.snapshot(path)
        except Exception as exc:
            self._report_read_failure(path, [entry], exc)
        else:
            self._deliver([entry], documents)

        def unsubscribe() -> None:
            subscribers = self._subscribers.get(path, [])
            if entry in subscribers:
                subscribers.remove(entry)

        return unsubscribe

    def snapshot(self, path: str) -> dict[str, Document]:
        with self._session_lock, self._session_factory() as db:
            rows = (
                db.query(StoredDocument)
                .filter(StoredDocument.collection_path == path)
                .order_by(StoredDocument.created_at.asc(), StoredDocument.id.asc())
                .all()
            )
            return {row.id: _decode_payload(row.payload_json) for row in rows}

    def _insert_row(self, path: str, doc_id: str, payload_json: str) -> None:
        with self._session_lock, self._session_factory() as db:
            db.add(StoredDocument(id=doc_id, collection_path=path, payload_json=payload_json))
            db.commit()

    def _merge_row(self, path: str, doc_id: str, partial: Document) -> None:
        with self._session_lock, self._session_factory() as db:
            row = self._get_row(db, path, doc_id)
            if row is None:
                raise DocumentNotFoundError(f"{path}/{doc_id}")

            payload = _decode_payload(row.payload_json)
            payload.update(partial)
            row.payload_json = _encode_payload(payload)
            db.commit()

    def _delete_row(self, path: str, doc_id: str) -> None:
        with self._session_lock, self._session_factory() as db:
            row = self._get_row(db, path, doc_id)
            if row is not None:
                db.delete(row)
                db.commit()

    def _get_row(self, db: Session, path: str, doc_id: str) -> StoredDocument | None:
        return (
            db.query(StoredDocument)
            .filter(
                StoredDocument.id == doc_id,
                StoredDocument.collection_path == path,
            )
            .first()
        )

    async def _publish(self, path: str) -> None:
        subscribers = list(self._subscribers.get(path, []))
        if not subscribers:
            return

        try:
            documents = await asyncio.to_thread(self.snapshot, path)
        except Exception as exc:
            self._report_read_failure(path, subscribers, exc)
            return
        self._deliver(subscribers, documents)

    def _report_read_failure(
        self, path: str, subscribers: list[tuple[SnapshotHandler, ErrorHandler]], error: Exception
    ) -> None:
        logger.error(json.dumps({"event": "snapshot_failed", "path": path}), exc_info=error)
        for _, on_error in subscribers:
            on_error(error)

    def _deliver(self, subscribers: list[tuple[SnapshotHandler, ErrorHandler]], documents: dict[str, Document]) -> None:
        # snapshot handlers run on the event loop thread, never in the worker
        for on_snapshot, _ in subscribers:
            on_snapshot(copy.deepcopy(documents))
