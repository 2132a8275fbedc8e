from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass

from meadpilot.core.errors import ValidationError
from meadpilot.services.document_store import BATCHES_COLLECTION
from meadpilot.services.sync_coordinator import SyncCoordinator

DEFAULT_STATUS = "brewing"


@dataclass(frozen=True)
class BatchStatus:
    key: str
    label: str


_BATCH_STATUSES: tuple[BatchStatus, ...] = (
    BatchStatus("brewing", "Primary Fermentation (Brewing)"),
    BatchStatus("racked", "Secondary/Aging (Racked)"),
    BatchStatus("bottled", "Finished (Bottled)"),
    BatchStatus("archived", "Archived"),
)

_STATUSES_BY_KEY = {status.key: status for status in _BATCH_STATUSES}

BATCH_STATUS_OPTIONS = tuple(status.key for status in _BATCH_STATUSES)


def list_batch_statuses() -> list[BatchStatus]:
    return list(_BATCH_STATUSES)


def resolve_status(batch: Mapping[str, object]) -> BatchStatus:
    status = batch.get("status")
    if isinstance(status, str) and status in _STATUSES_BY_KEY:
        return _STATUSES_BY_KEY[status]
    return _STATUSES_BY_KEY[DEFAULT_STATUS]


def change_status(coordinator: SyncCoordinator, batch_id: str, status: str) -> asyncio.Task[None]:
    # Any status may follow any other; only membership is checked.
    if status not in _STATUSES_BY_KEY:
        raise ValidationError(f"Unknown batch status: {status}", field="status")
    return coordinator.update(BATCHES_COLLECTION, batch_id, {"status": status})
