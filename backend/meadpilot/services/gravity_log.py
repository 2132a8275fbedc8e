"""Gravity readings for one batch.

The backing ``logs`` array keeps insertion order; ordering by date is only a
display concern. Every mutation sends the whole new array to the store.

A reading is addressed either by its stable id or by the (date, sg) pair it
carried when the caller last saw it; the pair resolves to the first backing
entry that matches.
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Iterator, Sequence
from datetime import datetime

from meadpilot.core.errors import BatchNotFoundError, LogEntryNotFoundError, ValidationError
from meadpilot.core.timestamps import coerce_datetime, utcnow
from meadpilot.schemas.batch import BatchRecord, LogEntry
from meadpilot.services.document_store import BATCHES_COLLECTION
from meadpilot.services.recipe_calculator import sg_to_abv
from meadpilot.services.sync_coordinator import SyncCoordinator

SG_MIN = 0.990
SG_MAX = 1.200

LogIdentity = str | tuple[object, object]


def parse_gravity(value: object) -> float:
    message = f"Please enter a valid Specific Gravity (e.g., between {SG_MIN:.3f} and {SG_MAX:.3f})."
    if value is None or isinstance(value, bool):
        raise ValidationError(message, field="sg")
    try:
        gravity = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError(message, field="sg") from exc

    if math.isnan(gravity) or gravity < SG_MIN or gravity > SG_MAX:
        raise ValidationError(message, field="sg")
    return gravity


def parse_log_date(value: datetime | str | None) -> datetime:
    """Strict reading date for writes; stored dates are read leniently elsewhere."""
    if value is None:
        return utcnow()
    if isinstance(value, datetime):
        return coerce_datetime(value)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValidationError("Please enter a valid date for this reading.", field="date") from exc
        return coerce_datetime(parsed)
    raise ValidationError("Please enter a valid date for this reading.", field="date")


def format_gravity(value: float) -> str:
    return f"{value:.3f}"


def _normalize_sg(value: object) -> str:
    try:
        return format_gravity(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return str(value)


def _matches(entry: LogEntry, identity: LogIdentity) -> bool:
    if isinstance(identity, str):
        return entry.id == identity
    date, sg = identity
    return entry.date == coerce_datetime(date) and _normalize_sg(entry.sg) == _normalize_sg(sg)


def find_entry_index(entries: Sequence[LogEntry], identity: LogIdentity) -> int | None:
    for index, entry in enumerate(entries):
        if _matches(entry, identity):
            return index
    return None


class DisplayOrder:
    """Newest-first view over a batch's readings, re-sorted on every iteration."""

    def __init__(self, entries: Sequence[LogEntry]) -> None:
        self._entries = entries

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(sorted(self._entries, key=lambda entry: entry.date, reverse=True))

    def __len__(self) -> int:
        return len(self._entries)

    def first(self) -> LogEntry | None:
        return next(iter(self), None)


def sort_for_display(entries: Sequence[LogEntry]) -> DisplayOrder:
    return DisplayOrder(entries)


def current_gravity(batch: BatchRecord) -> str:
    latest = sort_for_display(batch.logs).first()
    if latest is None:
        return batch.calculated_og
    return latest.sg


def current_abv(batch: BatchRecord) -> float:
    return sg_to_abv(batch.calculated_og, current_gravity(batch))


class GravityLog:
    def __init__(self, coordinator: SyncCoordinator, batch_id: str) -> None:
        self._coordinator = coordinator
        self.batch_id = batch_id

    def batch(self) -> BatchRecord:
        document = self._coordinator.get(BATCHES_COLLECTION, self.batch_id)
        if document is None:
            raise BatchNotFoundError(f"Batch {self.batch_id} not found")
        return BatchRecord.model_validate(document)

    @property
    def entries(self) -> list[LogEntry]:
        return self.batch().logs

    def add(self, sg: object, note: str = "", date: datetime | str | None = None) -> LogEntry:
        gravity = parse_gravity(sg)
        entries = self.entries

        entry = LogEntry(date=parse_log_date(date), sg=format_gravity(gravity), note=note)
        self._replace([*entries, entry])
        return entry

    def edit(
        self,
        identity: LogIdentity,
        *,
        sg: object = None,
        note: str | None = None,
        date: datetime | str | None = None,
    ) -> LogEntry:
        entries = self.entries
        index = find_entry_index(entries, identity)
        if index is None:
            raise LogEntryNotFoundError(f"No reading matches {identity!r}")

        current = entries[index]
        gravity = parse_gravity(sg if sg is not None else current.sg)

        updated = current.model_copy(
            update={
                "sg": format_gravity(gravity),
                "note": note if note is not None else current.note,
                "date": parse_log_date(date) if date is not None else current.date,
            }
        )
        entries[index] = updated
        self._replace(entries)
        return updated

    def delete(self, identity: LogIdentity) -> bool:
        entries = self.entries
        index = find_entry_index(entries, identity)
        if index is None:
            return False

        del entries[index]
        self._replace(entries)
        return True

    def sort_for_display(self) -> DisplayOrder:
        return sort_for_display(self.entries)

    def current_gravity(self) -> str:
        return current_gravity(self.batch())

    def current_abv(self) -> float:
        return current_abv(self.batch())

    def _replace(self, entries: list[LogEntry]) -> asyncio.Task[None]:
        logs = [entry.to_document() for entry in entries]
        return self._coordinator.update(BATCHES_COLLECTION, self.batch_id, {"logs": logs})
