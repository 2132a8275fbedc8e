from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from meadpilot.core.errors import BatchNotFoundError, FavoriteNotFoundError
from meadpilot.core.timestamps import coerce_datetime
from meadpilot.schemas.batch import BatchRecord
from meadpilot.schemas.recipe import RecipeDraft, RecipeRecord
from meadpilot.services.batch_lifecycle import change_status, resolve_status
from meadpilot.services.document_store import BATCHES_COLLECTION, FAVORITES_COLLECTION, DocumentStore
from meadpilot.services.gravity_log import GravityLog, current_abv, current_gravity
from meadpilot.services.recipe_builder import build_batch_document, build_favorite_document, draft_from_document
from meadpilot.services.sync_coordinator import SyncCoordinator


@dataclass(frozen=True)
class BatchSummary:
    id: str
    name: str
    status: str
    status_label: str
    start_date: datetime
    reading_count: int
    current_gravity: str
    current_abv: float


class MeadSession:
    """Everything one signed-in user can do, backed by a single coordinator."""

    def __init__(self, store: DocumentStore, *, user_id: str, app_id: str | None = None) -> None:
        self.coordinator = SyncCoordinator(store, user_id=user_id, app_id=app_id)

    async def __aenter__(self) -> MeadSession:
        self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def open(self) -> None:
        self.coordinator.open()

    async def close(self) -> None:
        await self.coordinator.drain()
        self.coordinator.close()

    def favorites(self) -> dict[str, RecipeRecord]:
        return {
            doc_id: RecipeRecord.model_validate(document)
            for doc_id, document in self.coordinator.documents(FAVORITES_COLLECTION).items()
        }

    async def save_favorite(self, draft: RecipeDraft) -> str:
        return await self.coordinator.create(FAVORITES_COLLECTION, build_favorite_document(draft))

    async def delete_favorite(self, favorite_id: str) -> None:
        await self.coordinator.delete(FAVORITES_COLLECTION, favorite_id)

    def load_favorite(self, favorite_id: str) -> RecipeDraft:
        document = self.coordinator.get(FAVORITES_COLLECTION, favorite_id)
        if document is None:
            raise FavoriteNotFoundError(f"Favorite {favorite_id} not found")
        return draft_from_document(favorite_id, document)

    async def start_batch(self, draft: RecipeDraft) -> str:
        return await self.coordinator.create(BATCHES_COLLECTION, build_batch_document(draft))

    def get_batch(self, batch_id: str) -> BatchRecord:
        document = self.coordinator.get(BATCHES_COLLECTION, batch_id)
        if document is None:
            raise BatchNotFoundError(f"Batch {batch_id} not found")
        return BatchRecord.model_validate(document)

    def batches(self) -> list[BatchSummary]:
        summaries = []
        for batch_id, document in self.coordinator.documents(BATCHES_COLLECTION).items():
            batch = BatchRecord.model_validate(document)
            status = resolve_status(document)
            summaries.append(
                BatchSummary(
                    id=batch_id,
                    name=batch.name,
                    status=status.key,
                    status_label=status.label,
                    start_date=coerce_datetime(batch.start_date),
                    reading_count=len(batch.logs),
                    current_gravity=current_gravity(batch),
                    current_abv=current_abv(batch),
                )
            )
        return sorted(summaries, key=lambda summary: summary.start_date, reverse=True)

    def open_batch(self, batch_id: str, on_vanished: Callable[[], None]) -> GravityLog:
        if self.coordinator.get(BATCHES_COLLECTION, batch_id) is None:
            raise BatchNotFoundError(f"Batch {batch_id} not found")
        self.coordinator.focus_batch(batch_id, on_vanished)
        return GravityLog(self.coordinator, batch_id)

    def close_batch(self) -> None:
        self.coordinator.release_focus()

    def gravity_log(self, batch_id: str) -> GravityLog:
        return GravityLog(self.coordinator, batch_id)

    def change_status(self, batch_id: str, status: str) -> asyncio.Task[None]:
        return change_status(self.coordinator, batch_id, status)

    async def delete_batch(self, batch_id: str) -> None:
        await self.coordinator.delete(BATCHES_COLLECTION, batch_id)
        if self.coordinator.focused_batch_id == batch_id:
            self.coordinator.release_focus()
