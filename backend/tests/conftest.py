from collections.abc import Awaitable, Callable, Generator

import pytest

from meadpilot.schemas.recipe import RecipeDraft
from meadpilot.services.document_store import BATCHES_COLLECTION, Document
from meadpilot.services.memory_store import InMemoryDocumentStore
from meadpilot.services.observability import observability_tracker
from meadpilot.services.recipe_builder import build_batch_document
from meadpilot.services.sync_coordinator import SyncCoordinator

TEST_APP_ID = "test-app"
TEST_USER_ID = "user-1"


@pytest.fixture(autouse=True)
def reset_tracker() -> Generator[None, None, None]:
    observability_tracker.reset()
    yield
    observability_tracker.reset()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def coordinator(store: InMemoryDocumentStore) -> Generator[SyncCoordinator, None, None]:
    sync = SyncCoordinator(store, user_id=TEST_USER_ID, app_id=TEST_APP_ID)
    sync.open()
    yield sync
    sync.close()


BatchFactory = Callable[..., Awaitable[str]]


@pytest.fixture
def make_batch(coordinator: SyncCoordinator) -> BatchFactory:
    async def _make_batch(name: str = "Traditional Mead", logs: list[Document] | None = None) -> str:
        document = build_batch_document(RecipeDraft(name=name))
        document["logs"] = list(logs or [])
        return await coordinator.create(BATCHES_COLLECTION, document)

    return _make_batch
