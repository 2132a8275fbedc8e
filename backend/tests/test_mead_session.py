import itertools

import pytest

from meadpilot.core.errors import BatchNotFoundError, FavoriteNotFoundError, ValidationError
from meadpilot.schemas.recipe import FruitAddition, RecipeDraft
from meadpilot.services.batch_lifecycle import BATCH_STATUS_OPTIONS, list_batch_statuses, resolve_status
from meadpilot.services.document_store import BATCHES_COLLECTION
from meadpilot.services.memory_store import InMemoryDocumentStore
from meadpilot.services.mead_session import MeadSession


@pytest.fixture
def draft() -> RecipeDraft:
    return RecipeDraft(
        name="Cherry Melomel",
        mode="ingredients",
        volume=19,
        honey_amount=4,
        fruits=[FruitAddition(name="Cherry (Tart)", amount=2, sugar_percent=10), FruitAddition(name="")],
    )


@pytest.mark.asyncio
async def test_save_favorite_then_start_batch_from_it(store: InMemoryDocumentStore, draft: RecipeDraft) -> None:
    async with MeadSession(store, user_id="user-1", app_id="test-app") as session:
        favorite_id = await session.save_favorite(draft)

        assert list(session.favorites()) == [favorite_id]
        favorite = session.favorites()[favorite_id]
        assert [fruit.name for fruit in favorite.fruits] == ["Cherry (Tart)"]

        loaded = session.load_favorite(favorite_id)
        batch_id = await session.start_batch(loaded.model_copy(update={"volume": 20}))

        batch = session.get_batch(batch_id)
        assert batch.original_recipe_id == favorite_id
        assert batch.status == "brewing"
        assert batch.logs == []
        assert batch.volume == 20
        assert batch.start_date is not None


@pytest.mark.asyncio
async def test_start_batch_without_name_touches_nothing(store: InMemoryDocumentStore) -> None:
    async with MeadSession(store, user_id="user-1", app_id="test-app") as session:
        with pytest.raises(ValidationError):
            await session.start_batch(RecipeDraft(name=" "))

        assert store.snapshot(session.coordinator.path(BATCHES_COLLECTION)) == {}


@pytest.mark.asyncio
async def test_batches_are_listed_newest_first_with_current_gravity(store: InMemoryDocumentStore) -> None:
    session = MeadSession(store, user_id="user-1", app_id="test-app")
    path = session.coordinator.path(BATCHES_COLLECTION)
    await store.create_document(
        path,
        {
            "name": "Older",
            "mode": "target",
            "volume": 5,
            "targetAbv": 12,
            "honeyAmount": 1.57,
            "calculatedOg": "1.091",
            "calculatedAbv": "12.0",
            "startDate": "2026-01-10T12:00:00Z",
            "logs": [{"date": "2026-01-20T12:00:00Z", "sg": "1.020", "note": ""}],
        },
    )
    await store.create_document(
        path,
        {
            "name": "Newer",
            "mode": "target",
            "volume": 5,
            "targetAbv": 12,
            "honeyAmount": 1.57,
            "calculatedOg": "1.091",
            "calculatedAbv": "12.0",
            "startDate": "2026-02-10T12:00:00Z",
            "status": "mystery",
            "logs": [],
        },
    )

    session.open()
    summaries = session.batches()

    assert [summary.name for summary in summaries] == ["Newer", "Older"]
    assert summaries[0].status == "brewing"
    assert summaries[0].current_gravity == "1.091"
    assert summaries[1].current_gravity == "1.020"
    assert summaries[1].current_abv == 9.3
    assert summaries[1].reading_count == 1
    await session.close()


@pytest.mark.asyncio
@pytest.mark.parametrize(("before", "after"), list(itertools.product(BATCH_STATUS_OPTIONS, repeat=2)))
async def test_any_status_may_follow_any_other(store: InMemoryDocumentStore, before: str, after: str) -> None:
    async with MeadSession(store, user_id="user-1", app_id="test-app") as session:
        batch_id = await session.start_batch(RecipeDraft(name="Sack Mead"))
        await session.change_status(batch_id, before)

        await session.change_status(batch_id, after)

        assert session.get_batch(batch_id).status == after


@pytest.mark.asyncio
async def test_unknown_status_is_rejected(store: InMemoryDocumentStore) -> None:
    async with MeadSession(store, user_id="user-1", app_id="test-app") as session:
        batch_id = await session.start_batch(RecipeDraft(name="Sack Mead"))

        with pytest.raises(ValidationError):
            session.change_status(batch_id, "drunk")

        assert session.get_batch(batch_id).status == "brewing"


def test_status_labels() -> None:
    assert [status.key for status in list_batch_statuses()] == ["brewing", "racked", "bottled", "archived"]
    assert resolve_status({}).label == "Primary Fermentation (Brewing)"
    assert resolve_status({"status": "bottled"}).label == "Finished (Bottled)"


@pytest.mark.asyncio
async def test_open_batch_and_log_readings(store: InMemoryDocumentStore) -> None:
    async with MeadSession(store, user_id="user-1", app_id="test-app") as session:
        batch_id = await session.start_batch(RecipeDraft(name="Traditional"))
        log = session.open_batch(batch_id, on_vanished=lambda: None)

        log.add(1.060, note="day 3", date="2026-04-03T09:00:00Z")
        log.add(1.030, note="day 7", date="2026-04-07T09:00:00Z")

    stored = store.snapshot(session.coordinator.path(BATCHES_COLLECTION))[batch_id]
    assert [entry["note"] for entry in stored["logs"]] == ["day 3", "day 7"]
    assert not session.coordinator.is_open


@pytest.mark.asyncio
async def test_delete_open_batch_returns_to_list(store: InMemoryDocumentStore) -> None:
    async with MeadSession(store, user_id="user-1", app_id="test-app") as session:
        batch_id = await session.start_batch(RecipeDraft(name="Traditional"))
        calls: list[str] = []
        session.open_batch(batch_id, on_vanished=lambda: calls.append("back"))

        await session.delete_batch(batch_id)

        assert session.batches() == []
        assert session.coordinator.focused_batch_id is None
        assert calls == ["back"]


@pytest.mark.asyncio
async def test_open_missing_batch_raises(store: InMemoryDocumentStore) -> None:
    async with MeadSession(store, user_id="user-1", app_id="test-app") as session:
        with pytest.raises(BatchNotFoundError):
            session.open_batch("missing", on_vanished=lambda: None)


@pytest.mark.asyncio
async def test_delete_favorite(store: InMemoryDocumentStore, draft: RecipeDraft) -> None:
    async with MeadSession(store, user_id="user-1", app_id="test-app") as session:
        favorite_id = await session.save_favorite(draft)

        await session.delete_favorite(favorite_id)

        assert session.favorites() == {}
        with pytest.raises(FavoriteNotFoundError):
            session.load_favorite(favorite_id)
