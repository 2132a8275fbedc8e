import threading
from collections.abc import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from meadpilot.core.database import Base
from meadpilot.models.document import StoredDocument
from meadpilot.schemas.batch import BatchRecord
from meadpilot.schemas.recipe import RecipeDraft
from meadpilot.services.document_store import DocumentNotFoundError, Snapshot
from meadpilot.services.gravity_log import GravityLog
from meadpilot.services.mead_session import MeadSession
from meadpilot.services.sql_store import SqlDocumentStore

PATH = "artifacts/test-app/users/user-1/batches"


@pytest.fixture
def session_factory() -> Generator[sessionmaker[Session], None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def sql_store(session_factory: sessionmaker[Session]) -> SqlDocumentStore:
    return SqlDocumentStore(session_factory)


@pytest.mark.asyncio
async def test_writes_push_full_snapshots(sql_store: SqlDocumentStore) -> None:
    snapshots: list[Snapshot] = []
    unsubscribe = sql_store.subscribe_collection(PATH, snapshots.append, lambda exc: None)

    first_id = await sql_store.create_document(PATH, {"name": "Traditional", "status": "brewing"})
    second_id = await sql_store.create_document(PATH, {"name": "Cyser", "status": "brewing"})
    await sql_store.update_document(PATH, first_id, {"status": "racked"})
    await sql_store.delete_document(PATH, second_id)
    unsubscribe()
    await sql_store.delete_document(PATH, first_id)

    assert len(snapshots) == 5
    assert snapshots[0] == {}
    assert set(snapshots[2]) == {first_id, second_id}
    assert snapshots[3][first_id] == {"name": "Traditional", "status": "racked"}
    assert snapshots[4] == {first_id: {"name": "Traditional", "status": "racked"}}


@pytest.mark.asyncio
async def test_collections_are_isolated(sql_store: SqlDocumentStore) -> None:
    await sql_store.create_document(PATH, {"name": "Mine"})
    await sql_store.create_document("artifacts/test-app/users/user-2/batches", {"name": "Theirs"})

    assert [document["name"] for document in sql_store.snapshot(PATH).values()] == ["Mine"]


@pytest.mark.asyncio
async def test_update_missing_document_raises(sql_store: SqlDocumentStore) -> None:
    with pytest.raises(DocumentNotFoundError):
        await sql_store.update_document(PATH, "missing", {"status": "racked"})


@pytest.mark.asyncio
async def test_corrupt_payload_reads_as_empty_document(
    sql_store: SqlDocumentStore, session_factory: sessionmaker[Session]
) -> None:
    with session_factory() as db:
        db.add(StoredDocument(id="broken", collection_path=PATH, payload_json="not json"))
        db.commit()

    assert sql_store.snapshot(PATH) == {"broken": {}}


@pytest.mark.asyncio
async def test_session_round_trip_through_sql(sql_store: SqlDocumentStore) -> None:
    async with MeadSession(sql_store, user_id="user-1", app_id="test-app") as session:
        batch_id = await session.start_batch(RecipeDraft(name="Traditional"))
        log = GravityLog(session.coordinator, batch_id)
        log.add(1.050, note="week one", date="2026-05-01T10:00:00Z")
        session.change_status(batch_id, "racked")

    stored = BatchRecord.model_validate(sql_store.snapshot(PATH)[batch_id])
    assert stored.status == "racked"
    assert stored.start_date is not None
    assert [(entry.sg, entry.note) for entry in stored.logs] == [("1.050", "week one")]


@pytest.mark.asyncio
async def test_writes_run_off_the_event_loop_thread(session_factory: sessionmaker[Session]) -> None:
    session_threads: list[int] = []

    def tracking_factory() -> Session:
        session_threads.append(threading.get_ident())
        return session_factory()

    store = SqlDocumentStore(tracking_factory)  # type: ignore[arg-type]
    doc_id = await store.create_document(PATH, {"name": "Bochet"})
    await store.update_document(PATH, doc_id, {"status": "racked"})
    await store.delete_document(PATH, doc_id)

    assert len(session_threads) == 3
    assert threading.get_ident() not in session_threads
