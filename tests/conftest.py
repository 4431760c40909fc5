"""Shared pytest fixtures for all test suites."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from backend.app.config import Settings
from backend.app.db.inmemory import InMemoryChangeLog, InMemoryTripRepository
from backend.app.db.models import Base
from backend.app.db.repositories import TripRecord
from backend.app.itinerary.session import ItinerarySession
from tests.factories import TEST_DEBOUNCE_MS, RecordingDocumentStore


@pytest.fixture
def settings() -> Settings:
    """Settings with a short debounce and no .env influence."""
    return Settings(_env_file=None, autosave_debounce_ms=TEST_DEBOUNCE_MS, app_id="test-app")


@pytest.fixture
def store() -> RecordingDocumentStore:
    return RecordingDocumentStore()


@pytest.fixture
def trips() -> InMemoryTripRepository:
    return InMemoryTripRepository(
        [TripRecord(trip_id="tripA", owner_id="alice", accepted=["alice", "bob"], max_members=4)]
    )


@pytest.fixture
def change_log() -> InMemoryChangeLog:
    return InMemoryChangeLog()


@pytest.fixture
def make_session(
    store: RecordingDocumentStore,
    trips: InMemoryTripRepository,
    change_log: InMemoryChangeLog,
    settings: Settings,
):
    """Factory for sessions sharing one store (simulates several travelers/devices)."""
    sessions: list[ItinerarySession] = []

    def factory(user_id: str = "alice") -> ItinerarySession:
        session = ItinerarySession(
            user_id, store=store, trips=trips, change_log=change_log, settings=settings
        )
        sessions.append(session)
        return session

    yield factory

    for session in sessions:
        session.close()


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine shared across connections, schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()
