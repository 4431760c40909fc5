"""Tests for the debounced auto-save coordinator."""

import asyncio

import pytest

from backend.app.db.context import ItineraryScope
from backend.app.itinerary.autosave import AutoSaveCoordinator
from backend.app.models.common import SyncStatus
from backend.app.models.itinerary import ItineraryEvent
from tests.factories import SETTLE_SECONDS, TEST_DEBOUNCE_MS, RecordingDocumentStore

APP_ID = "test-app"
PERSONAL = ItineraryScope(owner_id="alice")
TRIP = ItineraryScope(owner_id="alice", trip_id="tripA")


def _events(n: int) -> list[ItineraryEvent]:
    return [
        ItineraryEvent(id=f"e{i}", name=f"Event {i}", cost=i, date="2024-05-01", time="10:00")
        for i in range(n)
    ]


@pytest.fixture
def coordinator(store: RecordingDocumentStore) -> AutoSaveCoordinator:
    return AutoSaveCoordinator(store, app_id=APP_ID, debounce_seconds=TEST_DEBOUNCE_MS / 1000)


async def _settle(coordinator: AutoSaveCoordinator) -> None:
    await asyncio.sleep(SETTLE_SECONDS)
    await coordinator.drain()


@pytest.mark.asyncio
async def test_burst_of_mutations_coalesces_into_one_write(
    coordinator: AutoSaveCoordinator, store: RecordingDocumentStore
) -> None:
    """Test that N mutations inside the quiet period produce one write of the final state."""
    coordinator.arm(PERSONAL, version=0)

    for n in range(1, 6):
        coordinator.schedule(_events(n))
        await asyncio.sleep(0.002)

    assert store.writes == []
    assert coordinator.status == SyncStatus.pending

    await _settle(coordinator)

    assert len(store.writes) == 1
    path, data = store.writes[0]
    assert path == PERSONAL.document_path(APP_ID)
    assert [e["id"] for e in data["events"]] == ["e0", "e1", "e2", "e3", "e4"]
    assert data["updated_by"] == "alice"
    assert coordinator.status == SyncStatus.saved
    assert coordinator.version == 1


@pytest.mark.asyncio
async def test_arming_never_writes(
    coordinator: AutoSaveCoordinator, store: RecordingDocumentStore
) -> None:
    """Test that loading a scope (arming) does not trigger a save."""
    coordinator.arm(PERSONAL, version=0)

    await _settle(coordinator)

    assert store.writes == []
    assert coordinator.status == SyncStatus.idle


@pytest.mark.asyncio
async def test_rearming_drops_pending_save(
    coordinator: AutoSaveCoordinator, store: RecordingDocumentStore
) -> None:
    """Test that switching scope discards the previous scope's pending save."""
    coordinator.arm(PERSONAL, version=0)
    coordinator.schedule(_events(2))

    coordinator.arm(TRIP, version=0)
    await _settle(coordinator)

    assert store.writes == []
    assert await store.get(PERSONAL.document_path(APP_ID)) is None
    assert await store.get(TRIP.document_path(APP_ID)) is None


@pytest.mark.asyncio
async def test_close_drops_pending_save(
    coordinator: AutoSaveCoordinator, store: RecordingDocumentStore
) -> None:
    """Test that closing discards a pending save without writing."""
    coordinator.arm(PERSONAL, version=0)
    coordinator.schedule(_events(1))

    coordinator.close()
    await _settle(coordinator)

    assert store.writes == []
    assert coordinator.scope is None
    assert coordinator.status == SyncStatus.idle


@pytest.mark.asyncio
async def test_schedule_requires_armed_scope(coordinator: AutoSaveCoordinator) -> None:
    """Test that scheduling before a scope is loaded is an error."""
    with pytest.raises(RuntimeError):
        coordinator.schedule(_events(1))


@pytest.mark.asyncio
async def test_failed_write_is_dropped_and_next_mutation_retries(
    coordinator: AutoSaveCoordinator, store: RecordingDocumentStore
) -> None:
    """Test that a failed save is logged and dropped; the next mutation saves again."""
    store.fail_next = 1
    coordinator.arm(PERSONAL, version=0)

    coordinator.schedule(_events(1))
    await _settle(coordinator)

    assert store.writes == []
    assert coordinator.status == SyncStatus.failed

    coordinator.schedule(_events(2))
    await _settle(coordinator)

    assert len(store.writes) == 1
    assert len(store.writes[0][1]["events"]) == 2
    assert coordinator.status == SyncStatus.saved


@pytest.mark.asyncio
async def test_trip_scope_version_conflict(
    coordinator: AutoSaveCoordinator, store: RecordingDocumentStore
) -> None:
    """Test that a shared-trip save against a stale version is rejected."""
    # Another member saved after this coordinator loaded version 0
    await store.replace(TRIP.document_path(APP_ID), {"events": []})
    coordinator.arm(TRIP, version=0)

    coordinator.schedule(_events(1))
    await _settle(coordinator)

    assert coordinator.status == SyncStatus.conflict
    assert len(store.writes) == 1  # only the other member's write

    # Further mutations keep the conflict visible
    coordinator.schedule(_events(2))
    assert coordinator.status == SyncStatus.conflict


@pytest.mark.asyncio
async def test_trip_scope_saves_advance_version(
    coordinator: AutoSaveCoordinator, store: RecordingDocumentStore
) -> None:
    """Test that consecutive trip saves carry the version they last wrote."""
    coordinator.arm(TRIP, version=0)

    coordinator.schedule(_events(1))
    await _settle(coordinator)
    coordinator.schedule(_events(2))
    await _settle(coordinator)

    assert len(store.writes) == 2
    assert coordinator.version == 2
    assert coordinator.status == SyncStatus.saved


@pytest.mark.asyncio
async def test_personal_scope_is_last_write_wins(
    coordinator: AutoSaveCoordinator, store: RecordingDocumentStore
) -> None:
    """Test that personal saves overwrite regardless of the stored version."""
    await store.replace(PERSONAL.document_path(APP_ID), {"events": []})
    coordinator.arm(PERSONAL, version=0)

    coordinator.schedule(_events(3))
    await _settle(coordinator)

    stored = await store.get(PERSONAL.document_path(APP_ID))
    assert stored is not None
    assert len(stored.data["events"]) == 3
    assert coordinator.status == SyncStatus.saved


@pytest.mark.asyncio
async def test_flush_writes_immediately(
    coordinator: AutoSaveCoordinator, store: RecordingDocumentStore
) -> None:
    """Test that flush saves the pending state without waiting for the timer."""
    coordinator.arm(PERSONAL, version=0)
    coordinator.schedule(_events(2))

    await coordinator.flush()

    assert len(store.writes) == 1
    assert [e["id"] for e in store.writes[0][1]["events"]] == ["e0", "e1"]
    assert not coordinator.has_pending
    assert coordinator.status == SyncStatus.saved

    # The cancelled timer must not produce a second write
    await _settle(coordinator)
    assert len(store.writes) == 1


@pytest.mark.asyncio
async def test_flush_without_pending_is_noop(
    coordinator: AutoSaveCoordinator, store: RecordingDocumentStore
) -> None:
    """Test that flush with nothing pending does not write."""
    coordinator.arm(PERSONAL, version=0)

    await coordinator.flush()

    assert store.writes == []
