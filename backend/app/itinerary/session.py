"""In-memory itinerary owned by one traveler.

The session holds the active scope's events, applies add/remove/merge
mutations, and hands every mutation to the auto-save coordinator. Reads of
the view never touch the store.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from backend.app.config import Settings
from backend.app.db.context import ItineraryScope
from backend.app.db.repositories import ChangeLog, ReplaceableDocumentStore, TripRepository
from backend.app.itinerary.autosave import AutoSaveCoordinator
from backend.app.itinerary.errors import EventNotFoundError, ScopeAccessError, TripNotFoundError
from backend.app.itinerary.grouping import build_view
from backend.app.itinerary.normalize import (
    activity_event,
    flight_booking_to_events,
    hotel_booking_to_events,
    manual_event,
)
from backend.app.models.common import ScopeKind, SyncStatus
from backend.app.models.itinerary import (
    ActivityCandidate,
    ItineraryDocument,
    ItineraryEvent,
    ItinerarySnapshot,
    ItineraryView,
)
from backend.app.utils.metrics import metrics

logger = logging.getLogger(__name__)


class ItinerarySession:
    """One traveler's active itinerary and its auto-save wiring."""

    def __init__(
        self,
        user_id: str,
        store: ReplaceableDocumentStore,
        trips: TripRepository,
        change_log: ChangeLog,
        settings: Settings,
    ) -> None:
        self.user_id = user_id
        self._store = store
        self._trips = trips
        self._change_log = change_log
        self._settings = settings
        self._events: list[ItineraryEvent] = []
        self._scope: ItineraryScope | None = None
        self._autosave = AutoSaveCoordinator(
            store,
            app_id=settings.app_id,
            debounce_seconds=settings.autosave_debounce_ms / 1000,
        )

    @property
    def scope(self) -> ItineraryScope | None:
        return self._scope

    @property
    def events(self) -> list[ItineraryEvent]:
        return list(self._events)

    @property
    def autosave(self) -> AutoSaveCoordinator:
        return self._autosave

    async def load(self, scope: ItineraryScope) -> None:
        """Make ``scope`` active and replace the in-memory events with its stored ones.

        Loading never writes. If the store cannot be read the list is empty
        and auto-save stays disarmed, so a failed read can never be followed
        by an overwrite of data this session has not seen.

        Raises:
            TripNotFoundError: If a trip scope names an unknown trip
            ScopeAccessError: If the traveler is not an accepted trip member
        """
        await self._authorize(scope)

        self._autosave.close()
        self._scope = scope
        self._events = []

        try:
            stored = await self._store.get(scope.document_path(self._settings.app_id))
            events = ItineraryDocument.model_validate(stored.data).events if stored else []
        except Exception:
            logger.exception(f"Failed to load itinerary {scope.kind.value}/{scope.key}")
            self._autosave.status = SyncStatus.failed
            return

        self._events = list(events)
        self._autosave.arm(scope, stored.version if stored else 0)

    async def switch_scope(self, scope: ItineraryScope) -> None:
        """Leave the current scope (dropping any pending save) and load another."""
        # A failed load leaves auto-save disarmed, so the same scope is read again
        if scope == self._scope and self._autosave.scope is not None:
            return
        await self.load(scope)

    async def reload(self) -> None:
        """Re-read the active scope, discarding unsaved local edits."""
        await self.load(self._require_scope())

    async def add_manual(
        self, name: str | None, cost: Any, date: str | None, time: str | None
    ) -> ItineraryEvent:
        """Add a manually entered event (validated before any state change)."""
        self._require_scope()
        event = manual_event(name, cost, date, time)
        await self._apply([event], action="event_add")
        return event

    async def add_activity(
        self, activity: ActivityCandidate, date: str | None, time: str | None
    ) -> ItineraryEvent:
        """Schedule an activity search result."""
        self._require_scope()
        event = activity_event(activity, date, time)
        await self._apply([event], action="event_add")
        return event

    async def add_flight_booking(self, booking: dict[str, Any]) -> list[ItineraryEvent]:
        """Merge a flight booking's legs; legs already present are skipped."""
        self._require_scope()
        return await self._merge(flight_booking_to_events(booking), source="flight")

    async def add_hotel_booking(self, booking: dict[str, Any]) -> list[ItineraryEvent]:
        """Merge a hotel booking's check-in; skipped if already present."""
        self._require_scope()
        events = hotel_booking_to_events(
            booking, default_checkin_time=self._settings.hotel_default_checkin_time
        )
        return await self._merge(events, source="hotel")

    async def remove(self, event_id: str) -> ItineraryEvent:
        """Remove an event by id.

        Raises:
            EventNotFoundError: If no event has this id
        """
        self._require_scope()
        for event in self._events:
            if event.id == event_id:
                break
        else:
            raise EventNotFoundError(event_id)

        self._events = [e for e in self._events if e.id != event_id]
        self._mutated()
        await self._record_change("event_remove", {"id": event_id, "name": event.name})
        return event

    def view(self) -> ItineraryView:
        scope = self._require_scope()
        return build_view(scope.key, self._events, self._settings.itinerary_currency)

    def snapshot(self) -> ItinerarySnapshot:
        return ItinerarySnapshot(
            view=self.view(),
            sync_status=self._autosave.status,
            version=self._autosave.version,
        )

    async def flush(self) -> None:
        await self._autosave.flush()

    def close(self) -> None:
        self._autosave.close()
        self._scope = None
        self._events = []

    async def _authorize(self, scope: ItineraryScope) -> None:
        if scope.kind == ScopeKind.personal:
            if scope.owner_id != self.user_id:
                raise ScopeAccessError(f"personal itinerary of {scope.owner_id}")
            return

        trip = await self._trips.get_trip(scope.key)
        if trip is None:
            raise TripNotFoundError(scope.key)
        if not trip.is_member(self.user_id):
            raise ScopeAccessError(f"not a member of trip {scope.key}")

    async def _merge(self, events: list[ItineraryEvent], source: str) -> list[ItineraryEvent]:
        seen = {e.id for e in self._events}
        added: list[ItineraryEvent] = []
        for event in events:
            if event.id in seen:
                continue
            seen.add(event.id)
            added.append(event)

        skipped = len(events) - len(added)
        if skipped:
            metrics.inc_duplicate_skipped(source, skipped)
            logger.info(f"Skipped {skipped} {source} event(s) already in itinerary")

        if added:
            await self._apply(added, action="booking_merge")
        return added

    async def _apply(self, events: list[ItineraryEvent], action: str) -> None:
        self._events = [*self._events, *events]
        self._mutated()
        await self._record_change(
            action, {"events": [{"id": e.id, "name": e.name} for e in events]}
        )

    def _mutated(self) -> None:
        if self._autosave.scope is not None:
            self._autosave.schedule(self._events)

    async def _record_change(self, action: str, payload: dict[str, Any]) -> None:
        scope = self._require_scope()
        if scope.kind != ScopeKind.trip:
            return
        try:
            await self._change_log.append(scope.key, self.user_id, action, payload)
        except Exception:
            logger.exception(f"Failed to record {action} for trip {scope.key}")

    def _require_scope(self) -> ItineraryScope:
        if self._scope is None:
            raise RuntimeError("no itinerary scope loaded")
        return self._scope


class SessionRegistry:
    """Keeps one itinerary session per traveler for the API process."""

    def __init__(self, factory: Callable[[str], ItinerarySession]) -> None:
        self._factory = factory
        self._sessions: dict[str, ItinerarySession] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @asynccontextmanager
    async def session(self, user_id: str, scope: ItineraryScope) -> AsyncIterator[ItinerarySession]:
        """Yield the traveler's session switched to ``scope``.

        Requests of the same traveler are serialized so a scope switch never
        interleaves with a mutation.
        """
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        async with lock:
            session = self._sessions.get(user_id)
            if session is None:
                session = self._factory(user_id)
                self._sessions[user_id] = session
            await session.switch_scope(scope)
            yield session

    async def close_all(self, flush: bool = False) -> None:
        """Close every session, optionally writing pending saves first."""
        for session in self._sessions.values():
            if flush:
                await session.flush()
            session.close()
        self._sessions.clear()
