"""In-memory implementations of repository interfaces."""

import copy
import uuid
from datetime import datetime
from typing import Any

from backend.app.db.repositories import (
    ChangeRecord,
    StoredDocument,
    TripRecord,
    VersionConflictError,
)


class InMemoryDocumentStore:
    """In-memory implementation of ReplaceableDocumentStore and MergeableDocumentStore."""

    def __init__(self) -> None:
        self._docs: dict[str, StoredDocument] = {}

    async def get(self, path: str) -> StoredDocument | None:
        """Get document by path."""
        doc = self._docs.get(path)

        if doc is None:
            return None

        # Callers must never alias stored state
        return copy.deepcopy(doc)

    async def replace(
        self, path: str, data: dict[str, Any], expected_version: int | None = None
    ) -> int:
        """Overwrite the document at path."""
        current = self._docs.get(path)
        current_version = current.version if current else 0

        if expected_version is not None and expected_version != current_version:
            raise VersionConflictError(path, expected_version, current_version)

        new_version = current_version + 1
        self._docs[path] = StoredDocument(
            path=path,
            data=copy.deepcopy(data),
            version=new_version,
            updated_at=datetime.now(),
        )
        return new_version

    async def merge(self, path: str, fields: dict[str, Any]) -> StoredDocument:
        """Upsert the given fields, keeping all others."""
        current = self._docs.get(path)
        data = copy.deepcopy(current.data) if current else {}
        data.update(copy.deepcopy(fields))

        doc = StoredDocument(
            path=path,
            data=data,
            version=(current.version if current else 0) + 1,
            updated_at=datetime.now(),
        )
        self._docs[path] = doc
        return copy.deepcopy(doc)


class InMemoryTripRepository:
    """In-memory implementation of TripRepository."""

    def __init__(self, trips: list[TripRecord] | None = None) -> None:
        self._trips: dict[str, TripRecord] = {t.trip_id: t for t in trips or []}

    def add_trip(self, trip: TripRecord) -> None:
        self._trips[trip.trip_id] = trip

    async def get_trip(self, trip_id: str) -> TripRecord | None:
        """Get trip by ID."""
        return self._trips.get(trip_id)


class InMemoryChangeLog:
    """In-memory implementation of ChangeLog."""

    def __init__(self) -> None:
        self._changes: list[ChangeRecord] = []

    async def append(
        self, trip_id: str, actor_id: str, action: str, payload: dict[str, Any]
    ) -> str:
        """Append a change."""
        change_id = uuid.uuid4().hex
        self._changes.append(
            ChangeRecord(
                change_id=change_id,
                trip_id=trip_id,
                actor_id=actor_id,
                action=action,
                payload=copy.deepcopy(payload),
                ts=datetime.now(),
            )
        )
        return change_id

    async def list_changes(self, trip_id: str, limit: int = 50) -> list[ChangeRecord]:
        """List most recent changes, newest first."""
        results = [c for c in self._changes if c.trip_id == trip_id]

        # Insertion order breaks timestamp ties
        results = list(reversed(results))
        results.sort(key=lambda c: c.ts, reverse=True)

        return results[:limit]


class InMemoryBookingSource:
    """In-memory implementation of BookingSource keyed by user ID."""

    def __init__(self) -> None:
        self._flights: dict[str, list[dict[str, Any]]] = {}
        self._hotels: dict[str, list[dict[str, Any]]] = {}

    def add_flight_booking(self, user_id: str, booking: dict[str, Any]) -> None:
        self._flights.setdefault(user_id, []).append(copy.deepcopy(booking))

    def add_hotel_booking(self, user_id: str, booking: dict[str, Any]) -> None:
        self._hotels.setdefault(user_id, []).append(copy.deepcopy(booking))

    async def list_flight_bookings(self, user_id: str) -> list[dict[str, Any]]:
        """List flight bookings for user."""
        return copy.deepcopy(self._flights.get(user_id, []))

    async def list_hotel_bookings(self, user_id: str) -> list[dict[str, Any]]:
        """List hotel bookings for user."""
        return copy.deepcopy(self._hotels.get(user_id, []))

    async def get_flight_booking(self, user_id: str, booking_id: str) -> dict[str, Any] | None:
        """Get one flight booking."""
        return _find_booking(self._flights.get(user_id, []), booking_id)

    async def get_hotel_booking(self, user_id: str, booking_id: str) -> dict[str, Any] | None:
        """Get one hotel booking."""
        return _find_booking(self._hotels.get(user_id, []), booking_id)


def _find_booking(bookings: list[dict[str, Any]], booking_id: str) -> dict[str, Any] | None:
    for booking in bookings:
        if str(booking.get("id")) == booking_id:
            return copy.deepcopy(booking)
    return None
