"""Repository protocol interfaces for data access."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol


class VersionConflictError(Exception):
    """Conditional write rejected because the stored version moved on."""

    def __init__(self, path: str, expected: int, actual: int) -> None:
        super().__init__(f"version conflict on {path}: expected {expected}, found {actual}")
        self.path = path
        self.expected = expected
        self.actual = actual


@dataclass
class StoredDocument:
    """JSON-like document plus its store-managed version."""

    path: str
    data: dict[str, Any]
    version: int
    updated_at: datetime


@dataclass
class TripRecord:
    """Shared trip membership data."""

    trip_id: str
    owner_id: str
    accepted: list[str]
    max_members: int

    def is_member(self, user_id: str) -> bool:
        return user_id in self.accepted


@dataclass
class ChangeRecord:
    """Audit entry for an edit to a shared trip itinerary."""

    change_id: str
    trip_id: str
    actor_id: str
    action: str
    payload: dict[str, Any]
    ts: datetime


class ReplaceableDocumentStore(Protocol):
    """Store whose writes replace the whole document."""

    async def get(self, path: str) -> StoredDocument | None:
        """Get document by path.

        Args:
            path: Document path

        Returns:
            Stored document or None if absent
        """
        ...

    async def replace(
        self, path: str, data: dict[str, Any], expected_version: int | None = None
    ) -> int:
        """Overwrite the document at path.

        Args:
            path: Document path
            data: Full document content
            expected_version: If given, write only when the stored version
                matches (0 means "document must not exist yet")

        Returns:
            New version number

        Raises:
            VersionConflictError: If expected_version does not match
        """
        ...


class MergeableDocumentStore(Protocol):
    """Store whose writes upsert individual top-level fields."""

    async def get(self, path: str) -> StoredDocument | None:
        """Get document by path."""
        ...

    async def merge(self, path: str, fields: dict[str, Any]) -> StoredDocument:
        """Upsert the given fields, keeping all others.

        Args:
            path: Document path
            fields: Top-level fields to set

        Returns:
            Document after the merge
        """
        ...


class TripRepository(Protocol):
    """Repository for shared trip membership."""

    async def get_trip(self, trip_id: str) -> TripRecord | None:
        """Get trip by ID.

        Args:
            trip_id: Trip ID

        Returns:
            Trip record or None if not found
        """
        ...


class ChangeLog(Protocol):
    """Append-only history of shared trip itinerary edits."""

    async def append(
        self, trip_id: str, actor_id: str, action: str, payload: dict[str, Any]
    ) -> str:
        """Append a change.

        Returns:
            Change ID
        """
        ...

    async def list_changes(self, trip_id: str, limit: int = 50) -> list[ChangeRecord]:
        """List most recent changes, newest first."""
        ...


class BookingSource(Protocol):
    """Read access to a traveler's confirmed bookings (provider JSON shape)."""

    async def list_flight_bookings(self, user_id: str) -> list[dict[str, Any]]:
        """List flight bookings for user."""
        ...

    async def list_hotel_bookings(self, user_id: str) -> list[dict[str, Any]]:
        """List hotel bookings for user."""
        ...

    async def get_flight_booking(self, user_id: str, booking_id: str) -> dict[str, Any] | None:
        """Get one flight booking, or None if the user has no such booking."""
        ...

    async def get_hotel_booking(self, user_id: str, booking_id: str) -> dict[str, Any] | None:
        """Get one hotel booking, or None if the user has no such booking."""
        ...
