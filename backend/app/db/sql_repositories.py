"""SQL implementations of repository interfaces."""

import copy
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from backend.app.db.context import RequestContext
from backend.app.db.models import Document, FlightBooking, HotelBooking, Trip, TripChange
from backend.app.db.queries import select_flight_bookings, select_hotel_bookings
from backend.app.db.repositories import (
    ChangeRecord,
    StoredDocument,
    TripRecord,
    VersionConflictError,
)


def _to_stored(row: Document) -> StoredDocument:
    return StoredDocument(
        path=row.path,
        data=copy.deepcopy(row.data),
        version=row.version,
        updated_at=row.updated_at,
    )


class SqlDocumentStore:
    """SQL implementation of ReplaceableDocumentStore and MergeableDocumentStore.

    Each call opens its own session so the store can be used from background
    auto-save tasks that outlive a request.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def get(self, path: str) -> StoredDocument | None:
        """Get document by path."""
        async with AsyncSession(self._engine, expire_on_commit=False) as session:
            row = await session.get(Document, path)

            if row is None:
                return None

            return _to_stored(row)

    async def replace(
        self, path: str, data: dict[str, Any], expected_version: int | None = None
    ) -> int:
        """Overwrite the document at path."""
        async with AsyncSession(self._engine, expire_on_commit=False) as session:
            result = await session.execute(
                select(Document).where(Document.path == path).with_for_update()
            )
            row = result.scalar_one_or_none()
            current_version = row.version if row else 0

            if expected_version is not None and expected_version != current_version:
                raise VersionConflictError(path, expected_version, current_version)

            new_version = current_version + 1
            if row is None:
                session.add(
                    Document(
                        path=path,
                        data=copy.deepcopy(data),
                        version=new_version,
                        updated_at=datetime.now(),
                    )
                )
            else:
                row.data = copy.deepcopy(data)
                row.version = new_version
                row.updated_at = datetime.now()

            try:
                await session.commit()
            except IntegrityError as e:
                # Another writer created the document first
                await session.rollback()
                raise VersionConflictError(path, current_version, current_version + 1) from e

            return new_version

    async def merge(self, path: str, fields: dict[str, Any]) -> StoredDocument:
        """Upsert the given fields, keeping all others."""
        async with AsyncSession(self._engine, expire_on_commit=False) as session:
            result = await session.execute(
                select(Document).where(Document.path == path).with_for_update()
            )
            row = result.scalar_one_or_none()

            if row is None:
                row = Document(
                    path=path,
                    data=copy.deepcopy(fields),
                    version=1,
                    updated_at=datetime.now(),
                )
                session.add(row)
            else:
                data = copy.deepcopy(row.data)
                data.update(copy.deepcopy(fields))
                row.data = data
                row.version = row.version + 1
                row.updated_at = datetime.now()

            await session.commit()
            return _to_stored(row)


class SqlTripRepository:
    """SQL implementation of TripRepository."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def get_trip(self, trip_id: str) -> TripRecord | None:
        """Get trip by ID."""
        async with AsyncSession(self._engine, expire_on_commit=False) as session:
            row = await session.get(Trip, trip_id)

            if row is None:
                return None

            return TripRecord(
                trip_id=row.trip_id,
                owner_id=row.owner_id,
                accepted=list(row.accepted or []),
                max_members=row.max_members,
            )


class SqlChangeLog:
    """SQL implementation of ChangeLog."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def append(
        self, trip_id: str, actor_id: str, action: str, payload: dict[str, Any]
    ) -> str:
        """Append a change."""
        change_id = uuid.uuid4().hex

        async with AsyncSession(self._engine, expire_on_commit=False) as session:
            session.add(
                TripChange(
                    change_id=change_id,
                    trip_id=trip_id,
                    actor_id=actor_id,
                    action=action,
                    payload=copy.deepcopy(payload),
                    ts=datetime.now(),
                )
            )
            await session.commit()

        return change_id

    async def list_changes(self, trip_id: str, limit: int = 50) -> list[ChangeRecord]:
        """List most recent changes, newest first."""
        async with AsyncSession(self._engine, expire_on_commit=False) as session:
            result = await session.execute(
                select(TripChange)
                .where(TripChange.trip_id == trip_id)
                .order_by(TripChange.seq.desc())
                .limit(limit)
            )
            rows = result.scalars().all()

        return [
            ChangeRecord(
                change_id=row.change_id,
                trip_id=row.trip_id,
                actor_id=row.actor_id,
                action=row.action,
                payload=row.payload,
                ts=row.ts,
            )
            for row in rows
        ]


class SqlBookingSource:
    """SQL implementation of BookingSource."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def list_flight_bookings(self, user_id: str) -> list[dict[str, Any]]:
        """List flight bookings for user."""
        query = select_flight_bookings(RequestContext(user_id=user_id)).order_by(
            FlightBooking.created_at.desc()
        )
        return await self._fetch_all(query)

    async def list_hotel_bookings(self, user_id: str) -> list[dict[str, Any]]:
        """List hotel bookings for user."""
        query = select_hotel_bookings(RequestContext(user_id=user_id)).order_by(
            HotelBooking.created_at.desc()
        )
        return await self._fetch_all(query)

    async def get_flight_booking(self, user_id: str, booking_id: str) -> dict[str, Any] | None:
        """Get one flight booking."""
        query = select_flight_bookings(RequestContext(user_id=user_id)).where(
            FlightBooking.booking_id == booking_id
        )
        rows = await self._fetch_all(query)
        return rows[0] if rows else None

    async def get_hotel_booking(self, user_id: str, booking_id: str) -> dict[str, Any] | None:
        """Get one hotel booking."""
        query = select_hotel_bookings(RequestContext(user_id=user_id)).where(
            HotelBooking.booking_id == booking_id
        )
        rows = await self._fetch_all(query)
        return rows[0] if rows else None

    async def _fetch_all(self, query: Any) -> list[dict[str, Any]]:
        async with AsyncSession(self._engine, expire_on_commit=False) as session:
            result = await session.execute(query)
            rows = result.scalars().all()

        # Booking id is the row key; expose it the way the provider shape does
        return [{**copy.deepcopy(row.data), "id": row.booking_id} for row in rows]
