"""Itinerary endpoints - view, add, merge bookings, remove, reload."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from backend.app.api.auth import get_current_context
from backend.app.api.deps import get_booking_source, get_session_registry
from backend.app.db.context import ItineraryScope, RequestContext
from backend.app.db.repositories import BookingSource
from backend.app.itinerary.errors import (
    BookingSourceError,
    EventNotFoundError,
    EventValidationError,
    ScopeAccessError,
    TripNotFoundError,
)
from backend.app.itinerary.session import ItinerarySession, SessionRegistry
from backend.app.models.itinerary import ActivityCandidate, ItineraryEvent, ItinerarySnapshot

router = APIRouter(prefix="/itinerary", tags=["itinerary"])


class ManualEventRequest(BaseModel):
    """Request body for adding a custom event."""

    name: str | None = None
    cost: float | str | None = None
    date: str | None = None
    time: str | None = None


class ActivityRequest(BaseModel):
    """Request body for scheduling an activity search result."""

    activity: ActivityCandidate
    date: str | None = None
    time: str | None = None


class AddEventsResponse(BaseModel):
    """Events actually added (duplicates excluded) plus the updated itinerary."""

    added: list[ItineraryEvent]
    itinerary: ItinerarySnapshot


class RemoveEventResponse(BaseModel):
    """Removed event plus the updated itinerary."""

    removed: ItineraryEvent
    itinerary: ItinerarySnapshot


@asynccontextmanager
async def open_session(
    registry: SessionRegistry, ctx: RequestContext, scope_key: str
) -> AsyncIterator[ItinerarySession]:
    """Open the caller's session on ``scope_key`` and map itinerary errors to HTTP."""
    scope = ItineraryScope.from_key(ctx.user_id, scope_key)
    try:
        async with registry.session(ctx.user_id, scope) as session:
            yield session
    except TripNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Trip not found: {e}") from e
    except ScopeAccessError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except EventValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except EventNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Event not found: {e}") from e


@router.get("/{scope_key}", response_model=ItinerarySnapshot)
async def get_itinerary(
    scope_key: str,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> ItinerarySnapshot:
    """Get the day-grouped itinerary for a scope (``main`` or a trip id)."""
    async with open_session(registry, ctx, scope_key) as session:
        return session.snapshot()


@router.post(
    "/{scope_key}/events", response_model=AddEventsResponse, status_code=status.HTTP_201_CREATED
)
async def add_manual_event(
    scope_key: str,
    request: ManualEventRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> AddEventsResponse:
    """Add a custom event."""
    async with open_session(registry, ctx, scope_key) as session:
        event = await session.add_manual(request.name, request.cost, request.date, request.time)
        return AddEventsResponse(added=[event], itinerary=session.snapshot())


@router.post(
    "/{scope_key}/activities", response_model=AddEventsResponse, status_code=status.HTTP_201_CREATED
)
async def add_activity(
    scope_key: str,
    request: ActivityRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> AddEventsResponse:
    """Schedule an activity search result."""
    async with open_session(registry, ctx, scope_key) as session:
        event = await session.add_activity(request.activity, request.date, request.time)
        return AddEventsResponse(added=[event], itinerary=session.snapshot())


@router.post("/{scope_key}/bookings/flights/{booking_id}", response_model=AddEventsResponse)
async def add_flight_booking(
    scope_key: str,
    booking_id: str,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
    bookings: Annotated[BookingSource, Depends(get_booking_source)],
) -> AddEventsResponse:
    """Merge one of the caller's flight bookings into the itinerary."""
    try:
        booking = await bookings.get_flight_booking(ctx.user_id, booking_id)
    except BookingSourceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Flight booking not found")

    async with open_session(registry, ctx, scope_key) as session:
        added = await session.add_flight_booking(booking)
        return AddEventsResponse(added=added, itinerary=session.snapshot())


@router.post("/{scope_key}/bookings/hotels/{booking_id}", response_model=AddEventsResponse)
async def add_hotel_booking(
    scope_key: str,
    booking_id: str,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
    bookings: Annotated[BookingSource, Depends(get_booking_source)],
) -> AddEventsResponse:
    """Merge one of the caller's hotel bookings into the itinerary."""
    try:
        booking = await bookings.get_hotel_booking(ctx.user_id, booking_id)
    except BookingSourceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hotel booking not found")

    async with open_session(registry, ctx, scope_key) as session:
        added = await session.add_hotel_booking(booking)
        return AddEventsResponse(added=added, itinerary=session.snapshot())


@router.delete("/{scope_key}/events/{event_id}", response_model=RemoveEventResponse)
async def remove_event(
    scope_key: str,
    event_id: str,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> RemoveEventResponse:
    """Remove an event."""
    async with open_session(registry, ctx, scope_key) as session:
        removed = await session.remove(event_id)
        return RemoveEventResponse(removed=removed, itinerary=session.snapshot())


@router.post("/{scope_key}/reload", response_model=ItinerarySnapshot)
async def reload_itinerary(
    scope_key: str,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> ItinerarySnapshot:
    """Discard unsaved edits and re-read the stored itinerary (clears conflicts)."""
    async with open_session(registry, ctx, scope_key) as session:
        await session.reload()
        return session.snapshot()
