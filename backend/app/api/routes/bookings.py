"""Booking listing endpoints - the caller's confirmed flight and hotel orders."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status

from backend.app.api.auth import get_current_context
from backend.app.api.deps import get_booking_source
from backend.app.db.context import RequestContext
from backend.app.db.repositories import BookingSource
from backend.app.itinerary.errors import BookingSourceError

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("/flights")
async def list_flight_bookings(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    bookings: Annotated[BookingSource, Depends(get_booking_source)],
) -> list[dict[str, Any]]:
    """List the caller's flight bookings in provider shape."""
    try:
        return await bookings.list_flight_bookings(ctx.user_id)
    except BookingSourceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e


@router.get("/hotels")
async def list_hotel_bookings(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    bookings: Annotated[BookingSource, Depends(get_booking_source)],
) -> list[dict[str, Any]]:
    """List the caller's hotel bookings in provider shape."""
    try:
        return await bookings.list_hotel_bookings(ctx.user_id)
    except BookingSourceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
