"""Tenancy-safe query helpers."""

from sqlalchemy import Select, select

from backend.app.db.context import RequestContext
from backend.app.db.models import FlightBooking, HotelBooking


def select_flight_bookings(ctx: RequestContext) -> Select[tuple[FlightBooking]]:
    """Select flight_booking rows owned by the requesting traveler.

    Args:
        ctx: Request context with user_id

    Returns:
        Select filtered by user_id
    """
    return select(FlightBooking).where(FlightBooking.user_id == ctx.user_id)


def select_hotel_bookings(ctx: RequestContext) -> Select[tuple[HotelBooking]]:
    """Select hotel_booking rows owned by the requesting traveler.

    Args:
        ctx: Request context with user_id

    Returns:
        Select filtered by user_id
    """
    return select(HotelBooking).where(HotelBooking.user_id == ctx.user_id)
