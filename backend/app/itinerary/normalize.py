"""Event ingestion: manual entries, activity picks and bookings → itinerary events.

Booking payloads come straight from the provider and their shape varies, so
the booking converters never raise. Anything they cannot read is skipped,
logged and counted; a booking with nothing usable yields an empty list.
"""

import logging
import math
import uuid
from datetime import datetime, time
from typing import Any

from pydantic import ValidationError

from backend.app.itinerary.errors import EventValidationError
from backend.app.models.common import EventType
from backend.app.models.itinerary import ActivityCandidate, ItineraryEvent
from backend.app.utils.metrics import metrics

logger = logging.getLogger(__name__)

DEFAULT_CHECKIN_TIME = "15:00"


def _dig(obj: Any, *path: str | int) -> Any:
    """Walk nested dicts/lists, returning None at the first missing step."""
    current = obj
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or not -len(current) <= key < len(current):
                return None
            current = current[key]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(key)
        if current is None:
            return None
    return current


def _parse_amount(value: Any) -> float | None:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    return amount if math.isfinite(amount) and amount >= 0 else None


def _skip(source: str, reason: str, booking_id: str, detail: str = "") -> None:
    metrics.inc_normalization_skip(source, reason)
    logger.warning(
        f"Skipping {source} booking data: {reason}",
        extra={"structured": {"booking_id": booking_id, "reason": reason, "detail": detail}},
    )


def manual_event(name: str | None, cost: Any, date: str | None, time: str | None) -> ItineraryEvent:
    """Build a manually entered event.

    Raises:
        EventValidationError: If name, date or time is missing or malformed,
            or cost is negative
    """
    if not name or not date or not time:
        raise EventValidationError("Please fill in the event name, date, and time.")

    amount = 0.0
    if cost not in (None, ""):
        parsed = _parse_amount(cost)
        if parsed is None:
            raise EventValidationError(f"Invalid cost: {cost!r}")
        amount = parsed

    try:
        return ItineraryEvent(
            id=f"manual-{uuid.uuid4().hex}",
            name=name,
            cost=amount,
            date=date,
            time=time,
            category="Custom Event",
            type=EventType.manual,
        )
    except ValidationError as e:
        raise EventValidationError(str(e)) from e


def activity_event(activity: ActivityCandidate, date: str | None, time: str | None) -> ItineraryEvent:
    """Schedule an activity search result at the chosen date and time.

    Raises:
        EventValidationError: If date or time is missing or malformed
    """
    if not date or not time:
        raise EventValidationError("Please select a date and time.")

    try:
        return ItineraryEvent(
            id=f"{activity.id}-{uuid.uuid4().hex}",
            name=activity.name,
            cost=activity.cost,
            date=date,
            time=time,
            category=activity.category,
            type=EventType.activity,
            description=activity.description,
            pictures=list(activity.pictures),
        )
    except ValidationError as e:
        raise EventValidationError(str(e)) from e


def _booking_id(booking: dict[str, Any], data: Any, source: str) -> str:
    booking_id = booking.get("id") or _dig(data, "id")
    if booking_id:
        return str(booking_id)

    # No stable id: events can still be built but will not dedupe
    generated = f"unidentified-{uuid.uuid4().hex}"
    _skip(source, "missing_booking_id", generated)
    return generated


def flight_booking_to_events(booking: dict[str, Any]) -> list[ItineraryEvent]:
    """Convert a confirmed flight order into one event per segment.

    The offer's total price is carried by the first emitted leg (the first
    segment of the first itinerary when the payload is well formed); every
    other leg costs 0, so summing the events yields the price exactly once.

    Args:
        booking: Stored flight booking (``{"id", "raw": {"data": {...}}}``)

    Returns:
        Events in itinerary/segment order, possibly empty
    """
    if not isinstance(booking, dict):
        _skip("flight", "not_an_object", "?")
        return []

    data = _dig(booking, "raw", "data") or booking.get("data")
    booking_id = _booking_id(booking, data, "flight")

    offer = _dig(data, "flightOffers", 0)
    if not isinstance(offer, dict):
        _skip("flight", "missing_flight_offer", booking_id)
        return []

    total = _parse_amount(_dig(offer, "price", "grandTotal") or _dig(offer, "price", "total"))
    if total is None:
        _skip("flight", "missing_price", booking_id)
        total = 0.0

    confirmation = _dig(data, "associatedRecords", 0, "reference")

    itineraries = offer.get("itineraries")
    if not isinstance(itineraries, list) or not itineraries:
        _skip("flight", "missing_itineraries", booking_id)
        return []

    events: list[ItineraryEvent] = []
    for itin_index, itinerary in enumerate(itineraries):
        segments = _dig(itinerary, "segments")
        if not isinstance(segments, list):
            _skip("flight", "missing_segments", booking_id, f"itinerary {itin_index}")
            continue

        for seg_index, segment in enumerate(segments):
            departure_at = _dig(segment, "departure", "at")
            try:
                departs = datetime.fromisoformat(str(departure_at))
            except ValueError:
                _skip("flight", "bad_departure_time", booking_id, str(departure_at))
                continue

            origin = _dig(segment, "departure", "iataCode") or "?"
            dest = _dig(segment, "arrival", "iataCode") or "?"
            carrier = _dig(segment, "carrierCode") or ""
            number = _dig(segment, "number") or ""
            leg_id = f"{itin_index}-{_dig(segment, 'id') or seg_index}"

            description = f"{origin} → {dest}"
            if confirmation:
                description += f" (confirmation {confirmation})"

            events.append(
                ItineraryEvent(
                    id=f"flight-{booking_id}-{leg_id}",
                    name=f"Flight {origin} → {dest}",
                    cost=total if not events else 0.0,
                    date=departs.date().isoformat(),
                    time=departs.strftime("%H:%M"),
                    category=f"{carrier} {number}".strip() or "Flight",
                    type=EventType.flight,
                    description=description,
                    source_booking_id=booking_id,
                )
            )

    return events


def hotel_booking_to_events(
    booking: dict[str, Any], default_checkin_time: str = DEFAULT_CHECKIN_TIME
) -> list[ItineraryEvent]:
    """Convert a confirmed hotel order into a single check-in event.

    Args:
        booking: Stored hotel booking (``{"id", "amadeusResponse": {"data": {...}}}``)
        default_checkin_time: Check-in time used when the offer has none

    Returns:
        One check-in event, or an empty list if no check-in date is present
    """
    if not isinstance(booking, dict):
        _skip("hotel", "not_an_object", "?")
        return []

    data = _dig(booking, "amadeusResponse", "data") or booking.get("data")
    booking_id = _booking_id(booking, data, "hotel")

    hotel_booking = _dig(data, "hotelBookings", 0)
    hotel = _dig(hotel_booking, "hotel") or {}
    offer = _dig(hotel_booking, "hotelOffer") or {}

    checkin_date = _dig(offer, "checkInDate") or booking.get("checkInDate")
    if not checkin_date:
        _skip("hotel", "missing_checkin_date", booking_id)
        return []

    checkin_time = _dig(offer, "checkInTime") or booking.get("checkInTime") or default_checkin_time
    try:
        checkin_time = time.fromisoformat(str(checkin_time)).strftime("%H:%M")
    except ValueError:
        _skip("hotel", "bad_checkin_time", booking_id, str(checkin_time))
        checkin_time = default_checkin_time

    cost = _parse_amount(_dig(offer, "price", "total"))
    if cost is None:
        _skip("hotel", "missing_price", booking_id)
        cost = 0.0

    hotel_name = _dig(hotel, "name") or "Hotel"
    address_parts = [
        _dig(hotel, "contact", "address", "lines", 0),
        _dig(hotel, "contact", "address", "cityName"),
    ]
    address = ", ".join(str(p) for p in address_parts if p) or None

    try:
        return [
            ItineraryEvent(
                id=f"hotel-{booking_id}",
                name=f"Check-in: {hotel_name}",
                cost=cost,
                date=str(checkin_date),
                time=checkin_time,
                category="Hotel Booking",
                type=EventType.hotel,
                description=address,
                source_booking_id=booking_id,
            )
        ]
    except ValidationError as e:
        _skip("hotel", "invalid_event", booking_id, str(e))
        return []
