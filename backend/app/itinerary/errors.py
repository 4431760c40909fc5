"""Itinerary exception types."""

from backend.app.db.repositories import VersionConflictError


class ItineraryError(Exception):
    """Base class for itinerary errors."""

    pass


class EventValidationError(ItineraryError):
    """User-supplied event data was rejected before any state change."""

    pass


class EventNotFoundError(ItineraryError):
    """No event with the given id in the active itinerary."""

    pass


class ScopeAccessError(ItineraryError):
    """Caller may not read or write the requested scope."""

    pass


class TripNotFoundError(ItineraryError):
    """Shared trip does not exist."""

    pass


class BookingSourceError(ItineraryError):
    """Booking provider could not be reached or returned an error."""

    pass


__all__ = [
    "ItineraryError",
    "EventValidationError",
    "EventNotFoundError",
    "ScopeAccessError",
    "TripNotFoundError",
    "BookingSourceError",
    "VersionConflictError",
]
