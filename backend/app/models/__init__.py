"""Models package - re-exports for convenience."""

from backend.app.models.common import PERSONAL_SCOPE_KEY, EventType, ScopeKind, SyncStatus
from backend.app.models.itinerary import (
    ActivityCandidate,
    DayGroup,
    ItineraryDocument,
    ItineraryEvent,
    ItineraryPreferences,
    ItinerarySnapshot,
    ItineraryView,
)

__all__ = [
    # Common
    "EventType",
    "ScopeKind",
    "SyncStatus",
    "PERSONAL_SCOPE_KEY",
    # Itinerary
    "ItineraryEvent",
    "ActivityCandidate",
    "DayGroup",
    "ItineraryView",
    "ItineraryDocument",
    "ItinerarySnapshot",
    "ItineraryPreferences",
]
