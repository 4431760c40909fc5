"""Common types and enums shared across all models."""

from enum import Enum


class EventType(str, Enum):
    """Provenance of an itinerary event."""

    manual = "manual"
    flight = "flight"
    hotel = "hotel"
    activity = "activity"


class ScopeKind(str, Enum):
    """Which schedule an itinerary belongs to."""

    personal = "personal"
    trip = "trip"


class SyncStatus(str, Enum):
    """Auto-save state of the in-memory collection."""

    idle = "idle"
    pending = "pending"
    saved = "saved"
    failed = "failed"
    conflict = "conflict"


PERSONAL_SCOPE_KEY = "main"
