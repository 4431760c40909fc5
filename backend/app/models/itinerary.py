"""Itinerary models - scheduled events and the derived day-by-day view."""

from datetime import date, datetime, time

from pydantic import BaseModel, Field, field_validator

from backend.app.models.common import EventType, SyncStatus


class ItineraryEvent(BaseModel):
    """Single scheduled event in an itinerary.

    Booking-derived events are point-in-time copies: ``source_booking_id``
    records where they came from but later booking changes do not propagate.
    """

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    cost: float = Field(0.0, ge=0, allow_inf_nan=False)
    date: str
    time: str
    category: str = ""
    type: EventType | None = None
    description: str | None = None
    pictures: list[str] = Field(default_factory=list)
    source_booking_id: str | None = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        """Ensure ISO 8601 calendar date (YYYY-MM-DD)."""
        return date.fromisoformat(v).isoformat()

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Ensure 24-hour clock time, normalized to HH:MM."""
        return time.fromisoformat(v).strftime("%H:%M")


class ActivityCandidate(BaseModel):
    """Activity/POI search result awaiting a date and time."""

    id: str
    name: str
    cost: float = Field(0.0, ge=0, allow_inf_nan=False)
    category: str = "Activity"
    description: str | None = None
    pictures: list[str] = Field(default_factory=list)


class DayGroup(BaseModel):
    """Events for a single calendar date, time-ordered."""

    date: str
    events: list[ItineraryEvent]
    day_total: float


class ItineraryView(BaseModel):
    """Day-grouped presentation of an itinerary with its running total."""

    scope_key: str
    days: list[DayGroup]
    total_cost: float
    currency: str
    event_count: int


class ItineraryDocument(BaseModel):
    """Persisted form of one scope's itinerary (always fully replaced)."""

    events: list[ItineraryEvent] = Field(default_factory=list)
    updated_at: datetime | None = None
    updated_by: str | None = None


class ItinerarySnapshot(BaseModel):
    """View plus auto-save state, returned by the API."""

    view: ItineraryView
    sync_status: SyncStatus
    version: int


class ItineraryPreferences(BaseModel):
    """Per-user itinerary preferences (field-level upsert)."""

    default_trip_id: str | None = None
    reminders_enabled: bool = True
