"""Process-wide collaborators injected into routes via FastAPI dependencies."""

from functools import lru_cache

from backend.app.adapters.booking_api import HttpBookingSource
from backend.app.config import get_settings
from backend.app.db.engine import get_async_engine
from backend.app.db.repositories import (
    BookingSource,
    ChangeLog,
    MergeableDocumentStore,
    TripRepository,
)
from backend.app.db.sql_repositories import (
    SqlBookingSource,
    SqlChangeLog,
    SqlDocumentStore,
    SqlTripRepository,
)
from backend.app.itinerary.session import ItinerarySession, SessionRegistry


@lru_cache
def get_document_store() -> SqlDocumentStore:
    """Document store shared by itinerary (replace) and preferences (merge)."""
    return SqlDocumentStore(get_async_engine())


def get_preference_store() -> MergeableDocumentStore:
    return get_document_store()


@lru_cache
def get_trip_repository() -> TripRepository:
    return SqlTripRepository(get_async_engine())


@lru_cache
def get_change_log() -> ChangeLog:
    return SqlChangeLog(get_async_engine())


@lru_cache
def get_booking_source() -> BookingSource:
    settings = get_settings()
    if settings.booking_source == "http":
        return HttpBookingSource.from_settings(settings)
    return SqlBookingSource(get_async_engine())


@lru_cache
def get_session_registry() -> SessionRegistry:
    """One registry per process; sessions share the SQL-backed collaborators."""
    settings = get_settings()

    def factory(user_id: str) -> ItinerarySession:
        return ItinerarySession(
            user_id,
            store=get_document_store(),
            trips=get_trip_repository(),
            change_log=get_change_log(),
            settings=settings,
        )

    return SessionRegistry(factory)
