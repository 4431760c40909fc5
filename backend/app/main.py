"""FastAPI application."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend.app.adapters.booking_api import HttpBookingSource
from backend.app.api.deps import get_booking_source, get_session_registry
from backend.app.api.routes.bookings import router as bookings_router
from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.itinerary import router as itinerary_router
from backend.app.api.routes.metrics import router as metrics_router
from backend.app.api.routes.preferences import router as preferences_router
from backend.app.api.routes.trips import router as trips_router
from backend.app.config import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Sessions end like a left scope: pending saves are dropped unless configured
    registry = app.dependency_overrides.get(get_session_registry, get_session_registry)()
    await registry.close_all(flush=get_settings().flush_on_shutdown)

    source = app.dependency_overrides.get(get_booking_source, get_booking_source)()
    if isinstance(source, HttpBookingSource):
        await source.aclose()


app = FastAPI(title="Itinerary Sync API", version="0.1.0", lifespan=lifespan)

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(itinerary_router, tags=["itinerary"])
app.include_router(bookings_router, tags=["bookings"])
app.include_router(trips_router, tags=["trips"])
app.include_router(preferences_router, tags=["preferences"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Itinerary Sync API", "version": "0.1.0"}
