"""Shared trip endpoints - itinerary change history."""

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from backend.app.api.auth import get_current_context
from backend.app.api.deps import get_change_log, get_trip_repository
from backend.app.config import Settings, get_settings
from backend.app.db.context import RequestContext
from backend.app.db.repositories import ChangeLog, TripRepository

router = APIRouter(prefix="/trips", tags=["trips"])


class ChangeResponse(BaseModel):
    """Single itinerary change on a shared trip."""

    change_id: str
    trip_id: str
    actor_id: str
    action: str
    payload: dict[str, Any]
    ts: datetime


@router.get("/{trip_id}/changes", response_model=list[ChangeResponse])
async def list_trip_changes(
    trip_id: str,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    trips: Annotated[TripRepository, Depends(get_trip_repository)],
    change_log: Annotated[ChangeLog, Depends(get_change_log)],
    settings: Annotated[Settings, Depends(get_settings)],
    limit: Annotated[int | None, Query(ge=1, le=200)] = None,
) -> list[ChangeResponse]:
    """List recent itinerary changes for a trip, newest first (members only)."""
    trip = await trips.get_trip(trip_id)
    if trip is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip not found")

    if not trip.is_member(ctx.user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden. You are not a member of this trip.",
        )

    changes = await change_log.list_changes(trip_id, limit=limit or settings.change_log_limit)

    return [
        ChangeResponse(
            change_id=c.change_id,
            trip_id=c.trip_id,
            actor_id=c.actor_id,
            action=c.action,
            payload=c.payload,
            ts=c.ts,
        )
        for c in changes
    ]
