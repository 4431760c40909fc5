"""Itinerary preference endpoints - field-level upsert, never a full replace."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from backend.app.api.auth import get_current_context
from backend.app.api.deps import get_preference_store
from backend.app.config import Settings, get_settings
from backend.app.db.context import RequestContext, preferences_path
from backend.app.db.repositories import MergeableDocumentStore
from backend.app.models.itinerary import ItineraryPreferences

router = APIRouter(prefix="/preferences", tags=["preferences"])


class PreferencesPatch(BaseModel):
    """Partial preferences update; omitted fields are left untouched."""

    default_trip_id: str | None = None
    reminders_enabled: bool = True


@router.get("", response_model=ItineraryPreferences)
async def get_preferences(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    store: Annotated[MergeableDocumentStore, Depends(get_preference_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ItineraryPreferences:
    """Get the caller's preferences, storing the defaults on first access."""
    path = preferences_path(settings.app_id, ctx.user_id)
    stored = await store.get(path)

    if stored is None:
        defaults = ItineraryPreferences()
        await store.merge(path, defaults.model_dump(mode="json"))
        return defaults

    return ItineraryPreferences.model_validate(stored.data)


@router.patch("", response_model=ItineraryPreferences)
async def update_preferences(
    patch: PreferencesPatch,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    store: Annotated[MergeableDocumentStore, Depends(get_preference_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ItineraryPreferences:
    """Upsert only the fields present in the request body."""
    path = preferences_path(settings.app_id, ctx.user_id)
    doc = await store.merge(path, patch.model_dump(mode="json", exclude_unset=True))
    return ItineraryPreferences.model_validate(doc.data)
