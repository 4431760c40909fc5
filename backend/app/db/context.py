"""Request and scope context for document addressing."""

from dataclasses import dataclass

from backend.app.models.common import PERSONAL_SCOPE_KEY, ScopeKind


@dataclass(frozen=True)
class RequestContext:
    """Request context carrying the authenticated traveler's identity."""

    user_id: str


@dataclass(frozen=True)
class ItineraryScope:
    """Identifies which schedule an itinerary belongs to.

    A personal schedule is keyed ``main``; a shared trip is keyed by its
    trip id. Every itinerary document lives under exactly one scope.
    """

    owner_id: str
    trip_id: str | None = None

    @classmethod
    def from_key(cls, owner_id: str, scope_key: str) -> "ItineraryScope":
        """Build scope from an API scope key (``main`` or a trip id)."""
        if scope_key == PERSONAL_SCOPE_KEY:
            return cls(owner_id=owner_id)
        return cls(owner_id=owner_id, trip_id=scope_key)

    @property
    def kind(self) -> ScopeKind:
        return ScopeKind.personal if self.trip_id is None else ScopeKind.trip

    @property
    def key(self) -> str:
        return PERSONAL_SCOPE_KEY if self.trip_id is None else self.trip_id

    def document_path(self, app_id: str) -> str:
        """Store path of this scope's itinerary document."""
        if self.trip_id is None:
            return f"artifacts/{app_id}/users/{self.owner_id}/itinerary/{PERSONAL_SCOPE_KEY}"
        return f"artifacts/{app_id}/public/data/trips/{self.trip_id}/itinerary/schedule"


def preferences_path(app_id: str, user_id: str) -> str:
    """Store path of a traveler's itinerary preferences document."""
    return f"artifacts/{app_id}/users/{user_id}/preferences/itinerary"
