"""Day-by-day derivation of an itinerary.

Pure functions: the same events in any insertion order produce the same view.
"""

import math
from collections.abc import Iterable
from datetime import date, datetime, time

from backend.app.models.itinerary import DayGroup, ItineraryEvent, ItineraryView


def event_instant(event: ItineraryEvent) -> datetime:
    """Compose an event's date and local time into one sortable instant."""
    return datetime.combine(date.fromisoformat(event.date), time.fromisoformat(event.time))


def sort_events(events: Iterable[ItineraryEvent]) -> list[ItineraryEvent]:
    """Order events by date, then time.

    Events at the same instant are ordered by id so the result does not
    depend on input order; sorting is stable beyond that.
    """
    return sorted(events, key=lambda e: (event_instant(e), e.id))


def total_cost(events: Iterable[ItineraryEvent]) -> float:
    """Sum every event's cost, zero-cost booking legs included."""
    # fsum is exactly rounded, so the total is independent of summation order
    return math.fsum(e.cost for e in events)


def group_by_day(events: Iterable[ItineraryEvent]) -> list[DayGroup]:
    """Group time-ordered events by exact ``date`` string, earliest day first."""
    days: dict[str, list[ItineraryEvent]] = {}
    for event in sort_events(events):
        days.setdefault(event.date, []).append(event)

    return [
        DayGroup(date=day, events=day_events, day_total=total_cost(day_events))
        for day, day_events in days.items()
    ]


def build_view(scope_key: str, events: list[ItineraryEvent], currency: str) -> ItineraryView:
    """Derive the grouped presentation of an itinerary."""
    return ItineraryView(
        scope_key=scope_key,
        days=group_by_day(events),
        total_cost=total_cost(events),
        currency=currency,
        event_count=len(events),
    )
