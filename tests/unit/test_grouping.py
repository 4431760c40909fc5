"""Tests for day grouping and cost totals."""

import itertools

import pytest

from backend.app.itinerary.grouping import build_view, group_by_day, sort_events, total_cost
from backend.app.models.itinerary import ItineraryEvent


def _event(event_id: str, date: str, time: str, cost: float = 0.0) -> ItineraryEvent:
    return ItineraryEvent(id=event_id, name=event_id, cost=cost, date=date, time=time)


EVENTS = [
    _event("dinner", "2024-05-01", "19:30", 45.5),
    _event("museum", "2024-05-01", "10:00", 20),
    _event("flight", "2024-05-02", "08:30", 300),
    _event("coffee", "2024-05-01", "08:15", 4.1),
    _event("hotel", "2024-05-03", "15:00", 540),
]


def test_group_by_day_orders_days_and_events() -> None:
    """Test that days are ascending and events within a day are time-ordered."""
    groups = group_by_day(EVENTS)

    assert [g.date for g in groups] == ["2024-05-01", "2024-05-02", "2024-05-03"]
    assert [e.id for e in groups[0].events] == ["coffee", "museum", "dinner"]
    assert groups[0].day_total == pytest.approx(69.6)


def test_group_by_day_empty() -> None:
    """Test that no events yields no days."""
    assert group_by_day([]) == []


def test_total_cost_includes_zero_cost_events() -> None:
    """Test that total cost sums every event."""
    events = [*EVENTS, _event("leg2", "2024-05-02", "22:10", 0)]

    assert total_cost(events) == pytest.approx(909.6)


def test_grouping_is_permutation_invariant() -> None:
    """Test that any insertion order yields the same view."""
    expected = build_view("main", EVENTS, "USD")

    for perm in itertools.permutations(EVENTS):
        assert build_view("main", list(perm), "USD") == expected


def test_same_instant_ties_broken_by_id() -> None:
    """Test that events at the same date and time are ordered deterministically."""
    a = _event("b-second", "2024-05-01", "10:00")
    b = _event("a-first", "2024-05-01", "10:00")

    assert [e.id for e in sort_events([a, b])] == ["a-first", "b-second"]
    assert [e.id for e in sort_events([b, a])] == ["a-first", "b-second"]


def test_times_normalized_before_sorting() -> None:
    """Test that times with seconds are normalized to HH:MM and sort by clock value."""
    early = _event("early", "2024-05-01", "09:05:30")
    late = _event("late", "2024-05-01", "10:00")

    assert early.time == "09:05"
    assert [e.id for e in sort_events([late, early])] == ["early", "late"]


def test_build_view_summary_fields() -> None:
    """Test the view's scope, currency and counts."""
    view = build_view("tripA", EVENTS, "EUR")

    assert view.scope_key == "tripA"
    assert view.currency == "EUR"
    assert view.event_count == 5
    assert view.total_cost == pytest.approx(sum(g.day_total for g in view.days))
