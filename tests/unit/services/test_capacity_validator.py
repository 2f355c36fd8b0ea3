"""
Unit tests for CapacityValidator using an in-memory ledger.
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from story_market.domain.availability import DateRange, Scheduled, YearRound
from story_market.domain.errors import CapacityExceeded, DurationMismatch, ListingNotBookable
from story_market.services.capacity import CapacityValidator
from story_market.services.ledger import aggregate_occupancy


class InMemoryLedger:
    """Ledger over a list of (start, end, party_size) spans."""

    def __init__(self, spans: list[tuple[date, date, int]] | None = None):
        self.spans = list(spans or [])

    def book(self, start: date, end: date, party_size: int) -> None:
        self.spans.append((start, end, party_size))

    def occupancy_by_date(self, listing_id: str, start: date, end: date) -> dict[date, int]:
        return aggregate_occupancy(self.spans, start, end)

    def occupancy_for_range(self, listing_id: str, start: date, end: date) -> int:
        return sum(p for s, e, p in self.spans if s <= end and e >= start)


DAY = date(2025, 12, 15)


@pytest.mark.unit
def test_capacity_boundary_scenario(make_listing) -> None:
    """Capacity 10 with 8 booked: +2 fits, then +1 is rejected on that date."""
    listing = make_listing(availability=YearRound(length_days=1, daily_capacity=10))
    ledger = InMemoryLedger([(DAY, DAY, 8)])
    validator = CapacityValidator(ledger)
    booking_range = DateRange(DAY, DAY)

    assert validator.validate(listing, booking_range, 2) == 10
    ledger.book(DAY, DAY, 2)

    with pytest.raises(CapacityExceeded) as exc_info:
        validator.validate(listing, booking_range, 1)

    assert exc_info.value.ceiling == 10
    assert exc_info.value.violating_date == DAY
    assert exc_info.value.details() == {"ceiling": 10, "date": "2025-12-15"}


@pytest.mark.unit
def test_first_violating_date_is_reported(make_listing) -> None:
    """Multi-day booking fails on the first over-capacity day, not the first day."""
    listing = make_listing(availability=YearRound(length_days=3, daily_capacity=5))
    ledger = InMemoryLedger([(DAY + timedelta(days=1), DAY + timedelta(days=2), 4)])

    with pytest.raises(CapacityExceeded) as exc_info:
        CapacityValidator(ledger).validate(listing, DateRange(DAY, DAY + timedelta(days=2)), 2)

    assert exc_info.value.violating_date == DAY + timedelta(days=1)
    assert exc_info.value.occupied == 4


@pytest.mark.unit
def test_year_round_wrong_length_is_duration_mismatch_even_with_capacity(make_listing) -> None:
    listing = make_listing(availability=YearRound(length_days=3, daily_capacity=50))

    with pytest.raises(DurationMismatch):
        CapacityValidator(InMemoryLedger()).validate(listing, DateRange(DAY, DAY), 1)


@pytest.mark.unit
def test_scheduled_window_rejection_scenario(scheduled_listing) -> None:
    """A booking starting before the scheduled window is rejected."""
    booking_range = DateRange(date(2026, 1, 5), date(2026, 1, 12))

    with pytest.raises(DurationMismatch):
        CapacityValidator(InMemoryLedger()).validate(scheduled_listing, booking_range, 1)


@pytest.mark.unit
def test_scheduled_capacity_is_one_pool(scheduled_listing) -> None:
    """Bookings on different days of the window share the scheduled capacity."""
    ledger = InMemoryLedger(
        [
            (date(2026, 1, 10), date(2026, 1, 12), 6),
            (date(2026, 1, 15), date(2026, 1, 20), 5),
        ]
    )
    validator = CapacityValidator(ledger)
    window = DateRange(date(2026, 1, 10), date(2026, 1, 20))

    assert validator.validate(scheduled_listing, window, 1) == 12

    with pytest.raises(CapacityExceeded) as exc_info:
        validator.validate(scheduled_listing, window, 2)

    assert exc_info.value.ceiling == 12
    assert exc_info.value.violating_date == date(2026, 1, 10)


@pytest.mark.unit
def test_scheduled_pool_counts_bookings_outside_requested_days(scheduled_listing) -> None:
    """10 of 12 seats taken early in the window leaves 2 for a later, non-overlapping range."""
    ledger = InMemoryLedger([(date(2026, 1, 10), date(2026, 1, 12), 10)])
    validator = CapacityValidator(ledger)
    later = DateRange(date(2026, 1, 15), date(2026, 1, 20))

    with pytest.raises(CapacityExceeded) as exc_info:
        validator.validate(scheduled_listing, later, 5)

    assert exc_info.value.occupied == 10
    assert exc_info.value.violating_date == date(2026, 1, 15)
    assert validator.validate(scheduled_listing, later, 2) == 12


@pytest.mark.unit
@pytest.mark.parametrize("status",["DRAFT", "INCOMPLETE", "PUBLISHED", "REJECTED"])
def test_unapproved_listing_is_not_bookable(make_listing, status: str) -> None:
    listing = make_listing(status=status)

    with pytest.raises(ListingNotBookable):
        CapacityValidator(InMemoryLedger()).validate(listing, DateRange(DAY, DAY), 1)


@pytest.mark.unit
def test_not_bookable_is_checked_before_duration(make_listing) -> None:
    listing = make_listing(status="DRAFT", availability=YearRound(length_days=3, daily_capacity=5))

    with pytest.raises(ListingNotBookable):
        CapacityValidator(InMemoryLedger()).validate(listing, DateRange(DAY, DAY), 1)


@pytest.mark.unit
def test_scheduled_type_check_uses_window_fields() -> None:
    """Scheduled availability never exposes daily capacity fields."""
    availability = Scheduled(date(2026, 1, 10), date(2026, 1, 20), scheduled_capacity=12)

    assert not hasattr(availability, "daily_capacity")
    assert availability.capacity == 12
