"""
Capacity validation for a candidate booking.

Year-round listings are checked day by day against the daily capacity.
Scheduled listings are group departures: their capacity is one pool for the
whole window, so a request is checked once against the total party size of
every counted booking inside the window, whichever days it covers.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

import structlog

from story_market.domain.availability import DateRange, Scheduled, YearRound
from story_market.domain.errors import CapacityExceeded, DurationMismatch, ListingNotBookable
from story_market.domain.listings import ListingRecord
from story_market.utils.datetime import iter_days

logger = structlog.get_logger(__name__)


class OccupancyLedger(Protocol):
    def occupancy_by_date(self, listing_id: str, start: date, end: date) -> dict[date, int]: ...

    def occupancy_for_range(self, listing_id: str, start: date, end: date) -> int: ...


def check_availability_window(listing: ListingRecord, booking_range: DateRange) -> None:
    """
    Raise DurationMismatch if the range does not fit the listing's availability.

    YEAR_ROUND: the inclusive number of days must equal length_days.
    SCHEDULED: the range must lie entirely inside the scheduled window.
    """
    availability = listing.availability
    if availability.accepts(booking_range):
        return

    if isinstance(availability, YearRound):
        raise DurationMismatch(
            f"Booking spans {booking_range.length_days} days but listing {listing.id} "
            f"requires exactly {availability.length_days}"
        )
    raise DurationMismatch(
        f"Booking {booking_range.start.isoformat()}..{booking_range.end.isoformat()} is outside "
        f"the scheduled window {availability.window_start.isoformat()}.."
        f"{availability.window_end.isoformat()} of listing {listing.id}"
    )


class CapacityValidator:
    """
    Read-then-decide capacity check. Atomicity is provided by the caller's
    transaction, not by this class.
    """

    def __init__(self, ledger: OccupancyLedger):
        self.ledger = ledger

    def validate(self, listing: ListingRecord, booking_range: DateRange, party_size: int) -> int:
        """
        Validate that a booking fits the listing.

        Args:
            listing: Listing being booked
            booking_range: Requested inclusive date range
            party_size: Number of travellers

        Returns:
            int: The capacity ceiling the booking was checked against

        Raises:
            ListingNotBookable: Listing status is not bookable
            DurationMismatch: Range violates the availability rules
            CapacityExceeded: Some date (or the scheduled pool) would exceed capacity
        """
        if not listing.is_bookable:
            raise ListingNotBookable(listing.id, listing.status)

        check_availability_window(listing, booking_range)

        availability = listing.availability
        if isinstance(availability, YearRound):
            self._check_daily(listing.id, availability, booking_range, party_size)
        elif isinstance(availability, Scheduled):
            self._check_pool(listing.id, availability, booking_range, party_size)

        return availability.capacity

    def _check_daily(
        self, listing_id: str, availability: YearRound, booking_range: DateRange, party_size: int
    ) -> None:
        occupancy = self.ledger.occupancy_by_date(listing_id, booking_range.start, booking_range.end)
        for day in iter_days(booking_range.start, booking_range.end):
            occupied = occupancy.get(day, 0)
            if occupied + party_size > availability.daily_capacity:
                logger.info(
                    "capacity_exceeded",
                    listing_id=listing_id,
                    date=day.isoformat(),
                    occupied=occupied,
                    requested=party_size,
                    ceiling=availability.daily_capacity,
                )
                raise CapacityExceeded(availability.daily_capacity, day, occupied, party_size)

    def _check_pool(
        self, listing_id: str, availability: Scheduled, booking_range: DateRange, party_size: int
    ) -> None:
        # the pool covers the whole window, not just the requested days
        occupied = self.ledger.occupancy_for_range(
            listing_id, availability.window_start, availability.window_end
        )
        if occupied + party_size > availability.scheduled_capacity:
            logger.info(
                "capacity_exceeded",
                listing_id=listing_id,
                date=booking_range.start.isoformat(),
                occupied=occupied,
                requested=party_size,
                ceiling=availability.scheduled_capacity,
            )
            raise CapacityExceeded(
                availability.scheduled_capacity, booking_range.start, occupied, party_size
            )
