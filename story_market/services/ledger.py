"""
Capacity ledger: how many travellers are already committed against a listing.

The ledger always reads from the store through the connection it was built
with; it is created per booking attempt (or per search) and never cached
across requests.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from sqlalchemy.engine import Connection

from story_market.db.readers.bookings import fetch_booked_spans, sum_party_size_overlapping
from story_market.domain.bookings import CapacityCountingPolicy
from story_market.utils.datetime import iter_days


def aggregate_occupancy(
    spans: Iterable[tuple[date, date, int]], start: date, end: date
) -> dict[date, int]:
    """
    Per-date occupancy over [start, end] from booked (start, end, party_size) spans.

    Uses a difference array over the requested window, so the cost is
    O(bookings + days) instead of one query per day.

    Example:
        >>> d1, d2, d3 = date(2025, 12, 14), date(2025, 12, 15), date(2025, 12, 16)
        >>> aggregate_occupancy([(d1, d2, 3)], d1, d3)
        {datetime.date(2025, 12, 14): 3, datetime.date(2025, 12, 15): 3, datetime.date(2025, 12, 16): 0}
    """
    size = (end - start).days + 1
    deltas = [0] * (size + 1)
    for span_start, span_end, party_size in spans:
        first = max(span_start, start)
        last = min(span_end, end)
        if first > last:
            continue
        deltas[(first - start).days] += party_size
        deltas[(last - start).days + 1] -= party_size

    occupancy: dict[date, int] = {}
    running = 0
    for offset, day in enumerate(iter_days(start, end)):
        running += deltas[offset]
        occupancy[day] = running
    return occupancy


class CapacityLedger:
    """
    Occupancy reads for one counting policy over one connection.

    Args:
        conn: Connection to read through (inside the booking transaction when
            used for validation)
        policy: Which bookings count towards occupancy
    """

    def __init__(self, conn: Connection, policy: CapacityCountingPolicy):
        self.conn = conn
        self.policy = policy

    def occupancy(self, listing_id: str, day: date) -> int:
        return self.occupancy_by_date(listing_id, day, day)[day]

    def occupancy_by_date(self, listing_id: str, start: date, end: date) -> dict[date, int]:
        """Occupancy for every date in [start, end] from a single range query."""
        spans = fetch_booked_spans(self.conn, listing_id, start, end, self.policy)
        return aggregate_occupancy(spans, start, end)

    def occupancy_for_range(self, listing_id: str, start: date, end: date) -> int:
        """Travellers in bookings overlapping [start, end], each booking counted once."""
        return sum_party_size_overlapping(self.conn, listing_id, start, end, self.policy)

