"""
Booking queries backing the capacity ledger.

All functions take the caller's connection so that, inside a booking
transaction, they read the same view the insert will be committed against.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.engine import Connection

from story_market.domain.bookings import (
    BookingRecord,
    CapacityCountingPolicy,
    ConfirmationState,
    PaymentState,
)
from story_market.models.bookings import Booking


def counted_booking_filters(policy: CapacityCountingPolicy) -> list[ColumnElement[bool]]:
    """
    WHERE clauses selecting the bookings that occupy capacity under a policy.

    ALL_CONFIRMED counts confirmed bookings whatever their payment state;
    PAYMENT_SUCCESS additionally requires payment_state = 'success'.
    """
    filters: list[ColumnElement[bool]] = [
        Booking.confirmation_state == ConfirmationState.CONFIRMED.value
    ]
    if policy is CapacityCountingPolicy.PAYMENT_SUCCESS:
        filters.append(Booking.payment_state == PaymentState.SUCCESS.value)
    return filters


def fetch_booked_spans(
    conn: Connection,
    listing_id: str,
    start: date,
    end: date,
    policy: CapacityCountingPolicy,
) -> list[tuple[date, date, int]]:
    """
    Counted bookings for a listing that overlap [start, end].

    Returns:
        List of (start_date, end_date, party_size) tuples
    """
    stmt = select(Booking.start_date, Booking.end_date, Booking.party_size).where(
        Booking.listing_id == listing_id,
        Booking.start_date <= end,
        Booking.end_date >= start,
        *counted_booking_filters(policy),
    )
    return [(row[0], row[1], row[2]) for row in conn.execute(stmt)]


def sum_party_size_overlapping(
    conn: Connection,
    listing_id: str,
    start: date,
    end: date,
    policy: CapacityCountingPolicy,
) -> int:
    """Total party size of counted bookings overlapping [start, end], each booking once."""
    stmt = select(func.coalesce(func.sum(Booking.party_size), 0)).where(
        Booking.listing_id == listing_id,
        Booking.start_date <= end,
        Booking.end_date >= start,
        *counted_booking_filters(policy),
    )
    return int(conn.execute(stmt).scalar_one())


def get_booking(conn: Connection, booking_id: str, lock: bool = False) -> Optional[BookingRecord]:
    """
    Fetch a booking by id, optionally locking its row until the transaction ends.

    Returns:
        BookingRecord, or None if not found
    """
    stmt = select(Booking).where(Booking.id == booking_id)
    if lock:
        stmt = stmt.with_for_update()
    row = conn.execute(stmt).fetchone()
    if row is None:
        return None
    return BookingRecord(
        id=row.id,
        listing_id=row.listing_id,
        requester_id=row.requester_id,
        start_date=row.start_date,
        end_date=row.end_date,
        party_size=row.party_size,
        confirmation_state=row.confirmation_state,
        payment_state=row.payment_state,
        flow=row.flow,
        travellers=row.travellers,
        pricing=row.pricing,
        created_at=row.created_at,
    )
