"""
Integration tests for BookingTransactionManager against PostgreSQL,
including concurrent attempts on one listing.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from threading import Barrier

import pytest
from sqlalchemy import func, insert, select

from story_market.db.engine import engine
from story_market.db.readers.bookings import get_booking
from story_market.domain.bookings import HOST_IMMEDIATE, TRAVELLER_PAY_FIRST, PaymentState, Traveller
from story_market.domain.errors import (
    BookingAlreadyCancelled,
    CapacityExceeded,
    DurationMismatch,
    ListingNotFound,
    PricingMismatch,
)
from story_market.models.bookings import Booking
from story_market.models.fees import FeeStructure
from story_market.services.booking import BookingRequest, BookingTransactionManager, reject_booking
from story_market.services.ledger import CapacityLedger
from story_market.services.pricing import ConfiguredFeePolicy, PlatformFeePolicy

DAY = date(2025, 12, 15)


def travellers(count: int) -> list[Traveller]:
    return [
        Traveller(full_name=f"Traveller {i}", email=f"t{i}@example.com", phone=f"+91 900000{i:04d}")
        for i in range(count)
    ]


def request_for(listing_id: str, party_size: int, client_total: float, **overrides) -> BookingRequest:
    values = {
        "listing_id": listing_id,
        "requester_id": "user-1",
        "start_date": DAY,
        "end_date": DAY,
        "party_size": party_size,
        "client_total": client_total,
        "travellers": travellers(party_size),
    }
    values.update(overrides)
    return BookingRequest(**values)


def host_manager() -> BookingTransactionManager:
    return BookingTransactionManager(engine, HOST_IMMEDIATE, PlatformFeePolicy(50.0))


def booking_count(listing_id: str) -> int:
    with engine.connect() as conn:
        return conn.execute(
            select(func.count()).select_from(Booking).where(Booking.listing_id == listing_id)
        ).scalar_one()


@pytest.mark.integration
def test_capacity_boundary_against_store(create_listing, create_booking) -> None:
    listing_id = create_listing(daily_capacity=10, unit_amount=100)
    create_booking(listing_id, DAY, party_size=8)

    record = host_manager().create_booking(request_for(listing_id, 2, 250.0))

    with pytest.raises(CapacityExceeded) as exc_info:
        host_manager().create_booking(request_for(listing_id, 1, 150.0))

    assert exc_info.value.violating_date == DAY
    with engine.connect() as conn:
        stored = get_booking(conn, record.id)
    assert stored.payment_state == "success"
    assert stored.pricing["grand_total"] == 250.0
    assert [t["full_name"] for t in stored.travellers] == ["Traveller 0", "Traveller 1"]


@pytest.mark.integration
def test_failed_attempt_leaves_no_row(create_listing) -> None:
    listing_id = create_listing(unit_amount=100)

    with pytest.raises(PricingMismatch):
        host_manager().create_booking(request_for(listing_id, 2, 9999.0))

    assert booking_count(listing_id) == 0


@pytest.mark.integration
def test_unknown_listing() -> None:
    with pytest.raises(ListingNotFound):
        host_manager().create_booking(request_for("no-such-listing", 1, 0.0))


@pytest.mark.integration
def test_scheduled_booking_outside_window(create_listing) -> None:
    listing_id = create_listing(availability_type="SCHEDULED")

    with pytest.raises(DurationMismatch):
        host_manager().create_booking(
            request_for(listing_id, 1, 1050.0, start_date=date(2026, 1, 5), end_date=date(2026, 1, 12))
        )


@pytest.mark.integration
def test_traveller_flow_uses_fee_table_and_payment_gated_counting(create_listing, create_booking) -> None:
    listing_id = create_listing(daily_capacity=4, unit_amount=1000, discount=100)
    with engine.begin() as conn:
        conn.execute(
            insert(FeeStructure).values(fee_name="Service Fee", fee_type="PERCENTAGE", value=10)
        )
        conn.execute(
            insert(FeeStructure).values(
                fee_name="Host Commission", fee_type="COMMISSION", value=15, applies_to="HOST"
            )
        )
    # unpaid hold: ignored by the traveller flow, counted by the host flow
    create_booking(listing_id, DAY, party_size=3, payment_state=PaymentState.PENDING)
    manager = BookingTransactionManager(engine, TRAVELLER_PAY_FIRST, ConfiguredFeePolicy("TRAVELLER"))

    # base 2000 - discount 100 = 1900, +10% = 2090
    record = manager.create_booking(request_for(listing_id, 2, 2090.0))

    assert record.payment_state == "pending"
    assert record.pricing["fees"] == [
        {"fee_name": "Service Fee", "fee_type": "PERCENTAGE", "value": 10.0, "calculated_amount": 190.0}
    ]
    with pytest.raises(CapacityExceeded):
        host_manager().create_booking(request_for(listing_id, 1, 1050.0))


@pytest.mark.integration
def test_concurrent_bookings_never_overbook(create_listing) -> None:
    """Twelve parties of 2 race for 10 seats; exactly five succeed."""
    listing_id = create_listing(daily_capacity=10, length_days=2, unit_amount=100)
    attempts = 12
    barrier = Barrier(attempts)

    def attempt(_: int) -> str:
        barrier.wait()
        try:
            host_manager().create_booking(
                request_for(listing_id, 2, 250.0, end_date=DAY + timedelta(days=1))
            )
            return "created"
        except CapacityExceeded:
            return "capacity_exceeded"

    with ThreadPoolExecutor(max_workers=attempts) as pool:
        outcomes = list(pool.map(attempt, range(attempts)))

    assert outcomes.count("created") == 5
    assert outcomes.count("capacity_exceeded") == 7
    with engine.connect() as conn:
        ledger = CapacityLedger(conn, HOST_IMMEDIATE.counting_policy)
        occupancy = ledger.occupancy_by_date(listing_id, DAY, DAY + timedelta(days=1))
    assert max(occupancy.values()) == 10


@pytest.mark.integration
def test_scheduled_pool_shared_across_window(create_listing, create_booking) -> None:
    listing_id = create_listing(availability_type="SCHEDULED")
    create_booking(listing_id, date(2026, 1, 10), date(2026, 1, 12), party_size=10)
    later = {"start_date": date(2026, 1, 15), "end_date": date(2026, 1, 20)}

    with pytest.raises(CapacityExceeded):
        host_manager().create_booking(request_for(listing_id, 5, 5050.0, **later))

    record = host_manager().create_booking(request_for(listing_id, 2, 2050.0, **later))
    assert record.party_size == 2


@pytest.mark.integration
def test_host_rejection_frees_capacity(create_listing) -> None:
    listing_id = create_listing(daily_capacity=2, unit_amount=100)
    record = host_manager().create_booking(request_for(listing_id, 2, 250.0))

    rejected = reject_booking(engine, record.id, "host-9")

    assert rejected.confirmation_state == "cancelled"
    with pytest.raises(BookingAlreadyCancelled):
        reject_booking(engine, record.id, "host-9")
    assert host_manager().create_booking(request_for(listing_id, 2, 250.0)).party_size == 2
