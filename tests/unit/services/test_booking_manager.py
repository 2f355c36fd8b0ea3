"""
Unit tests for BookingTransactionManager with the store mocked out.

Atomicity and concurrency are covered by the integration suite.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from story_market.domain.availability import YearRound
from story_market.domain.bookings import (
    HOST_IMMEDIATE,
    TRAVELLER_PAY_FIRST,
    BookingRecord,
    ConfirmationState,
    PaymentState,
    Traveller,
)
from story_market.domain.errors import (
    BookingAlreadyCancelled,
    BookingNotFound,
    CapacityExceeded,
    DurationMismatch,
    ListingNotFound,
    PricingMismatch,
    TravellerCountMismatch,
)
from story_market.services.booking import BookingRequest, BookingTransactionManager, reject_booking
from story_market.services.pricing import PlatformFeePolicy

DAY = date(2025, 12, 15)
TRAVELLERS = [
    Traveller(full_name="Asha Menon", email="asha@example.com", phone="+91 90000 00001"),
    Traveller(full_name="Ravi Menon", email="ravi@example.com", phone="+91 90000 00002"),
]


def as_record(conn: Any, row: dict[str, Any]) -> BookingRecord:
    """Stand-in for insert_booking that echoes the row back as a record."""
    return BookingRecord(**row, created_at=datetime(2025, 12, 1, tzinfo=timezone.utc))


@pytest.fixture
def mock_engine() -> MagicMock:
    engine = MagicMock()
    engine.begin.return_value.__enter__.return_value = MagicMock(name="conn")
    return engine


def request_for(**overrides) -> BookingRequest:
    values = {
        "listing_id": "story-1",
        "requester_id": "user-1",
        "start_date": DAY,
        "end_date": DAY,
        "party_size": 2,
        "client_total": 2050.0,
        "travellers": TRAVELLERS,
    }
    values.update(overrides)
    return BookingRequest(**values)


@pytest.mark.unit
def test_host_booking_is_persisted_with_success_payment(mock_engine, make_listing) -> None:
    listing = make_listing(availability=YearRound(length_days=1, daily_capacity=10))
    manager = BookingTransactionManager(mock_engine, HOST_IMMEDIATE, PlatformFeePolicy(50.0))

    with patch("story_market.services.booking.get_listing", return_value=listing) as mock_get, patch(
        "story_market.services.ledger.fetch_booked_spans", return_value=[(DAY, DAY, 8)]
    ), patch(
        "story_market.services.booking.insert_booking", side_effect=as_record
    ) as mock_insert:
        record = manager.create_booking(request_for())

    assert mock_get.call_args.kwargs == {"lock": True}
    mock_insert.assert_called_once()
    assert record.confirmation_state == "confirmed"
    assert record.payment_state == "success"
    assert record.flow == "host_immediate"
    assert record.pricing["grand_total"] == 2050.0
    assert len(record.travellers) == 2


@pytest.mark.unit
def test_traveller_booking_starts_pending(mock_engine, make_listing) -> None:
    manager = BookingTransactionManager(mock_engine, TRAVELLER_PAY_FIRST, PlatformFeePolicy(50.0))

    with patch("story_market.services.booking.get_listing", return_value=make_listing()), patch(
        "story_market.services.ledger.fetch_booked_spans", return_value=[]
    ) as mock_spans, patch(
        "story_market.services.booking.insert_booking", side_effect=as_record
    ):
        record = manager.create_booking(request_for())

    assert record.payment_state == "pending"
    assert mock_spans.call_args.args[4].value == "payment_success"


@pytest.mark.unit
def test_traveller_count_mismatch_never_opens_transaction(mock_engine) -> None:
    manager = BookingTransactionManager(mock_engine, HOST_IMMEDIATE, PlatformFeePolicy(50.0))

    with pytest.raises(TravellerCountMismatch):
        manager.create_booking(request_for(party_size=3))

    mock_engine.begin.assert_not_called()


@pytest.mark.unit
def test_end_before_start_is_duration_mismatch(mock_engine) -> None:
    manager = BookingTransactionManager(mock_engine, HOST_IMMEDIATE, PlatformFeePolicy(50.0))

    with pytest.raises(DurationMismatch):
        manager.create_booking(request_for(start_date=date(2025, 12, 16)))


@pytest.mark.unit
def test_missing_listing(mock_engine) -> None:
    manager = BookingTransactionManager(mock_engine, HOST_IMMEDIATE, PlatformFeePolicy(50.0))

    with patch("story_market.services.booking.get_listing", return_value=None):
        with pytest.raises(ListingNotFound):
            manager.create_booking(request_for())


@pytest.mark.unit
def test_capacity_failure_does_not_insert(mock_engine, make_listing) -> None:
    manager = BookingTransactionManager(mock_engine, HOST_IMMEDIATE, PlatformFeePolicy(50.0))

    with patch("story_market.services.booking.get_listing", return_value=make_listing()), patch(
        "story_market.services.ledger.fetch_booked_spans", return_value=[(DAY, DAY, 9)]
    ), patch("story_market.services.booking.insert_booking") as mock_insert:
        with pytest.raises(CapacityExceeded):
            manager.create_booking(request_for())

    mock_insert.assert_not_called()


@pytest.mark.unit
def test_pricing_mismatch_does_not_insert(mock_engine, make_listing) -> None:
    manager = BookingTransactionManager(mock_engine, HOST_IMMEDIATE, PlatformFeePolicy(50.0))

    with patch("story_market.services.booking.get_listing", return_value=make_listing()), patch(
        "story_market.services.ledger.fetch_booked_spans", return_value=[]
    ), patch("story_market.services.booking.insert_booking") as mock_insert:
        with pytest.raises(PricingMismatch):
            manager.create_booking(request_for(client_total=1.0))

    mock_insert.assert_not_called()


@pytest.mark.unit
def test_store_failures_propagate_unchanged(mock_engine) -> None:
    manager = BookingTransactionManager(mock_engine, HOST_IMMEDIATE, PlatformFeePolicy(50.0))

    with patch("story_market.services.booking.get_listing", side_effect=RuntimeError("db down")):
        with pytest.raises(RuntimeError, match="db down"):
            manager.create_booking(request_for())


def stored_booking(**overrides) -> BookingRecord:
    values: dict[str, Any] = {
        "id": "booking-1",
        "listing_id": "story-1",
        "requester_id": "user-1",
        "start_date": DAY,
        "end_date": DAY,
        "party_size": 2,
        "confirmation_state": "confirmed",
        "payment_state": "pending",
        "flow": "traveller_pay_first",
        "travellers": [],
        "pricing": {},
        "created_at": datetime(2025, 12, 1, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return BookingRecord(**values)


@pytest.mark.unit
@pytest.mark.parametrize(
    "payment_before,payment_after",
    [("pending", PaymentState.REJECTED), ("success", PaymentState.SUCCESS)],
)
def test_reject_booking_cancels_and_rejects_unpaid(
    mock_engine: MagicMock, payment_before: str, payment_after: PaymentState
) -> None:
    conn = mock_engine.begin.return_value.__enter__.return_value
    with patch(
        "story_market.services.booking.get_booking",
        return_value=stored_booking(payment_state=payment_before),
    ) as mock_get, patch("story_market.services.booking.set_booking_states") as mock_set:
        record = reject_booking(mock_engine, "booking-1", "host-9")

    mock_get.assert_called_once_with(conn, "booking-1", lock=True)
    mock_set.assert_called_once_with(
        conn,
        "booking-1",
        payment_state=payment_after,
        confirmation_state=ConfirmationState.CANCELLED,
    )
    assert record.confirmation_state == "cancelled"
    assert record.payment_state == payment_after.value


@pytest.mark.unit
def test_reject_missing_booking(mock_engine: MagicMock) -> None:
    with patch("story_market.services.booking.get_booking", return_value=None), patch(
        "story_market.services.booking.set_booking_states"
    ) as mock_set:
        with pytest.raises(BookingNotFound):
            reject_booking(mock_engine, "nope", "host-9")

    mock_set.assert_not_called()


@pytest.mark.unit
def test_reject_cancelled_booking_twice(mock_engine: MagicMock) -> None:
    with patch(
        "story_market.services.booking.get_booking",
        return_value=stored_booking(confirmation_state="cancelled"),
    ), patch("story_market.services.booking.set_booking_states") as mock_set:
        with pytest.raises(BookingAlreadyCancelled):
            reject_booking(mock_engine, "booking-1", "host-9")

    mock_set.assert_not_called()
