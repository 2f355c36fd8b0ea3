"""
Booking creation and host rejection.

One BookingTransactionManager serves both booking flows; a flow differs only
in its capacity counting policy, its initial payment state and its fee policy.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace
from datetime import date

import structlog
from sqlalchemy.engine import Engine

from story_market.db.readers.bookings import get_booking
from story_market.db.readers.listings import get_listing
from story_market.db.writers.bookings import insert_booking, set_booking_states
from story_market.domain.availability import DateRange
from story_market.domain.bookings import (
    BookingFlow,
    BookingRecord,
    ConfirmationState,
    PaymentState,
    Traveller,
)
from story_market.domain.errors import (
    BookingAlreadyCancelled,
    BookingError,
    BookingNotFound,
    DurationMismatch,
    ListingNotFound,
    TravellerCountMismatch,
)
from story_market.metrics import booking_attempts, booking_transaction_duration, host_rejections
from story_market.services.capacity import CapacityValidator
from story_market.services.ledger import CapacityLedger
from story_market.services.pricing import FeePolicy, price_booking, verify_client_total

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BookingRequest:
    listing_id: str
    requester_id: str
    start_date: date
    end_date: date
    party_size: int
    client_total: float
    travellers: list[Traveller] = field(default_factory=list)


class BookingTransactionManager:
    """
    Creates bookings with the read-validate-write sequence in one transaction.

    The listing row is locked (SELECT ... FOR UPDATE) before occupancy is
    read, so concurrent attempts on the same listing run one after another
    and each sees the bookings committed before it.

    Args:
        engine: SQLAlchemy engine
        flow: HOST_IMMEDIATE or TRAVELLER_PAY_FIRST
        fee_policy: Fee policy applied on top of the discounted base
    """

    def __init__(self, engine: Engine, flow: BookingFlow, fee_policy: FeePolicy):
        self.engine = engine
        self.flow = flow
        self.fee_policy = fee_policy

    def create_booking(self, request: BookingRequest) -> BookingRecord:
        """
        Validate and persist a booking.

        Raises:
            TravellerCountMismatch: Manifest length differs from party_size
            ListingNotFound: No listing with the requested id
            ListingNotBookable: Listing status is not bookable
            DurationMismatch: Range violates the listing's availability
            CapacityExceeded: Booking would exceed capacity
            PricingMismatch: Client total differs from the server total

        Any other exception is a store failure; the transaction is rolled back
        and the exception propagates unchanged.
        """
        try:
            record = self._create(request)
        except BookingError as e:
            booking_attempts.labels(flow=self.flow.name, outcome=e.reason).inc()
            logger.info(
                "booking_rejected",
                flow=self.flow.name,
                listing_id=request.listing_id,
                requester_id=request.requester_id,
                reason=e.reason,
                error=str(e),
            )
            raise
        except Exception:
            booking_attempts.labels(flow=self.flow.name, outcome="internal_error").inc()
            raise

        booking_attempts.labels(flow=self.flow.name, outcome="created").inc()
        logger.info(
            "booking_created",
            flow=self.flow.name,
            booking_id=record.id,
            listing_id=record.listing_id,
            requester_id=record.requester_id,
            start_date=record.start_date.isoformat(),
            end_date=record.end_date.isoformat(),
            party_size=record.party_size,
            payment_state=record.payment_state,
            grand_total=record.pricing["grand_total"],
        )
        return record

    def _create(self, request: BookingRequest) -> BookingRecord:
        if len(request.travellers) != request.party_size:
            raise TravellerCountMismatch(len(request.travellers), request.party_size)

        try:
            booking_range = DateRange(request.start_date, request.end_date)
        except ValueError as e:
            raise DurationMismatch(str(e)) from e

        started = time.perf_counter()
        try:
            # rolled back on any exception raised inside the block
            with self.engine.begin() as conn:
                listing = get_listing(conn, request.listing_id, lock=True)
                if listing is None:
                    raise ListingNotFound(request.listing_id)

                ledger = CapacityLedger(conn, self.flow.counting_policy)
                ceiling = CapacityValidator(ledger).validate(
                    listing, booking_range, request.party_size
                )
                logger.debug(
                    "capacity_validated",
                    listing_id=listing.id,
                    ceiling=ceiling,
                    requested=request.party_size,
                )

                breakdown = price_booking(listing, request.party_size, self.fee_policy, conn)
                verify_client_total(request.client_total, breakdown)

                return insert_booking(
                    conn,
                    {
                        "id": str(uuid.uuid4()),
                        "listing_id": listing.id,
                        "requester_id": request.requester_id,
                        "start_date": booking_range.start,
                        "end_date": booking_range.end,
                        "party_size": request.party_size,
                        "confirmation_state": ConfirmationState.CONFIRMED.value,
                        "payment_state": self.flow.initial_payment_state.value,
                        "flow": self.flow.name,
                        "travellers": [traveller.to_dict() for traveller in request.travellers],
                        "pricing": breakdown.to_dict(),
                    },
                )
        finally:
            booking_transaction_duration.labels(flow=self.flow.name).observe(
                time.perf_counter() - started
            )


def reject_booking(engine: Engine, booking_id: str, requester_id: str) -> BookingRecord:
    """
    Host rejection: cancel a booking so it stops occupying capacity.

    A payment still pending is marked rejected; a captured payment is left
    as is for the refund workflow.

    Raises:
        BookingNotFound: No booking with this id
        BookingAlreadyCancelled: The booking was already cancelled
    """
    with engine.begin() as conn:
        record = get_booking(conn, booking_id, lock=True)
        if record is None:
            raise BookingNotFound(booking_id)
        if record.confirmation_state == ConfirmationState.CANCELLED.value:
            raise BookingAlreadyCancelled(booking_id)

        payment_state = PaymentState(record.payment_state)
        if payment_state is PaymentState.PENDING:
            payment_state = PaymentState.REJECTED

        set_booking_states(
            conn,
            booking_id,
            payment_state=payment_state,
            confirmation_state=ConfirmationState.CANCELLED,
        )

    host_rejections.inc()
    logger.info(
        "booking_rejected_by_host",
        booking_id=booking_id,
        listing_id=record.listing_id,
        requester_id=requester_id,
        payment_state=payment_state.value,
    )
    return replace(
        record,
        confirmation_state=ConfirmationState.CANCELLED.value,
        payment_state=payment_state.value,
    )
