from datetime import datetime
from typing import Any, Optional

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from story_market.domain.bookings import BookingRecord, ConfirmationState, PaymentState
from story_market.models.bookings import Booking
from story_market.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def insert_booking(conn: Connection, booking: dict[str, Any]) -> BookingRecord:
    """
    Insert a booking row inside the caller's transaction.

    The caller is responsible for having validated capacity in the same
    transaction; nothing here re-checks it.

    Args:
        conn: Connection with an open transaction
        booking: Column values (id, listing_id, requester_id, start_date,
            end_date, party_size, confirmation_state, payment_state, flow,
            travellers, pricing)

    Returns:
        BookingRecord including the server-assigned created_at
    """
    now = utc_now()
    values = {**booking, "created_at": now, "updated_at": now}
    conn.execute(insert(Booking).values(values))

    logger.debug("booking_row_inserted", booking_id=values["id"], listing_id=values["listing_id"])

    return BookingRecord(
        id=values["id"],
        listing_id=values["listing_id"],
        requester_id=values["requester_id"],
        start_date=values["start_date"],
        end_date=values["end_date"],
        party_size=values["party_size"],
        confirmation_state=values["confirmation_state"],
        payment_state=values["payment_state"],
        flow=values["flow"],
        travellers=values["travellers"],
        pricing=values["pricing"],
        created_at=now,
    )


def set_booking_states(
    conn: Connection,
    booking_id: str,
    payment_state: Optional[PaymentState] = None,
    confirmation_state: Optional[ConfirmationState] = None,
) -> bool:
    """
    Transition a booking's payment and/or confirmation state.

    Used by host rejection. The capacity ledger observes the new states on
    its next read.

    Returns:
        bool: True if a booking row was updated
    """
    values: dict[str, Any] = {"updated_at": utc_now()}
    if payment_state is not None:
        values["payment_state"] = payment_state.value
    if confirmation_state is not None:
        values["confirmation_state"] = confirmation_state.value

    result = conn.execute(update(Booking).where(Booking.id == booking_id).values(**values))
    return result.rowcount > 0


def release_pending_bookings(conn: Connection, created_before: datetime) -> list[str]:
    """
    Cancel confirmed bookings whose payment is still pending past a cutoff.

    Released bookings become cancelled/rejected and stop occupying capacity
    under either counting policy.

    Returns:
        list[str]: Ids of the released bookings
    """
    stmt = (
        update(Booking)
        .where(
            Booking.payment_state == PaymentState.PENDING.value,
            Booking.confirmation_state == ConfirmationState.CONFIRMED.value,
            Booking.created_at < created_before,
        )
        .values(
            payment_state=PaymentState.REJECTED.value,
            confirmation_state=ConfirmationState.CANCELLED.value,
            updated_at=utc_now(),
        )
        .returning(Booking.id)
    )
    return [row[0] for row in conn.execute(stmt)]
