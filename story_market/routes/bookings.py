import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.engine import Engine

from story_market.config import DEFAULT_PLATFORM_FEE
from story_market.db.readers.bookings import get_booking
from story_market.dependencies import get_db_engine, get_requester_id
from story_market.domain.bookings import (
    HOST_IMMEDIATE,
    TRAVELLER_PAY_FIRST,
    BookingFlow,
    BookingRecord,
    Traveller,
)
from story_market.domain.errors import BookingError
from story_market.routes._errors import booking_error_to_http, internal_error
from story_market.schemas.bookings import BookingCreatePayload, BookingResponse
from story_market.services.booking import BookingRequest, BookingTransactionManager, reject_booking
from story_market.services.pricing import ConfiguredFeePolicy, FeePolicy, PlatformFeePolicy

logger = structlog.get_logger(__name__)
router = APIRouter()


def _to_response(record: BookingRecord) -> BookingResponse:
    return BookingResponse(
        booking_id=record.id,
        listing_id=record.listing_id,
        start_date=record.start_date,
        end_date=record.end_date,
        party_size=record.party_size,
        confirmation_state=record.confirmation_state,
        payment_state=record.payment_state,
        created_at=record.created_at,
        server_pricing=record.pricing,
    )


def _create(
    payload: BookingCreatePayload,
    requester_id: str,
    engine: Engine,
    flow: BookingFlow,
    fee_policy: FeePolicy,
) -> BookingResponse:
    request = BookingRequest(
        listing_id=payload.listing_id,
        requester_id=requester_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        party_size=payload.party_size,
        client_total=payload.client_pricing.grand_total,
        travellers=[
            Traveller(full_name=t.full_name, email=str(t.email), phone=t.phone)
            for t in payload.travellers
        ],
    )
    try:
        record = BookingTransactionManager(engine, flow, fee_policy).create_booking(request)
        return _to_response(record)

    except BookingError as e:
        raise booking_error_to_http(e)
    except Exception as e:
        logger.exception(
            "booking_creation_failed",
            flow=flow.name,
            listing_id=payload.listing_id,
            error=str(e),
        )
        raise internal_error()


@router.post("/bookings", status_code=status.HTTP_201_CREATED, response_model=BookingResponse)
def create_traveller_booking(
    payload: BookingCreatePayload,
    requester_id: str = Depends(get_requester_id),
    engine: Engine = Depends(get_db_engine),
) -> BookingResponse:
    """
    Traveller books and pays afterwards.

    The booking holds its capacity with payment_state=pending; capacity checks
    in this flow only count bookings whose payment succeeded. Fees come from
    the active traveller fee configuration.
    """
    return _create(payload, requester_id, engine, TRAVELLER_PAY_FIRST, ConfiguredFeePolicy("TRAVELLER"))


@router.post("/host/bookings", status_code=status.HTTP_201_CREATED, response_model=BookingResponse)
def create_host_booking(
    payload: BookingCreatePayload,
    requester_id: str = Depends(get_requester_id),
    engine: Engine = Depends(get_db_engine),
) -> BookingResponse:
    """
    Host books on a traveller's behalf; the booking is final immediately.

    Capacity checks count every confirmed booking regardless of payment.
    A flat platform fee applies.
    """
    return _create(payload, requester_id, engine, HOST_IMMEDIATE, PlatformFeePolicy(DEFAULT_PLATFORM_FEE))


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
def read_booking(
    booking_id: str,
    engine: Engine = Depends(get_db_engine),
) -> BookingResponse:
    """Return a booking with the pricing breakdown captured when it was created."""
    try:
        with engine.connect() as conn:
            record = get_booking(conn, booking_id)

        if record is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Booking {booking_id} not found",
            )
        return _to_response(record)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("booking_read_failed", booking_id=booking_id, error=str(e))
        raise internal_error()


@router.post("/host/bookings/{booking_id}/reject", response_model=BookingResponse)
def reject_host_booking(
    booking_id: str,
    requester_id: str = Depends(get_requester_id),
    engine: Engine = Depends(get_db_engine),
) -> BookingResponse:
    """
    Host rejects a booking on their listing.

    The booking is cancelled and its travellers no longer count against the
    listing's capacity. Listing ownership is enforced upstream.
    """
    try:
        return _to_response(reject_booking(engine, booking_id, requester_id))

    except BookingError as e:
        raise booking_error_to_http(e)
    except Exception as e:
        logger.exception("booking_rejection_failed", booking_id=booking_id, error=str(e))
        raise internal_error()
