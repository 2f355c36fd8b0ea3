from datetime import date
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.engine import Engine

from story_market.db.readers.listings import get_listing
from story_market.dependencies import get_db_engine
from story_market.domain.availability import Scheduled
from story_market.domain.bookings import CapacityCountingPolicy
from story_market.routes._errors import internal_error
from story_market.services.ledger import CapacityLedger

logger = structlog.get_logger(__name__)
router = APIRouter()

MAX_OCCUPANCY_RANGE_DAYS = 366


@router.get("/listings/{listing_id}/occupancy")
def read_occupancy(
    listing_id: str,
    start_date: date = Query(..., description="First date (inclusive)"),
    end_date: date = Query(..., description="Last date (inclusive)"),
    policy: CapacityCountingPolicy = Query(
        CapacityCountingPolicy.ALL_CONFIRMED, description="Which bookings count as occupying"
    ),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Per-date occupancy and remaining capacity of a listing.

    Scheduled listings additionally report the occupancy of their whole
    window, which is what their shared capacity is checked against.
    """
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must not be before start_date",
        )
    if (end_date - start_date).days + 1 > MAX_OCCUPANCY_RANGE_DAYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Date range must not exceed {MAX_OCCUPANCY_RANGE_DAYS} days",
        )

    try:
        with engine.connect() as conn:
            listing = get_listing(conn, listing_id)
            if listing is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Listing {listing_id} not found",
                )

            ledger = CapacityLedger(conn, policy)
            availability = listing.availability
            by_date = ledger.occupancy_by_date(listing_id, start_date, end_date)

            response: dict[str, Any] = {
                "listing_id": listing_id,
                "availability_type": availability.type.value,
                "policy": policy.value,
                "ceiling": availability.capacity,
                "dates": [
                    {
                        "date": day.isoformat(),
                        "occupied": occupied,
                        "remaining": max(0, availability.capacity - occupied),
                    }
                    for day, occupied in by_date.items()
                ],
            }
            if isinstance(availability, Scheduled):
                window_occupied = ledger.occupancy_for_range(
                    listing_id, availability.window_start, availability.window_end
                )
                response["window"] = {
                    "start_date": availability.window_start.isoformat(),
                    "end_date": availability.window_end.isoformat(),
                    "occupied": window_occupied,
                    "remaining": max(0, availability.capacity - window_occupied),
                }
            return response

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("occupancy_read_failed", listing_id=listing_id, error=str(e))
        raise internal_error()
