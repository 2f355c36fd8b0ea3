"""
Translation of domain errors into HTTP errors for route handlers.

Domain errors keep their machine reason code in the response detail so
callers can tell a rejected request apart from a store failure (500).
"""

from __future__ import annotations

from fastapi import HTTPException, status

from story_market.domain.errors import (
    BookingAlreadyCancelled,
    BookingError,
    BookingNotFound,
    CapacityExceeded,
    DurationMismatch,
    ListingNotBookable,
    ListingNotFound,
    PricingMismatch,
    SearchError,
    TravellerCountMismatch,
)

BOOKING_ERROR_STATUS: dict[type[BookingError], int] = {
    BookingNotFound: status.HTTP_404_NOT_FOUND,
    BookingAlreadyCancelled: status.HTTP_409_CONFLICT,
    ListingNotFound: status.HTTP_404_NOT_FOUND,
    ListingNotBookable: status.HTTP_409_CONFLICT,
    DurationMismatch: status.HTTP_422_UNPROCESSABLE_ENTITY,
    CapacityExceeded: status.HTTP_409_CONFLICT,
    TravellerCountMismatch: status.HTTP_422_UNPROCESSABLE_ENTITY,
    PricingMismatch: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def booking_error_to_http(error: BookingError) -> HTTPException:
    """
    Build the HTTPException for a rejected booking attempt.

    Example:
        >>> booking_error_to_http(CapacityExceeded(10, date(2025, 12, 15), 8, 3)).detail
        {'reason': 'capacity_exceeded', 'message': '...', 'ceiling': 10, 'date': '2025-12-15'}
    """
    status_code = BOOKING_ERROR_STATUS.get(type(error), status.HTTP_400_BAD_REQUEST)
    return HTTPException(
        status_code=status_code,
        detail={"reason": error.reason, "message": str(error), **error.details()},
    )


def search_error_to_http(error: SearchError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"reason": error.reason, "message": str(error)},
    )


def internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )
