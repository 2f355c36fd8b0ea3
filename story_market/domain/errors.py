"""
Domain errors for booking and search.

Every error carries a machine-readable ``reason`` code that routes return to
callers, so "your request was invalid" can be told apart from store failures
(which are not BookingError/SearchError and surface as internal errors).
"""

from __future__ import annotations

from datetime import date
from typing import Any


class BookingError(Exception):
    """Base class for rejected booking attempts."""

    reason = "booking_rejected"

    def details(self) -> dict[str, Any]:
        return {}


class ListingNotFound(BookingError):
    reason = "listing_not_found"

    def __init__(self, listing_id: str):
        super().__init__(f"Listing {listing_id} not found")
        self.listing_id = listing_id


class ListingNotBookable(BookingError):
    reason = "listing_not_bookable"

    def __init__(self, listing_id: str, status: str):
        super().__init__(f"Listing {listing_id} is not bookable (status={status})")
        self.listing_id = listing_id
        self.status = status


class DurationMismatch(BookingError):
    reason = "duration_mismatch"


class CapacityExceeded(BookingError):
    reason = "capacity_exceeded"

    def __init__(self, ceiling: int, violating_date: date, occupied: int, requested: int):
        super().__init__(
            f"Booking exceeds maximum capacity of {ceiling} travellers "
            f"on {violating_date.isoformat()} ({occupied} already booked, {requested} requested)"
        )
        self.ceiling = ceiling
        self.violating_date = violating_date
        self.occupied = occupied
        self.requested = requested

    def details(self) -> dict[str, Any]:
        return {"ceiling": self.ceiling, "date": self.violating_date.isoformat()}


class TravellerCountMismatch(BookingError):
    reason = "traveller_count_mismatch"

    def __init__(self, provided: int, party_size: int):
        super().__init__(
            f"Number of traveller details ({provided}) must match party_size ({party_size})"
        )
        self.provided = provided
        self.party_size = party_size


class PricingMismatch(BookingError):
    reason = "pricing_mismatch"

    def __init__(self, client_total: float, server_total: float):
        super().__init__(
            f"Submitted total {client_total:.2f} does not match server total {server_total:.2f}"
        )
        self.client_total = client_total
        self.server_total = server_total

    def details(self) -> dict[str, Any]:
        return {"server_total": self.server_total}


class BookingNotFound(BookingError):
    reason = "booking_not_found"

    def __init__(self, booking_id: str):
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id


class BookingAlreadyCancelled(BookingError):
    reason = "booking_already_cancelled"

    def __init__(self, booking_id: str):
        super().__init__(f"Booking {booking_id} is already cancelled")
        self.booking_id = booking_id


class SearchError(Exception):
    """Base class for invalid search requests."""

    reason = "invalid_search"


class InvalidCoordinates(SearchError):
    reason = "invalid_coordinates"


class InvalidDate(SearchError):
    reason = "invalid_date"


class InvalidPartySize(SearchError):
    reason = "invalid_party_size"
