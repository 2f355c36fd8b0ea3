"""Read model for listings (stories) as seen by booking and search."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional

from story_market.domain.availability import Availability, availability_from_columns


class ListingStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    INCOMPLETE = "INCOMPLETE"
    PUBLISHED = "PUBLISHED"  # submitted, waiting for approval
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


BOOKABLE_STATUSES = frozenset({ListingStatus.APPROVED.value})


class PricingMode(str, enum.Enum):
    PER_PERSON = "PER_PERSON"
    PER_DAY = "PER_DAY"


@dataclass(frozen=True)
class Location:
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    name: Optional[str] = None
    suburb: Optional[str] = None
    town: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class ListingPricing:
    mode: PricingMode
    unit_amount: float = 0.0
    discount: float = 0.0
    total_price: Optional[float] = None


@dataclass(frozen=True)
class ListingRecord:
    id: str
    title: str
    status: str
    availability: Availability
    pricing: ListingPricing
    location: Location = field(default_factory=Location)
    tags: tuple[str, ...] = ()

    @property
    def is_bookable(self) -> bool:
        return self.status in BOOKABLE_STATUSES


def listing_from_row(row: Any) -> ListingRecord:
    """
    Convert a row from the listings table into a ListingRecord.

    Args:
        row: SQLAlchemy Row (or any object) exposing the Listing columns as attributes

    Returns:
        ListingRecord with its availability shape resolved
    """
    return ListingRecord(
        id=row.id,
        title=row.title,
        status=row.status,
        availability=availability_from_columns(
            availability_type=row.availability_type,
            length_days=row.length_days,
            daily_capacity=row.daily_capacity,
            window_start=row.window_start,
            window_end=row.window_end,
            scheduled_capacity=row.scheduled_capacity,
        ),
        pricing=ListingPricing(
            mode=PricingMode(row.pricing_mode),
            unit_amount=row.unit_amount or 0.0,
            discount=row.discount or 0.0,
            total_price=row.total_price,
        ),
        location=Location(
            latitude=row.latitude,
            longitude=row.longitude,
            name=row.locality_name,
            suburb=row.suburb,
            town=row.town,
            district=row.district,
            state=row.state,
        ),
        tags=tuple(row.tags or ()),
    )
