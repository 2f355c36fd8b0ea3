"""Search request and candidate types shared by the search pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from story_market.domain.availability import AvailabilityType
from story_market.domain.listings import ListingRecord


class SortMode(str, enum.Enum):
    RELEVANCE = "relevance"
    PRICE_LOW_TO_HIGH = "price_low_to_high"
    PRICE_HIGH_TO_LOW = "price_high_to_low"


class CandidateStage(str, enum.Enum):
    PROXIMITY = "proximity"
    ADMIN_BOUNDARY = "admin_boundary"
    SAME_STATE = "same_state"


@dataclass(frozen=True)
class SearchOrigin:
    lat: float
    lon: float
    state: Optional[str] = None
    district: Optional[str] = None
    name: Optional[str] = None
    suburb: Optional[str] = None
    town: Optional[str] = None


@dataclass(frozen=True)
class SearchFilters:
    tags: tuple[str, ...] = ()
    availability_type: Optional[AvailabilityType] = None
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None


@dataclass(frozen=True)
class SearchRequest:
    origin: SearchOrigin
    search_date: date
    party_size: int
    filters: SearchFilters = field(default_factory=SearchFilters)
    sort_by: SortMode = SortMode.RELEVANCE
    limit: int = 20


@dataclass(frozen=True)
class Candidate:
    """A listing found by one planner stage, before scoring."""

    listing: ListingRecord
    stage: CandidateStage
    distance_km: Optional[float] = None


@dataclass(frozen=True)
class ScoredCandidate:
    listing: ListingRecord
    stage: CandidateStage
    eligible: bool
    final_score: float = 0.0
    display_price: str = ""
    calculated_total: float = 0.0
    price_note: str = ""
    capacity: int = 0

    def to_dict(self) -> dict:
        return {
            "listing_id": self.listing.id,
            "title": self.listing.title,
            "tags": list(self.listing.tags),
            "pricing_mode": self.listing.pricing.mode.value,
            "display_price": self.display_price,
            "calculated_total": self.calculated_total,
            "final_score": self.final_score,
            "price_note": self.price_note,
        }
