"""
Relevance scoring for search candidates.

    final_score = text + boundary + tags + distance + availability + headroom

    text          +100 each for name / suburb / town equal to the hint
    boundary      +30 district, +20 state
    tags          +10 per requested tag the listing carries
    distance      max(0, 100 - 2 * km); without coordinates 30 if a boundary matched
    availability  +25 for every eligible candidate
    headroom      +15 when the capacity ceiling >= 1.2 * party size

All comparisons are case-insensitive. Same-state fallback candidates get a
flat 20 + availability bonus instead.
"""

from __future__ import annotations

from typing import Optional

from story_market.domain.availability import Scheduled
from story_market.domain.search import Candidate, ScoredCandidate, SearchRequest
from story_market.services.pricing import price_note, search_price
from story_market.utils.geo import haversine_km

TEXT_MATCH_POINTS = 100
DISTRICT_MATCH_POINTS = 30
STATE_MATCH_POINTS = 20
TAG_MATCH_POINTS = 10
MAX_DISTANCE_POINTS = 100
DISTANCE_DECAY_PER_KM = 2
NO_COORDINATES_BOUNDARY_POINTS = 30
AVAILABILITY_BONUS = 25
HEADROOM_BONUS = 15
HEADROOM_FACTOR = 1.2
FALLBACK_BASE_SCORE = 20


def _same(hint: Optional[str], value: Optional[str]) -> bool:
    if not hint or not value:
        return False
    return hint.strip().lower() == value.strip().lower()


def distance_points(distance_km: float) -> float:
    return max(0.0, MAX_DISTANCE_POINTS - distance_km * DISTANCE_DECAY_PER_KM)


class ScoringEngine:
    """
    Scores candidates for one search request.

    Eligibility compares the party with the listing's capacity ceiling
    (daily capacity, or the scheduled capacity when the search date falls
    inside the window). Bookings already made are not read here; the booking
    flow enforces remaining capacity.
    """

    def __init__(self, request: SearchRequest):
        self.request = request
        self._requested_tags = {tag.strip().lower() for tag in request.filters.tags if tag.strip()}

    def capacity_ceiling(self, candidate: Candidate) -> Optional[int]:
        """Capacity the party is compared with, or None if the search date is not bookable."""
        availability = candidate.listing.availability
        if isinstance(availability, Scheduled) and not availability.covers(self.request.search_date):
            return None
        return availability.capacity

    def _eligibility(self, candidate: Candidate) -> tuple[bool, int]:
        ceiling = self.capacity_ceiling(candidate)
        if ceiling is None:
            return False, 0
        return ceiling >= self.request.party_size, ceiling

    def score(self, candidate: Candidate) -> ScoredCandidate:
        eligible, ceiling = self._eligibility(candidate)
        if not eligible:
            return ScoredCandidate(listing=candidate.listing, stage=candidate.stage, eligible=False)

        origin = self.request.origin
        location = candidate.listing.location

        text = sum(
            TEXT_MATCH_POINTS
            for hint, value in (
                (origin.name, location.name),
                (origin.suburb, location.suburb),
                (origin.town, location.town),
            )
            if _same(hint, value)
        )

        boundary = 0
        if _same(origin.district, location.district):
            boundary += DISTRICT_MATCH_POINTS
        if _same(origin.state, location.state):
            boundary += STATE_MATCH_POINTS

        listing_tags = {tag.lower() for tag in candidate.listing.tags}
        tags = TAG_MATCH_POINTS * len(self._requested_tags & listing_tags)

        distance = 0.0
        if location.has_coordinates:
            km = candidate.distance_km
            if km is None:
                km = haversine_km(origin.lat, origin.lon, location.latitude, location.longitude)
            distance = distance_points(km)
        elif boundary > 0:
            distance = NO_COORDINATES_BOUNDARY_POINTS

        headroom = HEADROOM_BONUS if ceiling >= self.request.party_size * HEADROOM_FACTOR else 0

        return self._result(
            candidate,
            ceiling,
            text + boundary + tags + distance + AVAILABILITY_BONUS + headroom,
        )

    def score_fallback(self, candidate: Candidate) -> ScoredCandidate:
        eligible, ceiling = self._eligibility(candidate)
        if not eligible:
            return ScoredCandidate(listing=candidate.listing, stage=candidate.stage, eligible=False)
        return self._result(candidate, ceiling, FALLBACK_BASE_SCORE + AVAILABILITY_BONUS)

    def _result(self, candidate: Candidate, ceiling: int, final_score: float) -> ScoredCandidate:
        calculated_total, display_price = search_price(candidate.listing, self.request.party_size)
        return ScoredCandidate(
            listing=candidate.listing,
            stage=candidate.stage,
            eligible=True,
            final_score=final_score,
            display_price=display_price,
            calculated_total=calculated_total,
            price_note=price_note(self.request.search_date),
            capacity=ceiling,
        )
