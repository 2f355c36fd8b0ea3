"""
Candidate retrieval for search.

Stages run in order and each later stage only runs when the earlier ones
under-produced:

1. proximity: bookable listings within the search radius, nearest first
2. admin boundary: district / state / name-or-town substring match
3. same state: any bookable listing in the hinted state (requested by the
   result assembler when too few results survive filtering)

Candidates are de-duplicated across stages by listing id.
"""

from __future__ import annotations

from typing import Iterable, Optional

import structlog
from sqlalchemy.engine import Connection

from story_market.config import SAME_STATE_FALLBACK_LIMIT, SEARCH_RADIUS_KM
from story_market.db.readers.listings import (
    find_listings_by_admin_hints,
    find_listings_in_state,
    find_nearby_listings,
)
from story_market.domain.availability import AvailabilityType
from story_market.domain.search import Candidate, CandidateStage, SearchOrigin
from story_market.metrics import search_fallback_stages

logger = structlog.get_logger(__name__)


class GeoSearchPlanner:
    def __init__(self, conn: Connection, radius_km: float = SEARCH_RADIUS_KM):
        self.conn = conn
        self.radius_km = radius_km

    def plan(
        self,
        origin: SearchOrigin,
        availability_type: Optional[AvailabilityType],
        candidate_budget: int,
    ) -> list[Candidate]:
        """
        Run the proximity stage and, if it returns fewer than candidate_budget
        listings, the admin-boundary stage.

        Args:
            origin: Search origin with optional administrative hints
            availability_type: Restrict every stage to this availability type
            candidate_budget: Requested result count; stage caps derive from it

        Returns:
            Candidates in stage order (proximity nearest-first, then admin matches)
        """
        nearby = find_nearby_listings(
            self.conn,
            lat=origin.lat,
            lon=origin.lon,
            radius_km=self.radius_km,
            limit=candidate_budget * 3,
            availability_type=availability_type,
        )
        candidates = [
            Candidate(listing=listing, stage=CandidateStage.PROXIMITY, distance_km=distance)
            for listing, distance in nearby
        ]

        if len(candidates) < candidate_budget:
            candidates.extend(
                self.admin_boundary_fallback(
                    origin,
                    availability_type,
                    exclude_ids=[c.listing.id for c in candidates],
                    limit=candidate_budget * 2,
                )
            )

        logger.debug(
            "search_candidates_planned",
            proximity_count=len(nearby),
            total_count=len(candidates),
        )
        return candidates

    def admin_boundary_fallback(
        self,
        origin: SearchOrigin,
        availability_type: Optional[AvailabilityType],
        exclude_ids: Iterable[str],
        limit: int,
    ) -> list[Candidate]:
        name_hint = origin.name or origin.town
        if not (origin.district or origin.state or name_hint):
            return []

        search_fallback_stages.labels(stage=CandidateStage.ADMIN_BOUNDARY.value).inc()
        listings = find_listings_by_admin_hints(
            self.conn,
            district=origin.district,
            state=origin.state,
            name=name_hint,
            exclude_ids=exclude_ids,
            limit=limit,
            availability_type=availability_type,
        )
        return [Candidate(listing=listing, stage=CandidateStage.ADMIN_BOUNDARY) for listing in listings]

    def same_state_fallback(
        self,
        origin: SearchOrigin,
        availability_type: Optional[AvailabilityType],
        exclude_ids: Iterable[str],
    ) -> list[Candidate]:
        """Any bookable listing in the hinted state not already found; empty without a state hint."""
        if not origin.state:
            return []

        search_fallback_stages.labels(stage=CandidateStage.SAME_STATE.value).inc()
        listings = find_listings_in_state(
            self.conn,
            state=origin.state,
            exclude_ids=exclude_ids,
            limit=SAME_STATE_FALLBACK_LIMIT,
            availability_type=availability_type,
        )
        return [Candidate(listing=listing, stage=CandidateStage.SAME_STATE) for listing in listings]
