"""
Search orchestration: validate, plan candidates, score, assemble.

Search reads listings only; bookings are never queried here.
"""

from __future__ import annotations

import math
import time
from typing import Any, Iterable, Optional

import structlog
from sqlalchemy.engine import Connection

from story_market.config import DEFAULT_SEARCH_LIMIT
from story_market.domain.availability import AvailabilityType
from story_market.domain.errors import InvalidCoordinates, InvalidDate, InvalidPartySize, SearchError
from story_market.domain.search import (
    ScoredCandidate,
    SearchFilters,
    SearchOrigin,
    SearchRequest,
    SortMode,
)
from story_market.metrics import search_duration, search_requests, search_results_returned
from story_market.services.geo_search import GeoSearchPlanner
from story_market.services.results import ResultAssembler
from story_market.services.scoring import ScoringEngine
from story_market.utils.datetime import parse_calendar_date
from story_market.utils.geo import valid_coordinates

logger = structlog.get_logger(__name__)


def build_search_request(
    lat: Any,
    lon: Any,
    search_date: Any,
    party_size: Any,
    hints: Optional[dict[str, Optional[str]]] = None,
    tags: Iterable[str] = (),
    availability_type: Optional[str] = None,
    budget_min: Optional[float] = None,
    budget_max: Optional[float] = None,
    sort_by: Optional[str] = None,
    limit: Optional[int] = None,
) -> SearchRequest:
    """
    Validate raw search input and build a SearchRequest.

    Raises:
        InvalidCoordinates: lat/lon missing, not numeric or out of range
        InvalidDate: search_date is not an ISO 8601 date
        InvalidPartySize: party_size is not an integer >= 1
        SearchError: unknown sort mode or availability type
    """
    if isinstance(lat, bool) or isinstance(lon, bool):
        raise InvalidCoordinates(f"Invalid coordinates: lat={lat!r}, lon={lon!r}")
    try:
        lat_value, lon_value = float(lat), float(lon)
    except (TypeError, ValueError) as e:
        raise InvalidCoordinates(f"Invalid coordinates: lat={lat!r}, lon={lon!r}") from e
    if not (math.isfinite(lat_value) and math.isfinite(lon_value)) or not valid_coordinates(
        lat_value, lon_value
    ):
        raise InvalidCoordinates(f"Coordinates out of range: lat={lat_value}, lon={lon_value}")

    if not isinstance(search_date, str) or not search_date.strip():
        raise InvalidDate("search_date is required")
    try:
        day = parse_calendar_date(search_date.strip())
    except ValueError as e:
        raise InvalidDate(f"Invalid search_date: {search_date!r}") from e

    if isinstance(party_size, bool) or not isinstance(party_size, int) or party_size < 1:
        raise InvalidPartySize(f"party_size must be a positive integer, got {party_size!r}")

    try:
        sort_mode = SortMode(sort_by) if sort_by else SortMode.RELEVANCE
        kind = AvailabilityType.parse(availability_type) if availability_type else None
    except ValueError as e:
        raise SearchError(str(e)) from e

    hints = hints or {}
    return SearchRequest(
        origin=SearchOrigin(
            lat=lat_value,
            lon=lon_value,
            state=hints.get("state"),
            district=hints.get("district"),
            name=hints.get("name"),
            suburb=hints.get("suburb"),
            town=hints.get("town"),
        ),
        search_date=day,
        party_size=party_size,
        filters=SearchFilters(
            tags=tuple(tags),
            availability_type=kind,
            budget_min=budget_min,
            budget_max=budget_max,
        ),
        sort_by=sort_mode,
        limit=limit if limit and limit > 0 else DEFAULT_SEARCH_LIMIT,
    )


def search_listings(conn: Connection, request: SearchRequest) -> list[ScoredCandidate]:
    """
    Run a search end to end.

    Args:
        conn: Database connection (read only)
        request: Validated search request

    Returns:
        Ranked results truncated to request.limit
    """
    started = time.perf_counter()
    try:
        results = _run(conn, request)
    except SearchError as e:
        search_requests.labels(status=e.reason).inc()
        raise
    except Exception:
        search_requests.labels(status="internal_error").inc()
        raise
    finally:
        search_duration.observe(time.perf_counter() - started)

    search_requests.labels(status="success").inc()
    search_results_returned.observe(len(results))
    logger.info(
        "search_completed",
        search_date=request.search_date.isoformat(),
        party_size=request.party_size,
        sort_by=request.sort_by.value,
        results_count=len(results),
    )
    return results


def _run(conn: Connection, request: SearchRequest) -> list[ScoredCandidate]:
    planner = GeoSearchPlanner(conn)
    scorer = ScoringEngine(request)
    availability_type = request.filters.availability_type

    candidates = planner.plan(request.origin, availability_type, request.limit)
    scored = [scorer.score(c) for c in candidates]
    seen_ids = [c.listing.id for c in candidates]

    def same_state(_current: list[ScoredCandidate]) -> list[ScoredCandidate]:
        extra = planner.same_state_fallback(request.origin, availability_type, exclude_ids=seen_ids)
        return [scorer.score_fallback(c) for c in extra]

    assembler = ResultAssembler(fallback=same_state)
    return assembler.assemble(
        scored,
        budget_min=request.filters.budget_min,
        budget_max=request.filters.budget_max,
        sort_by=request.sort_by,
        limit=request.limit,
    )
