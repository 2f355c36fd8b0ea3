import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.engine import Engine

from story_market.dependencies import get_db_engine
from story_market.domain.errors import SearchError
from story_market.domain.search import SearchRequest
from story_market.metrics import search_requests
from story_market.routes._errors import internal_error, search_error_to_http
from story_market.schemas.search import SearchPayload, SearchResponse
from story_market.services.search import build_search_request, search_listings

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/search", response_model=SearchResponse)
def search(payload: SearchPayload, engine: Engine = Depends(get_db_engine)) -> SearchResponse:
    """
    Ranked search for bookable listings near an origin.

    Returns:
        SearchResponse: results ordered by relevance or price, and their count
    """
    try:
        request = _build_request(payload)
        with engine.connect() as conn:
            results = search_listings(conn, request)

        return SearchResponse(results=[r.to_dict() for r in results], total=len(results))

    except SearchError as e:
        raise search_error_to_http(e)
    except Exception as e:
        logger.exception("search_failed", error=str(e))
        raise internal_error()


def _build_request(payload: SearchPayload) -> SearchRequest:
    try:
        return build_search_request(
            lat=payload.origin.lat,
            lon=payload.origin.lon,
            search_date=payload.search_date,
            party_size=payload.party_size,
            hints={
                "state": payload.origin.state,
                "district": payload.origin.district,
                "name": payload.origin.name,
                "suburb": payload.origin.suburb,
                "town": payload.origin.town,
            },
            tags=payload.filters.tags,
            availability_type=payload.filters.availability_type,
            budget_min=payload.filters.budget_min,
            budget_max=payload.filters.budget_max,
            sort_by=payload.sort_by,
            limit=payload.limit,
        )
    except SearchError as e:
        search_requests.labels(status=e.reason).inc()
        logger.info("search_rejected", reason=e.reason, error=str(e))
        raise
