from typing import Any, Optional

from pydantic import BaseModel, Field


class SearchOriginPayload(BaseModel):
    """
    Origin point and optional administrative hints.

    lat/lon are loosely typed so that missing or malformed coordinates are
    reported as invalid_coordinates rather than a generic validation error.
    """

    lat: Any = Field(None, description="Latitude of the search origin")
    lon: Any = Field(None, description="Longitude of the search origin")
    state: Optional[str] = None
    district: Optional[str] = None
    name: Optional[str] = None
    suburb: Optional[str] = None
    town: Optional[str] = None


class SearchFiltersPayload(BaseModel):
    tags: list[str] = Field(default_factory=list)
    availability_type: Optional[str] = Field(None, description="YEAR_ROUND or SCHEDULED")
    budget_min: Optional[float] = Field(None, ge=0)
    budget_max: Optional[float] = Field(None, ge=0)


class SearchPayload(BaseModel):
    origin: SearchOriginPayload
    search_date: Any = Field(None, description="ISO 8601 date")
    party_size: Any = Field(None, description="Number of travellers (>= 1)")
    filters: SearchFiltersPayload = Field(default_factory=SearchFiltersPayload)
    sort_by: Optional[str] = Field(None, description="price_low_to_high, price_high_to_low or relevance")
    limit: Optional[int] = Field(None, ge=1, le=100)


class SearchResultItem(BaseModel):
    listing_id: str
    title: str
    tags: list[str]
    pricing_mode: str
    display_price: str
    calculated_total: float
    final_score: float
    price_note: str


class SearchResponse(BaseModel):
    results: list[SearchResultItem]
    total: int
