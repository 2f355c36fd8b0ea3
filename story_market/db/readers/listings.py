"""
Listing queries used by booking and search.

The proximity stage runs on PostGIS: ST_DWithin over the GiST-indexed
geography column filters by radius, ST_Distance orders nearest-first.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from geoalchemy2 import Geography
from sqlalchemy import ColumnElement, and_, cast, func, or_, select
from sqlalchemy.engine import Connection

from story_market.domain.availability import AvailabilityType
from story_market.domain.listings import BOOKABLE_STATUSES, ListingRecord, listing_from_row
from story_market.models.listings import Listing

METRES_PER_KM = 1000.0


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _contains(column: Any, value: str) -> ColumnElement[bool]:
    """Case-insensitive substring match with LIKE wildcards in value escaped."""
    return column.ilike(f"%{_escape_like(value)}%", escape="\\")


def _point(lat: float, lon: float) -> ColumnElement[Any]:
    return cast(func.ST_SetSRID(func.ST_MakePoint(lon, lat), 4326), Geography(srid=4326))


def _searchable_filters(
    availability_type: Optional[AvailabilityType], exclude_ids: Iterable[str] = ()
) -> list[ColumnElement[bool]]:
    filters: list[ColumnElement[bool]] = [Listing.status.in_(sorted(BOOKABLE_STATUSES))]
    if availability_type is not None:
        filters.append(Listing.availability_type == availability_type.value)
    excluded = list(exclude_ids)
    if excluded:
        filters.append(Listing.id.not_in(excluded))
    return filters


def get_listing(conn: Connection, listing_id: str, lock: bool = False) -> Optional[ListingRecord]:
    """
    Fetch a listing by id.

    Args:
        conn: Active database connection
        listing_id: Listing (story) id
        lock: Take a row lock (SELECT ... FOR UPDATE) held until the caller's
            transaction ends. Booking attempts use this to serialize on the
            listing.

    Returns:
        ListingRecord, or None if no such listing exists
    """
    stmt = select(Listing).where(Listing.id == listing_id)
    if lock:
        stmt = stmt.with_for_update()
    row = conn.execute(stmt).fetchone()
    return listing_from_row(row) if row else None


def find_nearby_listings(
    conn: Connection,
    lat: float,
    lon: float,
    radius_km: float,
    limit: int,
    availability_type: Optional[AvailabilityType] = None,
) -> list[tuple[ListingRecord, float]]:
    """
    Bookable listings within radius_km of (lat, lon), nearest first.

    Listings without coordinates never match this query.

    Returns:
        List of (listing, distance_km) tuples
    """
    origin = _point(lat, lon)
    distance = (func.ST_Distance(Listing.geog, origin) / METRES_PER_KM).label("distance_km")

    stmt = (
        select(Listing, distance)
        .where(
            func.ST_DWithin(Listing.geog, origin, radius_km * METRES_PER_KM),
            *_searchable_filters(availability_type),
        )
        .order_by(distance, Listing.id)
        .limit(limit)
    )
    rows = conn.execute(stmt).fetchall()
    return [(listing_from_row(row), float(row.distance_km)) for row in rows]


def find_listings_by_admin_hints(
    conn: Connection,
    district: Optional[str],
    state: Optional[str],
    name: Optional[str],
    exclude_ids: Iterable[str],
    limit: int,
    availability_type: Optional[AvailabilityType] = None,
) -> list[ListingRecord]:
    """
    Bookable listings whose district, state, or locality name/town contains a hint.

    Returns an empty list without querying when no hint is provided.
    """
    matches: list[ColumnElement[bool]] = []
    if district:
        matches.append(_contains(Listing.district, district))
    if state:
        matches.append(_contains(Listing.state, state))
    if name:
        matches.append(_contains(Listing.locality_name, name))
        matches.append(_contains(Listing.town, name))
    if not matches:
        return []

    stmt = (
        select(Listing)
        .where(and_(or_(*matches), *_searchable_filters(availability_type, exclude_ids)))
        .order_by(Listing.created_at, Listing.id)
        .limit(limit)
    )
    return [listing_from_row(row) for row in conn.execute(stmt).fetchall()]


def find_listings_in_state(
    conn: Connection,
    state: str,
    exclude_ids: Iterable[str],
    limit: int,
    availability_type: Optional[AvailabilityType] = None,
) -> list[ListingRecord]:
    """Bookable listings whose state contains the given state name."""
    stmt = (
        select(Listing)
        .where(_contains(Listing.state, state), *_searchable_filters(availability_type, exclude_ids))
        .order_by(Listing.created_at, Listing.id)
        .limit(limit)
    )
    return [listing_from_row(row) for row in conn.execute(stmt).fetchall()]
