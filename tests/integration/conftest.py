"""
Shared fixtures for integration tests against a real PostgreSQL.

Tests are skipped when DATABASE_URL is unreachable or lacks PostGIS. Tables
are created from the ORM metadata once per session and emptied after every
test.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Callable, Generator, Optional

import pytest
from sqlalchemy import delete, insert, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.schema import CreateSchema

from story_market.config import SCHEMA
from story_market.db.engine import check_engine_health, engine
from story_market.domain.bookings import ConfirmationState, PaymentState
from story_market.models.base import Base
from story_market.models.bookings import Booking
from story_market.models.fees import FeeStructure
from story_market.models.listings import Listing


@pytest.fixture(scope="session", autouse=True)
def marketplace_schema() -> None:
    if not check_engine_health():
        pytest.skip("PostgreSQL not reachable at DATABASE_URL")

    try:
        with engine.begin() as conn:
            conn.execute(text("CREATE EXTENSION IF NOT EXISTS postgis"))
    except DBAPIError:
        pytest.skip("PostGIS extension not available at DATABASE_URL")

    with engine.begin() as conn:
        conn.execute(CreateSchema(SCHEMA, if_not_exists=True))
        Base.metadata.create_all(conn)


@pytest.fixture(autouse=True)
def clean_tables(marketplace_schema: None) -> Generator[None, None, None]:
    yield
    with engine.begin() as conn:
        conn.execute(delete(Booking))
        conn.execute(delete(FeeStructure))
        conn.execute(delete(Listing))


@pytest.fixture
def create_listing() -> Callable[..., str]:
    """Insert a listing row and return its id. Defaults to an approved year-round listing."""

    def _create(**overrides: Any) -> str:
        values: dict[str, Any] = {
            "id": str(uuid.uuid4()),
            "title": "Backwater Homestay",
            "status": "APPROVED",
            "availability_type": "YEAR_ROUND",
            "length_days": 1,
            "daily_capacity": 10,
            "pricing_mode": "PER_PERSON",
            "unit_amount": 1000,
            "discount": 0,
            "tags": [],
        }
        values.update(overrides)
        if values["availability_type"] == "SCHEDULED":
            values.setdefault("window_start", date(2026, 1, 10))
            values.setdefault("window_end", date(2026, 1, 20))
            values.setdefault("scheduled_capacity", 12)
            values["length_days"] = None
            values["daily_capacity"] = None
        with engine.begin() as conn:
            conn.execute(insert(Listing).values(**values))
        return values["id"]

    return _create


@pytest.fixture
def create_booking() -> Callable[..., str]:
    """Insert a booking row directly, bypassing validation, and return its id."""

    def _create(
        listing_id: str,
        start_date: date,
        end_date: Optional[date] = None,
        party_size: int = 1,
        payment_state: PaymentState = PaymentState.SUCCESS,
        confirmation_state: ConfirmationState = ConfirmationState.CONFIRMED,
        **overrides: Any,
    ) -> str:
        values: dict[str, Any] = {
            "id": str(uuid.uuid4()),
            "listing_id": listing_id,
            "requester_id": "seed-user",
            "start_date": start_date,
            "end_date": end_date or start_date,
            "party_size": party_size,
            "confirmation_state": confirmation_state.value,
            "payment_state": payment_state.value,
            "flow": "host_immediate",
            "travellers": [],
            "pricing": {},
        }
        values.update(overrides)
        with engine.begin() as conn:
            conn.execute(insert(Booking).values(**values))
        return values["id"]

    return _create
