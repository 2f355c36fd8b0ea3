"""
End-to-end search against PostgreSQL: candidate stages, eligibility and ranking.
"""

from __future__ import annotations

from datetime import date

import pytest

from story_market.db.engine import engine
from story_market.services.search import build_search_request, search_listings

KOCHI = (9.9312, 76.2673)
SEARCH_DAY = date(2025, 12, 15)


def kerala_request(**overrides):
    values = {
        "lat": KOCHI[0],
        "lon": KOCHI[1],
        "search_date": SEARCH_DAY.isoformat(),
        "party_size": 2,
        "hints": {"state": "Kerala", "district": "Ernakulam"},
    }
    values.update(overrides)
    return build_search_request(**values)


@pytest.fixture
def kerala_listings(create_listing, create_booking) -> dict[str, str]:
    ids = {
        "too_small": create_listing(
            title="Fort Kochi Walk", latitude=9.9658, longitude=76.2421,
            district="Ernakulam", state="Kerala", daily_capacity=1,
        ),
        "open": create_listing(
            title="Mattancherry Spice Trail", latitude=9.9580, longitude=76.2590,
            district="Ernakulam", state="Kerala", daily_capacity=10, unit_amount=800,
        ),
        "no_coordinates": create_listing(
            title="Alleppey Houseboat", district="Alappuzha", state="Kerala", unit_amount=1500,
        ),
        "off_window": create_listing(
            title="Theyyam Season", latitude=9.9700, longitude=76.2800,
            district="Ernakulam", state="Kerala", availability_type="SCHEDULED",
        ),
        "elsewhere": create_listing(title="Marina Walk", district="Chennai", state="Tamil Nadu"),
        "draft": create_listing(
            title="Draft Story", latitude=9.9400, longitude=76.2600, state="Kerala", status="DRAFT",
        ),
    }
    create_booking(ids["open"], SEARCH_DAY, party_size=9)
    return ids


@pytest.mark.integration
def test_search_ranks_eligible_listings(kerala_listings) -> None:
    # "open" already has 9 of 10 seats booked; search still lists it
    with engine.connect() as conn:
        results = search_listings(conn, kerala_request())

    assert [r.listing.id for r in results] == [kerala_listings["open"], kerala_listings["no_coordinates"]]
    top = results[0]
    assert top.calculated_total == 1600.0
    assert top.display_price == "800/per person"
    assert top.price_note == "This price is lower than the average price in December"


@pytest.mark.integration
def test_small_listing_fits_a_solo_traveller(kerala_listings) -> None:
    with engine.connect() as conn:
        solo = search_listings(conn, kerala_request(party_size=1))

    assert kerala_listings["too_small"] in {r.listing.id for r in solo}


@pytest.mark.integration
def test_price_sort_and_budget(kerala_listings) -> None:
    with engine.connect() as conn:
        results = search_listings(
            conn, kerala_request(sort_by="price_high_to_low", budget_max=2500)
        )

    assert [r.calculated_total for r in results] == [1600.0]


@pytest.mark.integration
def test_scheduled_listing_inside_window(create_listing, create_booking) -> None:
    listing_id = create_listing(
        title="Theyyam Season", latitude=9.9700, longitude=76.2800, state="Kerala",
        availability_type="SCHEDULED", pricing_mode="PER_DAY", unit_amount=300,
    )
    create_booking(listing_id, date(2026, 1, 10), date(2026, 1, 20), party_size=11)

    with engine.connect() as conn:
        oversized = search_listings(
            conn, kerala_request(search_date="2026-01-12", availability_type="SCHEDULED", party_size=13)
        )
        pair = search_listings(
            conn, kerala_request(search_date="2026-01-12", availability_type="SCHEDULED")
        )

    assert oversized == []
    # eligibility is against the scheduled capacity, not what is already booked
    assert [r.listing.id for r in pair] == [listing_id]
    assert pair[0].calculated_total == 300.0
    assert pair[0].display_price == "300/per day"
