"""
Server-side pricing for bookings and search results.

A booking's total is derived only from the listing's stored price, its
discount and the fee policy of the booking flow. The client-submitted total is
compared against it and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Protocol

import structlog
from sqlalchemy.engine import Connection

from story_market.config import PRICE_TOLERANCE
from story_market.db.readers.fees import get_active_fees
from story_market.domain.errors import PricingMismatch
from story_market.domain.listings import ListingRecord, PricingMode
from story_market.utils.datetime import month_name

logger = structlog.get_logger(__name__)

FEE_TYPES = ("FLAT", "PERCENTAGE", "COMMISSION")


@dataclass(frozen=True)
class FeeLine:
    fee_name: str
    fee_type: str
    value: float
    calculated_amount: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "fee_name": self.fee_name,
            "fee_type": self.fee_type,
            "value": self.value,
            "calculated_amount": self.calculated_amount,
        }


def compute_fee_amount(fee_type: str, value: float, subtotal: float) -> float:
    """FLAT fees are absolute; PERCENTAGE and COMMISSION are a percent of the subtotal."""
    if fee_type == "FLAT":
        return round(value, 2)
    if fee_type in ("PERCENTAGE", "COMMISSION"):
        return round(subtotal * value / 100, 2)
    raise ValueError(f"Unknown fee type: {fee_type}")


class FeePolicy(Protocol):
    def fees(self, conn: Connection, subtotal: float) -> list[FeeLine]: ...


class ConfiguredFeePolicy:
    """Fees from the active rows of the fee table for one paying party."""

    def __init__(self, applies_to: str = "TRAVELLER"):
        self.applies_to = applies_to

    def fees(self, conn: Connection, subtotal: float) -> list[FeeLine]:
        return [
            FeeLine(
                fee_name=row["fee_name"],
                fee_type=row["fee_type"],
                value=float(row["value"]),
                calculated_amount=compute_fee_amount(row["fee_type"], float(row["value"]), subtotal),
            )
            for row in get_active_fees(conn, self.applies_to)
        ]


class PlatformFeePolicy:
    """A single flat platform fee, used when a host books on a traveller's behalf."""

    def __init__(self, amount: float):
        self.amount = amount

    def fees(self, conn: Connection, subtotal: float) -> list[FeeLine]:
        if self.amount <= 0:
            return []
        return [
            FeeLine(
                fee_name="Platform Fee",
                fee_type="FLAT",
                value=self.amount,
                calculated_amount=round(self.amount, 2),
            )
        ]


@dataclass(frozen=True)
class PricingBreakdown:
    base_amount: float
    discount: float
    total_after_discount: float
    fees: list[FeeLine] = field(default_factory=list)
    total_fees: float = 0.0
    grand_total: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_amount": self.base_amount,
            "discount": self.discount,
            "total_after_discount": self.total_after_discount,
            "fees": [fee.to_dict() for fee in self.fees],
            "total_fees": self.total_fees,
            "grand_total": self.grand_total,
        }


def base_amount(listing: ListingRecord, party_size: int) -> float:
    """
    Base price of a listing for a party.

    PER_PERSON multiplies the unit amount by the party size. PER_DAY uses the
    precomputed total price for the whole group (falling back to the unit
    amount), independent of the party size.
    """
    pricing = listing.pricing
    if pricing.mode is PricingMode.PER_PERSON:
        return round(pricing.unit_amount * party_size, 2)
    if pricing.total_price is not None:
        return round(pricing.total_price, 2)
    return round(pricing.unit_amount, 2)


def subtotal_for(listing: ListingRecord, party_size: int) -> tuple[float, float, float]:
    """Returns (base, applied discount, total after discount); the discount never exceeds the base."""
    base = base_amount(listing, party_size)
    discount = round(min(max(listing.pricing.discount, 0.0), base), 2)
    return base, discount, round(base - discount, 2)


def price_booking(listing: ListingRecord, party_size: int, fee_policy: FeePolicy, conn: Connection) -> PricingBreakdown:
    """
    Compute the authoritative pricing breakdown for a booking.

    The result depends only on the listing's stored price fields, the party
    size and the fee configuration, so repeated calls give identical totals.
    """
    base, discount, subtotal = subtotal_for(listing, party_size)
    fee_lines = fee_policy.fees(conn, subtotal)
    total_fees = round(sum(fee.calculated_amount for fee in fee_lines), 2)
    return PricingBreakdown(
        base_amount=base,
        discount=discount,
        total_after_discount=subtotal,
        fees=fee_lines,
        total_fees=total_fees,
        grand_total=round(subtotal + total_fees, 2),
    )


def verify_client_total(client_total: float, breakdown: PricingBreakdown, tolerance: float = PRICE_TOLERANCE) -> None:
    """Raise PricingMismatch when the submitted total is off by more than the tolerance."""
    # rounded before comparing so float noise at the tolerance edge is ignored
    if round(abs(client_total - breakdown.grand_total), 6) > tolerance:
        logger.info(
            "pricing_mismatch",
            client_total=client_total,
            server_total=breakdown.grand_total,
        )
        raise PricingMismatch(client_total, breakdown.grand_total)


def _format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return str(int(amount))
    return str(amount)


def search_price(listing: ListingRecord, party_size: int) -> tuple[float, str]:
    """
    Price shown on a search result.

    Returns:
        tuple: (calculated_total, display_price) where display_price reads
        "<amount>/per person" or "<amount>/per day"
    """
    pricing = listing.pricing
    if pricing.mode is PricingMode.PER_PERSON:
        return round(pricing.unit_amount * party_size, 2), f"{_format_amount(pricing.unit_amount)}/per person"

    amount = pricing.total_price if pricing.total_price is not None else pricing.unit_amount
    return round(amount, 2), f"{_format_amount(amount)}/per day"


def price_note(search_date: date) -> str:
    return f"This price is lower than the average price in {month_name(search_date)}"
