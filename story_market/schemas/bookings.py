from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field


class TravellerPayload(BaseModel):
    full_name: str = Field(..., min_length=1, description="Traveller full name")
    email: EmailStr = Field(..., description="Traveller email")
    phone: str = Field(..., min_length=1, description="Traveller phone number")


class ClientPricingPayload(BaseModel):
    """
    Pricing as shown to the client. Only grand_total is compared against the
    server-side computation; the rest is accepted for display parity and ignored.
    """

    grand_total: float = Field(..., ge=0, description="Total the client expects to pay")
    base_amount: Optional[float] = Field(None, description="Client-side base amount (ignored)")
    discount: Optional[float] = Field(None, description="Client-side discount (ignored)")
    total_fees: Optional[float] = Field(None, description="Client-side fees total (ignored)")


class BookingCreatePayload(BaseModel):
    """Schema for creating a booking against a listing."""

    listing_id: str = Field(..., min_length=1, description="Listing (story) id")
    start_date: date = Field(..., description="First day of the booking (inclusive)")
    end_date: date = Field(..., description="Last day of the booking (inclusive)")
    party_size: int = Field(..., ge=1, description="Number of travellers")
    travellers: list[TravellerPayload] = Field(..., description="One entry per traveller")
    client_pricing: ClientPricingPayload


class BookingResponse(BaseModel):
    booking_id: str
    listing_id: str
    start_date: date
    end_date: date
    party_size: int
    confirmation_state: str
    payment_state: str
    created_at: datetime
    server_pricing: dict[str, Any]
