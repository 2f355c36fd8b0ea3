"""
Booking states, counting policies and booking flows.

Two booking flows exist and they deliberately count occupancy differently:

- HOST_IMMEDIATE: a host books on a traveller's behalf and the booking is
  final straight away (payment_state=success). Occupancy counts every
  confirmed booking regardless of payment (ALL_CONFIRMED).
- TRAVELLER_PAY_FIRST: a traveller books and then pays. The booking is stored
  with payment_state=pending and occupancy only counts bookings whose payment
  succeeded (PAYMENT_SUCCESS).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any


class ConfirmationState(str, enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PaymentState(str, enum.Enum):
    PENDING = "pending"
    SUCCESS = "success"
    REJECTED = "rejected"


class CapacityCountingPolicy(str, enum.Enum):
    ALL_CONFIRMED = "all_confirmed"
    PAYMENT_SUCCESS = "payment_success"


@dataclass(frozen=True)
class BookingFlow:
    name: str
    counting_policy: CapacityCountingPolicy
    initial_payment_state: PaymentState


HOST_IMMEDIATE = BookingFlow(
    name="host_immediate",
    counting_policy=CapacityCountingPolicy.ALL_CONFIRMED,
    initial_payment_state=PaymentState.SUCCESS,
)

TRAVELLER_PAY_FIRST = BookingFlow(
    name="traveller_pay_first",
    counting_policy=CapacityCountingPolicy.PAYMENT_SUCCESS,
    initial_payment_state=PaymentState.PENDING,
)


@dataclass(frozen=True)
class Traveller:
    full_name: str
    email: str
    phone: str

    def to_dict(self) -> dict[str, str]:
        return {"full_name": self.full_name, "email": self.email, "phone": self.phone}


@dataclass(frozen=True)
class BookingRecord:
    id: str
    listing_id: str
    requester_id: str
    start_date: date
    end_date: date
    party_size: int
    confirmation_state: str
    payment_state: str
    flow: str
    travellers: list[dict[str, Any]]
    pricing: dict[str, Any]
    created_at: datetime
