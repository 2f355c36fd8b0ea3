"""
Availability shapes for listings.

A listing is bookable either year-round with a fixed daily capacity, or only
inside a scheduled window whose capacity is one pool shared by every booking
in that window. The two shapes are separate types so capacity checks cannot
read the wrong fields.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union


class AvailabilityType(str, enum.Enum):
    YEAR_ROUND = "YEAR_ROUND"
    SCHEDULED = "SCHEDULED"

    @classmethod
    def parse(cls, value: str) -> "AvailabilityType":
        """Accept the stored names plus the legacy "TRAVEL_WITH_STARS" alias."""
        normalized = value.strip().upper()
        if normalized == "TRAVEL_WITH_STARS":
            return cls.SCHEDULED
        return cls(normalized)


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar date range."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"end date {self.end} is before start date {self.start}")

    @property
    def length_days(self) -> int:
        return (self.end - self.start).days + 1

    def within(self, start: date, end: date) -> bool:
        return start <= self.start and self.end <= end


@dataclass(frozen=True)
class YearRound:
    length_days: int
    daily_capacity: int

    type = AvailabilityType.YEAR_ROUND

    def __post_init__(self) -> None:
        if self.length_days < 1:
            raise ValueError("length_days must be at least 1")
        if self.daily_capacity < 1:
            raise ValueError("daily_capacity must be at least 1")

    @property
    def capacity(self) -> int:
        return self.daily_capacity

    def accepts(self, booking_range: DateRange) -> bool:
        return booking_range.length_days == self.length_days


@dataclass(frozen=True)
class Scheduled:
    window_start: date
    window_end: date
    scheduled_capacity: int

    type = AvailabilityType.SCHEDULED

    def __post_init__(self) -> None:
        if self.window_end < self.window_start:
            raise ValueError("window_end must not be before window_start")
        if self.scheduled_capacity < 1:
            raise ValueError("scheduled_capacity must be at least 1")

    @property
    def capacity(self) -> int:
        return self.scheduled_capacity

    @property
    def window(self) -> DateRange:
        return DateRange(self.window_start, self.window_end)

    def accepts(self, booking_range: DateRange) -> bool:
        return booking_range.within(self.window_start, self.window_end)

    def covers(self, day: date) -> bool:
        return self.window_start <= day <= self.window_end


Availability = Union[YearRound, Scheduled]


def availability_from_columns(
    availability_type: str,
    length_days: Optional[int],
    daily_capacity: Optional[int],
    window_start: Optional[date],
    window_end: Optional[date],
    scheduled_capacity: Optional[int],
) -> Availability:
    """
    Build the availability shape selected by availability_type.

    Raises:
        ValueError: If the fields required by the selected shape are missing
    """
    kind = AvailabilityType.parse(availability_type)
    if kind is AvailabilityType.YEAR_ROUND:
        if length_days is None or daily_capacity is None:
            raise ValueError("YEAR_ROUND listings need length_days and daily_capacity")
        return YearRound(length_days=length_days, daily_capacity=daily_capacity)

    if window_start is None or window_end is None or scheduled_capacity is None:
        raise ValueError(
            "SCHEDULED listings need window_start, window_end and scheduled_capacity"
        )
    return Scheduled(
        window_start=window_start,
        window_end=window_end,
        scheduled_capacity=scheduled_capacity,
    )
