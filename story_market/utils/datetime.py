"""UTC datetime and calendar-date utilities."""

from datetime import date, datetime, timedelta, timezone
from typing import Iterator

from dateutil import parser as date_parser

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    This function should be used instead of datetime.now() or datetime.utcnow()
    to ensure all timestamps are timezone-aware and stored in UTC.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar date from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def parse_calendar_date(value: str) -> date:
    """
    Parse an ISO 8601 date or datetime string into a calendar date.

    Full timestamps ("2025-12-15T00:00:00Z") are accepted and truncated to
    their date part, matching what clients send from date pickers.

    Raises:
        ValueError: If the value is not a valid ISO 8601 date
    """
    return date_parser.isoparse(value).date()


def month_name(value: date) -> str:
    return MONTH_NAMES[value.month - 1]
