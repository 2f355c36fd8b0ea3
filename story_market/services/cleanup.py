"""Release capacity held by bookings whose payment never completed."""

from datetime import timedelta

import structlog
from sqlalchemy.engine import Engine

from story_market.config import PENDING_BOOKING_TIMEOUT_MINUTES
from story_market.db.writers.bookings import release_pending_bookings
from story_market.metrics import abandoned_bookings_released
from story_market.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def release_abandoned_bookings(
    engine: Engine, timeout_minutes: int = PENDING_BOOKING_TIMEOUT_MINUTES, dry_run: bool = False
) -> list[str]:
    """
    Cancel pending-payment bookings older than timeout_minutes.

    Args:
        engine: SQLAlchemy engine
        timeout_minutes: Age after which a pending booking is abandoned
        dry_run: If True, roll the update back and only report what would change

    Returns:
        list[str]: Ids of the released bookings
    """
    cutoff = utc_now() - timedelta(minutes=timeout_minutes)
    logger.info("abandoned_booking_release_started", cutoff=cutoff.isoformat(), dry_run=dry_run)

    with engine.connect() as conn:
        with conn.begin() as tx:
            released = release_pending_bookings(conn, created_before=cutoff)
            if dry_run:
                tx.rollback()

    if not dry_run and released:
        abandoned_bookings_released.inc(len(released))

    logger.info(
        "abandoned_booking_release_completed",
        released_count=len(released),
        booking_ids=released,
        dry_run=dry_run,
    )
    return released
