import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import structlog

from story_market.config import PENDING_BOOKING_TIMEOUT_MINUTES
from story_market.db.engine import engine
from story_market.logging_config import setup_logging
from story_market.services.cleanup import release_abandoned_bookings

setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    """
    Release capacity held by bookings still waiting for payment.

    Intended to run periodically (cron / Kubernetes CronJob).
    """
    parser = argparse.ArgumentParser(description="Cancel abandoned pending-payment bookings")
    parser.add_argument(
        "--timeout-minutes",
        type=int,
        default=PENDING_BOOKING_TIMEOUT_MINUTES,
        help="Age after which a pending booking is released",
    )
    parser.add_argument("--dry-run", action="store_true", help="Report without changing anything")
    args = parser.parse_args()

    try:
        released = release_abandoned_bookings(
            engine, timeout_minutes=args.timeout_minutes, dry_run=args.dry_run
        )
    except Exception:
        logger.exception("abandoned_booking_release_failed")
        raise

    print(f"{'Would release' if args.dry_run else 'Released'} {len(released)} booking(s)")


if __name__ == "__main__":
    main()
