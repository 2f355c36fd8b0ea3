from __future__ import annotations

import logging
import sys
from typing import Any, Callable, MutableMapping, cast

import structlog

from story_market.config import LOG_LEVEL

Processor = Callable[[Any, str, MutableMapping[str, Any]], Any]

SERVICE_NAME = "story-market"

# chatty at INFO; booking and search events carry what we need
QUIET_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "alembic",
    "uvicorn.access",
    "httpx",
)


def add_service(_: Any, __: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _renderer(json_output: bool) -> Processor:
    if json_output:
        return cast(Processor, structlog.processors.JSONRenderer())
    return cast(Processor, structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))


def setup_logging(level: str = LOG_LEVEL) -> None:
    """
    Configure structlog for the API process and the maintenance scripts.

    INFO and above render one JSON object per line for log shipping; DEBUG
    renders the console format. Values bound with structlog.contextvars
    (request_id from RequestIDMiddleware) are merged into every event.
    """
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=level,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_service,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _renderer(json_output=level != "DEBUG"),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
