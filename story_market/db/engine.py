"""
SQLAlchemy engine singleton with connection pooling.

Every booking attempt holds one pooled connection for the length of its
transaction (listing row lock, occupancy read, insert), and search requests
hold one for their read queries. The pool is sized for that
one-connection-per-request pattern under FastAPI's threadpool.
"""

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from story_market.config import DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set.")

engine: Engine = create_engine(
    DATABASE_URL,
    future=True,
    pool_size=10,
    max_overflow=20,
    pool_pre_ping=True,  # detect stale connections before handing them out
    pool_recycle=3600,
    echo=False,
)


def check_engine_health() -> bool:
    """
    Check if the database is reachable.

    Used by the /ready endpoint and by the integration test suite to decide
    whether to run.

    Returns:
        bool: True if a trivial query succeeds, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
