"""
FastAPI dependency injection providers.

Routes receive the database engine and the requester identity through these
providers so tests can swap them with app.dependency_overrides.
"""

from __future__ import annotations

from typing import Generator

from fastapi import Header, HTTPException, status
from sqlalchemy.engine import Engine

from story_market.db.engine import engine


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine

    Testing Example:
        >>> mock_engine = Mock(spec=Engine)
        >>> app.dependency_overrides[get_db_engine] = lambda: mock_engine
    """
    yield engine


def get_requester_id(x_user_id: str | None = Header(default=None)) -> str:
    """
    Return the already-verified requester id set by the upstream identity layer.

    Authentication happens before requests reach this service; the gateway
    forwards the verified user id in the X-User-Id header.

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing requester identity",
        )
    return x_user_id.strip()
