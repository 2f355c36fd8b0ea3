from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.engine import Connection

from story_market.models.fees import FeeStructure


def get_active_fees(conn: Connection, applies_to: str) -> list[dict[str, Any]]:
    """
    Fetch active story fees that apply to the given party.

    Both GLOBAL and STORY scoped fees are included, and fees marked BOTH
    apply to every party.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        applies_to (str): TRAVELLER or HOST.

    Returns:
        list[dict]: Fee rows with fee_name, fee_type and value, in id order
    """
    stmt = (
        select(FeeStructure.fee_name, FeeStructure.fee_type, FeeStructure.value)
        .where(
            FeeStructure.is_active.is_(True),
            FeeStructure.scope.in_(["GLOBAL", "STORY"]),
            or_(FeeStructure.applies_to == applies_to, FeeStructure.applies_to == "BOTH"),
        )
        .order_by(FeeStructure.id)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]
