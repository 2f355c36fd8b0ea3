from sqlalchemy import TIMESTAMP, Boolean, CheckConstraint, Column, Integer, Numeric, String, text

from story_market.config import SCHEMA
from story_market.models.base import Base


class FeeStructure(Base):
    """
    ORM model for platform fee configuration.

    Rows are maintained by the admin fee CRUD (outside this service); the
    booking flow only reads the active ones.
    """

    __tablename__ = "fee_structures"
    __table_args__ = (
        CheckConstraint("fee_type IN ('FLAT', 'PERCENTAGE', 'COMMISSION')", name="ck_fee_type"),
        CheckConstraint("applies_to IN ('TRAVELLER', 'HOST', 'BOTH')", name="ck_fee_applies_to"),
        CheckConstraint("scope IN ('GLOBAL', 'STORY')", name="ck_fee_scope"),
        {"schema": SCHEMA},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    fee_name = Column(String, nullable=False)
    fee_type = Column(String(16), nullable=False)
    value = Column(Numeric(12, 4, asdecimal=False), nullable=False)
    applies_to = Column(String(16), nullable=False, server_default=text("'TRAVELLER'"))
    scope = Column(String(16), nullable=False, server_default=text("'GLOBAL'"))
    is_active = Column(Boolean, nullable=False, server_default=text("TRUE"))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()"))
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()"))
