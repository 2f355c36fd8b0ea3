from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from story_market.config import SCHEMA
from story_market.models.base import Base


class Booking(Base):
    """
    ORM model for traveller bookings against a listing.

    confirmation_state (confirmed/cancelled) and payment_state
    (pending/success/rejected) move independently: a confirmed booking can
    hold capacity while its payment is still pending. travellers holds the
    manifest and pricing the server-computed breakdown captured at booking
    time; neither is re-derived later.
    """

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_bookings_date_order"),
        CheckConstraint("party_size >= 1", name="ck_bookings_party_size"),
        CheckConstraint(
            "confirmation_state IN ('confirmed', 'cancelled')", name="ck_bookings_confirmation_state"
        ),
        CheckConstraint(
            "payment_state IN ('pending', 'success', 'rejected')", name="ck_bookings_payment_state"
        ),
        Index("ix_bookings_listing_dates", "listing_id", "start_date", "end_date"),
        {"schema": SCHEMA},
    )

    id = Column(String(36), primary_key=True)
    listing_id = Column(
        String(36),
        ForeignKey(f"{SCHEMA}.listings.id", ondelete="CASCADE"),
        nullable=False,
    )
    requester_id = Column(String, nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    party_size = Column(Integer, nullable=False)
    confirmation_state = Column(String(16), nullable=False)
    payment_state = Column(String(16), nullable=False)
    flow = Column(String(32), nullable=False)
    travellers = Column(JSONB, nullable=False)
    pricing = Column(JSONB, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
