from geoalchemy2 import Geography
from sqlalchemy import (
    CheckConstraint,
    Column,
    Computed,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.sql import func

from story_market.config import SCHEMA
from story_market.models.base import Base

GEOG_FROM_LAT_LON = "(ST_SetSRID(ST_MakePoint(longitude, latitude), 4326))::geography"


class Listing(Base):
    """
    ORM model for bookable travel stories.

    availability_type selects which capacity fields are populated:
    YEAR_ROUND uses length_days/daily_capacity, SCHEDULED uses
    window_start/window_end/scheduled_capacity. The CHECK constraints keep the
    two shapes exclusive so a row can never carry both.
    """

    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint(
            "availability_type IN ('YEAR_ROUND', 'SCHEDULED')", name="ck_listings_availability_type"
        ),
        CheckConstraint(
            "(availability_type = 'YEAR_ROUND'"
            " AND length_days >= 1 AND daily_capacity >= 1"
            " AND window_start IS NULL AND window_end IS NULL AND scheduled_capacity IS NULL)"
            " OR (availability_type = 'SCHEDULED'"
            " AND window_start IS NOT NULL AND window_end >= window_start"
            " AND scheduled_capacity >= 1"
            " AND length_days IS NULL AND daily_capacity IS NULL)",
            name="ck_listings_availability_shape",
        ),
        CheckConstraint("pricing_mode IN ('PER_PERSON', 'PER_DAY')", name="ck_listings_pricing_mode"),
        Index("ix_listings_status_state", "status", "state"),
        Index("ix_listings_geog", "geog", postgresql_using="gist"),
        {"schema": SCHEMA},
    )

    id = Column(String(36), primary_key=True)  # story UUID
    host_id = Column(String, nullable=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, server_default=text("'DRAFT'"))

    availability_type = Column(String(16), nullable=False)
    length_days = Column(Integer, nullable=True)
    daily_capacity = Column(Integer, nullable=True)
    window_start = Column(Date, nullable=True)
    window_end = Column(Date, nullable=True)
    scheduled_capacity = Column(Integer, nullable=True)

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    # PostGIS point generated from latitude/longitude; NULL when either is missing
    geog = Column(
        Geography(geometry_type="POINT", srid=4326, spatial_index=False),
        Computed(GEOG_FROM_LAT_LON, persisted=True),
        nullable=True,
    )
    locality_name = Column(String, nullable=True)
    suburb = Column(String, nullable=True)
    town = Column(String, nullable=True)
    district = Column(String, nullable=True)
    state = Column(String, nullable=True)
    tags = Column(ARRAY(String), nullable=False, server_default=text("'{}'"))

    pricing_mode = Column(String(16), nullable=False, server_default=text("'PER_PERSON'"))
    unit_amount = Column(Numeric(12, 2, asdecimal=False), nullable=False, server_default=text("0"))
    discount = Column(Numeric(12, 2, asdecimal=False), nullable=False, server_default=text("0"))
    total_price = Column(Numeric(12, 2, asdecimal=False), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
