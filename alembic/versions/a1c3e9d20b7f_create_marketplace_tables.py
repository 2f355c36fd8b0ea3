"""Create listings, bookings and fee_structures

Revision ID: a1c3e9d20b7f
Revises:
Create Date: 2025-11-03 10:12:41.208115

"""

import sqlalchemy as sa
from geoalchemy2 import Geography
from sqlalchemy.dialects import postgresql

from alembic import op  # type: ignore[attr-defined]

# revision identifiers, used by Alembic.
revision = "a1c3e9d20b7f"
down_revision = None
branch_labels = None
depends_on = None

SCHEMA = "marketplace"


def upgrade() -> None:
    """Upgrade schema."""
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    op.create_table(
        "listings",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("host_id", sa.String(), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), server_default=sa.text("'DRAFT'"), nullable=False),
        sa.Column("availability_type", sa.String(length=16), nullable=False),
        sa.Column("length_days", sa.Integer(), nullable=True),
        sa.Column("daily_capacity", sa.Integer(), nullable=True),
        sa.Column("window_start", sa.Date(), nullable=True),
        sa.Column("window_end", sa.Date(), nullable=True),
        sa.Column("scheduled_capacity", sa.Integer(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column(
            "geog",
            Geography(geometry_type="POINT", srid=4326, spatial_index=False),
            sa.Computed("(ST_SetSRID(ST_MakePoint(longitude, latitude), 4326))::geography", persisted=True),
            nullable=True,
        ),
        sa.Column("locality_name", sa.String(), nullable=True),
        sa.Column("suburb", sa.String(), nullable=True),
        sa.Column("town", sa.String(), nullable=True),
        sa.Column("district", sa.String(), nullable=True),
        sa.Column("state", sa.String(), nullable=True),
        sa.Column(
            "tags", postgresql.ARRAY(sa.String()), server_default=sa.text("'{}'"), nullable=False
        ),
        sa.Column(
            "pricing_mode", sa.String(length=16), server_default=sa.text("'PER_PERSON'"), nullable=False
        ),
        sa.Column("unit_amount", sa.Numeric(12, 2), server_default=sa.text("0"), nullable=False),
        sa.Column("discount", sa.Numeric(12, 2), server_default=sa.text("0"), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "availability_type IN ('YEAR_ROUND', 'SCHEDULED')", name="ck_listings_availability_type"
        ),
        sa.CheckConstraint(
            "(availability_type = 'YEAR_ROUND'"
            " AND length_days >= 1 AND daily_capacity >= 1"
            " AND window_start IS NULL AND window_end IS NULL AND scheduled_capacity IS NULL)"
            " OR (availability_type = 'SCHEDULED'"
            " AND window_start IS NOT NULL AND window_end >= window_start"
            " AND scheduled_capacity >= 1"
            " AND length_days IS NULL AND daily_capacity IS NULL)",
            name="ck_listings_availability_shape",
        ),
        sa.CheckConstraint(
            "pricing_mode IN ('PER_PERSON', 'PER_DAY')", name="ck_listings_pricing_mode"
        ),
        sa.PrimaryKeyConstraint("id"),
        schema=SCHEMA,
    )
    op.create_index("ix_listings_host_id", "listings", ["host_id"], schema=SCHEMA)
    op.create_index("ix_listings_status_state", "listings", ["status", "state"], schema=SCHEMA)
    op.create_index(
        "ix_listings_geog", "listings", ["geog"], schema=SCHEMA, postgresql_using="gist"
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("listing_id", sa.String(length=36), nullable=False),
        sa.Column("requester_id", sa.String(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("party_size", sa.Integer(), nullable=False),
        sa.Column("confirmation_state", sa.String(length=16), nullable=False),
        sa.Column("payment_state", sa.String(length=16), nullable=False),
        sa.Column("flow", sa.String(length=32), nullable=False),
        sa.Column("travellers", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("pricing", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("end_date >= start_date", name="ck_bookings_date_order"),
        sa.CheckConstraint("party_size >= 1", name="ck_bookings_party_size"),
        sa.CheckConstraint(
            "confirmation_state IN ('confirmed', 'cancelled')", name="ck_bookings_confirmation_state"
        ),
        sa.CheckConstraint(
            "payment_state IN ('pending', 'success', 'rejected')", name="ck_bookings_payment_state"
        ),
        sa.ForeignKeyConstraint(
            ["listing_id"], [f"{SCHEMA}.listings.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        schema=SCHEMA,
    )
    op.create_index("ix_bookings_requester_id", "bookings", ["requester_id"], schema=SCHEMA)
    op.create_index(
        "ix_bookings_listing_dates", "bookings", ["listing_id", "start_date", "end_date"], schema=SCHEMA
    )

    op.create_table(
        "fee_structures",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("fee_name", sa.String(), nullable=False),
        sa.Column("fee_type", sa.String(length=16), nullable=False),
        sa.Column("value", sa.Numeric(12, 4), nullable=False),
        sa.Column("applies_to", sa.String(length=16), server_default=sa.text("'TRAVELLER'"), nullable=False),
        sa.Column("scope", sa.String(length=16), server_default=sa.text("'GLOBAL'"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("TRUE"), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.CheckConstraint("fee_type IN ('FLAT', 'PERCENTAGE', 'COMMISSION')", name="ck_fee_type"),
        sa.CheckConstraint("applies_to IN ('TRAVELLER', 'HOST', 'BOTH')", name="ck_fee_applies_to"),
        sa.CheckConstraint("scope IN ('GLOBAL', 'STORY')", name="ck_fee_scope"),
        sa.PrimaryKeyConstraint("id"),
        schema=SCHEMA,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("fee_structures", schema=SCHEMA)
    op.drop_index("ix_bookings_listing_dates", table_name="bookings", schema=SCHEMA)
    op.drop_index("ix_bookings_requester_id", table_name="bookings", schema=SCHEMA)
    op.drop_table("bookings", schema=SCHEMA)
    op.drop_index("ix_listings_geog", table_name="listings", schema=SCHEMA)
    op.drop_index("ix_listings_status_state", table_name="listings", schema=SCHEMA)
    op.drop_index("ix_listings_host_id", table_name="listings", schema=SCHEMA)
    op.drop_table("listings", schema=SCHEMA)
