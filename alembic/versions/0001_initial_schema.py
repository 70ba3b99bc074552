"""initial schema: consultants, availability, bookings

Revision ID: 0001
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

BLOCKING_STATUS_SQL = "status IN ('pending', 'confirmed')"


def upgrade() -> None:
    op.create_table(
        "consultants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("public_id", sa.String(8), nullable=False, unique=True),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255)),
        sa.Column("title", sa.String(255)),
        sa.Column("bio", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "availability",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "consultant_id",
            sa.Integer(),
            sa.ForeignKey("consultants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.SmallInteger(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.UniqueConstraint("consultant_id", "day_of_week", name="uq_availability_day"),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "consultant_id",
            sa.Integer(),
            sa.ForeignKey("consultants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("customer_email", sa.String(255), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("booking_time", sa.Time(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_index(
        "uq_bookings_active_slot",
        "bookings",
        ["consultant_id", "booking_date", "booking_time"],
        unique=True,
        postgresql_where=sa.text(BLOCKING_STATUS_SQL),
        sqlite_where=sa.text(BLOCKING_STATUS_SQL),
    )
    op.create_index(
        "idx_bookings_consultant_date_status",
        "bookings",
        ["consultant_id", "booking_date", "status"],
    )
    op.create_index("idx_bookings_status_date", "bookings", ["status", "booking_date"])


def downgrade() -> None:
    op.drop_index("idx_bookings_status_date", table_name="bookings")
    op.drop_index("idx_bookings_consultant_date_status", table_name="bookings")
    op.drop_index("uq_bookings_active_slot", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("availability")
    op.drop_table("consultants")
