"""Create users, treatments and bookings tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    ]


def upgrade() -> None:
    """Create booking tables."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        "users",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("role", sa.Text(), nullable=False, server_default=sa.text("'customer'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("role IN ('customer', 'staff', 'admin')", name="users_role_check"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "treatments",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("price_display", sa.Text(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("duration_display", sa.Text(), nullable=True),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_popular", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "available_locations",
            sa.JSON(),
            nullable=False,
            server_default=sa.text("'[]'"),
        ),
        sa.Column("rating", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("rating_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
    )
    op.create_index("ix_treatments_category_active", "treatments", ["category", "is_active"])

    op.create_table(
        "bookings",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("booking_reference", sa.String(20), nullable=False),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("mobile_number", sa.String(20), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column(
            "treatment_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("treatments.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("treatment_name", sa.Text(), nullable=False),
        sa.Column("treatment_category", sa.Text(), nullable=True),
        sa.Column("treatment_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("treatment_price_display", sa.Text(), nullable=True),
        sa.Column("treatment_duration", sa.Integer(), nullable=True),
        sa.Column("treatment_duration_display", sa.Text(), nullable=True),
        sa.Column("location", sa.Text(), nullable=False),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("appointment_time", sa.String(5), nullable=False),
        sa.Column("appointment_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'confirmed'")),
        sa.Column("payment_status", sa.Text(), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("payment_method", sa.Text(), nullable=False, server_default=sa.text("'cash'")),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_updated_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("fully_processed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("cancelled_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("rescheduled_from_date", sa.Date(), nullable=True),
        sa.Column("rescheduled_from_time", sa.String(5), nullable=True),
        sa.Column("rescheduled_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("reschedule_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("no_show_marked_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("checked_in", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("check_in_time", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("checkout_otp", sa.String(6), nullable=True),
        sa.Column("check_out_eligible_time", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("can_check_out", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("checked_out", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("check_out_time", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("admin_checkout", sa.Text(), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("rating_comment", sa.Text(), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("feedback_date", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("reminders_sent", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        *_timestamps(),
        sa.UniqueConstraint("booking_reference", name="bookings_booking_reference_key"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'in-progress', 'completed', "
            "'cancelled', 'rescheduled', 'no-show')",
            name="bookings_status_check",
        ),
        sa.CheckConstraint("reschedule_count <= 1", name="bookings_reschedule_once_check"),
        sa.CheckConstraint(
            "rating IS NULL OR (rating BETWEEN 1 AND 5)", name="bookings_rating_check"
        ),
    )

    # Availability and listing queries
    op.create_index("ix_bookings_user_date", "bookings", ["user_id", "appointment_date"])
    op.create_index("ix_bookings_treatment_date", "bookings", ["treatment_id", "appointment_date"])
    op.create_index("ix_bookings_status_date", "bookings", ["status", "appointment_date"])
    op.create_index("ix_bookings_location_date", "bookings", ["location", "appointment_date"])
    op.create_index("ix_bookings_payment_status", "bookings", ["payment_status"])


def downgrade() -> None:
    """Drop booking tables."""
    op.drop_table("bookings")
    op.drop_table("treatments")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
