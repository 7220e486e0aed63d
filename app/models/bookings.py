"""Bookings table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    Uuid,
    false,
    func,
)

from app.models.metadata import metadata

bookings = Table(
    "bookings",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True, default=uuid4),
    Column("booking_reference", String(20), nullable=False, unique=True),
    # Ownership
    Column(
        "user_id",
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    ),
    # Customer snapshot taken at booking time
    Column("full_name", Text, nullable=False),
    Column("mobile_number", String(20), nullable=False),
    Column("email", Text, nullable=False),
    # Treatment reference + snapshot
    Column(
        "treatment_id",
        Uuid(as_uuid=True),
        ForeignKey("treatments.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("treatment_name", Text, nullable=False),
    Column("treatment_category", Text, nullable=True),
    Column("treatment_price", Numeric(10, 2, asdecimal=False), nullable=True),
    Column("treatment_price_display", Text, nullable=True),
    Column("treatment_duration", Integer, nullable=True),
    Column("treatment_duration_display", Text, nullable=True),
    # Scheduling
    Column("location", Text, nullable=False),
    Column("appointment_date", Date, nullable=False),
    Column("appointment_time", String(5), nullable=False),
    # appointment_date + appointment_time in the clinic timezone, stored as UTC
    Column("appointment_at", DateTime(timezone=True), nullable=False),
    Column("status", Text, nullable=False, server_default="confirmed"),
    # Payment
    Column("payment_status", Text, nullable=False, server_default="pending"),
    Column("payment_method", Text, nullable=False, server_default="cash"),
    Column("total_amount", Numeric(10, 2, asdecimal=False), nullable=False),
    Column("payment_updated_at", DateTime(timezone=True), nullable=True),
    Column("fully_processed", Boolean, nullable=False, server_default=false()),
    # Additional information
    Column("special_requests", Text, nullable=True),
    Column("notes", Text, nullable=True),
    # Cancellation / rescheduling
    Column("cancellation_reason", Text, nullable=True),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    Column("rescheduled_from_date", Date, nullable=True),
    Column("rescheduled_from_time", String(5), nullable=True),
    Column("rescheduled_at", DateTime(timezone=True), nullable=True),
    Column("reschedule_count", Integer, nullable=False, server_default="0"),
    Column("no_show_marked_at", DateTime(timezone=True), nullable=True),
    # Check-in / check-out
    Column("checked_in", Boolean, nullable=False, server_default=false()),
    Column("check_in_time", DateTime(timezone=True), nullable=True),
    Column("checkout_otp", String(6), nullable=True),
    Column("check_out_eligible_time", DateTime(timezone=True), nullable=True),
    Column("can_check_out", Boolean, nullable=False, server_default=false()),
    Column("checked_out", Boolean, nullable=False, server_default=false()),
    Column("check_out_time", DateTime(timezone=True), nullable=True),
    Column("admin_checkout", Text, nullable=True),
    # Post-visit
    Column("rating", Integer, nullable=True),
    Column("rating_comment", Text, nullable=True),
    Column("feedback", Text, nullable=True),
    Column("feedback_date", DateTime(timezone=True), nullable=True),
    # Append-only reminder log: [{"type", "sent_at", "status"}]
    Column("reminders_sent", JSON, nullable=False, default=list),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # Constraints
    CheckConstraint(
        "status IN ('pending', 'confirmed', 'in-progress', 'completed', "
        "'cancelled', 'rescheduled', 'no-show')",
        name="bookings_status_check",
    ),
    CheckConstraint("reschedule_count <= 1", name="bookings_reschedule_once_check"),
    CheckConstraint("rating IS NULL OR (rating BETWEEN 1 AND 5)", name="bookings_rating_check"),
    Index("ix_bookings_user_date", "user_id", "appointment_date"),
    Index("ix_bookings_treatment_date", "treatment_id", "appointment_date"),
    Index("ix_bookings_status_date", "status", "appointment_date"),
    Index("ix_bookings_location_date", "location", "appointment_date"),
    Index("ix_bookings_payment_status", "payment_status"),
)
