"""Treatment catalog model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    Numeric,
    Table,
    Text,
    Uuid,
    false,
    func,
    true,
)

from app.models.metadata import metadata

treatments = Table(
    "treatments",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True, default=uuid4),
    Column("name", Text, nullable=False),
    Column("category", Text, nullable=False),
    Column("description", Text, nullable=True),
    Column("price", Numeric(10, 2, asdecimal=False), nullable=False),
    Column("price_display", Text, nullable=True),
    # Minutes
    Column("duration", Integer, nullable=False),
    Column("duration_display", Text, nullable=True),
    Column("image", Text, nullable=True),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    Column("is_popular", Boolean, nullable=False, server_default=false()),
    Column("available_locations", JSON, nullable=False, default=list),
    # Aggregated from rated bookings
    Column("rating", Float, nullable=False, server_default="0"),
    Column("rating_count", Integer, nullable=False, server_default="0"),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Index("ix_treatments_category_active", "category", "is_active"),
)
