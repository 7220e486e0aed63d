"""Treatment schemas for response serialization."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from app.schemas.bookings import Pagination


class TreatmentResponse(BaseModel):
    """Schema for treatment response."""

    id: UUID
    name: str
    category: str
    description: str | None = None
    price: float
    price_display: str | None = None
    duration: int
    duration_display: str | None = None
    image: str | None = None
    is_active: bool = True
    is_popular: bool = False
    available_locations: list[str] = []
    rating: float = 0
    rating_count: int = 0
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class TreatmentList(BaseModel):
    """Paginated treatment list."""

    treatments: list[TreatmentResponse]
    pagination: Pagination
