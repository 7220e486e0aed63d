"""Database models."""

from app.models.bookings import bookings
from app.models.metadata import metadata
from app.models.treatments import treatments
from app.models.users import users

__all__ = [
    "bookings",
    "metadata",
    "treatments",
    "users",
]
