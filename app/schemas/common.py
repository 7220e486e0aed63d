"""Response envelope shared by all endpoints."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: ``{success, message, data}``."""

    success: bool = True
    message: str
    data: T | None = None


def ok(message: str, data: T | None = None) -> ApiResponse[T]:
    """Build a success envelope."""
    return ApiResponse(success=True, message=message, data=data)
