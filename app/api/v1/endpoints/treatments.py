"""Treatment catalog endpoints."""

import math
from uuid import UUID

from fastapi import APIRouter, Query

from app.dependencies import CacheManagerDep, DatabaseSession
from app.schemas.bookings import Location, Pagination
from app.schemas.common import ApiResponse, ok
from app.schemas.treatments import TreatmentList, TreatmentResponse
from app.services.treatment_service import TreatmentService

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[TreatmentList],
    summary="List treatments",
)
async def list_treatments(
    db: DatabaseSession,
    cache: CacheManagerDep,
    category: str | None = Query(None, max_length=100),
    location: Location | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse[TreatmentList]:
    """
    List active treatments, optionally by category or location.

    Results are cached in Redis.
    """
    items, total = await TreatmentService(db, cache).list_treatments(
        category=category,
        location=location.value if location else None,
        skip=(page - 1) * limit,
        limit=limit,
    )
    return ok(
        "Treatments retrieved",
        TreatmentList(
            treatments=[TreatmentResponse.model_validate(item) for item in items],
            pagination=Pagination(
                current=page, pages=math.ceil(total / limit), total=total, limit=limit
            ),
        ),
    )


@router.get(
    "/{treatment_id}",
    response_model=ApiResponse[TreatmentResponse],
    summary="Get treatment",
)
async def get_treatment(
    treatment_id: UUID,
    db: DatabaseSession,
    cache: CacheManagerDep,
) -> ApiResponse[TreatmentResponse]:
    """Get a treatment by ID."""
    treatment = await TreatmentService(db, cache).get_treatment(treatment_id)
    return ok("Treatment retrieved", TreatmentResponse.model_validate(treatment))
