"""Treatment catalog lookups (read-only) and rating aggregation."""

from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import NotFoundException
from app.core.redis_client import CacheManager
from app.models.bookings import bookings
from app.models.treatments import treatments

logger = structlog.get_logger(__name__)


class TreatmentService:
    """Service for treatment lookups."""

    def __init__(self, db: AsyncSession, cache_manager: CacheManager | None = None):
        """Initialize service with database session and optional cache."""
        self.db = db
        self.cache = cache_manager

    @staticmethod
    def _cache_key(treatment_id: UUID) -> str:
        return f"treatment:{treatment_id}"

    async def get_treatment(self, treatment_id: UUID) -> dict:
        """
        Get a treatment by ID.

        Raises:
            NotFoundException: If no treatment has this ID
        """
        if self.cache:
            cached = self.cache.get_json(self._cache_key(treatment_id))
            if cached:
                return cached

        result = await self.db.execute(select(treatments).where(treatments.c.id == treatment_id))
        row = result.mappings().first()
        if not row:
            raise NotFoundException("Treatment not found")

        treatment = dict(row)
        if self.cache:
            self.cache.set_json(
                self._cache_key(treatment_id), treatment, ttl=settings.treatment_cache_ttl
            )
        return treatment

    async def get_bookable_treatment(self, treatment_id: UUID) -> dict:
        """
        Get an active treatment.

        Raises:
            NotFoundException: If missing or inactive
        """
        try:
            treatment = await self.get_treatment(treatment_id)
        except NotFoundException:
            raise NotFoundException("Treatment not found or not available")

        if not treatment.get("is_active"):
            raise NotFoundException("Treatment not found or not available")
        return treatment

    async def list_treatments(
        self,
        category: str | None = None,
        location: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[dict], int]:
        """List active treatments, popular and best rated first."""
        conditions = [treatments.c.is_active.is_(True)]
        if category and category != "All":
            conditions.append(treatments.c.category == category)

        stmt = (
            select(treatments)
            .where(and_(*conditions))
            .order_by(treatments.c.is_popular.desc(), treatments.c.rating.desc(), treatments.c.name)
        )
        cache_key = f"treatment:list:{category or 'All'}:{location or 'any'}:{skip}:{limit}"
        if self.cache:
            cached = self.cache.get_json(cache_key)
            if cached:
                return cached["items"], cached["total"]

        result = await self.db.execute(stmt)
        rows = [dict(row) for row in result.mappings().all()]

        # available_locations is a JSON list, filtered here for portability
        if location:
            rows = [r for r in rows if location in (r.get("available_locations") or [])]

        items = rows[skip : skip + limit]
        if self.cache:
            self.cache.set_json(
                cache_key,
                {"items": items, "total": len(rows)},
                ttl=settings.treatment_cache_ttl,
            )
        return items, len(rows)

    async def refresh_rating(self, treatment_id: UUID) -> None:
        """Recompute the treatment's average rating from rated bookings."""
        stmt = select(func.avg(bookings.c.rating), func.count(bookings.c.rating)).where(
            and_(bookings.c.treatment_id == treatment_id, bookings.c.rating.is_not(None))
        )
        average, count = (await self.db.execute(stmt)).one()

        await self.db.execute(
            update(treatments)
            .where(treatments.c.id == treatment_id)
            .values(
                rating=round(float(average or 0), 2),
                rating_count=count or 0,
                updated_at=datetime.now(UTC),
            )
        )
        await self.db.commit()

        if self.cache:
            self.cache.delete(self._cache_key(treatment_id))
            self.cache.delete_pattern("treatment:list:*")
        logger.info("treatment_rating_refreshed", treatment_id=str(treatment_id), count=count)
