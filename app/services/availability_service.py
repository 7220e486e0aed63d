"""Slot availability for single days and whole months."""

import calendar
from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

import structlog
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import ClinicClock
from app.core.exceptions import ValidationException
from app.models.bookings import bookings
from app.schemas.bookings import (
    BookingStatus,
    DayAvailability,
    DayStatus,
    Location,
    MonthAvailability,
    SlotDetail,
)
from app.services.slot_catalog import generate_daily_slots

logger = structlog.get_logger(__name__)

# Statuses that hold a slot; cancelled, completed and no-show bookings free it
SLOT_HOLDING_STATUSES = (
    BookingStatus.PENDING.value,
    BookingStatus.CONFIRMED.value,
    BookingStatus.RESCHEDULED.value,
    BookingStatus.IN_PROGRESS.value,
)

MIN_CALENDAR_YEAR = 2024
MAX_CALENDAR_YEAR = 2030

# Slots up to and including the next hour are too close to book today
BOOKING_LEAD_HOURS = 1


def _booked_times(day: date, location: str, existing: Iterable[Mapping[str, Any]]) -> set[str]:
    return {
        b["appointment_time"]
        for b in existing
        if b["appointment_date"] == day
        and b["location"] == location
        and b["status"] in SLOT_HOLDING_STATUSES
    }


def compute_day_availability(
    day: date,
    location: Location | str,
    existing: Iterable[Mapping[str, Any]],
    now: datetime,
) -> DayAvailability:
    """
    Classify every slot of ``day`` at ``location``.

    Args:
        day: Clinic-local calendar date
        location: Clinic location
        existing: Bookings with ``appointment_date``, ``appointment_time``,
            ``location`` and ``status``
        now: Current clinic-local time

    Returns:
        Slot-level availability for the day
    """
    location = Location(location)
    booked = _booked_times(day, location.value, existing)
    is_today = day == now.date()

    details: list[SlotDetail] = []
    for slot in generate_daily_slots():
        is_booked = slot in booked
        is_past_time = is_today and int(slot[:2]) <= now.hour + BOOKING_LEAD_HOURS
        details.append(
            SlotDetail(
                time=slot,
                is_available=not is_booked and not is_past_time,
                is_booked=is_booked,
                is_past_time=is_past_time,
            )
        )

    available = [d.time for d in details if d.is_available]
    return DayAvailability(
        date=day.isoformat(),
        location=location,
        available_slots=available,
        booked_slots=sorted(booked),
        slot_details=details,
        total_slots=len(details),
        available_count=len(available),
        fully_booked=not available,
    )


def compute_month_availability(
    year: int,
    month: int,
    location: Location | str,
    existing: Iterable[Mapping[str, Any]],
    today: date,
) -> MonthAvailability:
    """
    Classify every day of a calendar month at ``location``.

    Days before ``today`` are past and carry no slot detail. Other days only
    exclude booked slots; the time-of-day lead filter does not apply here.

    Raises:
        ValidationException: If year or month is out of range
    """
    validate_year_month(year, month)
    location = Location(location)
    slots = generate_daily_slots()
    total = len(slots)

    booked_by_day: dict[date, set[str]] = defaultdict(set)
    for b in existing:
        if b["location"] == location.value and b["status"] in SLOT_HOLDING_STATUSES:
            booked_by_day[b["appointment_date"]].add(b["appointment_time"])

    days_in_month = calendar.monthrange(year, month)[1]
    availability: dict[str, DayStatus] = {}
    for day_num in range(1, days_in_month + 1):
        day = date(year, month, day_num)
        if day < today:
            availability[day.isoformat()] = DayStatus(
                is_past=True,
                is_available=False,
                available_slots=0,
                total_slots=total,
                fully_booked=False,
            )
            continue

        booked = booked_by_day.get(day, set()) & set(slots)
        free = total - len(booked)
        availability[day.isoformat()] = DayStatus(
            is_past=False,
            is_available=free > 0,
            available_slots=free,
            total_slots=total,
            fully_booked=free == 0,
            booked_slots=len(booked),
        )

    return MonthAvailability(
        year=year,
        month=month,
        location=location,
        availability=availability,
        total_days=days_in_month,
    )


def validate_year_month(year: int, month: int) -> None:
    """Reject calendar requests outside the supported range."""
    if not (MIN_CALENDAR_YEAR <= year <= MAX_CALENDAR_YEAR) or not (1 <= month <= 12):
        raise ValidationException("Invalid year or month")


class AvailabilityService:
    """Loads bookings and computes availability."""

    def __init__(self, db: AsyncSession, clock: ClinicClock):
        """Initialize service with database session and clinic clock."""
        self.db = db
        self.clock = clock

    async def _load(self, location: Location, start: date, end: date) -> list[dict]:
        stmt = select(
            bookings.c.appointment_date,
            bookings.c.appointment_time,
            bookings.c.location,
            bookings.c.status,
        ).where(
            and_(
                bookings.c.location == location.value,
                bookings.c.appointment_date >= start,
                bookings.c.appointment_date <= end,
                bookings.c.status.in_(SLOT_HOLDING_STATUSES),
            )
        )
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def get_day_availability(self, day: date, location: Location) -> DayAvailability:
        """
        Availability for a single date.

        Raises:
            ValidationException: If the date is before today
        """
        now = self.clock.now()
        if day < now.date():
            raise ValidationException("Cannot check availability for past dates")

        existing = await self._load(location, day, day)
        return compute_day_availability(day, location, existing, now)

    async def get_month_availability(
        self,
        year: int,
        month: int,
        location: Location,
    ) -> MonthAvailability:
        """Availability for every day of a month."""
        validate_year_month(year, month)
        start = date(year, month, 1)
        end = date(year, month, calendar.monthrange(year, month)[1])

        existing = await self._load(location, start, end)
        result = compute_month_availability(year, month, location, existing, self.clock.today())
        logger.debug(
            "month_availability_computed",
            year=year,
            month=month,
            location=location.value,
            bookings=len(existing),
        )
        return result
