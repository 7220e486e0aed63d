"""Booking service for business logic."""

import math
from datetime import date, timedelta
from typing import Any
from uuid import UUID

import structlog
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import and_, delete, func, insert, or_, select, true, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.clock import ClinicClock, as_utc
from app.core.exceptions import (
    AppException,
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from app.core.redis_client import CacheManager
from app.models.bookings import bookings
from app.schemas.bookings import (
    AdminBookingList,
    AdminStatusUpdate,
    AppointmentSlip,
    BookingCreate,
    BookingDetail,
    BookingFeedback,
    BookingList,
    BookingRating,
    BookingReschedule,
    BookingResponse,
    BookingStatus,
    BulkUpdateRequest,
    BulkUpdateResult,
    CheckInResult,
    CheckoutResult,
    ClinicInfo,
    DashboardStats,
    NoShowSweepResult,
    Pagination,
    PaymentStatus,
    ReminderResult,
)
from app.services.availability_service import SLOT_HOLDING_STATUSES
from app.services.booking_lifecycle import (
    CANCELLABLE_STATUSES,
    SCHEDULED_STATUSES,
    BookingLifecycle,
)
from app.services.email_service import EmailDispatcher
from app.services.reference import generate_reference
from app.services.slot_catalog import DAILY_SLOTS
from app.services.treatment_service import TreatmentService

logger = structlog.get_logger(__name__)

MAX_REFERENCE_ATTEMPTS = 5
STAFF_ROLES = frozenset({"staff", "admin"})


def _pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(current=page, pages=math.ceil(total / limit), total=total, limit=limit)


class BookingService:
    """Service for managing bookings."""

    def __init__(
        self,
        db: AsyncSession,
        clock: ClinicClock,
        dispatcher: EmailDispatcher,
        cache_manager: CacheManager | None = None,
    ):
        """Initialize service with database session, clock, email dispatcher and cache."""
        self.db = db
        self.clock = clock
        self.dispatcher = dispatcher
        self.email = dispatcher.email
        self.lifecycle = BookingLifecycle(clock)
        self.treatments = TreatmentService(db, cache_manager)

    # Persistence helpers

    async def _get_row(self, booking_id: UUID) -> dict:
        result = await self.db.execute(select(bookings).where(bookings.c.id == booking_id))
        row = result.mappings().first()
        if not row:
            raise NotFoundException("Booking not found")
        return dict(row)

    async def _get_owned(self, booking_id: UUID, user: dict, allow_staff: bool = False) -> dict:
        booking = await self._get_row(booking_id)
        if allow_staff and user.get("role") in STAFF_ROLES:
            return booking
        if str(booking["user_id"]) != str(user["id"]):
            raise ForbiddenException("Access denied to this booking")
        return booking

    async def _apply(self, booking: dict, values: dict[str, Any]) -> dict:
        """
        Write transition values to a booking.

        The update only matches while the booking still has the status it
        was loaded with, so two racing transitions cannot both apply.

        Raises:
            ConflictException: If the booking changed since it was loaded
        """
        stmt = (
            update(bookings)
            .where(and_(bookings.c.id == booking["id"], bookings.c.status == booking["status"]))
            .values(**values)
            .returning(bookings)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        if row is None:
            await self.db.rollback()
            raise ConflictException("Booking was modified by another request, please retry")

        updated = dict(row)
        await self.db.commit()
        return updated

    async def _ensure_slot_free(
        self,
        location: str,
        appointment_date: date,
        appointment_time: str,
        exclude_id: UUID | None = None,
    ) -> None:
        if appointment_time not in DAILY_SLOTS:
            raise BadRequestException("Selected time is not a bookable slot")

        conditions = [
            bookings.c.location == location,
            bookings.c.appointment_date == appointment_date,
            bookings.c.appointment_time == appointment_time,
            bookings.c.status.in_(SLOT_HOLDING_STATUSES),
        ]
        if exclude_id is not None:
            conditions.append(bookings.c.id != exclude_id)

        result = await self.db.execute(select(bookings.c.id).where(and_(*conditions)).limit(1))
        if result.first() is not None:
            raise ConflictException("This time slot is already booked")

    # Customer operations

    async def create_booking(self, user: dict, data: BookingCreate) -> BookingResponse:
        """
        Create a confirmed booking for the current user.

        Args:
            user: Authenticated user
            data: Booking creation data

        Returns:
            Created booking

        Raises:
            NotFoundException: If the treatment is missing or inactive
            BookingStateError: If the location or time is not bookable
            ConflictException: If the slot is already taken
        """
        treatment = await self.treatments.get_bookable_treatment(data.treatment_id)
        appointment_at = self.lifecycle.ensure_bookable(
            treatment, data.location.value, data.appointment_date, data.appointment_time
        )
        await self._ensure_slot_free(
            data.location.value, data.appointment_date, data.appointment_time
        )

        values = {
            "user_id": UUID(str(user["id"])),
            "full_name": data.personal_details.full_name,
            "mobile_number": data.personal_details.mobile_number,
            "email": data.personal_details.email,
            "treatment_id": data.treatment_id,
            "treatment_name": treatment["name"],
            "treatment_category": treatment.get("category"),
            "treatment_price": treatment.get("price"),
            "treatment_price_display": treatment.get("price_display"),
            "treatment_duration": treatment.get("duration"),
            "treatment_duration_display": treatment.get("duration_display"),
            "location": data.location.value,
            "appointment_date": data.appointment_date,
            "appointment_time": data.appointment_time,
            "appointment_at": as_utc(appointment_at),
            "status": BookingStatus.CONFIRMED.value,
            "payment_method": data.payment_method.value,
            "payment_status": PaymentStatus.PENDING.value,
            "total_amount": treatment.get("price") or 0,
            "special_requests": data.special_requests,
            "reminders_sent": [],
        }

        for attempt in range(1, MAX_REFERENCE_ATTEMPTS + 1):
            values["booking_reference"] = generate_reference(
                settings.booking_reference_prefix, self.clock
            )
            try:
                result = await self.db.execute(insert(bookings).values(**values).returning(bookings))
                row = dict(result.mappings().one())
                await self.db.commit()
                break
            except IntegrityError:
                await self.db.rollback()
                logger.warning(
                    "booking_reference_collision",
                    reference=values["booking_reference"],
                    attempt=attempt,
                )
        else:
            raise ConflictException("Could not allocate a booking reference, please retry")

        logger.info(
            "booking_created",
            booking_id=str(row["id"]),
            reference=row["booking_reference"],
            location=row["location"],
        )
        self.dispatcher.dispatch(self.email.send_booking_confirmation, row)
        return BookingResponse.model_validate(row)

    async def get_booking(self, booking_id: UUID, user: dict) -> BookingDetail:
        """
        Get a booking with live checkout eligibility.

        Once self-checkout opens, ``can_check_out`` is persisted on the booking.
        """
        booking = await self._get_owned(booking_id, user, allow_staff=True)

        can_check_out, minutes = self.lifecycle.checkout_eligibility(booking)
        if can_check_out and not booking["can_check_out"]:
            booking = await self._apply(booking, {"can_check_out": True})

        return BookingDetail.model_validate({**booking, "minutes_until_checkout": minutes})

    async def list_user_bookings(
        self,
        user: dict,
        status: BookingStatus | None = None,
        upcoming: bool = False,
        page: int = 1,
        limit: int = 10,
    ) -> BookingList:
        """List the current user's bookings."""
        conditions = [bookings.c.user_id == UUID(str(user["id"]))]
        if status:
            conditions.append(bookings.c.status == status.value)
        if upcoming:
            conditions.append(bookings.c.appointment_date >= self.clock.today())
            conditions.append(bookings.c.status.in_(CANCELLABLE_STATUSES))

        count_stmt = select(func.count()).select_from(bookings).where(and_(*conditions))
        total = (await self.db.execute(count_stmt)).scalar() or 0

        if upcoming:
            order = (bookings.c.appointment_date.asc(), bookings.c.appointment_time.asc())
        else:
            order = (bookings.c.appointment_date.desc(), bookings.c.created_at.desc())

        stmt = (
            select(bookings)
            .where(and_(*conditions))
            .order_by(*order)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        items = [BookingResponse.model_validate(dict(row)) for row in result.mappings().all()]

        return BookingList(bookings=items, pagination=_pagination(page, limit, total))

    async def cancel_booking(self, booking_id: UUID, user: dict, reason: str) -> BookingResponse:
        """Cancel one of the user's bookings."""
        booking = await self._get_owned(booking_id, user)
        updated = await self._apply(booking, self.lifecycle.cancel(booking, reason))

        logger.info("booking_cancelled", booking_id=str(booking_id))
        self.dispatcher.dispatch(self.email.send_cancellation, updated)
        return BookingResponse.model_validate(updated)

    async def reschedule_booking(
        self,
        booking_id: UUID,
        user: dict,
        data: BookingReschedule,
    ) -> BookingResponse:
        """
        Move a booking to a new slot; allowed once per booking.

        Raises:
            BookingStateError: If the booking cannot be rescheduled
            ConflictException: If the new slot is already taken
        """
        booking = await self._get_owned(booking_id, user)
        values = self.lifecycle.reschedule(booking, data.appointment_date, data.appointment_time)
        await self._ensure_slot_free(
            booking["location"],
            data.appointment_date,
            data.appointment_time,
            exclude_id=booking["id"],
        )

        updated = await self._apply(booking, values)
        logger.info(
            "booking_rescheduled",
            booking_id=str(booking_id),
            from_date=str(booking["appointment_date"]),
            to_date=str(updated["appointment_date"]),
        )
        self.dispatcher.dispatch(self.email.send_reschedule, booking, updated)
        return BookingResponse.model_validate(updated)

    async def check_in(self, booking_id: UUID, user: dict) -> CheckInResult:
        """Check in and email the checkout OTP."""
        booking = await self._get_owned(booking_id, user)
        updated = await self._apply(booking, self.lifecycle.check_in(booking))

        logger.info("booking_checked_in", booking_id=str(booking_id))
        self.dispatcher.dispatch(self.email.send_checkout_otp, updated, updated["checkout_otp"])
        return CheckInResult(
            checked_in=True,
            check_in_time=updated["check_in_time"],
            check_out_eligible_time=updated["check_out_eligible_time"],
            can_check_out=False,
            checkout_otp=updated["checkout_otp"],
            otp_sent=True,
        )

    async def self_checkout(self, booking_id: UUID, user: dict) -> CheckoutResult:
        """Customer checkout once the waiting period is over."""
        booking = await self._get_owned(booking_id, user)
        updated = await self._apply(booking, self.lifecycle.self_checkout(booking))

        logger.info("booking_checked_out", booking_id=str(booking_id), by="customer")
        return CheckoutResult(
            checked_out=True,
            check_out_time=updated["check_out_time"],
            status=updated["status"],
        )

    async def staff_checkout(self, booking_id: UUID, otp: str, admin_id: str) -> CheckoutResult:
        """Staff checkout with the OTP the customer received at check-in."""
        booking = await self._get_row(booking_id)
        updated = await self._apply(booking, self.lifecycle.staff_checkout(booking, otp, admin_id))

        logger.info("booking_checked_out", booking_id=str(booking_id), by=admin_id)
        return CheckoutResult(
            checked_out=True,
            check_out_time=updated["check_out_time"],
            status=updated["status"],
            completed_by=admin_id,
        )

    async def add_feedback(
        self,
        booking_id: UUID,
        user: dict,
        data: BookingFeedback,
    ) -> BookingResponse:
        """Rate a completed booking and refresh the treatment's rating."""
        booking = await self._get_owned(booking_id, user)
        updated = await self._apply(
            booking, self.lifecycle.add_feedback(booking, data.rating, data.feedback)
        )
        await self.treatments.refresh_rating(updated["treatment_id"])
        return BookingResponse.model_validate(updated)

    async def rate_booking(
        self,
        booking_id: UUID,
        user: dict,
        data: BookingRating,
    ) -> BookingResponse:
        """Rate a completed booking with a short comment."""
        booking = await self._get_owned(booking_id, user)
        updated = await self._apply(booking, self.lifecycle.rate(booking, data.rating, data.comment))
        await self.treatments.refresh_rating(updated["treatment_id"])
        return BookingResponse.model_validate(updated)

    async def get_slip(self, booking_id: UUID, user: dict) -> AppointmentSlip:
        """Printable appointment slip."""
        booking = await self._get_owned(booking_id, user, allow_staff=True)
        return AppointmentSlip(
            booking_reference=booking["booking_reference"],
            patient_name=booking["full_name"],
            mobile_number=booking["mobile_number"],
            email=booking["email"],
            treatment_name=booking["treatment_name"],
            treatment_category=booking["treatment_category"],
            appointment_date=booking["appointment_date"],
            appointment_time=booking["appointment_time"],
            location=booking["location"],
            total_amount=booking["total_amount"],
            status=booking["status"],
            booked_at=booking["created_at"],
            special_requests=booking["special_requests"] or "None",
            payment_method=booking["payment_method"],
            clinic_info=ClinicInfo(
                name=settings.clinic_name,
                address=f"{booking['location']}, Hyderabad",
                phone=settings.clinic_phone,
                email=settings.clinic_email,
                website=settings.clinic_website,
            ),
        )

    async def delete_booking(self, booking_id: UUID, user: dict) -> None:
        """Delete a cancelled booking."""
        booking = await self._get_owned(booking_id, user)
        self.lifecycle.ensure_deletable(booking)

        await self.db.execute(
            delete(bookings).where(
                and_(
                    bookings.c.id == booking_id,
                    bookings.c.status == BookingStatus.CANCELLED.value,
                )
            )
        )
        await self.db.commit()
        logger.info("booking_deleted", booking_id=str(booking_id))

    # No-show sweep

    async def mark_no_shows(self) -> NoShowSweepResult:
        """
        Mark scheduled bookings that were never attended as no-show.

        Each booking is updated and committed on its own, with the guard
        repeated in the UPDATE so a check-in that lands first is kept.
        Running the sweep again modifies nothing.
        """
        cutoff = as_utc(self.clock.no_show_cutoff())
        guard = and_(
            bookings.c.status.in_(SCHEDULED_STATUSES),
            bookings.c.checked_in.is_(False),
            bookings.c.appointment_at < cutoff,
        )

        result = await self.db.execute(select(bookings.c.id).where(guard))
        candidates = list(result.scalars().all())

        modified = failed = 0
        for booking_id in candidates:
            try:
                result = await self.db.execute(
                    update(bookings)
                    .where(and_(bookings.c.id == booking_id, guard))
                    .values(**self.lifecycle.no_show_values())
                )
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                failed += 1
                logger.error("no_show_update_failed", booking_id=str(booking_id), error=str(e))
                continue
            modified += result.rowcount

        logger.info(
            "no_show_sweep_completed",
            candidates=len(candidates),
            modified_count=modified,
            failed_count=failed,
        )
        return NoShowSweepResult(modified_count=modified, failed_count=failed)

    # Admin operations

    async def _status_counts(self) -> dict[str, int]:
        result = await self.db.execute(
            select(bookings.c.status, func.count()).group_by(bookings.c.status)
        )
        counts = {status.value: 0 for status in BookingStatus}
        for status, count in result.all():
            counts[status] = count
        counts["total"] = sum(counts.values())
        return counts

    async def list_all_bookings(
        self,
        status: BookingStatus | None = None,
        location: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> AdminBookingList:
        """List every booking with filters and per-status counts."""
        conditions = []
        if status:
            conditions.append(bookings.c.status == status.value)
        if location:
            conditions.append(bookings.c.location == location)
        if date_from:
            conditions.append(bookings.c.appointment_date >= date_from)
        if date_to:
            conditions.append(bookings.c.appointment_date <= date_to)
        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(
                or_(
                    bookings.c.full_name.ilike(pattern),
                    bookings.c.mobile_number.ilike(pattern),
                    bookings.c.email.ilike(pattern),
                    bookings.c.booking_reference.ilike(pattern),
                )
            )

        where = and_(true(), *conditions)
        total = (
            await self.db.execute(select(func.count()).select_from(bookings).where(where))
        ).scalar() or 0

        stmt = (
            select(bookings)
            .where(where)
            .order_by(bookings.c.appointment_date.desc(), bookings.c.appointment_time.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        items = [BookingResponse.model_validate(dict(row)) for row in result.mappings().all()]

        return AdminBookingList(
            bookings=items,
            pagination=_pagination(page, limit, total),
            stats=await self._status_counts(),
        )

    async def admin_update_status(
        self,
        booking_id: UUID,
        data: AdminStatusUpdate,
    ) -> BookingResponse:
        """Apply a staff status transition."""
        booking = await self._get_row(booking_id)

        if data.status == BookingStatus.CONFIRMED.value:
            values = self.lifecycle.confirm(booking)
        elif data.status == BookingStatus.CANCELLED.value:
            values = self.lifecycle.cancel(booking, data.cancellation_reason or "")
        elif data.status == BookingStatus.NO_SHOW.value:
            values = self.lifecycle.mark_no_show(booking)
        else:
            values = self.lifecycle.complete(booking)

        if data.notes is not None:
            values["notes"] = data.notes

        updated = await self._apply(booking, values)
        logger.info(
            "booking_status_updated",
            booking_id=str(booking_id),
            from_status=booking["status"],
            to_status=updated["status"],
        )
        if updated["status"] == BookingStatus.CANCELLED.value:
            self.dispatcher.dispatch(self.email.send_cancellation, updated)
        return BookingResponse.model_validate(updated)

    async def _bulk_apply(self, booking_id: UUID, data: BulkUpdateRequest) -> dict:
        booking = await self._get_row(booking_id)

        if data.action == "cancel":
            values = self.lifecycle.cancel(booking, data.cancellation_reason or "Cancelled by admin")
        elif data.action == "confirm":
            values = self.lifecycle.confirm(booking)
        elif data.action == "no-show":
            values = self.lifecycle.mark_no_show(booking)
        else:
            if data.appointment_date is None or data.appointment_time is None:
                raise BadRequestException("Date and time required for reschedule")
            values = self.lifecycle.reschedule(
                booking, data.appointment_date, data.appointment_time
            )
            await self._ensure_slot_free(
                booking["location"],
                data.appointment_date,
                data.appointment_time,
                exclude_id=booking["id"],
            )

        updated = await self._apply(booking, values)
        if data.action == "cancel":
            self.dispatcher.dispatch(self.email.send_cancellation, updated)
        elif data.action == "reschedule":
            self.dispatcher.dispatch(self.email.send_reschedule, booking, updated)
        return updated

    async def bulk_update(self, data: BulkUpdateRequest) -> list[BulkUpdateResult]:
        """
        Apply one admin action to several bookings.

        Each booking goes through the same guards as a single status change.
        A rejected booking is reported in its own result and the remaining
        ones are still processed.
        """
        results = []
        for booking_id in data.booking_ids:
            try:
                await self._bulk_apply(booking_id, data)
            except AppException as e:
                results.append(
                    BulkUpdateResult(booking_id=booking_id, success=False, message=e.message)
                )
                continue
            results.append(
                BulkUpdateResult(
                    booking_id=booking_id,
                    success=True,
                    message=f"{data.action} successful",
                )
            )

        logger.info(
            "booking_bulk_update",
            action=data.action,
            requested=len(data.booking_ids),
            succeeded=sum(1 for r in results if r.success),
        )
        return results

    async def update_payment(self, booking_id: UUID, payment_status: str) -> BookingResponse:
        """Record a payment status change."""
        booking = await self._get_row(booking_id)
        now = as_utc(self.clock.now())
        updated = await self._apply(
            booking,
            {
                "payment_status": payment_status,
                "payment_updated_at": now,
                "fully_processed": (
                    payment_status == PaymentStatus.PAID.value
                    and booking["status"] == BookingStatus.COMPLETED.value
                ),
                "updated_at": now,
            },
        )
        logger.info("booking_payment_updated", booking_id=str(booking_id), status=payment_status)
        return BookingResponse.model_validate(updated)

    async def _count_from(self, start: date, end: date | None = None) -> int:
        conditions = [bookings.c.appointment_date >= start]
        if end is not None:
            conditions.append(bookings.c.appointment_date <= end)
        stmt = select(func.count()).select_from(bookings).where(and_(*conditions))
        return (await self.db.execute(stmt)).scalar() or 0

    async def dashboard_stats(self) -> DashboardStats:
        """Counts, revenue and popular treatments for the admin dashboard."""
        today = self.clock.today()
        week_start = today - timedelta(days=today.weekday())
        month_start = today.replace(day=1)

        status_breakdown = await self._status_counts()

        revenue_stmt = select(func.coalesce(func.sum(bookings.c.total_amount), 0)).where(
            and_(
                bookings.c.appointment_date >= month_start,
                bookings.c.status.in_(
                    (BookingStatus.COMPLETED.value, BookingStatus.CONFIRMED.value)
                ),
            )
        )
        month_revenue = (await self.db.execute(revenue_stmt)).scalar() or 0

        popular_stmt = (
            select(bookings.c.treatment_id, bookings.c.treatment_name, func.count().label("total"))
            .group_by(bookings.c.treatment_id, bookings.c.treatment_name)
            .order_by(func.count().desc())
            .limit(5)
        )
        popular = [
            {"treatment_id": str(row.treatment_id), "name": row.treatment_name, "count": row.total}
            for row in (await self.db.execute(popular_stmt)).all()
        ]

        return DashboardStats(
            appointments={
                "today": await self._count_from(today, today),
                "this_week": await self._count_from(week_start, week_start + timedelta(days=6)),
                "this_month": await self._count_from(month_start),
                "total": status_breakdown["total"],
            },
            status_breakdown=status_breakdown,
            revenue={"this_month": float(month_revenue), "currency": "INR"},
            popular_treatments=popular,
        )

    async def send_reminders(self, booking_ids: list[UUID]) -> list[ReminderResult]:
        """
        Send appointment reminders.

        Appointments within the next hour get the 1-hour reminder, later
        ones the 12-hour reminder. The email is sent before responding and
        only a successful send is appended to the booking's reminder log.
        A failure for one booking is reported in its result and the rest
        are still processed.
        """
        results = []
        for booking_id in booking_ids:
            result = await self.db.execute(select(bookings).where(bookings.c.id == booking_id))
            row = result.mappings().first()
            if not row:
                results.append(
                    ReminderResult(booking_id=booking_id, success=False, message="Booking not found")
                )
                continue

            booking = dict(row)
            if booking["status"] not in SCHEDULED_STATUSES:
                results.append(
                    ReminderResult(
                        booking_id=booking_id,
                        success=False,
                        message=f"Cannot send reminder for a {booking['status']} booking",
                    )
                )
                continue

            now = self.clock.now()
            hours_until = (
                self.lifecycle.appointment_at(booking) - now
            ).total_seconds() / 3600
            if hours_until <= 0:
                results.append(
                    ReminderResult(
                        booking_id=booking_id,
                        success=False,
                        message="Appointment time has already passed",
                    )
                )
                continue

            if hours_until <= 1:
                send = self.email.send_1_hour_reminder
            else:
                send = self.email.send_12_hour_reminder

            try:
                await run_in_threadpool(send, booking)
            except Exception as e:
                logger.error(
                    "reminder_send_failed",
                    booking_id=str(booking_id),
                    reminder=send.__name__,
                    error=str(e),
                )
                results.append(
                    ReminderResult(
                        booking_id=booking_id,
                        success=False,
                        message="Failed to send reminder email",
                    )
                )
                continue

            entry = {"type": "email", "sent_at": as_utc(now).isoformat(), "status": "sent"}
            try:
                await self._apply(
                    booking,
                    {"reminders_sent": [*(booking["reminders_sent"] or []), entry]},
                )
            except ConflictException as e:
                results.append(
                    ReminderResult(booking_id=booking_id, success=False, message=e.message)
                )
                continue
            results.append(
                ReminderResult(booking_id=booking_id, success=True, message="Reminder sent")
            )

        logger.info(
            "booking_reminders_sent",
            requested=len(booking_ids),
            sent=sum(1 for r in results if r.success),
        )
        return results
