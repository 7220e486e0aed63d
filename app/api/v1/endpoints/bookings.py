"""Booking endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from app.dependencies import (
    AdminUser,
    BookingServiceDep,
    ClockDep,
    CurrentUser,
    DatabaseSession,
    StaffUser,
)
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
    BookingStatusUpdate,
    BulkUpdateRequest,
    BulkUpdateResult,
    CheckInResult,
    CheckoutResult,
    DashboardStats,
    DayAvailability,
    Location,
    MonthAvailability,
    NoShowSweepResult,
    PaymentUpdate,
    ReminderRequest,
    ReminderResult,
    StaffCheckout,
)
from app.schemas.common import ApiResponse, ok
from app.services.availability_service import AvailabilityService

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[BookingResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create booking",
)
async def create_booking(
    data: BookingCreate,
    current_user: CurrentUser,
    service: BookingServiceDep,
) -> ApiResponse[BookingResponse]:
    """
    Book a treatment slot for the authenticated user.

    The booking is confirmed immediately and a confirmation email is sent
    after the response.
    """
    booking = await service.create_booking(current_user, data)
    return ok("Booking created successfully", booking)


# Availability


@router.get(
    "/availability/{appointment_date}",
    response_model=ApiResponse[DayAvailability],
    summary="Slot availability for a date",
)
async def get_day_availability(
    appointment_date: date,
    db: DatabaseSession,
    clock: ClockDep,
    location: Location = Query(..., description="Clinic location"),
) -> ApiResponse[DayAvailability]:
    """
    Get per-slot availability for a single date.

    Args:
        appointment_date: Date to check (YYYY-MM-DD)
        db: Database session
        clock: Clinic clock
        location: Clinic location

    Returns:
        Slot details plus available and booked slot lists
    """
    availability = await AvailabilityService(db, clock).get_day_availability(
        appointment_date, location
    )
    return ok("Availability retrieved", availability)


@router.get(
    "/availability/calendar/{year}/{month}",
    response_model=ApiResponse[MonthAvailability],
    summary="Day availability for a month",
)
async def get_month_availability(
    year: int,
    month: int,
    db: DatabaseSession,
    clock: ClockDep,
    location: Location = Query(..., description="Clinic location"),
) -> ApiResponse[MonthAvailability]:
    """Get the availability of every day in a calendar month."""
    availability = await AvailabilityService(db, clock).get_month_availability(
        year, month, location
    )
    return ok("Calendar availability retrieved", availability)


# Customer collections


@router.get(
    "/my-bookings",
    response_model=ApiResponse[BookingList],
    summary="List my bookings",
)
async def list_my_bookings(
    current_user: CurrentUser,
    service: BookingServiceDep,
    status_filter: BookingStatus | None = Query(None, alias="status"),
    upcoming: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
) -> ApiResponse[BookingList]:
    """List the authenticated user's bookings."""
    result = await service.list_user_bookings(current_user, status_filter, upcoming, page, limit)
    return ok("Bookings retrieved", result)


# Staff operations


@router.post(
    "/mark-no-shows",
    response_model=ApiResponse[NoShowSweepResult],
    summary="Run the no-show sweep",
)
async def mark_no_shows(
    staff_user: StaffUser,
    service: BookingServiceDep,
) -> ApiResponse[NoShowSweepResult]:
    """
    Mark scheduled bookings as no-show when the customer never checked in
    and the appointment is more than 30 minutes past.

    Safe to run repeatedly.
    """
    result = await service.mark_no_shows()
    return ok(f"Marked {result.modified_count} appointment(s) as no-show", result)


@router.get(
    "/admin/all",
    response_model=ApiResponse[AdminBookingList],
    summary="List all bookings",
)
async def list_all_bookings(
    admin_user: AdminUser,
    service: BookingServiceDep,
    status_filter: BookingStatus | None = Query(None, alias="status"),
    location: Location | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse[AdminBookingList]:
    """
    List every booking with filters and per-status counts.

    Requires admin role.
    """
    result = await service.list_all_bookings(
        status=status_filter,
        location=location.value if location else None,
        date_from=date_from,
        date_to=date_to,
        search=search,
        page=page,
        limit=limit,
    )
    return ok("Bookings retrieved", result)


@router.get(
    "/admin/dashboard-stats",
    response_model=ApiResponse[DashboardStats],
    summary="Dashboard statistics",
)
async def get_dashboard_stats(
    admin_user: AdminUser,
    service: BookingServiceDep,
) -> ApiResponse[DashboardStats]:
    """Booking counts, revenue and popular treatments. Requires admin role."""
    return ok("Dashboard statistics retrieved", await service.dashboard_stats())


@router.post(
    "/admin/send-reminders",
    response_model=ApiResponse[list[ReminderResult]],
    summary="Send appointment reminders",
)
async def send_reminders(
    data: ReminderRequest,
    admin_user: AdminUser,
    service: BookingServiceDep,
) -> ApiResponse[list[ReminderResult]]:
    """Email reminders for the given bookings. Requires admin role."""
    results = await service.send_reminders(data.booking_ids)
    sent = sum(1 for r in results if r.success)
    return ok(f"Reminders sent for {sent} of {len(results)} booking(s)", results)


@router.patch(
    "/admin/bulk-update",
    response_model=ApiResponse[list[BulkUpdateResult]],
    summary="Bulk booking update",
)
async def bulk_update(
    data: BulkUpdateRequest,
    admin_user: AdminUser,
    service: BookingServiceDep,
) -> ApiResponse[list[BulkUpdateResult]]:
    """
    Cancel, confirm, reschedule or mark several bookings as no-show.

    Each booking is reported separately. Requires admin role.
    """
    return ok("Bulk operation completed", await service.bulk_update(data))


@router.patch(
    "/admin/{booking_id}/status",
    response_model=ApiResponse[BookingResponse],
    summary="Update booking status",
)
async def admin_update_status(
    booking_id: UUID,
    data: AdminStatusUpdate,
    admin_user: AdminUser,
    service: BookingServiceDep,
) -> ApiResponse[BookingResponse]:
    """Confirm, cancel, complete or mark a booking as no-show. Requires admin role."""
    booking = await service.admin_update_status(booking_id, data)
    return ok(f"Booking status updated to {booking.status.value}", booking)


@router.patch(
    "/admin/{booking_id}/payment",
    response_model=ApiResponse[BookingResponse],
    summary="Update payment status",
)
async def update_payment(
    booking_id: UUID,
    data: PaymentUpdate,
    admin_user: AdminUser,
    service: BookingServiceDep,
) -> ApiResponse[BookingResponse]:
    """Record a payment status change. Requires admin role."""
    booking = await service.update_payment(booking_id, data.payment_status)
    return ok("Payment status updated", booking)


# Single booking


@router.get(
    "/{booking_id}",
    response_model=ApiResponse[BookingDetail],
    summary="Get booking",
)
async def get_booking(
    booking_id: UUID,
    current_user: CurrentUser,
    service: BookingServiceDep,
) -> ApiResponse[BookingDetail]:
    """Get a booking with its live checkout eligibility."""
    return ok("Booking retrieved", await service.get_booking(booking_id, current_user))


@router.delete(
    "/{booking_id}",
    response_model=ApiResponse[None],
    summary="Delete cancelled booking",
)
async def delete_booking(
    booking_id: UUID,
    current_user: CurrentUser,
    service: BookingServiceDep,
) -> ApiResponse[None]:
    """Delete one of the user's cancelled bookings."""
    await service.delete_booking(booking_id, current_user)
    return ok("Appointment deleted successfully")


@router.post(
    "/{booking_id}/checkin",
    response_model=ApiResponse[CheckInResult],
    summary="Check in",
)
async def check_in(
    booking_id: UUID,
    current_user: CurrentUser,
    service: BookingServiceDep,
) -> ApiResponse[CheckInResult]:
    """
    Check in between 15 minutes before and 1 hour after the appointment.

    The checkout OTP is emailed to the customer.
    """
    result = await service.check_in(booking_id, current_user)
    return ok("Checked in successfully", result)


@router.post(
    "/{booking_id}/user-checkout",
    response_model=ApiResponse[CheckoutResult],
    summary="Self checkout",
)
async def user_checkout(
    booking_id: UUID,
    current_user: CurrentUser,
    service: BookingServiceDep,
) -> ApiResponse[CheckoutResult]:
    """Check out without staff, 20 minutes or more after check-in."""
    result = await service.self_checkout(booking_id, current_user)
    return ok("Checked out successfully", result)


@router.post(
    "/{booking_id}/checkout",
    response_model=ApiResponse[CheckoutResult],
    summary="Staff checkout",
)
async def staff_checkout(
    booking_id: UUID,
    data: StaffCheckout,
    staff_user: StaffUser,
    service: BookingServiceDep,
) -> ApiResponse[CheckoutResult]:
    """Complete a visit with the OTP the customer received at check-in."""
    result = await service.staff_checkout(booking_id, data.otp, data.admin_id)
    return ok("Patient checked out successfully", result)


@router.patch(
    "/{booking_id}/reschedule",
    response_model=ApiResponse[BookingResponse],
    summary="Reschedule booking",
)
async def reschedule_booking(
    booking_id: UUID,
    data: BookingReschedule,
    current_user: CurrentUser,
    service: BookingServiceDep,
) -> ApiResponse[BookingResponse]:
    """Move a booking to a new date and time. A booking can be rescheduled once."""
    booking = await service.reschedule_booking(booking_id, current_user, data)
    return ok("Appointment rescheduled successfully", booking)


@router.patch(
    "/{booking_id}/status",
    response_model=ApiResponse[BookingResponse],
    summary="Cancel booking",
)
async def update_booking_status(
    booking_id: UUID,
    data: BookingStatusUpdate,
    current_user: CurrentUser,
    service: BookingServiceDep,
) -> ApiResponse[BookingResponse]:
    """Cancel a booking; ``status`` must be ``cancelled``."""
    booking = await service.cancel_booking(booking_id, current_user, data.cancellation_reason)
    return ok("Booking cancelled successfully", booking)


@router.patch(
    "/{booking_id}/feedback",
    response_model=ApiResponse[BookingResponse],
    summary="Add feedback",
)
async def add_feedback(
    booking_id: UUID,
    data: BookingFeedback,
    current_user: CurrentUser,
    service: BookingServiceDep,
) -> ApiResponse[BookingResponse]:
    """Rate a completed booking."""
    booking = await service.add_feedback(booking_id, current_user, data)
    return ok("Feedback submitted successfully", booking)


@router.put(
    "/{booking_id}/rate",
    response_model=ApiResponse[BookingResponse],
    summary="Rate booking",
)
async def rate_booking(
    booking_id: UUID,
    data: BookingRating,
    current_user: CurrentUser,
    service: BookingServiceDep,
) -> ApiResponse[BookingResponse]:
    """Rate a completed booking with a short comment."""
    booking = await service.rate_booking(booking_id, current_user, data)
    return ok("Rating submitted successfully", booking)


@router.get(
    "/{booking_id}/slip",
    response_model=ApiResponse[AppointmentSlip],
    summary="Appointment slip",
)
async def get_slip(
    booking_id: UUID,
    current_user: CurrentUser,
    service: BookingServiceDep,
) -> ApiResponse[AppointmentSlip]:
    """Printable appointment slip with clinic contact details."""
    return ok("Appointment slip generated", await service.get_slip(booking_id, current_user))
