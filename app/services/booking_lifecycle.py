"""Booking lifecycle state machine.

Every transition takes the booking as loaded from the database, checks its
guards, and returns the column values to write. A rejected transition raises
``BookingStateError`` before anything is written, so callers persist the
returned values in a single update.
"""

import secrets
from collections.abc import Callable, Mapping
from datetime import date, datetime
from typing import Any

from app.core.clock import ClinicClock, as_utc
from app.core.exceptions import BookingStateError
from app.schemas.bookings import BookingStatus
from app.services.reference import generate_otp

MAX_RESCHEDULES = 1

# "rescheduled" is a legacy marker that behaves exactly like "confirmed"
SCHEDULED_STATUSES = frozenset(
    {BookingStatus.CONFIRMED.value, BookingStatus.RESCHEDULED.value}
)
CANCELLABLE_STATUSES = SCHEDULED_STATUSES | {BookingStatus.PENDING.value}

Booking = Mapping[str, Any]


def _status(booking: Booking) -> str:
    status = booking["status"]
    return status.value if isinstance(status, BookingStatus) else status


class BookingLifecycle:
    """Guards and side effects of booking status transitions."""

    def __init__(self, clock: ClinicClock, otp_factory: Callable[[], str] = generate_otp):
        """Initialize with the clinic clock and an OTP generator."""
        self.clock = clock
        self.otp_factory = otp_factory

    def _stamp(self) -> datetime:
        return as_utc(self.clock.now())

    def appointment_at(self, booking: Booking) -> datetime:
        """Clinic-local instant of the booking's appointment."""
        return self.clock.combine(booking["appointment_date"], booking["appointment_time"])

    # Creation

    def ensure_bookable(
        self,
        treatment: Mapping[str, Any],
        location: str,
        appointment_date: date,
        appointment_time: str,
    ) -> datetime:
        """
        Check the creation guards and return the appointment instant.

        Raises:
            BookingStateError: If the treatment is not offered at the location
                or the appointment is not strictly in the future
        """
        if location not in (treatment.get("available_locations") or []):
            raise BookingStateError("Treatment is not available at the selected location")

        appointment_at = self.clock.combine(appointment_date, appointment_time)
        if appointment_at <= self.clock.now():
            raise BookingStateError("Appointment date and time must be in the future")
        return appointment_at

    # Check-in / check-out

    def check_in(self, booking: Booking) -> dict[str, Any]:
        """
        Start the visit: issue the checkout OTP and move to ``in-progress``.

        Raises:
            BookingStateError: If already checked in, not scheduled, or
                outside the check-in window
        """
        if booking.get("checked_in"):
            raise BookingStateError("You have already checked in for this appointment")

        status = _status(booking)
        if status not in SCHEDULED_STATUSES:
            raise BookingStateError(f"Cannot check in to a {status} booking")

        now = self.clock.now()
        opens, closes = self.clock.check_in_window(self.appointment_at(booking))
        if now < opens or now > closes:
            raise BookingStateError(
                "Check-in is only available 15 minutes before to 1 hour after "
                "your appointment time"
            )

        check_in_time = as_utc(now)
        return {
            "checked_in": True,
            "check_in_time": check_in_time,
            "checkout_otp": self.otp_factory(),
            "check_out_eligible_time": as_utc(self.clock.checkout_eligible_at(check_in_time)),
            "can_check_out": False,
            "status": BookingStatus.IN_PROGRESS.value,
            "updated_at": check_in_time,
        }

    def checkout_eligibility(self, booking: Booking) -> tuple[bool, int]:
        """Whether self-checkout is open now, and minutes left if not."""
        if not booking.get("checked_in") or booking.get("checked_out"):
            return False, 0

        eligible_at = self._eligible_at(booking)
        if self.clock.now() >= eligible_at:
            return True, 0
        return False, self.clock.minutes_until(eligible_at)

    def _eligible_at(self, booking: Booking) -> datetime:
        if booking.get("check_out_eligible_time"):
            return self.clock.to_local(booking["check_out_eligible_time"])
        return self.clock.checkout_eligible_at(booking["check_in_time"])

    def _ensure_checkout_open(self, booking: Booking, *, staff: bool) -> None:
        if not booking.get("checked_in"):
            raise BookingStateError(
                "Patient has not checked in yet" if staff else "You must check in first"
            )
        if booking.get("checked_out"):
            raise BookingStateError(
                "Patient has already been checked out" if staff else "You have already checked out"
            )
        if _status(booking) != BookingStatus.IN_PROGRESS.value:
            raise BookingStateError(f"Cannot check out a {_status(booking)} booking")

    def _completed(self) -> dict[str, Any]:
        now = self._stamp()
        return {
            "checked_out": True,
            "check_out_time": now,
            "status": BookingStatus.COMPLETED.value,
            "checkout_otp": None,
            "updated_at": now,
        }

    def self_checkout(self, booking: Booking) -> dict[str, Any]:
        """
        Customer checkout, allowed 20 minutes after check-in.

        Raises:
            BookingStateError: If not checked in, already checked out, or too early
        """
        self._ensure_checkout_open(booking, staff=False)

        eligible_at = self._eligible_at(booking)
        if self.clock.now() < eligible_at:
            minutes_left = self.clock.minutes_until(eligible_at)
            raise BookingStateError(
                f"Please wait {minutes_left} more minute(s) before checking out",
                data={
                    "can_check_out": False,
                    "check_out_eligible_time": eligible_at.isoformat(),
                    "minutes_remaining": minutes_left,
                },
            )

        return {**self._completed(), "can_check_out": True}

    def staff_checkout(self, booking: Booking, otp: str, admin_id: str) -> dict[str, Any]:
        """
        Staff checkout with the OTP issued at check-in.

        Raises:
            BookingStateError: If not checked in, already checked out, or the OTP
                does not match
        """
        self._ensure_checkout_open(booking, staff=True)

        stored = booking.get("checkout_otp")
        if not stored or not secrets.compare_digest(stored, otp):
            raise BookingStateError("Invalid OTP. Please check the OTP sent to patient email.")

        return {**self._completed(), "admin_checkout": admin_id}

    # Scheduling changes

    def cancel(self, booking: Booking, reason: str) -> dict[str, Any]:
        """
        Cancel a booking that has not started.

        Raises:
            BookingStateError: If the reason is missing or the booking is not
                pending or scheduled
        """
        reason = (reason or "").strip()
        if not reason:
            raise BookingStateError("Cancellation reason is required")
        if not 5 <= len(reason) <= 500:
            raise BookingStateError("Cancellation reason must be between 5-500 characters")

        if _status(booking) not in CANCELLABLE_STATUSES:
            raise BookingStateError("This booking cannot be cancelled")

        now = self._stamp()
        return {
            "status": BookingStatus.CANCELLED.value,
            "cancellation_reason": reason,
            "cancelled_at": now,
            "updated_at": now,
        }

    def reschedule(self, booking: Booking, new_date: date, new_time: str) -> dict[str, Any]:
        """
        Move a scheduled booking to a new date and time, once.

        Raises:
            BookingStateError: If the new time is not in the future, the booking
                is not scheduled, or it was already rescheduled
        """
        new_at = self.clock.combine(new_date, new_time)
        if new_at <= self.clock.now():
            raise BookingStateError("New appointment date must be in the future")

        status = _status(booking)
        if status in (BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value):
            raise BookingStateError("Cannot reschedule completed or cancelled bookings")
        if status not in CANCELLABLE_STATUSES:
            raise BookingStateError(f"Cannot reschedule {status} appointments")

        if (booking.get("reschedule_count") or 0) >= MAX_RESCHEDULES:
            raise BookingStateError("Appointment can only be rescheduled once")

        now = self._stamp()
        return {
            "rescheduled_from_date": booking["appointment_date"],
            "rescheduled_from_time": booking["appointment_time"],
            "appointment_date": new_date,
            "appointment_time": new_time,
            "appointment_at": as_utc(new_at),
            "status": BookingStatus.CONFIRMED.value,
            "rescheduled_at": now,
            "reschedule_count": (booking.get("reschedule_count") or 0) + 1,
            "updated_at": now,
        }

    # No-show

    def mark_no_show(self, booking: Booking) -> dict[str, Any]:
        """
        Mark a scheduled booking that was never attended as ``no-show``.

        Raises:
            BookingStateError: If the booking is not scheduled or was checked in
        """
        if _status(booking) not in SCHEDULED_STATUSES or booking.get("checked_in"):
            raise BookingStateError(f"Cannot mark a {_status(booking)} booking as no-show")
        return self.no_show_values()

    def no_show_values(self) -> dict[str, Any]:
        """Values written when a booking is marked no-show."""
        now = self._stamp()
        return {
            "status": BookingStatus.NO_SHOW.value,
            "no_show_marked_at": now,
            "updated_at": now,
        }

    # Staff overrides

    def confirm(self, booking: Booking) -> dict[str, Any]:
        """Confirm a pending booking."""
        if _status(booking) != BookingStatus.PENDING.value:
            raise BookingStateError("Only pending bookings can be confirmed")
        return {"status": BookingStatus.CONFIRMED.value, "updated_at": self._stamp()}

    def complete(self, booking: Booking) -> dict[str, Any]:
        """Mark a scheduled or in-progress booking completed without checkout."""
        status = _status(booking)
        if status not in SCHEDULED_STATUSES and status != BookingStatus.IN_PROGRESS.value:
            raise BookingStateError(f"Cannot complete a {status} booking")
        return {
            "status": BookingStatus.COMPLETED.value,
            "checkout_otp": None,
            "updated_at": self._stamp(),
        }

    # Post-visit

    def _ensure_completed(self, booking: Booking, message: str) -> None:
        if _status(booking) != BookingStatus.COMPLETED.value:
            raise BookingStateError(message)

    @staticmethod
    def _ensure_rating(rating: int) -> None:
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise BookingStateError("Rating must be between 1 and 5")

    def add_feedback(self, booking: Booking, rating: int, feedback: str | None) -> dict[str, Any]:
        """
        Record rating and feedback on a completed booking.

        Raises:
            BookingStateError: If the booking is not completed or the rating is
                outside 1-5
        """
        self._ensure_completed(booking, "Can only rate completed bookings")
        self._ensure_rating(rating)
        now = self._stamp()
        return {
            "rating": rating,
            "feedback": feedback,
            "feedback_date": now,
            "updated_at": now,
        }

    def rate(self, booking: Booking, rating: int, comment: str | None) -> dict[str, Any]:
        """Record a rating with a short comment on a completed booking."""
        self._ensure_completed(booking, "Only completed bookings can be rated")
        self._ensure_rating(rating)
        return {
            "rating": rating,
            "rating_comment": comment,
            "updated_at": self._stamp(),
        }

    def ensure_deletable(self, booking: Booking) -> None:
        """Only cancelled bookings may be deleted."""
        if _status(booking) != BookingStatus.CANCELLED.value:
            raise BookingStateError("Only cancelled appointments can be deleted")
