"""Booking schemas for request/response validation."""

import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
MOBILE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")


class BookingStatus(str, Enum):
    """Booking status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"
    NO_SHOW = "no-show"


class Location(str, Enum):
    """Clinic locations."""

    JUBILEE_HILLS = "Jubilee Hills"
    KOKAPET = "Kokapet"
    KONDAPUR = "Kondapur"


class PaymentStatus(str, Enum):
    """Payment status enumeration."""

    PENDING = "pending"
    PAID = "paid"
    PARTIAL = "partial"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    """Payment method enumeration."""

    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    WALLET = "wallet"


def normalize_time(value: str) -> str:
    """Validate ``H:MM``/``HH:MM`` and return zero-padded ``HH:MM``."""
    if not TIME_PATTERN.match(value):
        raise ValueError("Please provide a valid appointment time (HH:MM format)")
    hour, minute = value.split(":")
    return f"{int(hour):02d}:{minute}"


class PersonalDetails(BaseModel):
    """Customer contact snapshot captured at booking time."""

    full_name: str = Field(..., min_length=2, max_length=50)
    mobile_number: str
    email: EmailStr

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Trim surrounding whitespace."""
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Full name must be between 2-50 characters")
        return v

    @field_validator("mobile_number")
    @classmethod
    def validate_mobile(cls, v: str) -> str:
        """Validate mobile number format."""
        v = v.strip()
        if not MOBILE_PATTERN.match(v):
            raise ValueError("Please provide a valid mobile number")
        return v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        """Emails are stored lowercase."""
        return v.lower()


class BookingCreate(BaseModel):
    """Schema for creating a booking."""

    treatment_id: UUID
    personal_details: PersonalDetails
    location: Location
    appointment_date: date
    appointment_time: str
    special_requests: str | None = Field(None, max_length=500)
    payment_method: PaymentMethod = PaymentMethod.CASH

    @field_validator("appointment_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Validate and zero-pad the appointment time."""
        return normalize_time(v)


class BookingStatusUpdate(BaseModel):
    """Customer-initiated status change; only cancellation is accepted."""

    status: Literal["cancelled"]
    cancellation_reason: str = Field(..., min_length=5, max_length=500)


class BookingReschedule(BaseModel):
    """Schema for rescheduling a booking."""

    appointment_date: date
    appointment_time: str

    @field_validator("appointment_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Validate and zero-pad the appointment time."""
        return normalize_time(v)


class StaffCheckout(BaseModel):
    """Staff checkout with the customer's OTP."""

    otp: str = Field(..., min_length=6, max_length=6)
    admin_id: str = Field(..., min_length=1)


class BookingFeedback(BaseModel):
    """Rating and optional feedback on a completed booking."""

    rating: int = Field(..., ge=1, le=5)
    feedback: str | None = Field(None, min_length=10, max_length=1000)


class BookingRating(BaseModel):
    """Rating with an optional short comment."""

    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(None, max_length=500)


class AdminStatusUpdate(BaseModel):
    """Admin status transition."""

    status: Literal["confirmed", "cancelled", "no-show", "completed"]
    notes: str | None = Field(None, max_length=1000)
    cancellation_reason: str | None = Field(None, min_length=5, max_length=500)


class PaymentUpdate(BaseModel):
    """Admin payment status update."""

    payment_status: Literal["pending", "paid", "partial", "refunded"]


class ReminderRequest(BaseModel):
    """Bookings to send appointment reminders for."""

    booking_ids: list[UUID] = Field(..., min_length=1)


class BulkUpdateRequest(BaseModel):
    """Apply one admin action to several bookings."""

    booking_ids: list[UUID] = Field(..., min_length=1)
    action: Literal["cancel", "confirm", "reschedule", "no-show"]
    cancellation_reason: str | None = Field(None, min_length=5, max_length=500)
    appointment_date: date | None = None
    appointment_time: str | None = None

    @field_validator("appointment_time")
    @classmethod
    def validate_time(cls, v: str | None) -> str | None:
        """Validate and zero-pad the reschedule time when given."""
        return normalize_time(v) if v is not None else v


class ReminderEntry(BaseModel):
    """One entry of the reminder log."""

    type: Literal["sms", "email", "push"]
    sent_at: datetime
    status: Literal["sent", "delivered", "failed"]


class BookingResponse(BaseModel):
    """Schema for booking response."""

    id: UUID
    booking_reference: str
    user_id: UUID
    full_name: str
    mobile_number: str
    email: str
    treatment_id: UUID
    treatment_name: str
    treatment_category: str | None = None
    treatment_price: float | None = None
    treatment_price_display: str | None = None
    treatment_duration: int | None = None
    treatment_duration_display: str | None = None
    location: str
    appointment_date: date
    appointment_time: str
    status: BookingStatus
    payment_status: str
    payment_method: str
    total_amount: float
    fully_processed: bool = False
    special_requests: str | None = None
    notes: str | None = None
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    rescheduled_from_date: date | None = None
    rescheduled_from_time: str | None = None
    rescheduled_at: datetime | None = None
    reschedule_count: int = 0
    no_show_marked_at: datetime | None = None
    checked_in: bool = False
    check_in_time: datetime | None = None
    check_out_eligible_time: datetime | None = None
    can_check_out: bool = False
    checked_out: bool = False
    check_out_time: datetime | None = None
    admin_checkout: str | None = None
    rating: int | None = None
    rating_comment: str | None = None
    feedback: str | None = None
    feedback_date: datetime | None = None
    reminders_sent: list[ReminderEntry] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class BookingDetail(BookingResponse):
    """Booking with live checkout eligibility."""

    minutes_until_checkout: int = 0


class Pagination(BaseModel):
    """Pagination block."""

    current: int
    pages: int
    total: int
    limit: int


class BookingList(BaseModel):
    """Paginated booking list."""

    bookings: list[BookingResponse]
    pagination: Pagination


class AdminBookingList(BookingList):
    """Paginated booking list with per-status counts."""

    stats: dict[str, int]


class SlotDetail(BaseModel):
    """Availability of one slot."""

    time: str
    is_available: bool
    is_booked: bool
    is_past_time: bool


class DayAvailability(BaseModel):
    """Availability for one date at one location."""

    date: str
    location: Location
    available_slots: list[str]
    booked_slots: list[str]
    slot_details: list[SlotDetail]
    total_slots: int
    available_count: int
    fully_booked: bool


class DayStatus(BaseModel):
    """Whole-day classification in the month view."""

    is_past: bool
    is_available: bool
    available_slots: int
    total_slots: int
    fully_booked: bool
    booked_slots: int = 0


class MonthAvailability(BaseModel):
    """Per-day availability for a calendar month."""

    year: int
    month: int
    location: Location
    availability: dict[str, DayStatus]
    total_days: int


class CheckInResult(BaseModel):
    """Check-in outcome."""

    checked_in: bool
    check_in_time: datetime
    check_out_eligible_time: datetime
    can_check_out: bool
    checkout_otp: str
    otp_sent: bool


class CheckoutResult(BaseModel):
    """Checkout outcome."""

    checked_out: bool
    check_out_time: datetime
    status: BookingStatus
    completed_by: str | None = None


class NoShowSweepResult(BaseModel):
    """Outcome of a no-show sweep."""

    modified_count: int
    failed_count: int = 0


class ReminderResult(BaseModel):
    """Per-booking reminder outcome."""

    booking_id: UUID
    success: bool
    message: str


class BulkUpdateResult(BaseModel):
    """Per-booking outcome of a bulk action."""

    booking_id: UUID
    success: bool
    message: str


class ClinicInfo(BaseModel):
    """Clinic contact block on the appointment slip."""

    name: str
    address: str
    phone: str
    email: str
    website: str


class AppointmentSlip(BaseModel):
    """Printable appointment slip."""

    booking_reference: str
    patient_name: str
    mobile_number: str
    email: str
    treatment_name: str
    treatment_category: str | None
    appointment_date: date
    appointment_time: str
    location: str
    total_amount: float
    status: BookingStatus
    booked_at: datetime | None
    special_requests: str
    payment_method: str
    clinic_info: ClinicInfo


class DashboardStats(BaseModel):
    """Admin dashboard statistics."""

    appointments: dict[str, int]
    status_breakdown: dict[str, int]
    revenue: dict[str, Any]
    popular_treatments: list[dict[str, Any]]
