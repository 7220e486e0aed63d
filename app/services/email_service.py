"""Transactional booking emails sent through Resend."""

from collections.abc import Callable, Mapping
from datetime import date
from html import escape
from typing import Any

import resend
import structlog
from fastapi import BackgroundTasks

from app.config import settings

logger = structlog.get_logger(__name__)


def _format_date(value: date | str) -> str:
    if isinstance(value, date):
        return value.strftime("%A, %d %B %Y")
    return str(value)


def _details(booking: Mapping[str, Any]) -> str:
    rows = [
        ("Treatment", booking.get("treatment_name")),
        ("Date", _format_date(booking["appointment_date"])),
        ("Time", booking.get("appointment_time")),
        ("Location", booking.get("location")),
        ("Booking Reference", booking.get("booking_reference")),
    ]
    items = "".join(
        f"<p style='margin:5px 0'><strong>{label}:</strong> {escape(str(value))}</p>"
        for label, value in rows
    )
    return f"<div style='border:1px solid #156450;border-radius:8px;padding:20px'>{items}</div>"


def _page(title: str, greeting: str, body: str) -> str:
    return (
        "<!DOCTYPE html><html><body style='font-family:Arial,sans-serif;color:#333'>"
        f"<h1 style='color:#156450'>ZENNARA</h1><h2>{escape(title)}</h2>"
        f"<p>{escape(greeting)}</p>{body}"
        f"<p style='font-size:12px;color:#888'>{escape(settings.clinic_name)} · "
        f"{escape(settings.clinic_phone)}</p></body></html>"
    )


class EmailService:
    """Builds and sends booking emails."""

    def __init__(self, api_key: str | None = None, from_address: str | None = None):
        """Initialize with Resend credentials (defaults to settings)."""
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.from_address = from_address or settings.email_from_address

    def _send(self, to: str, subject: str, html: str) -> None:
        if not self.api_key:
            logger.info("email_skipped_not_configured", to=to, subject=subject)
            return

        resend.api_key = self.api_key
        response = resend.Emails.send(
            {
                "from": self.from_address,
                "to": [to],
                "subject": subject,
                "html": html,
            }
        )
        logger.info("email_sent", to=to, subject=subject, email_id=response.get("id"))

    def send_booking_confirmation(self, booking: Mapping[str, Any]) -> None:
        """Booking confirmation with appointment details."""
        self._send(
            booking["email"],
            f"Booking Confirmed - {booking['booking_reference']}",
            _page(
                "Booking Confirmed",
                f"Dear {booking['full_name']}, your appointment is confirmed.",
                _details(booking),
            ),
        )

    def send_checkout_otp(self, booking: Mapping[str, Any], otp: str) -> None:
        """Check-in confirmation carrying the checkout OTP."""
        otp_block = (
            "<div style='background:#156450;color:white;padding:25px;text-align:center'>"
            "<h3>Your Checkout OTP</h3>"
            f"<div style='font-size:36px;letter-spacing:6px;font-family:monospace'>{escape(otp)}</div>"
            "<p>Please provide this OTP to our staff when your treatment is complete</p></div>"
        )
        self._send(
            booking["email"],
            "Check-in Successful - Your Checkout OTP",
            _page(
                "Check-in Successful!",
                f"Dear {booking['full_name']}, you have successfully checked in.",
                _details(booking) + otp_block,
            ),
        )

    def send_cancellation(self, booking: Mapping[str, Any]) -> None:
        """Cancellation notice."""
        reason = booking.get("cancellation_reason") or ""
        self._send(
            booking["email"],
            f"Appointment Cancelled - {booking['booking_reference']}",
            _page(
                "Appointment Cancelled",
                f"Dear {booking['full_name']}, your appointment has been cancelled.",
                _details(booking) + f"<p><strong>Reason:</strong> {escape(reason)}</p>",
            ),
        )

    def send_reschedule(self, previous: Mapping[str, Any], booking: Mapping[str, Any]) -> None:
        """Reschedule notice with the previous and new slot."""
        was = (
            f"<p><strong>Previously:</strong> {_format_date(previous['appointment_date'])} "
            f"at {escape(previous['appointment_time'])}</p>"
        )
        self._send(
            booking["email"],
            f"Appointment Rescheduled - {booking['booking_reference']}",
            _page(
                "Appointment Rescheduled",
                f"Dear {booking['full_name']}, your appointment has been rescheduled.",
                was + _details(booking),
            ),
        )

    def send_12_hour_reminder(self, booking: Mapping[str, Any]) -> None:
        """Reminder for an upcoming appointment."""
        self._send(
            booking["email"],
            "Appointment Reminder - Tomorrow's Treatment",
            _page(
                "Appointment Reminder",
                f"Dear {booking['full_name']}, this is a reminder of your upcoming appointment.",
                _details(booking),
            ),
        )

    def send_1_hour_reminder(self, booking: Mapping[str, Any]) -> None:
        """Reminder an hour before the appointment."""
        self._send(
            booking["email"],
            "Your Appointment Starts in 1 Hour",
            _page(
                "See You Soon",
                f"Dear {booking['full_name']}, your appointment starts in about an hour.",
                _details(booking),
            ),
        )


def send_safely(send: Callable[..., None], *args: Any) -> None:
    """Run an email send; failures are logged and never propagated."""
    try:
        send(*args)
    except Exception as e:
        logger.warning(
            "email_dispatch_failed",
            email=getattr(send, "__name__", repr(send)),
            error=str(e),
        )


class EmailDispatcher:
    """Schedules emails to run after the response is sent."""

    def __init__(self, email_service: EmailService, background_tasks: BackgroundTasks | None = None):
        """Initialize with the email service and optional background task queue."""
        self.email = email_service
        self.background_tasks = background_tasks

    def dispatch(self, send: Callable[..., None], *args: Any) -> None:
        """Fire and forget ``send(*args)``."""
        if self.background_tasks is not None:
            self.background_tasks.add_task(send_safely, send, *args)
        else:
            send_safely(send, *args)


_email_service: EmailService | None = None


def get_email_service() -> EmailService:
    """Get the process-wide email service."""
    global _email_service

    if _email_service is None:
        _email_service = EmailService()

    return _email_service
