"""Tests for day and month slot availability."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from app.core.exceptions import ValidationException
from app.services.availability_service import (
    compute_day_availability,
    compute_month_availability,
    validate_year_month,
)
from app.services.slot_catalog import DAILY_SLOTS

IST = ZoneInfo("Asia/Kolkata")
TODAY = date(2026, 3, 10)
NOW = datetime(2026, 3, 10, 9, 0, tzinfo=IST)


def booking(day: date, time: str, status: str = "confirmed", location: str = "Jubilee Hills"):
    return {
        "appointment_date": day,
        "appointment_time": time,
        "location": location,
        "status": status,
    }


def test_future_day_all_slots_open():
    """Test an empty future day offers every slot."""
    result = compute_day_availability(date(2026, 3, 12), "Kokapet", [], NOW)
    assert result.available_slots == list(DAILY_SLOTS)
    assert result.available_count == 10
    assert result.fully_booked is False
    assert not any(slot.is_past_time for slot in result.slot_details)


def test_today_applies_one_hour_lead():
    """Test today's slots up to the next hour are past."""
    result = compute_day_availability(TODAY, "Kokapet", [], NOW)
    details = {slot.time: slot for slot in result.slot_details}

    # 09:00 now: hour <= 10 is past
    assert details["10:00"].is_past_time is True
    assert details["10:00"].is_available is False
    assert details["11:00"].is_past_time is False
    assert details["11:00"].is_available is True


def test_booked_slots_are_not_available():
    """Test slot-holding bookings block the slot at their location only."""
    existing = [
        booking(date(2026, 3, 12), "11:00"),
        booking(date(2026, 3, 12), "12:00", status="in-progress"),
        booking(date(2026, 3, 12), "13:00", status="rescheduled"),
        booking(date(2026, 3, 12), "14:00", status="pending"),
        booking(date(2026, 3, 12), "15:00", location="Kondapur"),
    ]
    result = compute_day_availability(date(2026, 3, 12), "Jubilee Hills", existing, NOW)

    assert result.booked_slots == ["11:00", "12:00", "13:00", "14:00"]
    assert "15:00" in result.available_slots
    for slot in result.slot_details:
        assert slot.is_available == (not slot.is_booked and not slot.is_past_time)


@pytest.mark.parametrize("status", ["cancelled", "completed", "no-show"])
def test_finished_bookings_free_the_slot(status):
    """Test cancelled, completed and no-show bookings release their slot."""
    existing = [booking(date(2026, 3, 12), "11:00", status=status)]
    result = compute_day_availability(date(2026, 3, 12), "Jubilee Hills", existing, NOW)
    assert "11:00" in result.available_slots


def test_month_marks_past_days_and_fully_booked_days():
    """Test past days and fully booked days in the calendar view."""
    full_day = date(2026, 3, 20)
    existing = [booking(full_day, slot) for slot in DAILY_SLOTS]
    existing.append(booking(date(2026, 3, 21), "10:00"))

    result = compute_month_availability(2026, 3, "Jubilee Hills", existing, TODAY)

    assert result.total_days == 31
    assert result.availability["2026-03-09"].is_past is True
    assert result.availability["2026-03-09"].is_available is False
    assert result.availability["2026-03-10"].is_past is False

    assert result.availability["2026-03-20"].fully_booked is True
    assert result.availability["2026-03-20"].is_available is False
    assert result.availability["2026-03-20"].available_slots == 0

    assert result.availability["2026-03-21"].available_slots == 9
    assert result.availability["2026-03-21"].booked_slots == 1


def test_month_ignores_other_locations():
    """Test bookings at another location do not fill the day."""
    existing = [booking(date(2026, 3, 20), slot, location="Kokapet") for slot in DAILY_SLOTS]
    result = compute_month_availability(2026, 3, "Jubilee Hills", existing, TODAY)
    assert result.availability["2026-03-20"].fully_booked is False


@pytest.mark.parametrize("year,month", [(2023, 5), (2031, 1), (2026, 0), (2026, 13)])
def test_invalid_year_or_month(year, month):
    """Test the calendar range is enforced."""
    with pytest.raises(ValidationException, match="Invalid year or month"):
        validate_year_month(year, month)
