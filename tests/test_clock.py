"""Tests for the clinic clock, slot catalog and reference generator."""

import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from app.core.clock import ClinicClock, FrozenClock, as_utc, parse_time
from app.services.reference import generate_otp, generate_reference
from app.services.slot_catalog import DAILY_SLOTS, generate_daily_slots

IST = ZoneInfo("Asia/Kolkata")


def test_parse_time_accepts_single_digit_hour():
    """Test H:MM and HH:MM both parse."""
    assert parse_time("9:30").hour == 9
    assert parse_time("19:00").hour == 19


def test_combine_is_clinic_local():
    """Test appointment instants carry the clinic timezone."""
    clock = ClinicClock("Asia/Kolkata")
    combined = clock.combine(date(2026, 3, 11), "11:00")
    assert combined == datetime(2026, 3, 11, 11, 0, tzinfo=IST)
    assert as_utc(combined).hour == 5
    assert as_utc(combined).minute == 30


def test_naive_storage_values_are_utc():
    """Test naive datetimes read back from storage are treated as UTC."""
    clock = ClinicClock("Asia/Kolkata")
    local = clock.to_local(datetime(2026, 3, 10, 3, 30))
    assert local == datetime(2026, 3, 10, 9, 0, tzinfo=IST)


def test_today_follows_clinic_timezone():
    """Test the local date is used even when UTC is still on the previous day."""
    # 23:00 UTC on 9 March is 04:30 on 10 March in the clinic
    clock = FrozenClock(datetime(2026, 3, 9, 23, 0, tzinfo=ZoneInfo("UTC")), "Asia/Kolkata")
    assert clock.today() == date(2026, 3, 10)


def test_check_in_window_bounds():
    """Test check-in opens 15 minutes before and closes 1 hour after."""
    clock = FrozenClock(datetime(2026, 3, 10, 9, 0), "Asia/Kolkata")
    opens, closes = clock.check_in_window(clock.combine(date(2026, 3, 10), "11:00"))
    assert opens == datetime(2026, 3, 10, 10, 45, tzinfo=IST)
    assert closes == datetime(2026, 3, 10, 12, 0, tzinfo=IST)


def test_minutes_until_rounds_up():
    """Test partial minutes count as a whole minute."""
    clock = FrozenClock(datetime(2026, 3, 10, 9, 0), "Asia/Kolkata")
    assert clock.minutes_until(clock.now() + timedelta(seconds=30)) == 1
    assert clock.minutes_until(clock.now() + timedelta(minutes=5)) == 5
    assert clock.minutes_until(clock.now() - timedelta(minutes=5)) == 0


def test_frozen_clock_advance():
    """Test the frozen clock only moves when told to."""
    clock = FrozenClock(datetime(2026, 3, 10, 9, 0), "Asia/Kolkata")
    clock.advance(timedelta(minutes=45))
    assert clock.now() == datetime(2026, 3, 10, 9, 45, tzinfo=IST)
    assert clock.no_show_cutoff() == datetime(2026, 3, 10, 9, 15, tzinfo=IST)


def test_daily_slots():
    """Test the catalog holds ten hourly slots from 10:00 to 19:00."""
    slots = generate_daily_slots()
    assert slots[0] == "10:00"
    assert slots[-1] == "19:00"
    assert len(slots) == 10
    assert tuple(slots) == DAILY_SLOTS


def test_reference_format():
    """Test references are prefix, local date and a 4-digit suffix."""
    clock = FrozenClock(datetime(2026, 3, 10, 9, 0), "Asia/Kolkata")
    for _ in range(50):
        reference = generate_reference("ZEN", clock)
        assert re.fullmatch(r"ZEN20260310\d{4}", reference)
        assert 1000 <= int(reference[-4:]) <= 9999


def test_otp_is_six_digits():
    """Test OTPs are six numeric digits."""
    for _ in range(50):
        assert re.fullmatch(r"[1-9]\d{5}", generate_otp())
