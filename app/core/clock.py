"""Clinic clock and business time windows.

Every "now" and "local calendar day" used by the booking core comes from a
``ClinicClock`` bound to one IANA timezone. Values read back from storage
without tzinfo are UTC.
"""

import math
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from app.config import settings

CHECK_IN_OPENS_BEFORE = timedelta(minutes=15)
CHECK_IN_CLOSES_AFTER = timedelta(minutes=60)
CHECKOUT_DELAY = timedelta(minutes=20)
NO_SHOW_GRACE = timedelta(minutes=30)


def parse_time(value: str) -> time:
    """Parse an ``HH:MM`` (or ``H:MM``) time of day."""
    hour_str, minute_str = value.strip().split(":")
    hour, minute = int(hour_str), int(minute_str)
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time of day: {value}")
    return time(hour, minute)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class ClinicClock:
    """Clock fixed to the clinic's timezone."""

    def __init__(self, timezone: str | None = None):
        """Initialize with an IANA timezone name (defaults to settings)."""
        self.tz = ZoneInfo(timezone or settings.clinic_timezone)

    def now(self) -> datetime:
        """Current instant in clinic local time."""
        return datetime.now(self.tz)

    def today(self) -> date:
        """Current clinic-local calendar day."""
        return self.now().date()

    def to_local(self, value: datetime) -> datetime:
        """Convert an instant to clinic local time."""
        return as_utc(value).astimezone(self.tz)

    def combine(self, day: date, hhmm: str) -> datetime:
        """Clinic-local datetime for a calendar day and ``HH:MM`` time."""
        return datetime.combine(day, parse_time(hhmm), tzinfo=self.tz)

    def check_in_window(self, appointment_at: datetime) -> tuple[datetime, datetime]:
        """Interval during which check-in is permitted (inclusive)."""
        local = self.to_local(appointment_at)
        return local - CHECK_IN_OPENS_BEFORE, local + CHECK_IN_CLOSES_AFTER

    def checkout_eligible_at(self, check_in_time: datetime) -> datetime:
        """Earliest self-checkout instant for a check-in."""
        return self.to_local(check_in_time) + CHECKOUT_DELAY

    def no_show_cutoff(self) -> datetime:
        """Appointments strictly before this instant are no-show candidates."""
        return self.now() - NO_SHOW_GRACE

    def minutes_until(self, target: datetime) -> int:
        """Whole minutes remaining until ``target``, rounded up; 0 if passed."""
        seconds = (as_utc(target) - self.now()).total_seconds()
        if seconds <= 0:
            return 0
        return math.ceil(seconds / 60)


class FrozenClock(ClinicClock):
    """Clock pinned to a settable instant."""

    def __init__(self, instant: datetime, timezone: str | None = None):
        """Initialize at ``instant``; naive instants are clinic-local."""
        super().__init__(timezone)
        self.set(instant)

    def set(self, instant: datetime) -> None:
        """Move the clock to ``instant``."""
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=self.tz)
        self._instant = instant.astimezone(self.tz)

    def advance(self, delta: timedelta) -> None:
        """Move the clock forward by ``delta``."""
        self._instant = self._instant + delta

    def now(self) -> datetime:
        """Pinned instant."""
        return self._instant


_clock: ClinicClock | None = None


def get_clock() -> ClinicClock:
    """Get the process-wide clinic clock."""
    global _clock

    if _clock is None:
        _clock = ClinicClock()

    return _clock
