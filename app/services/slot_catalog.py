"""Daily bookable slot catalog."""

OPENING_HOUR = 10
CLOSING_HOUR = 19


def generate_daily_slots() -> list[str]:
    """Hourly ``HH:MM`` slots from opening through closing hour, inclusive."""
    return [f"{hour:02d}:00" for hour in range(OPENING_HOUR, CLOSING_HOUR + 1)]


DAILY_SLOTS: tuple[str, ...] = tuple(generate_daily_slots())
