"""Human-readable booking references."""

import secrets

from app.core.clock import ClinicClock


def generate_reference(prefix: str, clock: ClinicClock) -> str:
    """
    Build a reference from a prefix, the clinic-local date and a random suffix.

    Args:
        prefix: Reference prefix (e.g. ``ZEN``)
        clock: Clinic clock supplying the local date

    Returns:
        Reference such as ``ZEN202610181234``
    """
    suffix = 1000 + secrets.randbelow(9000)
    return f"{prefix}{clock.today():%Y%m%d}{suffix}"


def generate_otp() -> str:
    """Six-digit numeric one-time code."""
    return str(100000 + secrets.randbelow(900000))
