"""Run the no-show sweep once, for cron.

Usage:
    python scripts/mark_no_shows.py

Exits non-zero when any booking failed to update.
"""

import asyncio
import sys

import structlog

from app.core.clock import get_clock
from app.database import AsyncSessionLocal, engine
from app.middleware.logging import configure_logging
from app.services.booking_service import BookingService
from app.services.email_service import EmailDispatcher, get_email_service

logger = structlog.get_logger()


async def run_sweep() -> int:
    """Mark overdue unattended bookings as no-show; return the failure count."""
    async with AsyncSessionLocal() as session:
        service = BookingService(session, get_clock(), EmailDispatcher(get_email_service()))
        result = await service.mark_no_shows()

    await engine.dispose()
    return result.failed_count


if __name__ == "__main__":
    configure_logging()
    failed = asyncio.run(run_sweep())
    sys.exit(1 if failed else 0)
