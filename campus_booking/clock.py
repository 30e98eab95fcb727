# campus_booking/clock.py
from datetime import datetime, timedelta

from campus_booking.config import settings


def now() -> datetime:
    """Campus wall-clock time, naive, as stored on bookings."""
    return datetime.utcnow() + timedelta(minutes=settings.UTC_OFFSET_MINUTES)
