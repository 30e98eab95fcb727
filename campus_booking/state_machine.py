# campus_booking/state_machine.py
"""Booking lifecycle: legal transitions and lazy time-based settlement."""
import logging
from datetime import datetime
from typing import Iterable, List

from campus_booking.errors import InvalidTransition
from campus_booking.models import Booking, BookingStatus

logger = logging.getLogger(__name__)


_ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in _ALLOWED_TRANSITIONS.items() if not targets)


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return BookingStatus(target) in _ALLOWED_TRANSITIONS[BookingStatus(current)]


def validate_transition(current: BookingStatus, target: BookingStatus) -> None:
    """Raise InvalidTransition if ``current -> target`` is not allowed."""
    if not can_transition(current, target):
        raise InvalidTransition(BookingStatus(current).value, BookingStatus(target).value)


def initial_status(requires_approval: bool) -> BookingStatus:
    """Status a freshly admitted booking starts in."""
    return BookingStatus.PENDING if requires_approval else BookingStatus.CONFIRMED


def transition(booking: Booking, target: BookingStatus, now: datetime) -> Booking:
    validate_transition(booking.status, target)
    logger.info("Booking %s: %s -> %s", booking.reference, BookingStatus(booking.status).value, target.value)
    booking.status = target
    booking.updated_at = now
    if target == BookingStatus.CANCELLED:
        booking.cancelled_at = now
    return booking


def cancel(booking: Booking, now: datetime) -> Booking:
    # Cancelling twice is a no-op
    if booking.status == BookingStatus.CANCELLED:
        return booking
    return transition(booking, BookingStatus.CANCELLED, now)


def approve(booking: Booking, now: datetime) -> Booking:
    return transition(booking, BookingStatus.CONFIRMED, now)


def settle(booking: Booking, now: datetime) -> bool:
    """
    Apply the time-triggered transitions a booking is due for.

    A Confirmed booking whose end has passed is Completed; a Pending one that
    was never approved before its end lapses to Cancelled. Returns True when
    the booking changed.
    """
    if booking.end_time > now:
        return False
    if booking.status == BookingStatus.CONFIRMED:
        transition(booking, BookingStatus.COMPLETED, now)
        return True
    if booking.status == BookingStatus.PENDING:
        transition(booking, BookingStatus.CANCELLED, now)
        return True
    return False


def settle_all(bookings: Iterable[Booking], now: datetime) -> List[Booking]:
    """Settle every booking and return the ones that changed."""
    return [b for b in bookings if settle(b, now)]
