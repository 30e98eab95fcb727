from datetime import datetime

import pytest

from campus_booking import state_machine
from campus_booking.errors import InvalidTransition
from campus_booking.models import Booking, BookingStatus

NOW = datetime(2025, 3, 1, 12, 0)


def make_booking(status, end=datetime(2025, 3, 1, 10, 0)):
    return Booking(
        reference="BKG-TEST",
        status=status,
        start_time=datetime(2025, 3, 1, 9, 0),
        end_time=end,
    )


@pytest.mark.parametrize("current, target", [
    (BookingStatus.PENDING, BookingStatus.CONFIRMED),
    (BookingStatus.PENDING, BookingStatus.CANCELLED),
    (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
    (BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
])
def test_legal_transitions(current, target):
    assert state_machine.can_transition(current, target)


@pytest.mark.parametrize("current", [BookingStatus.CANCELLED, BookingStatus.COMPLETED])
def test_terminal_states_have_no_exits(current):
    assert current in state_machine.TERMINAL_STATUSES
    for target in BookingStatus:
        with pytest.raises(InvalidTransition):
            state_machine.validate_transition(current, target)


def test_pending_cannot_complete_directly():
    assert not state_machine.can_transition(BookingStatus.PENDING, BookingStatus.COMPLETED)


def test_initial_status_follows_approval_rule():
    assert state_machine.initial_status(False) == BookingStatus.CONFIRMED
    assert state_machine.initial_status(True) == BookingStatus.PENDING


def test_cancel_is_idempotent():
    booking = make_booking(BookingStatus.CONFIRMED)
    state_machine.cancel(booking, NOW)
    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancelled_at == NOW

    later = datetime(2025, 3, 2)
    state_machine.cancel(booking, later)
    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancelled_at == NOW


def test_cancel_completed_fails():
    booking = make_booking(BookingStatus.COMPLETED)
    with pytest.raises(InvalidTransition) as excinfo:
        state_machine.cancel(booking, NOW)
    assert excinfo.value.details == {"current": "Completed", "target": "Cancelled"}


def test_approve_requires_pending():
    booking = make_booking(BookingStatus.PENDING)
    state_machine.approve(booking, NOW)
    assert booking.status == BookingStatus.CONFIRMED
    with pytest.raises(InvalidTransition):
        state_machine.approve(booking, NOW)


def test_settle_completes_confirmed_after_end():
    booking = make_booking(BookingStatus.CONFIRMED)
    assert state_machine.settle(booking, NOW)
    assert booking.status == BookingStatus.COMPLETED


def test_settle_lapses_unapproved_pending():
    booking = make_booking(BookingStatus.PENDING)
    assert state_machine.settle(booking, NOW)
    assert booking.status == BookingStatus.CANCELLED


def test_settle_leaves_future_and_terminal_bookings():
    future = make_booking(BookingStatus.CONFIRMED, end=datetime(2025, 3, 1, 13, 0))
    cancelled = make_booking(BookingStatus.CANCELLED)
    assert state_machine.settle_all([future, cancelled], NOW) == []
    assert future.status == BookingStatus.CONFIRMED
    assert cancelled.status == BookingStatus.CANCELLED


def test_settle_at_exact_end_completes():
    booking = make_booking(BookingStatus.CONFIRMED, end=NOW)
    assert state_machine.settle(booking, NOW)
