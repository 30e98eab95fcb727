# campus_booking/booking_service.py
"""
Booking operations: admission, cancellation, approval and ledger reads.

Every operation takes the authenticated ``requester`` explicitly and the
current campus time ``now``. Reads settle time-triggered transitions
(Completed / lapsed Pending) before returning.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from campus_booking import models, schemas, state_machine
from campus_booking.authorization import Action, Decision, authorize, raise_for_decision
from campus_booking.availability import BookingDraft, check_and_reserve, resolve_interval
from campus_booking.catalog import get_resource
from campus_booking.errors import NotFound

logger = logging.getLogger(__name__)


def _enforce(decision: Decision, requester: models.User, action: Action) -> None:
    if decision:
        return
    logger.info("Denied %s for user %s: %s", action.value, requester.id, decision.reason)
    raise_for_decision(decision)


def _load(db: Session, booking_id: int) -> models.Booking:
    booking = db.query(models.Booking).filter(models.Booking.id == booking_id).first()
    if not booking:
        raise NotFound("Booking not found")
    return booking


def _settled(db: Session, bookings: List[models.Booking], now: datetime) -> List[models.Booking]:
    if state_machine.settle_all(bookings, now):
        db.commit()
    return bookings


def create_booking(db: Session, requester: models.User, request: schemas.BookingCreate, now: datetime) -> models.Booking:
    start, end = resolve_interval(request.date, request.start_time, request.end_time)
    resource = get_resource(db, request.resource_id)

    duration_hours = (end - start).total_seconds() / 3600
    decision = authorize(requester, Action.CREATE_BOOKING, resource, duration_hours=duration_hours)
    _enforce(decision, requester, Action.CREATE_BOOKING)

    draft = BookingDraft(
        user_id=requester.id,
        user_name=requester.full_name,
        purpose=request.purpose.strip(),
    )
    return check_and_reserve(db, resource.id, request.date, start, end, draft, now, requester=requester)


def get_booking(db: Session, requester: models.User, booking_id: int, now: datetime) -> models.Booking:
    booking = _load(db, booking_id)
    _enforce(authorize(requester, Action.VIEW_BOOKING, booking=booking), requester, Action.VIEW_BOOKING)
    _settled(db, [booking], now)
    return booking


def cancel_booking(db: Session, requester: models.User, booking_id: int, now: datetime) -> models.Booking:
    booking = _load(db, booking_id)
    _enforce(authorize(requester, Action.CANCEL_BOOKING, booking=booking), requester, Action.CANCEL_BOOKING)

    try:
        # A booking that has already ended completes first, and cannot then be cancelled
        state_machine.settle(booking, now)
        state_machine.cancel(booking, now)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    return booking


def approve_booking(db: Session, requester: models.User, booking_id: int, now: datetime) -> models.Booking:
    _enforce(authorize(requester, Action.APPROVE_BOOKING), requester, Action.APPROVE_BOOKING)
    booking = _load(db, booking_id)

    try:
        state_machine.settle(booking, now)
        state_machine.approve(booking, now)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    return booking


def list_user_bookings(db: Session, requester: models.User, user_id: int, now: datetime) -> List[models.Booking]:
    decision = authorize(requester, Action.VIEW_USER_BOOKINGS, subject_user_id=user_id)
    _enforce(decision, requester, Action.VIEW_USER_BOOKINGS)

    bookings = (
        db.query(models.Booking)
        .filter(models.Booking.user_id == user_id)
        .order_by(models.Booking.start_time, models.Booking.id)
        .all()
    )
    return _settled(db, bookings, now)


def list_all_bookings(
    db: Session,
    requester: models.User,
    now: datetime,
    status: Optional[models.BookingStatus] = None,
    resource_id: Optional[int] = None,
) -> List[models.Booking]:
    _enforce(authorize(requester, Action.VIEW_ALL_BOOKINGS), requester, Action.VIEW_ALL_BOOKINGS)

    query = db.query(models.Booking)
    if resource_id:
        query = query.filter(models.Booking.resource_id == resource_id)
    bookings = _settled(db, query.order_by(models.Booking.start_time, models.Booking.id).all(), now)

    # Status is filtered after settling so it reflects current states
    if status:
        bookings = [b for b in bookings if b.status == status]
    return bookings
