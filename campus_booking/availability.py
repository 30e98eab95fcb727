# campus_booking/availability.py
"""
Availability and conflict resolution.

``get_busy_intervals`` is advisory: it can be stale by the time a booking is
written. ``check_and_reserve`` is the authoritative admission. Writers for
one resource are serialized by a per-resource lock held across the
read-check-write sequence, and on databases that support it the resource
row is also locked ``FOR UPDATE`` so several worker processes serialize the
same way. Writers for different resources never share a lock.
"""
import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Dict, Hashable, List, Optional, Tuple

from sqlalchemy.orm import Session

from campus_booking import models, state_machine
from campus_booking.authorization import Action, authorize, raise_for_decision
from campus_booking.config import settings
from campus_booking.errors import (
    Busy,
    ConflictError,
    InvalidRange,
    NotFound,
    ResourceUnavailable,
    ValidationError,
)

logger = logging.getLogger(__name__)

Interval = Tuple[datetime, datetime]


class ResourceLockRegistry:
    """One lock per resource key, created on first use."""

    def __init__(self):
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def __contains__(self, key: Hashable) -> bool:
        with self._guard:
            return key in self._locks

    def discard(self, key: Hashable) -> None:
        """Forget the lock of a resource that no longer exists."""
        with self._guard:
            self._locks.pop(key, None)

    @contextmanager
    def hold(self, key: Hashable, timeout: Optional[float] = None):
        if timeout is None:
            timeout = settings.BOOKING_LOCK_TIMEOUT_SECONDS
        lock = self._lock_for(key)
        if not lock.acquire(timeout=timeout):
            logger.warning("Timed out after %ss waiting for resource %s", timeout, key)
            raise Busy(f"Resource {key} is busy, please retry")
        try:
            yield
        finally:
            lock.release()


resource_locks = ResourceLockRegistry()


@dataclass(frozen=True)
class BookingDraft:
    user_id: int
    user_name: str
    purpose: str


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    """Half-open intervals [a_start, a_end) and [b_start, b_end) intersect."""
    return a_start < b_end and b_start < a_end


def resolve_interval(day: date, start: time, end: time) -> Interval:
    """Anchor two times of day on ``day``; the end must come strictly after the start."""
    if start.tzinfo is not None or end.tzinfo is not None:
        raise ValidationError("Times must be campus wall-clock times without a UTC offset")
    start_at = datetime.combine(day, start)
    end_at = datetime.combine(day, end)
    if end_at <= start_at:
        raise InvalidRange(details={"start": start_at.isoformat(), "end": end_at.isoformat()})
    return start_at, end_at


def new_reference() -> str:
    return f"BKG-{uuid.uuid4().hex[:12].upper()}"


def _active_bookings(db: Session, resource_id: int):
    return db.query(models.Booking).filter(
        models.Booking.resource_id == resource_id,
        models.Booking.status.in_(models.ACTIVE_BOOKING_STATUSES),
    )


def get_busy_intervals(db: Session, resource_id: int, day: date, now: datetime) -> List[Interval]:
    """Active bookings of a resource on ``day``, ordered by start."""
    bookings = (
        _active_bookings(db, resource_id)
        .filter(models.Booking.date == day)
        .order_by(models.Booking.start_time)
        .all()
    )
    if state_machine.settle_all(bookings, now):
        db.commit()
    return [(b.start_time, b.end_time) for b in bookings if b.is_active]


def find_conflicts(db: Session, resource_id: int, start: datetime, end: datetime) -> List[models.Booking]:
    return (
        _active_bookings(db, resource_id)
        .filter(models.Booking.start_time < end, models.Booking.end_time > start)
        .order_by(models.Booking.start_time)
        .all()
    )


def _resource_exists(db: Session, resource_id: int) -> bool:
    return db.query(models.Resource.id).filter(models.Resource.id == resource_id).first() is not None


def check_and_reserve(
    db: Session,
    resource_id: int,
    day: date,
    start: datetime,
    end: datetime,
    draft: BookingDraft,
    now: datetime,
    timeout: Optional[float] = None,
    requester=None,
) -> models.Booking:
    """
    Atomically test [start, end) against the resource's active bookings and
    insert the new booking when it is free.

    When ``requester`` is given the booking rules are evaluated again on the
    locked resource row, so a rule tightened meanwhile still applies.

    Raises InvalidRange, ValidationError (start in the past, offset-aware
    times), NotFound, ResourceUnavailable, AuthorizationError, ConflictError
    (with the clashing intervals) or Busy when the resource lock cannot be
    taken within ``timeout`` seconds.
    """
    if start.tzinfo is not None or end.tzinfo is not None:
        raise ValidationError("Times must be campus wall-clock times without a UTC offset")
    if end <= start:
        raise InvalidRange(details={"start": start.isoformat(), "end": end.isoformat()})
    if start < now:
        raise ValidationError("Bookings cannot start in the past", details={"start": start.isoformat()})
    # Locks are only created for resources that exist
    if not _resource_exists(db, resource_id):
        raise NotFound("Resource not found")

    with resource_locks.hold(resource_id, timeout):
        try:
            resource = (
                db.query(models.Resource)
                .filter(models.Resource.id == resource_id)
                .populate_existing()
                .with_for_update()
                .first()
            )
            if resource is None:
                raise NotFound("Resource not found")
            # Status and rules may have changed since the caller authorized
            if requester is not None:
                duration_hours = (end - start).total_seconds() / 3600
                raise_for_decision(
                    authorize(requester, Action.CREATE_BOOKING, resource, duration_hours=duration_hours)
                )
            elif resource.status != models.ResourceStatus.ACTIVE:
                raise ResourceUnavailable(f"{resource.name} is not accepting bookings")

            clashing = find_conflicts(db, resource_id, start, end)
            if clashing:
                intervals = [(b.start_time, b.end_time) for b in clashing]
                logger.info(
                    "Conflict on resource %s for %s-%s: %d overlapping booking(s)",
                    resource_id, start, end, len(clashing),
                )
                raise ConflictError(intervals)

            booking = models.Booking(
                reference=new_reference(),
                resource_id=resource_id,
                user_id=draft.user_id,
                date=day,
                start_time=start,
                end_time=end,
                purpose=draft.purpose,
                status=state_machine.initial_status(resource.requires_approval),
                resource_name=resource.name,
                user_name=draft.user_name,
                created_at=now,
                updated_at=now,
            )
            db.add(booking)
            db.commit()
        except Exception:
            db.rollback()
            raise

    db.refresh(booking)
    logger.info(
        "Booking %s admitted on resource %s (%s-%s) as %s",
        booking.reference, resource_id, start, end, booking.status.value,
    )
    return booking
