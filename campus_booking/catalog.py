# campus_booking/catalog.py
"""
Resource catalog: read access for the booking engine plus the admin
mutation gateway.

Mutations take the same per-resource lock as admissions, so a status or
booking-rule change is ordered against in-flight bookings for that
resource. Deactivating a resource leaves its existing bookings untouched;
deleting one that still has active bookings is refused.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from campus_booking import models, schemas, state_machine
from campus_booking.authorization import Action, authorize
from campus_booking.availability import resource_locks
from campus_booking.errors import AuthorizationError, DuplicateRecord, NotFound, ResourceInUse

logger = logging.getLogger(__name__)


def get_resource(db: Session, resource_id: int) -> models.Resource:
    resource = db.query(models.Resource).filter(models.Resource.id == resource_id).first()
    if not resource:
        raise NotFound("Resource not found")
    return resource


def list_resources(db: Session, status: Optional[models.ResourceStatus] = None) -> List[models.Resource]:
    query = db.query(models.Resource)
    if status:
        query = query.filter(models.Resource.status == status)
    return query.order_by(models.Resource.id).all()


def _require_admin(actor: models.User) -> None:
    decision = authorize(actor, Action.MANAGE_CATALOG)
    if not decision:
        logger.warning("User %s denied catalog change: %s", actor.id, decision.reason)
        raise AuthorizationError(decision.reason)


# Optional columns an update may reset to null
CLEARABLE_FIELDS = {"sub_category", "building", "zone", "max_duration_hours", "required_permission"}


def _role_values(roles) -> List[str]:
    return [models.Role(r).value for r in roles]


def create_resource(db: Session, actor: models.User, data: schemas.ResourceCreate) -> models.Resource:
    _require_admin(actor)

    existing = db.query(models.Resource).filter(models.Resource.code == data.code).first()
    if existing:
        raise DuplicateRecord(f"Resource with code {data.code} already exists.")

    fields = data.model_dump()
    fields["allowed_roles"] = _role_values(data.allowed_roles)
    resource = models.Resource(**fields)
    db.add(resource)
    db.commit()
    db.refresh(resource)
    logger.info("Resource %s (%s) created by %s", resource.id, resource.code, actor.id)
    return resource


def update_resource(db: Session, actor: models.User, resource_id: int, data: schemas.ResourceUpdate) -> models.Resource:
    _require_admin(actor)

    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field in CLEARABLE_FIELDS
    }
    if "allowed_roles" in changes:
        changes["allowed_roles"] = _role_values(data.allowed_roles or [])

    # Unknown ids never get a lock
    get_resource(db, resource_id)
    with resource_locks.hold(resource_id):
        resource = get_resource(db, resource_id)
        for field, value in changes.items():
            setattr(resource, field, value)
        db.commit()

    db.refresh(resource)
    logger.info("Resource %s updated by %s: %s", resource_id, actor.id, sorted(changes))
    return resource


def set_status(db: Session, actor: models.User, resource_id: int, status: models.ResourceStatus) -> models.Resource:
    _require_admin(actor)

    get_resource(db, resource_id)
    with resource_locks.hold(resource_id):
        resource = get_resource(db, resource_id)
        previous = resource.status
        resource.status = status
        db.commit()

    db.refresh(resource)
    logger.info("Resource %s status %s -> %s by %s", resource_id, previous.value, status.value, actor.id)
    return resource


def delete_resource(db: Session, actor: models.User, resource_id: int, now: datetime) -> None:
    _require_admin(actor)

    get_resource(db, resource_id)
    with resource_locks.hold(resource_id):
        resource = get_resource(db, resource_id)
        outstanding = db.query(models.Booking).filter(
            models.Booking.resource_id == resource_id,
            models.Booking.status.in_(models.ACTIVE_BOOKING_STATUSES),
        ).all()
        state_machine.settle_all(outstanding, now)
        still_active = [b for b in outstanding if b.is_active]
        if still_active:
            db.commit()
            raise ResourceInUse(
                f"{resource.name} has {len(still_active)} active booking(s)",
                details={"active_bookings": len(still_active)},
            )

        db.delete(resource)
        db.commit()

    resource_locks.discard(resource_id)
    logger.info("Resource %s deleted by %s", resource_id, actor.id)
