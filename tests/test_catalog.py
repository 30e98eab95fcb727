from datetime import date, datetime, time

import pytest

from campus_booking import booking_service, catalog, models, schemas
from campus_booking.availability import resource_locks
from campus_booking.errors import AuthorizationError, DuplicateRecord, NotFound, ResourceInUse

from conftest import NOW


def resource_payload(**fields):
    values = dict(code="RES-200", name="Physics Lab", category="Academic", capacity=24)
    values.update(fields)
    return schemas.ResourceCreate(**values)


def book(db, user, resource, start_hour=9):
    request = schemas.BookingCreate(
        resource_id=resource.id,
        date=date(2025, 3, 1),
        start_time=time(start_hour),
        end_time=time(start_hour + 1),
        purpose="Lab session",
    )
    return booking_service.create_booking(db, user, request, NOW)


def test_admin_creates_resource_with_rules(db, admin):
    resource = catalog.create_resource(db, admin, resource_payload(
        allowed_roles=[models.Role.FACULTY], max_duration_hours=3, required_permission="can_book_labs",
    ))
    assert resource.id is not None
    assert resource.status == models.ResourceStatus.ACTIVE
    assert resource.allowed_roles == ["Faculty"]
    assert catalog.get_resource(db, resource.id).name == "Physics Lab"


def test_duplicate_code_rejected(db, admin):
    catalog.create_resource(db, admin, resource_payload())
    with pytest.raises(DuplicateRecord):
        catalog.create_resource(db, admin, resource_payload(name="Another"))


def test_non_admin_cannot_mutate_catalog(db, student, lab):
    with pytest.raises(AuthorizationError):
        catalog.create_resource(db, student, resource_payload())
    with pytest.raises(AuthorizationError):
        catalog.set_status(db, student, lab.id, models.ResourceStatus.INACTIVE)
    with pytest.raises(AuthorizationError):
        catalog.delete_resource(db, student, lab.id, NOW)


def test_update_only_touches_given_fields(db, admin, lab):
    updated = catalog.update_resource(db, admin, lab.id, schemas.ResourceUpdate(capacity=40, max_duration_hours=2))
    assert updated.capacity == 40
    assert updated.max_duration_hours == 2
    assert updated.name == "Lab-1"

    cleared = catalog.update_resource(db, admin, lab.id, schemas.ResourceUpdate(max_duration_hours=None))
    assert cleared.max_duration_hours is None


def test_update_unknown_resource(db, admin):
    with pytest.raises(NotFound):
        catalog.update_resource(db, admin, 404, schemas.ResourceUpdate(capacity=2))
    with pytest.raises(NotFound):
        catalog.set_status(db, admin, 404, models.ResourceStatus.INACTIVE)
    with pytest.raises(NotFound):
        catalog.delete_resource(db, admin, 404, NOW)
    assert 404 not in resource_locks


def test_deactivation_keeps_existing_bookings(db, admin, student, lab):
    booking = book(db, student, lab)
    catalog.set_status(db, admin, lab.id, models.ResourceStatus.MAINTENANCE)

    db.refresh(booking)
    assert booking.status == models.BookingStatus.CONFIRMED
    assert catalog.list_resources(db, models.ResourceStatus.ACTIVE) == []


def test_delete_with_active_bookings_is_refused(db, admin, student, lab):
    booking = book(db, student, lab)

    with pytest.raises(ResourceInUse) as excinfo:
        catalog.delete_resource(db, admin, lab.id, NOW)
    assert excinfo.value.details == {"active_bookings": 1}

    booking_service.cancel_booking(db, student, booking.id, NOW)
    catalog.delete_resource(db, admin, lab.id, NOW)

    with pytest.raises(NotFound):
        catalog.get_resource(db, lab.id)
    # History keeps its snapshot
    history = booking_service.list_user_bookings(db, student, student.id, NOW)
    assert [b.resource_name for b in history] == ["Lab-1"]


def test_delete_after_bookings_completed(db, admin, student, lab):
    book(db, student, lab)
    catalog.delete_resource(db, admin, lab.id, datetime(2025, 3, 2))
    assert catalog.list_resources(db) == []


def test_delete_forgets_resource_lock(db, admin, student, lab):
    book(db, student, lab)
    lab_id = lab.id
    assert lab_id in resource_locks

    catalog.delete_resource(db, admin, lab_id, datetime(2025, 3, 2))
    assert lab_id not in resource_locks


def test_deleted_resource_id_is_not_reused(db, admin, student):
    catalog.create_resource(db, admin, resource_payload(code="RES-201"))
    old = catalog.create_resource(db, admin, resource_payload(code="RES-202", name="Chem Lab"))
    booking = book(db, student, old)
    booking_service.cancel_booking(db, student, booking.id, NOW)
    old_id = old.id
    catalog.delete_resource(db, admin, old_id, NOW)

    new = catalog.create_resource(db, admin, resource_payload(code="RES-203", name="Bio Lab"))
    assert new.id != old_id
    assert booking_service.list_all_bookings(db, admin, NOW, resource_id=new.id) == []
    history = booking_service.list_all_bookings(db, admin, NOW, resource_id=old_id)
    assert [b.resource_name for b in history] == ["Chem Lab"]
