# campus_booking/routes/resources.py
from datetime import date as DateType, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campus_booking import catalog, models, schemas
from campus_booking.availability import get_busy_intervals
from campus_booking.dependencies import get_current_user, get_db, get_now

router = APIRouter(
    prefix="/resources",
    tags=["Resources"]
)

# Public - List Resources
@router.get("", response_model=List[schemas.ResourceOut])
def list_resources(status: Optional[models.ResourceStatus] = None, db: Session = Depends(get_db)):
    return catalog.list_resources(db, status)


@router.get("/{resource_id}", response_model=schemas.ResourceOut)
def read_resource(resource_id: int, db: Session = Depends(get_db)):
    return catalog.get_resource(db, resource_id)


# ✅ Busy intervals for a resource on one date (advisory)
@router.get("/{resource_id}/availability", response_model=schemas.Availability)
def resource_availability(
    resource_id: int,
    date: DateType = Query(...),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    catalog.get_resource(db, resource_id)
    intervals = get_busy_intervals(db, resource_id, date, now)
    return {
        "resource_id": resource_id,
        "date": date,
        "busy_intervals": [{"start": start, "end": end} for start, end in intervals],
    }


# Admin Only - Create a Resource
@router.post("", response_model=schemas.ResourceOut, status_code=status.HTTP_201_CREATED)
def create_resource(
    resource: schemas.ResourceCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return catalog.create_resource(db, current_user, resource)


# Admin Only - Update a Resource
@router.put("/{resource_id}", response_model=schemas.ResourceOut)
def update_resource(
    resource_id: int,
    resource: schemas.ResourceUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return catalog.update_resource(db, current_user, resource_id, resource)


# Admin Only - Change status (Active / Maintenance / Inactive)
@router.patch("/{resource_id}/status", response_model=schemas.ResourceOut)
def set_resource_status(
    resource_id: int,
    body: schemas.ResourceStatusUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return catalog.set_status(db, current_user, resource_id, body.status)


# Admin Only - Delete a Resource
@router.delete("/{resource_id}")
def delete_resource(
    resource_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    catalog.delete_resource(db, current_user, resource_id, now)
    return {"message": "Resource deleted successfully"}
