# campus_booking/routes/bookings.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from campus_booking import booking_service, models, schemas
from campus_booking.dependencies import get_current_user, get_db, get_now

router = APIRouter(
    prefix="/bookings",
    tags=["Bookings"]
)

# ✅ Book a Resource
@router.post("", response_model=schemas.BookingOut, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking: schemas.BookingCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    return booking_service.create_booking(db, current_user, booking, now)


# ✅ Admin - List All Bookings
@router.get("", response_model=List[schemas.BookingOut])
def list_all_bookings(
    status: Optional[models.BookingStatus] = None,
    resource_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    return booking_service.list_all_bookings(db, current_user, now, status=status, resource_id=resource_id)


# ✅ List a User's Bookings (own, or any for Admin)
@router.get("/user/{user_id}", response_model=List[schemas.BookingOut])
def list_user_bookings(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    return booking_service.list_user_bookings(db, current_user, user_id, now)


@router.get("/{booking_id}", response_model=schemas.BookingOut)
def read_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    return booking_service.get_booking(db, current_user, booking_id, now)


# ✅ Cancel Booking (owner or Admin)
@router.put("/{booking_id}/cancel", response_model=schemas.BookingOut)
def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    return booking_service.cancel_booking(db, current_user, booking_id, now)


# Admin - Approve a Pending Booking
@router.put("/{booking_id}/approve", response_model=schemas.BookingOut)
def approve_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    return booking_service.approve_booking(db, current_user, booking_id, now)
