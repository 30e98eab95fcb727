# campus_booking/routes/users.py
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from campus_booking import models, schemas
from campus_booking.dependencies import get_db, verify_admin_user
from campus_booking.errors import NotFound
from campus_booking.routes.auth import create_user

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["Users"]
)


def _get_user(db: Session, user_id: int) -> models.User:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


# ✅ Admin Registration (Admin Only - Protected)
@router.post("/admin", response_model=schemas.UserProfile, status_code=status.HTTP_201_CREATED)
def register_admin(
    user: schemas.UserCreate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(verify_admin_user),
):
    return create_user(db, user, models.Role.ADMIN)


# Admin Only - Change role or capability flags
@router.patch("/{user_id}", response_model=schemas.UserProfile)
def update_user(
    user_id: int,
    changes: schemas.UserUpdate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(verify_admin_user),
):
    user = _get_user(db, user_id)
    updates = {k: v for k, v in changes.model_dump(exclude_unset=True).items() if v is not None}
    for field, value in updates.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    logger.info("User %s updated by admin %s: %s", user_id, admin.id, sorted(updates))
    return user


# Admin Only - Users are never deleted, only deactivated
@router.post("/{user_id}/deactivate", response_model=schemas.UserProfile)
def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(verify_admin_user),
):
    user = _get_user(db, user_id)
    user.is_active = False
    db.commit()
    db.refresh(user)
    logger.info("User %s deactivated by admin %s", user_id, admin.id)
    return user
