# campus_booking/routes/auth.py
import logging

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from campus_booking import models, schemas
from campus_booking.auth import SessionManager, get_password_hash
from campus_booking.dependencies import get_current_user, get_db, get_session_manager, oauth2_scheme
from campus_booking.errors import AuthorizationError, DuplicateRecord

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Auth"]
)

# Capability flags granted at registration
DEFAULT_PERMISSIONS = {
    models.Role.FACULTY: {"can_book_labs": True, "can_book_auditorium": True},
    models.Role.STAFF: {"can_book_labs": True, "can_book_auditorium": True},
    models.Role.STUDENT: {"can_book_labs": False, "can_book_auditorium": False},
}


def create_user(db: Session, user: schemas.UserCreate, role: models.Role) -> models.User:
    email = user.email.lower()
    existing_user = db.query(models.User).filter(models.User.email == email).first()
    if existing_user:
        raise DuplicateRecord("Email already registered")

    department = user.department
    new_user = models.User(
        full_name=user.full_name,
        email=email,
        password=get_password_hash(user.password),
        phone=user.phone,
        role=role,
        department_code=department.code if department else None,
        department_name=department.name if department else None,
        department_batch=department.batch if department else None,
        **DEFAULT_PERMISSIONS.get(role, {"can_book_labs": True, "can_book_auditorium": True}),
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    logger.info("Registered %s user %s", role.value, new_user.id)
    return new_user


# ✅ User Registration
@router.post("/register", response_model=schemas.UserProfile, status_code=status.HTTP_201_CREATED)
def register_user(user: schemas.UserCreate, db: Session = Depends(get_db)):
    if user.role == models.Role.ADMIN:
        raise AuthorizationError("Admin accounts can only be created by an Admin.")
    return create_user(db, user, user.role)


def _login_response(session, profile) -> schemas.LoginResponse:
    return schemas.LoginResponse(
        access_token=session.token,
        expires_at=session.expires_at,
        user=profile,
    )


# ✅ User Login (JSON body)
@router.post("/login", response_model=schemas.LoginResponse)
def login_user(
    user: schemas.UserLogin,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    session, profile = sessions.authenticate(db, user.email, user.password)
    return _login_response(session, profile)


# OAuth2 form login, used by the interactive docs
@router.post("/token", response_model=schemas.LoginResponse)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    session, profile = sessions.authenticate(db, form_data.username, form_data.password)
    return _login_response(session, profile)


@router.post("/logout")
def logout_user(
    token: str = Depends(oauth2_scheme),
    sessions: SessionManager = Depends(get_session_manager),
):
    sessions.invalidate(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=schemas.UserProfile)
def read_me(current_user: models.User = Depends(get_current_user)):
    return current_user
