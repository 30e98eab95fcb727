# campus_booking/dependencies.py
from datetime import datetime

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from campus_booking import clock, database, models
from campus_booking.auth import SessionManager, session_manager
from campus_booking.authorization import Action, authorize
from campus_booking.errors import AuthorizationError, SessionInvalid

# OAuth2 Bearer Token (For Login)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token", auto_error=False)


def get_db():
    yield from database.get_db()


def get_session_manager() -> SessionManager:
    return session_manager


def get_now() -> datetime:
    return clock.now()


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
) -> models.User:
    profile = sessions.validate(token)

    # The token is trusted for identity; role and flags come from the live record
    user = db.query(models.User).filter(models.User.id == profile.id).first()
    if user is None or not user.is_active:
        raise SessionInvalid()
    return user


# Admin Verification Dependency
def verify_admin_user(current_user: models.User = Depends(get_current_user)) -> models.User:
    decision = authorize(current_user, Action.MANAGE_USERS)
    if not decision:
        raise AuthorizationError(decision.reason)
    return current_user
