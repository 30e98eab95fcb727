# campus_booking/auth.py
"""
Session Manager: password hashing plus issuing, validating and invalidating
signed session tokens.

Tokens are JWTs carrying the user's profile, so validation is a signature
and expiry check with no database round trip.
"""
import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from campus_booking import models
from campus_booking.config import settings
from campus_booking.errors import InvalidCredentials, SessionExpired, SessionInvalid
from campus_booking.schemas import UserProfile

logger = logging.getLogger(__name__)

# Password Hashing Configuration
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


# Password Hashing Functions
def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


@dataclass(frozen=True)
class UserSession:
    token: str
    user_id: int
    issued_at: datetime
    expires_at: datetime


class SessionManager:
    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: float = 60):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes
        # token id -> expiry timestamp, for logged-out tokens that have not expired yet
        self._revoked: Dict[str, float] = {}
        self._revoked_lock = threading.Lock()

    def issue(self, user: models.User, now: Optional[datetime] = None) -> UserSession:
        """Sign a new token for ``user``."""
        issued_at = now or datetime.now(timezone.utc)
        expires_at = issued_at + timedelta(minutes=self.expire_minutes)
        profile = UserProfile.model_validate(user)
        claims = {
            "sub": str(user.id),
            "jti": uuid.uuid4().hex,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "profile": profile.model_dump(mode="json"),
        }
        token = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        return UserSession(token=token, user_id=user.id, issued_at=issued_at, expires_at=expires_at)

    def authenticate(self, db: Session, email: str, password: str) -> Tuple[UserSession, UserProfile]:
        db_user = db.query(models.User).filter(models.User.email == email.strip().lower()).first()
        # Same error for unknown email, wrong password and deactivated account
        if not db_user or not verify_password(password, db_user.password) or not db_user.is_active:
            logger.warning("Failed login attempt for %s", email)
            raise InvalidCredentials()

        session = self.issue(db_user)
        logger.info("User %s logged in", db_user.id)
        return session, UserProfile.model_validate(db_user)

    def _decode(self, token: str, verify_exp: bool = True) -> dict:
        return jwt.decode(
            token,
            self.secret_key,
            algorithms=[self.algorithm],
            options={"verify_exp": verify_exp},
        )

    def validate(self, token: Optional[str]) -> UserProfile:
        if not token:
            raise SessionInvalid("Not authenticated")
        try:
            payload = self._decode(token)
        except ExpiredSignatureError:
            raise SessionExpired()
        except JWTError:
            raise SessionInvalid()

        if payload.get("sub") is None or "profile" not in payload:
            raise SessionInvalid()
        if self._is_revoked(payload.get("jti")):
            raise SessionInvalid("Session has been logged out")

        return UserProfile(**payload["profile"])

    def invalidate(self, token: Optional[str]) -> None:
        """Log a token out. Unknown, malformed or expired tokens are ignored."""
        if not token:
            return
        try:
            payload = self._decode(token, verify_exp=False)
        except JWTError:
            return

        jti, exp = payload.get("jti"), payload.get("exp")
        if not jti or not exp:
            return

        now = datetime.now(timezone.utc).timestamp()
        with self._revoked_lock:
            self._prune(now)
            if exp > now:
                self._revoked[jti] = exp

    def _is_revoked(self, jti: Optional[str]) -> bool:
        if not jti:
            return False
        with self._revoked_lock:
            self._prune(datetime.now(timezone.utc).timestamp())
            return jti in self._revoked

    def _prune(self, now: float) -> None:
        expired = [jti for jti, exp in self._revoked.items() if exp <= now]
        for jti in expired:
            del self._revoked[jti]


session_manager = SessionManager(
    settings.JWT_SECRET_KEY,
    algorithm=settings.JWT_ALGORITHM,
    expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
)
