from datetime import datetime, timedelta, timezone

import pytest

from campus_booking.auth import SessionManager, get_password_hash, verify_password
from campus_booking.errors import InvalidCredentials, SessionExpired, SessionInvalid
from campus_booking.models import Role

from conftest import PASSWORD


def test_password_hashing_round_trip():
    hashed = get_password_hash("hunter22")
    assert hashed != "hunter22"
    assert verify_password("hunter22", hashed)
    assert not verify_password("hunter23", hashed)


def test_authenticate_issues_session_and_profile(db, sessions, student):
    session, profile = sessions.authenticate(db, "Sam@Campus.edu", PASSWORD)

    assert session.user_id == student.id
    assert session.expires_at - session.issued_at == timedelta(minutes=30)
    assert profile.email == "sam@campus.edu"
    assert profile.role == Role.STUDENT


@pytest.mark.parametrize("email, password", [
    ("sam@campus.edu", "wrong-password"),
    ("nobody@campus.edu", PASSWORD),
])
def test_authenticate_rejects_bad_credentials(db, sessions, student, email, password):
    with pytest.raises(InvalidCredentials):
        sessions.authenticate(db, email, password)


def test_deactivated_user_cannot_log_in(db, sessions, student):
    student.is_active = False
    db.commit()
    with pytest.raises(InvalidCredentials):
        sessions.authenticate(db, "sam@campus.edu", PASSWORD)


def test_validate_returns_profile_without_database(db, sessions, faculty):
    session = sessions.issue(faculty)
    db.close()

    profile = sessions.validate(session.token)
    assert profile.id == faculty.id
    assert profile.role == Role.FACULTY
    assert profile.can_book_labs is True


def test_expired_token(sessions, student):
    session = sessions.issue(student, now=datetime.now(timezone.utc) - timedelta(hours=1))
    with pytest.raises(SessionExpired):
        sessions.validate(session.token)


@pytest.mark.parametrize("token", [None, "", "not-a-token"])
def test_malformed_token(sessions, token):
    with pytest.raises(SessionInvalid):
        sessions.validate(token)


def test_token_signed_with_other_key(sessions, student):
    foreign = SessionManager("some-other-key").issue(student)
    with pytest.raises(SessionInvalid):
        sessions.validate(foreign.token)


def test_invalidate_is_idempotent(sessions, student):
    session = sessions.issue(student)
    sessions.invalidate(session.token)
    sessions.invalidate(session.token)
    with pytest.raises(SessionInvalid):
        sessions.validate(session.token)

    # Other sessions of the same user are unaffected
    assert sessions.validate(sessions.issue(student).token).id == student.id


def test_invalidate_ignores_garbage_and_expired_tokens(sessions, student):
    sessions.invalidate(None)
    sessions.invalidate("garbage")
    expired = sessions.issue(student, now=datetime.now(timezone.utc) - timedelta(hours=1))
    sessions.invalidate(expired.token)
    with pytest.raises(SessionExpired):
        sessions.validate(expired.token)
