import os
from datetime import datetime

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from campus_booking import models
from campus_booking.auth import SessionManager, get_password_hash
from campus_booking.database import Base, build_engine
from campus_booking.dependencies import get_db, get_now, get_session_manager
from campus_booking.main import app

# Campus clock used throughout the suite: the day before the booking date
NOW = datetime(2025, 2, 28, 8, 0)
PASSWORD = "secret123"


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'bookings.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(full_name, email, role=models.Role.STUDENT, **fields):
        user = models.User(
            full_name=full_name,
            email=email,
            password=get_password_hash(PASSWORD),
            role=role,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user("Ada Admin", "admin@campus.edu", models.Role.ADMIN)


@pytest.fixture
def student(make_user):
    return make_user("Sam Student", "sam@campus.edu", models.Role.STUDENT)


@pytest.fixture
def other_student(make_user):
    return make_user("Riya Student", "riya@campus.edu", models.Role.STUDENT)


@pytest.fixture
def faculty(make_user):
    return make_user(
        "Farah Faculty", "farah@campus.edu", models.Role.FACULTY,
        can_book_labs=True, can_book_auditorium=True,
    )


@pytest.fixture
def make_resource(db):
    counter = {"n": 0}

    def _make_resource(name="Lab-1", **fields):
        counter["n"] += 1
        values = dict(
            code=f"RES-{100 + counter['n']}",
            name=name,
            category="Academic",
            sub_category="Classroom",
            capacity=30,
            status=models.ResourceStatus.ACTIVE,
            requires_approval=False,
            allowed_roles=[],
        )
        values.update(fields)
        resource = models.Resource(**values)
        db.add(resource)
        db.commit()
        db.refresh(resource)
        return resource
    return _make_resource


@pytest.fixture
def lab(make_resource):
    return make_resource("Lab-1")


@pytest.fixture
def sessions():
    return SessionManager("test-secret-key", expire_minutes=30)


@pytest.fixture
def client(session_factory, sessions):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: NOW
    app.dependency_overrides[get_session_manager] = lambda: sessions
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    def _login(email, password=PASSWORD):
        response = client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _login
