import os

# Must be set before the app (and its settings singleton) is imported
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from datetime import datetime, timedelta, UTC
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from uuid import uuid4

from app.main import app
from app.db import Base, get_db
from app.models.user import User
from app.models.profile import Profile
from app.models.mentor import Mentor
from app.models.booking import Booking

# Use SQLite in-memory for test DB
TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"
# For in-memory SQLite we must use a StaticPool so multiple connections share the
# same in-memory database during the test run. Otherwise each connection gets
# an isolated empty in-memory DB which breaks tests that use separate sessions
# (e.g. TestClient requests vs test DB setup).
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Dependency override
def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture(autouse=True)
def setup_test_db():
    # recreate schema for each test to ensure isolation
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def client():
    return TestClient(app)

@pytest.fixture
def db_session():
    # use the testing session factory bound to the in-memory SQLite engine
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture
def session_factory():
    """Sessions for code that opens and closes its own (admin tooling)."""
    return TestingSessionLocal


@pytest.fixture
def auth_headers():
    """Bearer headers acting as the given user (or raw uid) via test mock tokens."""
    def _make(user_or_id):
        uid = user_or_id if isinstance(user_or_id, str) else user_or_id.id
        return {"Authorization": f"Bearer mock-token-{uid}"}
    return _make


@pytest.fixture
def make_user(db_session):
    """Factory for identity + profile pairs."""
    def _make(full_name: str = "Some Person", uid: str | None = None) -> User:
        uid = uid or f"uid-{uuid4().hex[:10]}"
        user = User(id=uid, email=f"{uid}@example.com")
        user.profile = Profile(id=uid, full_name=full_name)
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture
def make_mentor(db_session, make_user):
    """Factory for a user whose profile has a mentor row."""
    def _make(full_name: str = "Mentor Person", available: bool = True,
              expertise=("python", "system design")) -> Mentor:
        user = make_user(full_name)
        mentor = Mentor(
            id=user.id,
            company="Acme",
            position="Staff Engineer",
            experience_years=9,
            hourly_rate=120,
            bio="Backend and distributed systems",
            expertise=list(expertise),
            available=available,
        )
        db_session.add(mentor)
        db_session.commit()
        return mentor
    return _make


@pytest.fixture
def make_booking(db_session):
    def _make(user_id: str, mentor_id: str, status: str | None = None, days_ahead: int = 1) -> Booking:
        booking = Booking(
            user_id=user_id,
            mentor_id=mentor_id,
            start_time=datetime.now(UTC) + timedelta(days=days_ahead),
            duration=60,
        )
        if status is not None:
            booking.status = status
        db_session.add(booking)
        db_session.commit()
        return booking
    return _make


@pytest.fixture
def mentee(make_user):
    return make_user("Alice Mentee")


@pytest.fixture
def mentor(make_mentor):
    return make_mentor("Bob Mentor")


@pytest.fixture
def outsider(make_user):
    return make_user("Carol Outsider")
