"""Test configuration and fixtures."""

import os
import re

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables BEFORE importing the app
os.environ["INTERNAREA_DATABASE_URL"] = "sqlite:///:memory:"
os.environ["INTERNAREA_RATE_LIMIT_ENABLED"] = "false"
os.environ["INTERNAREA_ID_TOKEN_SECRET"] = "test-secret-key-for-testing-only"
os.environ["INTERNAREA_ALLOW_FRIENDS_COUNT_OVERRIDE"] = "true"
for _key in ("INTERNAREA_RESEND_API_KEY", "INTERNAREA_SMTP_HOST", "INTERNAREA_SMTP_USERNAME"):
    os.environ.pop(_key, None)

from internarea.main import app
from internarea.database import Base, get_db
from internarea.auth.models import User
from internarea.auth.service import auth_service


TEST_DATABASE_URL = "sqlite:///:memory:"

test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create tables before tests and drop them after."""
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(autouse=True)
def cleanup_db():
    """Clean up database between tests."""
    yield
    session = TestingSessionLocal()
    try:
        # Children first to respect foreign keys
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
    finally:
        session.close()


@pytest.fixture
def db_session():
    """Create a test database session."""
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture
def client():
    """Test client wired to the in-memory database."""
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def create_user(db_session):
    """Factory for users already known to the directory."""
    counter = {"n": 0}

    def _create(
        external_uid=None,
        email=None,
        name="Test User",
        phone_number="",
        friends_count=0,
        password=None,
        **kwargs
    ):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            external_uid=external_uid or f"uid-{n}",
            email=(email if email is not None else f"user{n}@example.com"),
            name=name,
            phone_number=phone_number,
            friends_count=friends_count,
            hashed_password=auth_service.hash_password(password) if password else None,
            is_active=kwargs.pop("is_active", True),
            **kwargs
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create


def token_for(user):
    """Sign an identity token whose claims match the stored user."""
    token, _ = auth_service.create_id_token(
        uid=user.external_uid,
        email=user.email or "",
        name=user.name or "",
        phone_number=user.phone_number or "",
    )
    return token


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a user."""
    def _headers(user, **extra):
        headers = {"Authorization": f"Bearer {token_for(user)}"}
        headers.update(extra)
        return headers

    return _headers


GENERATED_PASSWORD = re.compile(r"^(?=.*[A-Z])(?=.*[a-z])[A-Za-z]{8,12}$")


@pytest.fixture
def is_generated_password():
    """Check a value against the forgot-password generation rules."""
    def _check(value):
        return bool(GENERATED_PASSWORD.match(value))

    return _check
