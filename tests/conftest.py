"""Pytest configuration for all tests."""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="cockpit-tests-")

# Configure the environment before any cockpit module is imported
os.environ.pop("FERNET_KEY", None)
os.environ["SECRET_KEY"] = "test-session-secret-key-0123456789abcdef"
os.environ["METABASE_SITE_URL"] = "https://metabase.example.com"
os.environ["METABASE_SECRET_KEY"] = "test-embed-secret-key-0123456789abcdef"
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ["LANGDOCK_API_KEY"] = "test-langdock-key"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'cockpit-test.db')}"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cockpit.core.database import Base, get_db
from cockpit.main import app
from cockpit.models.profile import Profile, UserRole
from cockpit.services.security import create_access_token, hash_password
from cockpit.services.session_service import active_sessions

TEST_PASSWORD = "correct-horse-battery"
_TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture
def db_session():
    """In-memory database shared by the test and the app under test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
def _reset_sessions():
    active_sessions.clear()
    yield
    active_sessions.clear()


@pytest.fixture
def make_profile(db_session):
    """Create a profile with optional dashboard binding and roles."""

    def _make(email, first_name=None, last_name=None, dashboard_id=None, roles=()):
        profile = Profile(
            email=email,
            password=_TEST_PASSWORD_HASH,
            first_name=first_name,
            last_name=last_name,
            metabase_dashboard_id=dashboard_id,
        )
        db_session.add(profile)
        db_session.flush()
        for role in roles:
            db_session.add(UserRole(user_id=profile.id, role=role))
        db_session.commit()
        db_session.refresh(profile)
        return profile

    return _make


@pytest.fixture
def auth_headers():
    """Log a profile in without going through the password endpoint."""

    def _headers(profile):
        active_sessions.start(profile.id, profile.email)
        token = create_access_token({"sub": profile.id})
        return {"Authorization": f"Bearer {token}"}

    return _headers
