"""
Test configuration for the identity service.

Every test gets a fresh in-memory SQLite schema. The application is imported
after the environment is pointed at that database.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MAIL_ENABLED"] = "false"
os.environ.pop("BOOTSTRAP_ADMIN_EMAIL", None)
os.environ.pop("BOOTSTRAP_ADMIN_PASSWORD", None)

from datetime import date

import pytest
from fastapi.testclient import TestClient

from healthapp.auth.dependencies import get_notifier, get_token_provider
from healthapp.auth.models import User, UserRole
from healthapp.core.security import hash_password
from healthapp.core.tokens import SessionTokenProvider
from healthapp.database import Base, SessionLocal, engine, get_db
from healthapp.main import app

TEST_SECRET_KEY = "test-secret-key-for-session-tokens-0123456789"
DEFAULT_PASSWORD = "Secr3tPass"


class RecordingNotifier:
    """Stands in for EmailNotifier and remembers every notification."""

    def __init__(self):
        self.verifications = []
        self.password_resets = []
        self.welcomes = []

    async def notify_verification(self, email, token, role):
        self.verifications.append({"email": email, "token": token, "role": role})

    async def notify_password_reset(self, email, token, role):
        self.password_resets.append({"email": email, "token": token, "role": role})

    async def notify_welcome(self, email, first_name):
        self.welcomes.append({"email": email, "first_name": first_name})

    def last_verification_token(self, email):
        return [n["token"] for n in self.verifications if n["email"] == email][-1]

    def last_reset_token(self, email):
        return [n["token"] for n in self.password_resets if n["email"] == email][-1]


def patient_fields(**overrides):
    fields = {"first_name": "Alice", "last_name": "Smith", "dob": date(1990, 5, 17)}
    fields.update(overrides)
    return fields


def doctor_fields(**overrides):
    fields = {
        "first_name": "Gregory",
        "last_name": "House",
        "license_number": "MD-12345",
        "specialization": "Diagnostics",
    }
    fields.update(overrides)
    return fields


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def token_provider():
    return SessionTokenProvider(secret_key=TEST_SECRET_KEY)


@pytest.fixture
def create_user(db):
    """Factory inserting a user directly, verified by default."""
    def _create_user(email="user@example.com", password=DEFAULT_PASSWORD, role=UserRole.PATIENT, is_verified=True):
        user = User(email=email, password_hash=hash_password(password), role=role, is_verified=is_verified)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _create_user


@pytest.fixture(scope="function")
def client(db, notifier, token_provider):
    """
    Create a test client sharing the test session, notifier and token provider.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_token_provider] = lambda: token_provider

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides = {}
