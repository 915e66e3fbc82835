"""Pytest configuration and fixtures."""

import os
import re

# Settings are read at import time; keep the app off Postgres and make bcrypt cheap
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("OTP_HASH_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from noteapp.main import app
from noteapp.db.base import Base
from noteapp.db.session import get_db
from noteapp.api.v1.dependencies import get_mailer, get_google_client
from noteapp.mail.mailer import Mailer
from noteapp.oauth.google import GoogleOAuthClient
from noteapp.schemas.user import ExternalProfile
from noteapp.services.exceptions import MailDeliveryError, OAuthProviderError


# In-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

OTP_PATTERN = re.compile(r"\b(\d{6})\b")


class MockMailer(Mailer):
    """Mock mailer that records messages instead of sending them."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, recipient: str, subject: str, body: str) -> None:
        if self.fail:
            raise MailDeliveryError(recipient, "mock SMTP outage")
        self.sent.append({"to": recipient, "subject": subject, "body": body})

    def last_code(self, recipient: str) -> str:
        for message in reversed(self.sent):
            if message["to"] == recipient:
                return OTP_PATTERN.search(message["body"]).group(1)
        raise AssertionError(f"No email sent to {recipient}")


class MockGoogleClient(GoogleOAuthClient):
    """Mock Google client returning a canned profile for any code."""

    def __init__(self):
        super().__init__(
            client_id="test-client-id",
            client_secret="test-client-secret",
            redirect_uri="http://testserver/api/auth/google/callback",
        )
        self.profile = ExternalProfile(
            provider_id="google-123",
            name="Grace Hopper",
            email="grace@example.com",
            email_verified=True,
        )
        self.fail = False
        self.codes = []

    def fetch_profile(self, code: str) -> ExternalProfile:
        self.codes.append(code)
        if self.fail:
            raise OAuthProviderError(self.provider, "mock provider outage")
        return self.profile


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def mock_mailer():
    """Create a mock mailer for testing."""
    return MockMailer()


@pytest.fixture(scope="function")
def mock_google():
    """Create a mock Google OAuth client for testing."""
    return MockGoogleClient()


@pytest.fixture(scope="function")
def client(db_session, mock_mailer, mock_google):
    """Create a test client with overridden dependencies."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mock_mailer
    app.dependency_overrides[get_google_client] = lambda: mock_google

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def signup(client, mock_mailer):
    """Return a helper that signs up and verifies a user, returning the token."""

    def _signup(email="test@example.com", name="Test User", date_of_birth="1990-05-17", keep=False):
        response = client.post(
            "/api/auth/request-otp",
            json={"email": email, "name": name, "dateOfBirth": date_of_birth, "isSignin": False},
        )
        assert response.status_code == 200

        verify_response = client.post(
            "/api/auth/verify-otp",
            json={"email": email, "otp": mock_mailer.last_code(email), "keepLoggedIn": keep},
        )
        assert verify_response.status_code == 201
        return verify_response.json()["token"]

    return _signup


@pytest.fixture
def test_user(signup):
    """Create a verified test user and return credentials."""
    token = signup()
    return {"email": "test@example.com", "token": token}


@pytest.fixture
def auth_headers(test_user):
    """Return authorization headers for authenticated requests."""
    return {"Authorization": f"Bearer {test_user['token']}"}
