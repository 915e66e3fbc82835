"""Google sign-in tests."""

from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
from sqlalchemy.exc import IntegrityError

from noteapp.config import settings
from noteapp.models.user import User
from noteapp.oauth.google import GoogleOAuthClient, TOKEN_URL, USERINFO_URL
from noteapp.schemas.user import ExternalProfile
from noteapp.services.federated_auth_service import FederatedAuthService
from noteapp.services.exceptions import (
    ConfigurationError,
    FederatedSignInError,
    OAuthProviderError,
)


def _query(url: str) -> dict:
    return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}


class TestGoogleRoutes:
    """Tests for the Google OAuth endpoints."""

    def test_login_redirects_to_consent(self, client):
        response = client.get("/api/auth/google", follow_redirects=False)
        assert response.status_code == 302

        location = response.headers["location"]
        assert location.startswith("https://accounts.google.com/")
        params = _query(location)
        assert params["client_id"] == "test-client-id"
        assert params["response_type"] == "code"
        assert "email" in params["scope"].split()
        assert params["state"]

    def _state(self, client) -> str:
        response = client.get("/api/auth/google", follow_redirects=False)
        return _query(response.headers["location"])["state"]

    def test_callback_creates_user_and_redirects_with_token(self, client, db_session):
        state = self._state(client)
        response = client.get(
            "/api/auth/google/callback",
            params={"code": "abc", "state": state},
            follow_redirects=False,
        )
        assert response.status_code == 302

        location = response.headers["location"]
        assert location.startswith(f"{settings.CLIENT_URL}/login/success?")
        token = _query(location)["token"]

        user = db_session.query(User).filter(User.google_id == "google-123").one()
        assert user.email == "grace@example.com"
        assert user.date_of_birth is None
        assert user.otp_hash is None

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["name"] == "Grace Hopper"

    def test_callback_reuses_existing_user(self, client, db_session):
        for _ in range(2):
            client.get(
                "/api/auth/google/callback",
                params={"code": "abc", "state": self._state(client)},
                follow_redirects=False,
            )
        assert db_session.query(User).filter(User.google_id == "google-123").count() == 1

    def test_callback_provider_failure(self, client, mock_google, db_session):
        mock_google.fail = True
        response = client.get(
            "/api/auth/google/callback",
            params={"code": "abc", "state": self._state(client)},
            follow_redirects=False,
        )
        assert response.status_code == 302
        assert response.headers["location"] == f"{settings.CLIENT_URL}/login/failed"
        assert db_session.query(User).count() == 0

    def test_callback_rejects_bad_state(self, client, mock_google):
        response = client.get(
            "/api/auth/google/callback",
            params={"code": "abc", "state": "forged"},
            follow_redirects=False,
        )
        assert response.status_code == 302
        assert response.headers["location"].endswith("/login/failed")
        assert mock_google.codes == []

    def test_callback_user_denied(self, client):
        response = client.get(
            "/api/auth/google/callback",
            params={"error": "access_denied"},
            follow_redirects=False,
        )
        assert response.status_code == 302
        assert response.headers["location"].endswith("/login/failed")

    def test_callback_refuses_unverified_email_of_existing_account(
        self, client, test_user, mock_google, db_session
    ):
        mock_google.profile = ExternalProfile(
            provider_id="google-666",
            name="Mallory",
            email=test_user["email"],
            email_verified=False,
        )
        response = client.get(
            "/api/auth/google/callback",
            params={"code": "abc", "state": self._state(client)},
            follow_redirects=False,
        )
        assert response.status_code == 302
        assert response.headers["location"] == f"{settings.CLIENT_URL}/login/failed"

        user = db_session.query(User).filter(User.email == test_user["email"]).one()
        assert user.google_id is None
        assert db_session.query(User).count() == 1

    def test_google_link_closes_pending_signup(self, client, mock_mailer, db_session):
        signup = {
            "email": "grace@example.com",
            "name": "Grace",
            "dateOfBirth": "1906-12-09",
            "isSignin": False,
        }
        assert client.post("/api/auth/request-otp", json=signup).status_code == 200
        pending_code = mock_mailer.last_code("grace@example.com")

        client.get(
            "/api/auth/google/callback",
            params={"code": "abc", "state": self._state(client)},
            follow_redirects=False,
        )

        user = db_session.query(User).filter(User.email == "grace@example.com").one()
        assert user.google_id == "google-123"
        assert user.otp_hash is None

        response = client.post(
            "/api/auth/request-otp",
            json={**signup, "name": "Mallory", "dateOfBirth": "1999-09-09"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "User already exists. Please log in."

        response = client.post(
            "/api/auth/verify-otp",
            json={"email": "grace@example.com", "otp": pending_code},
        )
        assert response.status_code == 400

        db_session.refresh(user)
        assert user.name == "Grace"
        assert user.google_id == "google-123"

    def test_callback_database_failure(self, client, db_session, monkeypatch):
        state = self._state(client)

        def failing_commit():
            raise IntegrityError("INSERT INTO users", {}, Exception("duplicate key"))

        monkeypatch.setattr(db_session, "commit", failing_commit)
        response = client.get(
            "/api/auth/google/callback",
            params={"code": "abc", "state": state},
            follow_redirects=False,
        )
        assert response.status_code == 302
        assert response.headers["location"] == f"{settings.CLIENT_URL}/login/failed"

    def test_callback_malformed_client_url(self, client, monkeypatch):
        monkeypatch.setattr(settings, "CLIENT_URL", "not a url")
        response = client.get(
            "/api/auth/google/callback",
            params={"code": "abc", "state": "whatever"},
            follow_redirects=False,
        )
        assert response.status_code == 500
        assert response.json() == {"message": "Internal Server Error"}


class TestFederatedAuthService:
    """Tests for turning Google profiles into local accounts."""

    def test_links_existing_email_account(self, db_session):
        db_session.add(User(email="ann@example.com", name="Ann"))
        db_session.commit()

        service = FederatedAuthService(db_session)
        user, token = service.sign_in(
            ExternalProfile(
                provider_id="g-42", name="Ann G", email="Ann@Example.com", email_verified=True
            )
        )

        assert token
        assert user.google_id == "g-42"
        assert user.name == "Ann"
        assert db_session.query(User).count() == 1

    def test_unverified_email_does_not_link(self, db_session):
        db_session.add(User(email="ann@example.com", name="Ann"))
        db_session.commit()

        service = FederatedAuthService(db_session)
        with pytest.raises(FederatedSignInError):
            service.sign_in(ExternalProfile(provider_id="g-42", name="Ann G", email="ann@example.com"))

        user = db_session.query(User).one()
        assert user.google_id is None
        assert user.name == "Ann"

    def test_unverified_email_is_not_stored(self, db_session):
        service = FederatedAuthService(db_session)
        user, _ = service.sign_in(
            ExternalProfile(provider_id="g-7", name="Zed", email="zed@example.com")
        )
        assert user.google_id == "g-7"
        assert user.email is None

    def test_link_cancels_pending_code(self, db_session):
        db_session.add(User(email="ann@example.com", name="Ann", otp_hash="pending"))
        db_session.commit()

        service = FederatedAuthService(db_session)
        user, _ = service.sign_in(
            ExternalProfile(provider_id="g-42", name="Ann G", email="ann@example.com", email_verified=True)
        )
        assert user.google_id == "g-42"
        assert user.otp_hash is None
        assert user.otp_expires_at is None

    def test_profile_without_email(self, db_session):
        service = FederatedAuthService(db_session)
        first, _ = service.sign_in(ExternalProfile(provider_id="g-1", name="One"))
        second, _ = service.sign_in(ExternalProfile(provider_id="g-2", name="Two"))

        assert first.email is None
        assert second.email is None
        assert first.id != second.id

    def test_state_round_trip(self, db_session):
        service = FederatedAuthService(db_session)
        assert service.verify_state(service.create_state())
        assert not service.verify_state(None)
        assert not service.verify_state("garbage")

    def test_client_redirect(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "CLIENT_URL", "https://notes.example.com")
        service = FederatedAuthService(db_session)
        assert service.client_redirect("/login/success", token="t") == (
            "https://notes.example.com/login/success?token=t"
        )

        monkeypatch.setattr(settings, "CLIENT_URL", "ftp://notes.example.com")
        with pytest.raises(ConfigurationError):
            service.client_redirect("/login/failed")


class TestGoogleOAuthClient:
    """Tests for the Google HTTP exchange."""

    def _client(self, handler) -> GoogleOAuthClient:
        return GoogleOAuthClient(
            client_id="id",
            client_secret="secret",
            redirect_uri="http://localhost/cb",
            transport=httpx.MockTransport(handler),
        )

    def test_fetch_profile(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if str(request.url) == TOKEN_URL:
                form = parse_qs(request.content.decode())
                assert form["code"] == ["the-code"]
                assert form["grant_type"] == ["authorization_code"]
                return httpx.Response(200, json={"access_token": "at", "token_type": "Bearer"})
            if str(request.url) == USERINFO_URL:
                assert request.headers["Authorization"] == "Bearer at"
                return httpx.Response(
                    200, json={
                        "sub": "1089",
                        "name": "Ada",
                        "email": "ada@example.com",
                        "email_verified": True,
                    }
                )
            return httpx.Response(404)

        profile = self._client(handler).fetch_profile("the-code")
        assert profile == ExternalProfile(
            provider_id="1089", name="Ada", email="ada@example.com", email_verified=True
        )

    def test_unverified_email_flag(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if str(request.url) == TOKEN_URL:
                return httpx.Response(200, json={"access_token": "at"})
            return httpx.Response(
                200,
                json={"sub": "7", "name": "Zed", "email": "zed@example.com", "email_verified": "false"},
            )

        profile = self._client(handler).fetch_profile("the-code")
        assert profile.email == "zed@example.com"
        assert profile.email_verified is False

    def test_rejected_code(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "invalid_grant"})

        with pytest.raises(OAuthProviderError):
            self._client(handler).fetch_profile("bad")

    def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(OAuthProviderError):
            self._client(handler).fetch_profile("code")

    def test_not_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", None)
        monkeypatch.setattr(settings, "GOOGLE_CLIENT_SECRET", None)
        with pytest.raises(ConfigurationError):
            GoogleOAuthClient().authorization_url("state")
