"""Google OAuth 2.0 client (authorization code flow)."""

import logging
from typing import Optional

import httpx

from noteapp.config import settings
from noteapp.schemas.user import ExternalProfile
from noteapp.services.exceptions import ConfigurationError, OAuthProviderError

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
SCOPES = ("openid", "email", "profile")


def _is_true(value) -> bool:
    # userinfo may send booleans or the strings "true"/"false"
    if isinstance(value, str):
        return value.lower() == "true"
    return value is True


class GoogleOAuthClient:
    """
    Exchanges Google authorization codes for a verified profile.

    The HTTP transport can be injected (``httpx.MockTransport`` in tests).
    """

    provider = "Google"

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.client_id = client_id or settings.GOOGLE_CLIENT_ID
        self.client_secret = client_secret or settings.GOOGLE_CLIENT_SECRET
        self.redirect_uri = redirect_uri or settings.GOOGLE_REDIRECT_URI
        self.timeout = timeout
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _require_configured(self) -> None:
        if not self.is_configured:
            raise ConfigurationError("Google OAuth is not configured")

    def authorization_url(self, state: str) -> str:
        """
        Build the Google consent screen URL.

        Args:
            state: Opaque value echoed back to the callback

        Returns:
            Absolute URL to redirect the browser to
        """
        self._require_configured()
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "state": state,
            "prompt": "select_account",
        }
        return str(httpx.URL(AUTHORIZE_URL, params=params))

    def fetch_profile(self, code: str) -> ExternalProfile:
        """
        Exchange an authorization code for the user's profile.

        Args:
            code: Authorization code from the callback query string

        Returns:
            ExternalProfile with Google account ID, name and email

        Raises:
            OAuthProviderError: If Google rejects the code or is unreachable
        """
        self._require_configured()

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                token_response = client.post(
                    TOKEN_URL,
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "code": code,
                        "grant_type": "authorization_code",
                        "redirect_uri": self.redirect_uri,
                    },
                    headers={"Accept": "application/json"},
                )
                token_response.raise_for_status()
                access_token = token_response.json().get("access_token")
                if not access_token:
                    raise OAuthProviderError(self.provider, "no access token in response")

                userinfo_response = client.get(
                    USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                userinfo_response.raise_for_status()
                userinfo = userinfo_response.json()

        except httpx.HTTPStatusError as e:
            raise OAuthProviderError(
                self.provider, f"HTTP {e.response.status_code} from {e.request.url.host}"
            ) from e
        except httpx.HTTPError as e:
            raise OAuthProviderError(self.provider, str(e) or type(e).__name__) from e

        if not userinfo.get("sub"):
            raise OAuthProviderError(self.provider, "profile has no account ID")

        return ExternalProfile(
            provider_id=str(userinfo["sub"]),
            name=userinfo.get("name") or userinfo.get("given_name") or "",
            email=userinfo.get("email") or None,
            email_verified=_is_true(userinfo.get("email_verified")),
        )
