"""Federated sign-in: turns a verified external profile into a local session."""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
from jose import jwt, JWTError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from noteapp.config import settings
from noteapp.models.user import User
from noteapp.schemas.user import ExternalProfile
from noteapp.services.user_service import UserService, ALGORITHM
from noteapp.services.exceptions import ConfigurationError, FederatedSignInError

logger = logging.getLogger(__name__)

STATE_PURPOSE = "oauth_state"


class FederatedAuthService:
    """Service for Google sign-in accounts and the browser redirects around it."""

    def __init__(self, db: Session):
        """
        Initialize the federated auth service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db
        self.user_service = UserService(db)

    def create_state(self, now: Optional[datetime] = None) -> str:
        """Create a short-lived signed OAuth ``state`` value."""
        expire = (now or datetime.now(timezone.utc)) + timedelta(
            minutes=settings.OAUTH_STATE_EXPIRE_MINUTES
        )
        payload = {
            "purpose": STATE_PURPOSE,
            "nonce": secrets.token_urlsafe(16),
            "exp": expire,
        }
        return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)

    def verify_state(self, state: Optional[str]) -> bool:
        """Check that ``state`` was issued by :meth:`create_state` and has not expired."""
        if not state:
            return False
        try:
            payload = jwt.decode(state, settings.SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError:
            return False
        return payload.get("purpose") == STATE_PURPOSE

    def sign_in(self, profile: ExternalProfile) -> tuple[User, str]:
        """
        Find or create the local account for a Google profile and mint a token.

        Lookup order is Google account ID, then email. An existing passcode
        account is only linked when Google reports the email as verified;
        linking cancels any pending passcode. Otherwise a new user is created
        without a date of birth, keeping the email only if it is verified.

        Args:
            profile: Profile verified by the OAuth provider

        Returns:
            Tuple of (User, JWT access token with the default lifetime)

        Raises:
            FederatedSignInError: Unverified email owned by another account,
                or the account could not be stored
        """
        email = profile.email.strip().lower() if profile.email else None

        try:
            user = self.user_service.get_user_by_google_id(profile.provider_id)

            if not user and email:
                existing = self.user_service.get_user_by_email(email)
                if existing and not profile.email_verified:
                    logger.warning(
                        f"Refused to link Google account with unverified email to user {existing.id}"
                    )
                    raise FederatedSignInError("email is not verified by the provider")
                if existing:
                    existing.google_id = profile.provider_id
                    existing.otp_hash = None
                    existing.otp_expires_at = None
                    self.db.commit()
                    self.db.refresh(existing)
                    logger.info(f"Linked Google account to user {existing.id}")
                    user = existing

            if not user:
                stored_email = email if profile.email_verified else None
                user = User(
                    google_id=profile.provider_id,
                    name=profile.name or (email.split("@")[0] if email else "Google user"),
                    email=stored_email,
                )
                self.db.add(user)
                self.db.commit()
                self.db.refresh(user)
                logger.info(f"Created user {user.id} from Google account")

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Could not store Google account")
            raise FederatedSignInError("account could not be stored") from e

        token = self.user_service.create_access_token(user.id)
        return user, token

    def client_redirect(self, path: str, **params: str) -> str:
        """
        Build an absolute URL on the browser client.

        Args:
            path: Client route, e.g. ``/login/success``
            params: Query parameters to append

        Returns:
            Absolute URL string

        Raises:
            ConfigurationError: If CLIENT_URL is not an absolute http(s) URL
        """
        try:
            base = httpx.URL(settings.CLIENT_URL)
        except (httpx.InvalidURL, TypeError) as e:
            raise ConfigurationError(f"CLIENT_URL is malformed: {e}") from e

        if base.scheme not in ("http", "https") or not base.host:
            raise ConfigurationError(f"CLIENT_URL is not an absolute http(s) URL: {settings.CLIENT_URL!r}")

        url = base.join(path)
        if params:
            url = url.copy_merge_params(params)
        return str(url)
