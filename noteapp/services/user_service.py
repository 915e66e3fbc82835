"""User service for lookups and session tokens."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from jose import jwt, JWTError
from sqlalchemy.orm import Session

from noteapp.config import settings
from noteapp.models.user import User
from noteapp.schemas.user import TokenPayload
from noteapp.services.exceptions import (
    UserNotFoundError,
    InvalidTokenError,
)

logger = logging.getLogger(__name__)

# JWT settings
ALGORITHM = "HS256"


class UserService:
    """Service for user lookups and session token handling."""

    def __init__(self, db: Session):
        """
        Initialize the user service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def get_user_by_id(self, user_id: UUID) -> User:
        """
        Get user by ID.

        Args:
            user_id: User ID

        Returns:
            User instance

        Raises:
            UserNotFoundError: If user doesn't exist
        """
        user = self.db.query(User).filter(User.id == user_id).first()

        if not user:
            raise UserNotFoundError(user_id)

        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email.

        Args:
            email: User email

        Returns:
            User instance or None
        """
        return self.db.query(User).filter(User.email == email).first()

    def get_user_by_google_id(self, google_id: str) -> Optional[User]:
        """Get user by Google account ID."""
        return self.db.query(User).filter(User.google_id == google_id).first()

    def create_access_token(
        self,
        user_id: UUID,
        extended: bool = False,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Create a JWT access token for a user.

        Args:
            user_id: User ID
            extended: Use the long "keep me logged in" lifetime
            now: Issue time, defaults to the current time

        Returns:
            JWT token string
        """
        minutes = (
            settings.EXTENDED_ACCESS_TOKEN_EXPIRE_MINUTES
            if extended
            else settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
        expire = (now or datetime.now(timezone.utc)) + timedelta(minutes=minutes)

        payload = {
            "sub": str(user_id),
            "exp": expire,
        }

        return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)

    def verify_token(self, token: str) -> TokenPayload:
        """
        Verify a JWT token and extract payload.

        Args:
            token: JWT token string

        Returns:
            TokenPayload with user ID

        Raises:
            InvalidTokenError: If token is invalid or expired
        """
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError as e:
            raise InvalidTokenError(str(e))

        if not payload.get("sub"):
            raise InvalidTokenError("missing subject")

        return TokenPayload(sub=payload.get("sub"), exp=payload.get("exp"))

    def resolve_token(self, token: str) -> User:
        """
        Resolve a bearer token to its user.

        Raises:
            InvalidTokenError: If the token is invalid or its subject is not a user ID
            UserNotFoundError: If the user no longer exists
        """
        payload = self.verify_token(token)
        try:
            user_id = UUID(payload.sub)
        except ValueError:
            raise InvalidTokenError("malformed subject")
        return self.get_user_by_id(user_id)
