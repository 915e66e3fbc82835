"""API dependencies for dependency injection."""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from noteapp.db.session import get_db
from noteapp.mail.mailer import Mailer, SmtpMailer
from noteapp.oauth.google import GoogleOAuthClient
from noteapp.services.otp_service import OtpService
from noteapp.services.federated_auth_service import FederatedAuthService
from noteapp.services.note_service import NoteService
from noteapp.services.user_service import UserService
from noteapp.services.exceptions import (
    AuthenticationError,
    NoTokenError,
    UserNotFoundError,
)
from noteapp.models.user import User

# Security scheme for JWT; missing headers are reported by get_current_user
security = HTTPBearer(auto_error=False)


def get_mailer() -> Mailer:
    """Get mail delivery client."""
    return SmtpMailer()


def get_google_client() -> GoogleOAuthClient:
    """Get Google OAuth client."""
    return GoogleOAuthClient()


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Get user service instance."""
    return UserService(db)


def get_otp_service(
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> OtpService:
    """Get OTP service instance."""
    return OtpService(db, mailer)


def get_federated_auth_service(db: Session = Depends(get_db)) -> FederatedAuthService:
    """Get federated auth service instance."""
    return FederatedAuthService(db)


def get_note_service(db: Session = Depends(get_db)) -> NoteService:
    """Get note service instance."""
    return NoteService(db)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """
    Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer credentials, None if absent or not Bearer
        user_service: User service instance

    Returns:
        Current User instance

    Raises:
        HTTPException: 401 if the token is missing, invalid, or its user is gone
    """
    try:
        if credentials is None or not credentials.credentials:
            raise NoTokenError()

        return user_service.resolve_token(credentials.credentials)

    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    except UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, user not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
