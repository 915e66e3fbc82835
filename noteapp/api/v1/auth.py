"""Authentication endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse

from noteapp.api.v1.dependencies import (
    get_current_user,
    get_federated_auth_service,
    get_google_client,
    get_otp_service,
)
from noteapp.oauth.google import GoogleOAuthClient
from noteapp.services.otp_service import OtpService
from noteapp.services.federated_auth_service import FederatedAuthService
from noteapp.services.exceptions import (
    AccountExistsError,
    FederatedSignInError,
    InvalidOtpRequestError,
    MissingFieldError,
    OAuthProviderError,
    OtpExpiredError,
    OtpMismatchError,
    UnknownAccountError,
)
from noteapp.schemas.user import (
    AuthResponse,
    MessageResponse,
    OtpRequest,
    OtpVerify,
    UserResponse,
)
from noteapp.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/request-otp",
    response_model=MessageResponse,
    summary="Request a one-time passcode",
    description="""
    Email a 6-digit passcode valid for 10 minutes.

    With `isSignin` false (signup) `name` and `dateOfBirth` are required and
    the account is created, or refreshed if it was never verified.
    With `isSignin` true the email must belong to an existing account.
    """,
)
def request_otp(
    data: OtpRequest,
    otp_service: OtpService = Depends(get_otp_service),
) -> MessageResponse:
    """Issue and email a passcode."""
    try:
        otp_service.request_otp(data)
        return MessageResponse(message="OTP sent to your email.")

    except (MissingFieldError, UnknownAccountError, AccountExistsError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        )


@router.post(
    "/verify-otp",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Verify a one-time passcode",
    description="Exchange a valid passcode for a JWT. `keepLoggedIn` selects the long token lifetime.",
)
def verify_otp(
    data: OtpVerify,
    otp_service: OtpService = Depends(get_otp_service),
) -> AuthResponse:
    """Verify a passcode and return a session token."""
    try:
        user, token = otp_service.verify_otp(data)
        return AuthResponse(
            message="Authentication successful",
            token=token,
            user=UserResponse.model_validate(user),
        )

    except (InvalidOtpRequestError, OtpExpiredError, OtpMismatchError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        )


@router.get(
    "/google",
    summary="Start Google sign-in",
    description="Redirect the browser to the Google consent screen.",
    response_class=RedirectResponse,
    status_code=status.HTTP_302_FOUND,
)
def google_login(
    google: GoogleOAuthClient = Depends(get_google_client),
    federated_service: FederatedAuthService = Depends(get_federated_auth_service),
) -> RedirectResponse:
    """Redirect to Google."""
    url = google.authorization_url(federated_service.create_state())
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


@router.get(
    "/google/callback",
    summary="Google sign-in callback",
    description="""
    Complete Google sign-in and redirect back to the client with
    `/login/success?token=<jwt>`, or to `/login/failed`.
    """,
    response_class=RedirectResponse,
    status_code=status.HTTP_302_FOUND,
)
def google_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    google: GoogleOAuthClient = Depends(get_google_client),
    federated_service: FederatedAuthService = Depends(get_federated_auth_service),
) -> RedirectResponse:
    """Finish Google sign-in."""
    failed_url = federated_service.client_redirect("/login/failed")

    if error or not code:
        logger.info(f"Google sign-in aborted: {error or 'no code'}")
        return RedirectResponse(url=failed_url, status_code=status.HTTP_302_FOUND)

    if not federated_service.verify_state(state):
        logger.warning("Google sign-in callback with invalid state")
        return RedirectResponse(url=failed_url, status_code=status.HTTP_302_FOUND)

    try:
        profile = google.fetch_profile(code)
    except OAuthProviderError as e:
        logger.warning(e.message)
        return RedirectResponse(url=failed_url, status_code=status.HTTP_302_FOUND)

    try:
        _, token = federated_service.sign_in(profile)
    except FederatedSignInError as e:
        logger.warning(e.message)
        return RedirectResponse(url=failed_url, status_code=status.HTTP_302_FOUND)

    return RedirectResponse(
        url=federated_service.client_redirect("/login/success", token=token),
        status_code=status.HTTP_302_FOUND,
    )


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    description="Get the currently authenticated user's information.",
)
def get_me(
    current_user: User = Depends(get_current_user),
) -> User:
    """Get current user information."""
    return current_user
