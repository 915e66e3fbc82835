"""Custom exceptions for the service layer."""

from typing import Any


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, code: str = "SERVICE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(ServiceError):
    """Missing or malformed input."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message=message, code=code)


class MissingFieldError(ValidationError):
    """A field required by the chosen flow was not supplied."""

    def __init__(self, *fields: str):
        self.fields = fields
        super().__init__(
            message=f"{' and '.join(fields)} {'is' if len(fields) == 1 else 'are'} required",
            code="MISSING_FIELD",
        )


class UnknownAccountError(ServiceError):
    """Sign-in requested for an email with no account."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(
            message="No account found for this email. Please sign up first.",
            code="UNKNOWN_ACCOUNT",
        )


class ConflictError(ServiceError):
    """Resource already exists."""

    def __init__(self, message: str, code: str = "CONFLICT"):
        super().__init__(message=message, code=code)


class AccountExistsError(ConflictError):
    """Signup requested for an email that already has a verified account."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(
            message="User already exists. Please log in.",
            code="ACCOUNT_EXISTS",
        )


class InvalidOtpRequestError(ServiceError):
    """No passcode is pending for the email."""

    def __init__(self):
        super().__init__(
            message="Invalid request. Please request a new code.",
            code="INVALID_OTP_REQUEST",
        )


class OtpExpiredError(ServiceError):
    """The pending passcode has expired."""

    def __init__(self):
        super().__init__(
            message="OTP has expired. Please request a new one.",
            code="OTP_EXPIRED",
        )


class OtpMismatchError(ServiceError):
    """The submitted passcode does not match."""

    def __init__(self):
        super().__init__(message="Invalid OTP.", code="OTP_MISMATCH")


class NotFoundError(ServiceError):
    """Resource not found error."""

    def __init__(self, resource_type: str, resource_id: Any):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            message=f"{resource_type} with ID {resource_id} not found",
            code=f"{resource_type.upper()}_NOT_FOUND"
        )


class UserNotFoundError(NotFoundError):
    """User not found error."""

    def __init__(self, user_id: Any):
        super().__init__("User", user_id)


class NoteNotFoundError(NotFoundError):
    """Note not found error."""

    def __init__(self, note_id: Any):
        super().__init__("Note", note_id)


class AuthenticationError(ServiceError):
    """Authentication failed error."""

    def __init__(self, message: str = "Authentication failed", code: str = "AUTHENTICATION_FAILED"):
        super().__init__(message=message, code=code)


class NoTokenError(AuthenticationError):
    """No bearer token was presented."""

    def __init__(self):
        super().__init__(message="Not authorized, no token", code="NO_TOKEN")


class InvalidTokenError(AuthenticationError):
    """Bearer token failed verification."""

    def __init__(self, reason: str = "token failed"):
        self.reason = reason
        super().__init__(message="Not authorized, token failed", code="INVALID_TOKEN")


class AuthorizationError(ServiceError):
    """Authorization failed error."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message=message, code="ACCESS_DENIED")


class UpstreamError(ServiceError):
    """An external provider (mail server, OAuth provider) failed."""

    def __init__(self, message: str, code: str = "UPSTREAM_FAILURE"):
        super().__init__(message=message, code=code)


class MailDeliveryError(UpstreamError):
    """Email could not be delivered."""

    def __init__(self, recipient: str, reason: str):
        self.recipient = recipient
        self.reason = reason
        super().__init__(
            message=f"Could not send email to {recipient}: {reason}",
            code="MAIL_DELIVERY_FAILED",
        )


class OAuthProviderError(UpstreamError):
    """OAuth code exchange or profile lookup failed."""

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(
            message=f"{provider} sign-in failed: {reason}",
            code="OAUTH_PROVIDER_FAILED",
        )


class ConfigurationError(ServiceError):
    """Required configuration is missing or malformed."""

    def __init__(self, message: str):
        super().__init__(message=message, code="CONFIGURATION_ERROR")


class FederatedSignInError(ServiceError):
    """An external identity could not be turned into a local session."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(message=f"Federated sign-in failed: {reason}", code="FEDERATED_SIGNIN_FAILED")
