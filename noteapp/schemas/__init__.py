"""Pydantic schemas for request/response validation."""

from noteapp.schemas.note import (
    NoteCreate,
    NoteResponse,
)
from noteapp.schemas.user import (
    OtpRequest,
    OtpVerify,
    UserResponse,
    MessageResponse,
    AuthResponse,
    TokenPayload,
    ExternalProfile,
)

__all__ = [
    "NoteCreate",
    "NoteResponse",
    "OtpRequest",
    "OtpVerify",
    "UserResponse",
    "MessageResponse",
    "AuthResponse",
    "TokenPayload",
    "ExternalProfile",
]
