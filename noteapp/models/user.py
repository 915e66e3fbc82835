"""User model for passcode and Google sign-in."""

import uuid

from sqlalchemy import Column, String, DateTime, Date
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from noteapp.db.base import Base


class User(Base):
    """User model for authentication and note ownership."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Nullable only for Google accounts that shared no email address
    email = Column(String(255), unique=True, nullable=True, index=True)
    name = Column(String(255), nullable=False)
    date_of_birth = Column(Date, nullable=True)

    # External ID from Google OAuth
    google_id = Column(String(255), unique=True, nullable=True, index=True)

    # Pending one-time passcode; both cleared once verified
    otp_hash = Column(String(255), nullable=True)
    otp_expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def has_pending_otp(self) -> bool:
        return bool(self.otp_hash)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
