"""One-time passcode service for passwordless signup and signin."""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from sqlalchemy import and_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from noteapp.config import settings
from noteapp.mail.mailer import Mailer
from noteapp.models.user import User
from noteapp.schemas.user import OtpRequest, OtpVerify
from noteapp.services.user_service import UserService
from noteapp.services.exceptions import (
    AccountExistsError,
    ConfigurationError,
    InvalidOtpRequestError,
    MailDeliveryError,
    MissingFieldError,
    OtpExpiredError,
    OtpMismatchError,
    UnknownAccountError,
)

logger = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999

SIGNUP_SUBJECT = "Your OTP for {app_name}"
SIGNUP_BODY = (
    "Welcome to {app_name}!\n\n"
    "Your verification code is: {otp}\n\n"
    "It expires in {minutes} minutes. If you did not sign up, you can ignore this email."
)
SIGNIN_SUBJECT = "Your sign-in code for {app_name}"
SIGNIN_BODY = (
    "Your sign-in code is: {otp}\n\n"
    "It expires in {minutes} minutes. If you did not try to sign in, you can ignore this email."
)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def generate_otp() -> str:
    """Return a 6-digit code drawn uniformly from 100000-999999."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def hash_otp(otp: str, rounds: Optional[int] = None) -> str:
    """Hash a passcode using bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds or settings.OTP_HASH_ROUNDS)
    return bcrypt.hashpw(otp.encode("utf-8"), salt).decode("utf-8")


def check_otp(otp: str, otp_hash: str) -> bool:
    """Verify a passcode against its hash."""
    try:
        return bcrypt.checkpw(otp.encode("utf-8"), otp_hash.encode("utf-8"))
    except ValueError:
        # Corrupt stored hash
        return False


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class OtpService:
    """
    Service for issuing and verifying emailed one-time passcodes.

    Plaintext codes only ever exist in memory and in the outgoing email;
    the user record holds a bcrypt hash and an expiry timestamp.
    """

    def __init__(self, db: Session, mailer: Mailer):
        """
        Initialize the OTP service.

        Args:
            db: SQLAlchemy database session
            mailer: Mail delivery client used to send codes
        """
        self.db = db
        self.mailer = mailer
        self.user_service = UserService(db)

    def request_otp(self, data: OtpRequest, now: Optional[datetime] = None) -> None:
        """
        Issue a passcode for signup or signin and email it.

        Args:
            data: Request payload; ``is_signin`` selects the branch
            now: Issue time, defaults to the current time

        Raises:
            UnknownAccountError: Signin for an email with no account
            MissingFieldError: Signup without name or date of birth
            AccountExistsError: Signup for an already verified account
        """
        now = now or datetime.now(timezone.utc)

        if data.is_signin:
            user = self.user_service.get_user_by_email(data.email)
            if not user:
                raise UnknownAccountError(data.email)
        else:
            missing = []
            if not data.name:
                missing.append("Name")
            if not data.date_of_birth:
                missing.append("date of birth")
            if missing:
                raise MissingFieldError(*missing)

        otp = generate_otp()
        otp_hash = hash_otp(otp)
        expires_at = now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)

        if data.is_signin:
            user.otp_hash = otp_hash
            user.otp_expires_at = expires_at
            self.db.commit()
            subject, body = SIGNIN_SUBJECT, SIGNIN_BODY
        else:
            self._upsert_signup_otp(data, otp_hash, expires_at)
            subject, body = SIGNUP_SUBJECT, SIGNUP_BODY

        logger.info(
            f"Issued {'signin' if data.is_signin else 'signup'} OTP for {data.email}, "
            f"expires at {expires_at.isoformat()}"
        )

        self._send_otp_email(
            data.email,
            subject.format(app_name=settings.APP_NAME),
            body.format(app_name=settings.APP_NAME, otp=otp, minutes=settings.OTP_EXPIRE_MINUTES),
        )

    def verify_otp(self, data: OtpVerify, now: Optional[datetime] = None) -> tuple[User, str]:
        """
        Verify a passcode and open a session.

        The pending code is cleared on success, so each code works once.

        Args:
            data: Email, submitted code and keep-logged-in flag
            now: Verification time, defaults to the current time

        Returns:
            Tuple of (verified User, JWT access token)

        Raises:
            InvalidOtpRequestError: No user or no pending code
            OtpExpiredError: The pending code is past its expiry
            OtpMismatchError: The code does not match
        """
        now = now or datetime.now(timezone.utc)
        user = self.user_service.get_user_by_email(data.email)

        if not user or not user.has_pending_otp:
            raise InvalidOtpRequestError()

        if user.otp_expires_at is None or now > _as_utc(user.otp_expires_at):
            logger.info(f"Rejected expired OTP for {data.email}")
            raise OtpExpiredError()

        if not check_otp(data.otp, user.otp_hash):
            logger.info(f"Rejected mismatched OTP for {data.email}")
            raise OtpMismatchError()

        user.otp_hash = None
        user.otp_expires_at = None
        self.db.commit()
        self.db.refresh(user)

        token = self.user_service.create_access_token(user.id, extended=data.keep_logged_in, now=now)

        logger.info(f"Verified OTP for user {user.id}")
        return user, token

    def _upsert_signup_otp(self, data: OtpRequest, otp_hash: str, expires_at: datetime) -> None:
        """
        Create the account, or refresh a still-unverified one, in one statement.

        The conflict update only applies while the existing row has a pending
        code and no linked Google account; otherwise the statement returns
        no row.
        """
        insert = _UPSERT_DIALECTS.get(self.db.get_bind().dialect.name)
        if insert is None:
            raise ConfigurationError(
                f"Signup is not supported on the {self.db.get_bind().dialect.name} dialect"
            )

        profile = {
            "name": data.name,
            "date_of_birth": data.date_of_birth,
            "otp_hash": otp_hash,
            "otp_expires_at": expires_at,
        }

        stmt = insert(User).values(email=data.email, **profile)
        stmt = stmt.on_conflict_do_update(
            index_elements=["email"],
            set_={**profile, "updated_at": func.now()},
            where=and_(User.otp_hash.is_not(None), User.google_id.is_(None)),
        ).returning(User.id)

        row = self.db.execute(stmt).first()

        if row is None:
            self.db.rollback()
            raise AccountExistsError(data.email)

        self.db.commit()
        logger.info(f"Upserted pending signup {row.id} for {data.email}")

    def _send_otp_email(self, email: str, subject: str, body: str) -> None:
        """Best-effort delivery; the stored code stays valid if sending fails."""
        try:
            self.mailer.send(email, subject, body)
        except MailDeliveryError:
            logger.exception(f"Error sending OTP email to {email}")
