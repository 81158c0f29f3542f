"""Email verification codes: issue, deliver and validate.

Each user has at most one pending code. Issuing a new one overwrites the
previous code and expiry. Codes are stored before they are emailed and are
not rolled back when delivery fails, so a user who learns the code by other
means can still complete verification.
"""

import enum
import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import utcnow
from app.models.user import User
from app.services.email import get_email_service

logger = logging.getLogger("user_accounts")

EMAIL_SUBJECT = "Email Verification"


class VerificationOutcome(enum.Enum):
    ACCEPTED = "accepted"
    INVALID = "invalid"
    EXPIRED = "expired"


class VerificationCodeManager:
    """Generates, stores and checks one-time numeric codes."""

    def __init__(self) -> None:
        settings = get_settings()
        self.code_length = settings.VERIFICATION_CODE_LENGTH
        self.expire_minutes = settings.VERIFICATION_CODE_EXPIRE_MINUTES

    def generate_code(self) -> str:
        """Return a fixed-length decimal code, leading zeros preserved."""
        return f"{secrets.randbelow(10**self.code_length):0{self.code_length}d}"

    def issue_code(self, db: Session, user: User, now: datetime | None = None) -> tuple[str, datetime]:
        """Generate a new code for the user and persist it. Returns (code, expires_at)."""
        issued_at = now or utcnow()
        code = self.generate_code()
        expires_at = issued_at + timedelta(minutes=self.expire_minutes)

        user.verification_code = code
        user.verification_code_expires_at = expires_at
        db.commit()

        logger.info("Issued verification code for user %s (expires %s)", user.id, expires_at.isoformat())
        return code, expires_at

    def send_code(self, user: User, code: str) -> None:
        """Email the code to the user. Raises EmailDeliveryError; the stored code is kept."""
        get_email_service().send_email(user.email, EMAIL_SUBJECT, f"Your verification code is: {code}")

    def validate_code(
        self, db: Session, user: User, submitted_code: str, now: datetime | None = None
    ) -> VerificationOutcome:
        """Check a submitted code against the pending one.

        A match before expiry marks the email verified and clears the pending
        code, so submitting it again is INVALID.
        """
        checked_at = now or utcnow()

        if user.verification_code is None or not secrets.compare_digest(
            user.verification_code.encode("utf-8"), submitted_code.encode("utf-8")
        ):
            return VerificationOutcome.INVALID

        if user.verification_code_expires_at is None or checked_at > user.verification_code_expires_at:
            return VerificationOutcome.EXPIRED

        user.is_email_verified = True
        user.verification_code = None
        user.verification_code_expires_at = None
        db.commit()

        return VerificationOutcome.ACCEPTED


_verification_manager: VerificationCodeManager | None = None


def get_verification_manager() -> VerificationCodeManager:
    """Get singleton verification code manager instance."""
    global _verification_manager
    if _verification_manager is None:
        _verification_manager = VerificationCodeManager()
    return _verification_manager
