"""User account service: registration, authentication and profile CRUD."""

import logging
from dataclasses import dataclass

import bcrypt
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.user import User

logger = logging.getLogger("user_accounts")

# bcrypt only looks at the first 72 bytes of the password
BCRYPT_MAX_BYTES = 72

# Largest value an SQL INTEGER primary key can hold
MAX_USER_ID = 2**63 - 1


@dataclass
class UserResult:
    """Result of a registration or authentication attempt."""

    success: bool
    error: str | None = None
    user: User | None = None


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt. Raises ValueError past 72 bytes."""
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    password_bytes = password.encode("utf-8")
    # Stored passwords never exceed the limit, so a longer one cannot match
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        return False
    return bcrypt.checkpw(password_bytes, password_hash.encode("utf-8"))


class UserService:
    """Handles user registration, authentication and profile management."""

    def get_user(self, db: Session, user_id: int) -> User | None:
        """Get a user by ID. IDs outside the key range match nobody."""
        if not 0 < user_id <= MAX_USER_ID:
            return None
        return db.get(User, user_id)

    def get_user_by_email(self, db: Session, email: str) -> User | None:
        """Get a user by email, ignoring case."""
        return db.query(User).filter(func.lower(User.email) == email.lower().strip()).first()

    def register(
        self,
        db: Session,
        first_name: str,
        last_name: str,
        email: str,
        phone_number: str,
        password: str,
    ) -> UserResult:
        """Register a new, unverified user. Returns UserResult with success/error."""
        if self.get_user_by_email(db, email):
            return UserResult(success=False, error="Email already exists.")

        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email.lower().strip(),
            phone_number=phone_number,
            password_hash=hash_password(password),
            is_email_verified=False,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Another registration for the same email committed first
            db.rollback()
            return UserResult(success=False, error="Email already exists.")
        db.refresh(user)

        logger.info("Registered user %s", user.id)
        return UserResult(success=True, user=user)

    def authenticate(self, db: Session, email: str, password: str) -> UserResult:
        """Authenticate a user by email and password.

        Unknown email and wrong password produce the same error so callers
        cannot tell which accounts exist. Email verification is not required.
        """
        user = self.get_user_by_email(db, email)
        if not user or not verify_password(password, user.password_hash):
            return UserResult(success=False, error="Invalid email or password")

        return UserResult(success=True, user=user)

    def update_profile(self, db: Session, user: User, first_name: str, last_name: str, phone_number: str) -> User:
        """Update name and phone fields. Identity and verification fields are left alone."""
        user.first_name = first_name
        user.last_name = last_name
        user.phone_number = phone_number
        db.commit()
        db.refresh(user)
        return user

    def delete_user(self, db: Session, user: User) -> None:
        """Permanently delete a user."""
        user_id = user.id
        db.delete(user)
        db.commit()
        logger.info("Deleted user %s", user_id)


_user_service: UserService | None = None


def get_user_service() -> UserService:
    """Get singleton user service instance."""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
