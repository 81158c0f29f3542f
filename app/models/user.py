"""User model."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from app.database import Base, utcnow


class User(Base):
    """Registered account."""

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(256), unique=True, nullable=False, index=True)
    phone_number = Column(String(32), nullable=False)
    password_hash = Column(String(256), nullable=False)
    is_email_verified = Column(Boolean, nullable=False, default=False)
    # Both set while a verification is pending, cleared once a code is accepted
    verification_code = Column(String(16), nullable=True)
    verification_code_expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
