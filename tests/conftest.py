"""Pytest configuration and fixtures."""

import os

# Settings are read at import time, so these must be set before importing app modules
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SMTP_HOST", "smtp.test.invalid")
os.environ.setdefault("SMTP_FROM", "no-reply@example.com")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db  # noqa: E402
from app.models.user import User  # noqa: E402, F401
from app.services.user import UserService  # noqa: E402


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="mock_send_email")
def mock_send_email_fixture():
    """Replace SMTP delivery with a mock that records sent messages."""
    with patch("app.services.email.EmailService.send_email") as mock_send:
        yield mock_send


@pytest.fixture(name="client")
def client_fixture(db_session: Session, mock_send_email):
    """Create a test client with overridden DB dependency and no real SMTP."""
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session):
    """Create an unverified test user and return its details."""
    user_service = UserService()
    result = user_service.register(
        db_session,
        first_name="Test",
        last_name="User",
        email="test@example.com",
        phone_number="+1 555 123 4567",
        password="password123",
    )

    return {
        "user_id": result.user.id,
        "email": result.user.email,
        "password": "password123",
    }
