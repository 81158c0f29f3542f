"""Tests for the JWT, email and configuration services."""

import smtplib
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest
from jose import jwt

from app.config import Settings, get_settings
from app.services.email import EmailDeliveryError, EmailService
from app.services.jwt import JWTService
from app.services.user import hash_password, verify_password


class TestJWTService:
    """Tests for bearer token issuance."""

    def test_token_claims(self):
        service = JWTService()
        token, expires_at = service.create_token(user_id=7, email="a@example.com")

        payload = service.decode_token(token)
        assert payload["sub"] == "7"
        assert payload["email"] == "a@example.com"
        assert payload["exp"] == int(expires_at.timestamp())

    def test_token_expires_after_thirty_minutes(self):
        service = JWTService()
        issued = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
        _, expires_at = service.create_token(user_id=1, email="a@example.com", now=issued)
        assert expires_at - issued == timedelta(minutes=30)

    def test_token_signed_with_secret(self):
        service = JWTService()
        token, _ = service.create_token(user_id=1, email="a@example.com")

        header = jwt.get_unverified_header(token)
        assert header["alg"] == "HS256"
        assert jwt.decode(token, get_settings().JWT_SECRET_KEY, algorithms=["HS256"])["sub"] == "1"

    def test_expired_token_rejected(self):
        service = JWTService()
        token, _ = service.create_token(
            user_id=1, email="a@example.com", now=datetime.now(UTC) - timedelta(hours=1)
        )
        assert service.decode_token(token) is None

    def test_tampered_token_rejected(self):
        service = JWTService()
        token = jwt.encode({"sub": "1", "email": "a@example.com"}, "some-other-secret", algorithm="HS256")
        assert service.decode_token(token) is None


class TestPasswordHashing:
    """Tests for bcrypt helpers."""

    def test_round_trip(self):
        password_hash = hash_password("correct horse")
        assert verify_password("correct horse", password_hash)
        assert not verify_password("correct horsE", password_hash)

    def test_hash_refuses_over_72_bytes(self):
        with pytest.raises(ValueError):
            hash_password("x" * 73)

    def test_longer_password_never_matches(self):
        password_hash = hash_password("x" * 72)
        assert verify_password("x" * 72, password_hash)
        assert not verify_password("x" * 72 + "y", password_hash)


class TestEmailService:
    """Tests for SMTP delivery."""

    def _service(self, port: int = 587) -> EmailService:
        service = EmailService()
        service.host = "smtp.example.com"
        service.port = port
        service.username = "mailer"
        service.password = "secret"
        service.from_address = "no-reply@example.com"
        return service

    def test_build_message(self):
        msg = self._service().build_message("to@example.com", "Subject", "Body text")
        assert msg["To"] == "to@example.com"
        assert msg["From"] == "no-reply@example.com"
        assert msg["Subject"] == "Subject"
        assert msg.get_content().strip() == "Body text"

    @patch("app.services.email.smtplib.SMTP")
    def test_send_with_starttls(self, mock_smtp):
        server = MagicMock()
        mock_smtp.return_value.__enter__.return_value = server

        self._service().send_email("to@example.com", "Subject", "Body")

        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "secret")
        server.send_message.assert_called_once()

    @patch("app.services.email.smtplib.SMTP_SSL")
    def test_send_with_implicit_tls(self, mock_smtp_ssl):
        server = MagicMock()
        mock_smtp_ssl.return_value.__enter__.return_value = server

        self._service(port=465).send_email("to@example.com", "Subject", "Body")

        server.starttls.assert_not_called()
        server.send_message.assert_called_once()

    @patch("app.services.email.smtplib.SMTP")
    def test_no_login_without_credentials(self, mock_smtp):
        server = MagicMock()
        mock_smtp.return_value.__enter__.return_value = server
        service = self._service()
        service.username = ""

        service.send_email("to@example.com", "Subject", "Body")
        server.login.assert_not_called()

    @patch("app.services.email.smtplib.SMTP")
    def test_smtp_error_raises_delivery_error(self, mock_smtp):
        server = MagicMock()
        server.send_message.side_effect = smtplib.SMTPRecipientsRefused({})
        mock_smtp.return_value.__enter__.return_value = server

        with pytest.raises(EmailDeliveryError):
            self._service().send_email("to@example.com", "Subject", "Body")

    @patch("app.services.email.smtplib.SMTP", side_effect=ConnectionRefusedError("refused"))
    def test_connection_error_raises_delivery_error(self, mock_smtp):
        with pytest.raises(EmailDeliveryError):
            self._service().send_email("to@example.com", "Subject", "Body")


class TestSettings:
    """Tests for configuration validation."""

    def test_test_settings_are_valid(self):
        assert get_settings().validate() == []

    def test_defaults(self):
        settings = Settings()
        assert settings.JWT_EXPIRE_MINUTES == 30
        assert settings.VERIFICATION_CODE_LENGTH == 6
        assert settings.VERIFICATION_CODE_EXPIRE_MINUTES == 10

    def test_missing_secret_and_smtp(self):
        settings = Settings()
        settings.JWT_SECRET_KEY = ""
        settings.SMTP_HOST = ""
        settings.SMTP_FROM = ""

        errors = settings.validate()
        assert "JWT_SECRET_KEY is not set" in errors
        assert "SMTP_HOST is not set" in errors
        assert "SMTP_FROM is not set" in errors

    def test_non_positive_lifetimes(self):
        settings = Settings()
        settings.VERIFICATION_CODE_EXPIRE_MINUTES = 0
        settings.JWT_EXPIRE_MINUTES = -1
        assert len(settings.validate()) == 2

    def test_app_refuses_to_start_with_bad_config(self):
        from fastapi.testclient import TestClient

        from main import app

        bad = Settings()
        bad.JWT_SECRET_KEY = ""
        with patch("main.get_settings", return_value=bad):
            with pytest.raises(RuntimeError, match="JWT_SECRET_KEY"):
                with TestClient(app):
                    pass
