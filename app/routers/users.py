"""User account API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.schemas.user import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenResponse,
    UpdateUserRequest,
    UserResponse,
    VerifyCodeRequest,
    VerifyEmailRequest,
)
from app.services.email import EmailDeliveryError
from app.services.jwt import get_jwt_service
from app.services.user import get_user_service
from app.services.verification import VerificationOutcome, get_verification_manager

logger = logging.getLogger("user_accounts")

router = APIRouter(prefix="/users", tags=["Users"])

EMAIL_SEND_FAILED = "Failed to send verification email."


@router.post("/register", response_model=UserResponse, status_code=201)
def register(body: RegisterRequest, response: Response, db: Session = Depends(get_db)) -> UserResponse:
    """Register a new account and email it a verification code.

    The account is kept even when the email cannot be sent; the caller gets
    a 500 and can request a new code through /users/verify-email.
    """
    user_service = get_user_service()
    result = user_service.register(
        db,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        phone_number=body.phone_number,
        password=body.password,
    )

    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)

    user: User = result.user  # type: ignore[assignment]
    verification = get_verification_manager()
    code, _ = verification.issue_code(db, user)
    try:
        verification.send_code(user, code)
    except EmailDeliveryError:
        logger.exception("Failed to send verification email to user %s", user.id)
        raise HTTPException(status_code=500, detail=EMAIL_SEND_FAILED) from None

    response.headers["Location"] = f"{router.prefix}/{user.id}"
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """Authenticate and receive a bearer token."""
    user_service = get_user_service()
    result = user_service.authenticate(db, body.email, body.password)

    if not result.success:
        logger.info("Failed login attempt")
        raise HTTPException(status_code=401, detail=result.error)

    jwt_service = get_jwt_service()
    token, expires_at = jwt_service.create_token(
        user_id=result.user.id,  # type: ignore[union-attr]
        email=result.user.email,  # type: ignore[union-attr]
    )

    return TokenResponse(token=token, expires_at=expires_at)


@router.post("/verify-email", response_model=MessageResponse)
def verify_email(body: VerifyEmailRequest, db: Session = Depends(get_db)) -> MessageResponse:
    """Send a fresh verification code, replacing any pending one."""
    user = get_user_service().get_user_by_email(db, body.email)
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")

    if user.is_email_verified:
        return MessageResponse(message="Email is already verified.")

    verification = get_verification_manager()
    code, _ = verification.issue_code(db, user)
    try:
        verification.send_code(user, code)
    except EmailDeliveryError:
        logger.exception("Failed to send verification email to user %s", user.id)
        raise HTTPException(status_code=500, detail=EMAIL_SEND_FAILED) from None

    return MessageResponse(message="Verification code sent to your email.")


@router.post("/verify-code", response_model=MessageResponse)
def verify_code(body: VerifyCodeRequest, db: Session = Depends(get_db)) -> MessageResponse:
    """Consume a verification code and mark the email verified."""
    user = get_user_service().get_user_by_email(db, body.email)
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")

    outcome = get_verification_manager().validate_code(db, user, body.code)
    logger.info("Verification attempt for user %s: %s", user.id, outcome.value)

    if outcome is VerificationOutcome.EXPIRED:
        raise HTTPException(status_code=400, detail="Verification code has expired.")
    if outcome is VerificationOutcome.INVALID:
        raise HTTPException(status_code=400, detail="Invalid verification code.")

    return MessageResponse(message="Email verified successfully.")


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)) -> UserResponse:
    """Get a user by ID."""
    user = get_user_service().get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")
    return UserResponse.model_validate(user)


@router.put("/{user_id}", status_code=204)
def update_user(user_id: int, body: UpdateUserRequest, db: Session = Depends(get_db)) -> Response:
    """Update a user's name and phone number."""
    user_service = get_user_service()
    user = user_service.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")

    user_service.update_profile(db, user, body.first_name, body.last_name, body.phone_number)
    return Response(status_code=204)


@router.delete("/{user_id}", status_code=204)
def delete_user(user_id: int, db: Session = Depends(get_db)) -> Response:
    """Delete a user."""
    user_service = get_user_service()
    user = user_service.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")

    user_service.delete_user(db, user)
    return Response(status_code=204)
