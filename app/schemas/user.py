"""Pydantic schemas for user account endpoints.

Bodies use camelCase on the wire; snake_case names are accepted on input too.
Names and phone numbers are stripped before their length and shape checks.
"""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

# bcrypt only hashes the first 72 bytes, so longer passwords are refused
PASSWORD_MAX_BYTES = 72

PersonName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
PhoneNumber = Annotated[
    str, StringConstraints(strip_whitespace=True, pattern=r"^\+?[0-9(][0-9 ().\-]{4,30}[0-9]$")
]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    first_name: PersonName
    last_name: PersonName
    email: EmailStr
    phone_number: PhoneNumber
    password: str = Field(min_length=8)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
        return value


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class VerifyEmailRequest(CamelModel):
    email: EmailStr


class VerifyCodeRequest(CamelModel):
    email: EmailStr
    code: str = Field(min_length=1, max_length=16)


class UpdateUserRequest(CamelModel):
    first_name: PersonName
    last_name: PersonName
    phone_number: PhoneNumber


class UserResponse(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone_number: str
    is_email_verified: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    expires_at: datetime


class MessageResponse(BaseModel):
    message: str
