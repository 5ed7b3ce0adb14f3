"""Request/response schemas for auth and profile endpoints."""

import re
from datetime import datetime
from enum import Enum

from pydantic import EmailStr, Field, field_validator, model_validator

from tasktrack.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from tasktrack.schemas.common import CamelModel

NAME_MAX_LEN = 100
EMAIL_MAX_LEN = 255

# At least one lowercase, one uppercase, one digit and one special character.
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])")
NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


def _normalize_email(v: str) -> str:
    v = v.strip().lower()
    if len(v) > EMAIL_MAX_LEN:
        raise ValueError(f"Email must not exceed {EMAIL_MAX_LEN} characters")
    return v


def _validate_name(v: str, label: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{label} is required")
    if len(v) > NAME_MAX_LEN:
        raise ValueError(f"{label} must not exceed {NAME_MAX_LEN} characters")
    if not NAME_PATTERN.match(v):
        raise ValueError(f"{label} can only contain letters, spaces, hyphens, and apostrophes")
    return v


class SignupRequest(CamelModel):
    """New account details."""

    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    first_name: str
    last_name: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        if not PASSWORD_PATTERN.match(v):
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase letter, "
                "one number, and one special character"
            )
        return v

    @field_validator("first_name")
    @classmethod
    def validate_first_name(cls, v: str) -> str:
        return _validate_name(v, "First name")

    @field_validator("last_name")
    @classmethod
    def validate_last_name(cls, v: str) -> str:
        return _validate_name(v, "Last name")


class LoginRequest(CamelModel):
    """Credentials for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class ProfileUpdateRequest(CamelModel):
    """Partial profile update; at least one field must be present."""

    first_name: str | None = None
    last_name: str | None = None

    @field_validator("first_name")
    @classmethod
    def validate_first_name(cls, v: str | None) -> str | None:
        return None if v is None else _validate_name(v, "First name")

    @field_validator("last_name")
    @classmethod
    def validate_last_name(cls, v: str | None) -> str | None:
        return None if v is None else _validate_name(v, "Last name")

    @model_validator(mode="after")
    def require_one_field(self) -> "ProfileUpdateRequest":
        if self.first_name is None and self.last_name is None:
            raise ValueError("At least one field must be provided for update")
        return self


class UserOut(CamelModel):
    """Public user representation. Never carries the password hash."""

    id: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class CurrentUser(CamelModel):
    """Authenticated identity attached to a request by the auth gate."""

    id: str
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class TokenPairOut(CamelModel):
    token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")


class AuthOut(TokenPairOut):
    """Signup/login result: the user plus a fresh token pair."""

    user: UserOut
