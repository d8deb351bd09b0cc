# =============================================================================
# core/models/account.py - Account Schemas
# =============================================================================
# Profiles, sign-up / sign-in payloads and contact messages.
#
# Profiles are owned by Supabase Auth (a trigger creates the row); this
# service only reads the role and quota columns.
# =============================================================================

import re
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Profile(BaseModel):
    """A row from the profiles table."""
    id: UUID
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None
    role: UserRole = UserRole.USER
    submissions_today: int = 0
    last_submission_date: date | None = None
    created_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def _check_email(value: Any, handler: ValidatorFunctionWrapHandler) -> str:
    """Run EmailStr validation with our own error wording."""
    if isinstance(value, str):
        value = value.strip()
    try:
        return handler(value)
    except ValidationError:
        raise ValueError("Please enter a valid email")


class SignInRequest(BaseModel):
    """Email + password sign-in."""

    model_config = ConfigDict(validate_default=True)

    email: EmailStr = ""
    password: str = ""
    redirect: str | None = None

    @field_validator("email", mode="wrap")
    @classmethod
    def validate_email(cls, v: Any, handler: ValidatorFunctionWrapHandler) -> str:
        return _check_email(v, handler)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class SignUpRequest(BaseModel):
    """
    New account payload.

    Passwords need 8+ characters with at least one uppercase letter, one
    lowercase letter and one digit.
    """

    model_config = ConfigDict(validate_default=True)

    email: EmailStr = ""
    password: str = ""
    display_name: str = ""

    @field_validator("email", mode="wrap")
    @classmethod
    def validate_email(cls, v: Any, handler: ValidatorFunctionWrapHandler) -> str:
        return _check_email(v, handler)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"[0-9]", v):
            raise ValueError("Password must contain at least one number")
        return v

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, v: str) -> str:
        name = v.strip()
        if len(name) < 2:
            raise ValueError("Display name must be at least 2 characters")
        if len(name) > 50:
            raise ValueError("Display name must be under 50 characters")
        return name


class ContactMessage(BaseModel):
    """Message to the site team from a signed-in user."""

    model_config = ConfigDict(validate_default=True)

    subject: str = ""
    message: str = ""

    @field_validator("subject")
    @classmethod
    def validate_subject(cls, v: str) -> str:
        if len(v.strip()) < 3:
            raise ValueError("Please provide a subject (at least 3 characters).")
        return v.strip()

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        if len(v.strip()) < 10:
            raise ValueError("Please provide a message (at least 10 characters).")
        return v.strip()
