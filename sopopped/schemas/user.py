# sopopped/schemas/user.py
import re
from datetime import datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from sqlmodel import SQLModel

from sopopped.schemas.session import Role

_email_adapter = TypeAdapter(EmailStr)


def normalize_email(value: str) -> str:
    """Trim and lower-case; emails are compared case-insensitively."""
    return value.strip().lower()


def is_valid_email(value: str) -> bool:
    try:
        _email_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


class LoginForm(BaseModel):
    """
    Login payload (form-encoded or JSON).

    Missing fields default to "" so every problem is reported as a
    readable message instead of pydantic's "Field required".
    """

    model_config = ConfigDict(extra="ignore", validate_default=True)

    email: str = ""
    password: str = ""

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = normalize_email(v)
        if not v:
            raise ValueError("Email is required")
        if not is_valid_email(v):
            raise ValueError("Please enter a valid email address")
        return v

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class SignupForm(BaseModel):
    """
    Account registration payload.

    Password rules:
      - 8 to 16 characters
      - at least one uppercase, lowercase, digit and special character
      - confirmation (`password2`) must match
    """

    model_config = ConfigDict(extra="ignore", validate_default=True)

    name: str = ""
    middle: str = ""
    last: str = ""
    email: str = ""
    phone: str = ""
    password: str = ""
    password2: str = ""

    @field_validator("name", "middle", "last", "phone", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("name")
    @classmethod
    def check_first_name(cls, v: str) -> str:
        if not v:
            raise ValueError("First name is required")
        return v

    @field_validator("last")
    @classmethod
    def check_last_name(cls, v: str) -> str:
        if not v:
            raise ValueError("Last name is required")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = normalize_email(v)
        if not v:
            raise ValueError("Email is required")
        if not is_valid_email(v):
            raise ValueError("Please enter a valid email address")
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        if not v:
            raise ValueError("Phone number is required")
        return v

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        if not 8 <= len(v) <= 16:
            raise ValueError("Password must be 8-16 characters long")
        if not (
            re.search(r"[A-Z]", v)
            and re.search(r"[a-z]", v)
            and re.search(r"[0-9]", v)
            and re.search(r"[^A-Za-z0-9]", v)
        ):
            raise ValueError(
                "Password must include uppercase, lowercase, number, and special character"
            )
        return v

    @field_validator("password2")
    @classmethod
    def check_confirmation(cls, v: str, info: ValidationInfo) -> str:
        if not v:
            raise ValueError("Please confirm your password")
        password = info.data.get("password")
        if password is not None and v != password:
            raise ValueError("Passwords do not match")
        return v


class UserSummary(SQLModel):
    """User block returned by login/signup."""

    id: int
    email: str
    name: str
    role: Role = "customer"


class UserRead(SQLModel):
    """Admin listing row."""

    id: int
    email: str
    first_name: str
    middle_name: str | None
    last_name: str
    phone: str
    role: Role
    is_archived: bool
    created_at: datetime


class UserArchiveUpdate(SQLModel):
    """
    Admin-only archive toggle.
    """

    model_config = ConfigDict(extra="forbid")

    is_archived: bool
