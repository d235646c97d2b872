"""Input schemas for account operations.

Each operation validates its payload against one of these models before the
repository is touched. :func:`parse_input` turns pydantic's error list into a
:class:`~accountkeeper.errors.ValidationError` that carries every violated
rule, not just the first.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel, EmailStr, Field, field_validator

from accountkeeper.errors import ValidationError

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6

InputModel = TypeVar("InputModel", bound=BaseModel)


def _check_name(value: Optional[str]) -> str:
    if value is None:
        raise ValueError("Name must be a string")
    value = value.strip()
    if len(value) < NAME_MIN_LENGTH:
        raise ValueError(f"Name must be at least {NAME_MIN_LENGTH} characters long")
    if len(value) > NAME_MAX_LENGTH:
        raise ValueError(f"Name cannot exceed {NAME_MAX_LENGTH} characters")
    return value


def _check_password(value: Optional[str]) -> str:
    if value is None:
        raise ValueError("Password must be a string")
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if "\x00" in value:
        raise ValueError("Password cannot contain null characters")
    return value


class RegistrationInput(BaseModel):
    """Payload for creating an account. All fields required."""

    name: str = Field(..., description="Display name, 2-50 characters after trimming")
    email: EmailStr = Field(..., description="Email address, stored lowercase")
    password: str = Field(..., description="Plaintext password, at least 6 characters")

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v):
        return _check_name(v)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v):
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def _validate_password(cls, v):
        return _check_password(v)


class UpdateInput(BaseModel):
    """Partial update payload. Only supplied fields are validated and applied."""

    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v):
        return _check_name(v)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v):
        if v is None:
            raise ValueError("Email must be a string")
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def _validate_password(cls, v):
        return _check_password(v)

    def supplied(self) -> Dict[str, str]:
        """Fields the caller actually sent."""
        return self.model_dump(include=self.model_fields_set)


class LoginInput(BaseModel):
    """Credentials for login. Email syntax is not checked here."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _require_email(cls, v):
        if not v.strip():
            raise ValueError("Email is required")
        return v.strip()

    @field_validator("password")
    @classmethod
    def _require_password(cls, v):
        if not v:
            raise ValueError("Password is required")
        return v


def _describe(error: Dict[str, Any]) -> str:
    loc = error.get("loc") or ()
    label = str(loc[0]).capitalize() if loc else "Request body"
    kind = error.get("type", "")

    if not loc:
        return "Request body must be a JSON object"
    if kind == "missing":
        return f"{label} is required"
    if kind == "string_type":
        return f"{label} must be a string"
    if kind == "value_error":
        ctx = error.get("ctx") or {}
        cause = ctx.get("error")
        # EmailStr reports syntax failures without an underlying ValueError
        if loc[0] == "email" and not isinstance(cause, ValueError):
            return "Please provide a valid email address"
        if cause is not None:
            return str(cause)
    return f"{label}: {error.get('msg', 'invalid value')}"


def parse_input(model: Type[InputModel], data: Any) -> InputModel:
    """Validate ``data`` against ``model``.

    Raises:
        ValidationError: Listing every violated rule.
    """
    if not isinstance(data, dict):
        raise ValidationError(["Request body must be a JSON object"])
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        messages: List[str] = []
        for error in e.errors():
            message = _describe(error)
            if message not in messages:
                messages.append(message)
        raise ValidationError(messages)
