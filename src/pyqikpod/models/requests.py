"""Pydantic request models for form input.

These models provide a consistent "validate → normalize → execute" flow.
They are used by the login flow, dashboards and the CLI before anything
is sent to the service.
"""

from __future__ import annotations

import re
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from pyqikpod._constants import OTP_DIGITS, PHONE_DIGITS
from pyqikpod.exceptions import QikpodValidationError
from pyqikpod.models.user import User, UserRole

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9_!#$%&'*+/=?`{|}~^.-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

TRequest = TypeVar("TRequest", bound=BaseModel)


def is_valid_phone(value: str | None) -> bool:
    return value is not None and len(value) == PHONE_DIGITS and value.isdigit()


def _phone(value: str) -> str:
    if not is_valid_phone(value):
        raise ValueError(f"Please enter a valid {PHONE_DIGITS}-digit phone number")
    return value


def _required(value: str, label: str) -> str:
    if not value:
        raise ValueError(f"{label} is required")
    return value


def validate_form(model: type[TRequest], **data: Any) -> TRequest:
    """Validate *data* against *model*.

    Raises
    ------
    QikpodValidationError
        With one message per offending field.
    """
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        errors: dict[str, str] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "form"
            message = str(error["msg"])
            # pydantic prefixes ValueError messages
            errors.setdefault(field, message.removeprefix("Value error, "))
        raise QikpodValidationError(errors) from exc


class _Form(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )


class PhoneRequest(_Form):
    """Phone number entered on the login screen."""

    user_phone: str

    @field_validator("user_phone")
    @classmethod
    def _valid_phone(cls, value: str) -> str:
        return _phone(value)


class OtpCodeRequest(PhoneRequest):
    otp_text: str

    @field_validator("otp_text")
    @classmethod
    def _valid_otp(cls, value: str) -> str:
        if len(value) != OTP_DIGITS or not value.isdigit():
            raise ValueError(f"Please enter the {OTP_DIGITS}-digit verification code")
        return value


class RegistrationRequest(_Form):
    """Self-service registration form. New accounts are always customers."""

    user_phone: str
    user_name: str
    user_email: str
    user_flatno: str
    user_address: str
    user_type: str = UserRole.CUSTOMER.value

    @field_validator("user_phone")
    @classmethod
    def _valid_phone(cls, value: str) -> str:
        return _phone(value)

    @field_validator("user_name")
    @classmethod
    def _name(cls, value: str) -> str:
        return _required(value, "Name")

    @field_validator("user_email")
    @classmethod
    def _email(cls, value: str) -> str:
        if not value or "@" not in value:
            raise ValueError("Please enter a valid email address")
        return value

    @field_validator("user_flatno")
    @classmethod
    def _flatno(cls, value: str) -> str:
        return _required(value, "Flat No / Emp ID")

    @field_validator("user_address")
    @classmethod
    def _address(cls, value: str) -> str:
        return _required(value, "Address")

    @field_validator("user_type")
    @classmethod
    def _customer_only(cls, value: str) -> str:
        if value != UserRole.CUSTOMER.value:
            raise ValueError("Registration creates Customer accounts only")
        return value


class NewUserRequest(_Form):
    """User added by a site admin to the current location."""

    user_name: str
    user_phone: str
    user_email: str
    user_flatno: str = ""
    user_address: str = ""

    @field_validator("user_name")
    @classmethod
    def _name(cls, value: str) -> str:
        return _required(value, "Name")

    @field_validator("user_phone")
    @classmethod
    def _valid_phone(cls, value: str) -> str:
        return _phone(value)

    @field_validator("user_email")
    @classmethod
    def _email(cls, value: str) -> str:
        return _required(value, "Email")


class ProfileUpdate(_Form):
    """Editable profile fields."""

    user_name: str
    user_email: str = ""
    user_flatno: str = ""
    user_address: str = ""

    @field_validator("user_name")
    @classmethod
    def _name(cls, value: str) -> str:
        return _required(value, "Name")

    @field_validator("user_email")
    @classmethod
    def _email(cls, value: str) -> str:
        if value and not _EMAIL_RE.match(value):
            raise ValueError("Enter a valid email")
        return value

    def changes_from(self, user: User) -> dict[str, str]:
        """Fields whose trimmed value differs from *user*."""
        changes: dict[str, str] = {}
        for field, value in self.model_dump().items():
            if value != str(getattr(user, field, "") or "").strip():
                changes[field] = value
        return changes


class CreateReservationRequest(_Form):
    created_by_phone: str
    drop_by_phone: str
    pickup_by_phone: str
    pod_id: str
    reservation_awbno: str

    @field_validator("pod_id", mode="before")
    @classmethod
    def _pod_id_str(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("created_by_phone", "drop_by_phone", "pickup_by_phone", "pod_id", "reservation_awbno")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("Please fill in all required fields")
        return value
