"""OTP endpoint models."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pyqikpod.models._base import QikpodBaseModel
from pyqikpod.models.user import User


class OtpValidation(QikpodBaseModel):
    """Successful ``/otp/validate_otp/`` answer.

    ``records`` must hold at least the user that just signed in.
    """

    access_token: str = ""
    user_phone: str = ""
    records: list[User] = Field(min_length=1)
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator("user_phone", mode="before")
    @classmethod
    def _coerce_phone(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @property
    def user(self) -> User:
        return self.records[0]
