"""User and role models."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pyqikpod._redact import mask_phone
from pyqikpod.models._base import QikpodBaseModel, QikpodEnum, safe_int


class UserRole(QikpodEnum):
    """Role tag carried in ``user_type``."""

    CUSTOMER = "Customer"
    SITE_ADMIN = "SiteAdmin"
    SITE_SECURITY = "SiteSecurity"
    QP_STAFF = "QPStaff"
    UNKNOWN = "Unknown"

    def normalized(self) -> UserRole:
        """QPStaff is treated as SiteAdmin everywhere."""
        return UserRole.SITE_ADMIN if self is UserRole.QP_STAFF else self


class User(QikpodBaseModel):
    """A QikPod account as returned by ``/users/`` and ``/otp/validate_otp/``."""

    id: int
    user_name: str = ""
    user_phone: str = ""
    user_email: str = ""
    user_address: str = ""
    user_flatno: str = ""
    user_type: str = ""
    user_dropcode: str = ""
    user_pickupcode: str = ""
    user_credit_limit: str = ""
    user_credit_used: str = ""
    status: str = ""
    created_at: str = ""
    updated_at: str = ""
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        parsed = safe_int(value)
        return parsed if parsed is not None else value

    @field_validator(
        "user_phone",
        "user_credit_limit",
        "user_credit_used",
        "user_dropcode",
        "user_pickupcode",
        mode="before",
    )
    @classmethod
    def _coerce_str(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def role(self) -> UserRole:
        return UserRole(self.user_type).normalized()

    @property
    def masked_phone(self) -> str:
        """Phone number with all but the last four digits hidden."""
        return mask_phone(self.user_phone)

    def with_normalized_role(self) -> User:
        """Return a copy whose ``user_type`` stores the normalized role."""
        role = UserRole(self.user_type)
        if role is UserRole.QP_STAFF:
            return self.model_copy(update={"user_type": UserRole.SITE_ADMIN.value})
        return self
