"""Location and user-location mapping models."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from pyqikpod.models._base import QikpodBaseModel, safe_int


class Location(QikpodBaseModel):
    """A site hosting one or more pods."""

    id: int
    location_name: str
    address: str = Field(default="", validation_alias=AliasChoices("location_address", "address"))
    city: str = ""
    state: str = Field(default="", validation_alias=AliasChoices("location_state", "state"))
    pincode: str = Field(default="", validation_alias=AliasChoices("location_pincode", "pincode"))
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        parsed = safe_int(value)
        return parsed if parsed is not None else value

    @field_validator("pincode", mode="before")
    @classmethod
    def _coerce_pincode(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class UserLocation(QikpodBaseModel):
    """A row of ``/users/locations/``: one user attached to one location.

    ``id`` is the mapping id used to detach the user again.
    """

    id: int
    user_id: int
    location_id: int = 0
    location_name: str = ""
    location_address: str = ""
    location_pincode: str = ""
    location_state: str = ""
    status: str = ""
    user_name: str = ""
    user_phone: str = ""
    user_email: str = ""
    user_flatno: str = ""
    user_type: str = ""
    created_at: str = ""
    updated_at: str = ""
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", "user_id", "location_id", mode="before")
    @classmethod
    def _coerce_ints(cls, value: Any) -> Any:
        parsed = safe_int(value)
        return parsed if parsed is not None else value

    @field_validator("user_phone", "location_pincode", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @property
    def is_valid(self) -> bool:
        """A mapping whose ``location_id`` is ``0`` points nowhere."""
        return self.location_id != 0

    @property
    def is_active(self) -> bool:
        return self.status.lower() == "active"
