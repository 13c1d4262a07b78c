"""Reservation models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator

from pyqikpod._constants import MASKED_OTP
from pyqikpod.models._base import QikpodBaseModel, QikpodEnum


class ReservationStatus(QikpodEnum):
    """Lifecycle state of a parcel drop/pickup."""

    DROP_PENDING = "DropPending"
    PICKUP_PENDING = "PickupPending"
    PICKUP_COMPLETED = "PickupCompleted"
    DROP_CANCELLED = "DropCancelled"
    RTO_PENDING = "RTOPending"
    UNKNOWN = "Unknown"


#: Statuses the customer dashboard loads on entry.
CUSTOMER_STATUSES: tuple[ReservationStatus, ...] = (
    ReservationStatus.DROP_PENDING,
    ReservationStatus.PICKUP_PENDING,
    ReservationStatus.PICKUP_COMPLETED,
    ReservationStatus.DROP_CANCELLED,
)

HISTORY_STATUSES: tuple[ReservationStatus, ...] = (
    ReservationStatus.PICKUP_COMPLETED,
    ReservationStatus.DROP_CANCELLED,
)

PENDING_STATUSES: tuple[ReservationStatus, ...] = (
    ReservationStatus.DROP_PENDING,
    ReservationStatus.PICKUP_PENDING,
)


class Reservation(QikpodBaseModel):
    """A reservation row from ``/reservations/``.

    The same shape serves list views and the detail view; detail-only
    fields (OTPs, phones) are empty in list responses that omit them.
    """

    id: str
    reservation_status: ReservationStatus = ReservationStatus.UNKNOWN
    reservation_type: str = ""
    pod_name: str = ""
    created_at: str = ""
    package_description: str = ""
    drop_code: str = ""
    pickup_code: str = ""
    created_by_name: str = Field(default="", validation_alias=AliasChoices("created_by_name", "created_by"))
    reservation_awbno: str = Field(default="", validation_alias=AliasChoices("reservation_awbno", "awb_number"))
    location_name: str = ""
    user_name: str = ""
    user_phone: str = ""
    drop_by_phone: str = ""
    pickup_by_phone: str = ""
    drop_otp: str = ""
    pickup_otp: str = ""
    rto_otp: str = ""
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator(
        "id",
        "drop_code",
        "pickup_code",
        "user_phone",
        "drop_by_phone",
        "pickup_by_phone",
        "drop_otp",
        "pickup_otp",
        "rto_otp",
        "reservation_awbno",
        mode="before",
    )
    @classmethod
    def _coerce_str(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("reservation_status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ReservationStatus(value)
        return value

    @property
    def status(self) -> ReservationStatus:
        return self.reservation_status

    @property
    def can_resend_drop_otp(self) -> bool:
        return self.reservation_status is ReservationStatus.DROP_PENDING

    @property
    def can_cancel(self) -> bool:
        return self.reservation_status in PENDING_STATUSES

    def otp_display(self, otp_type: Literal["drop", "pickup"]) -> str:
        """Return the OTP while it is usable, ``*****`` otherwise."""
        if otp_type == "drop":
            if self.reservation_status is ReservationStatus.DROP_PENDING:
                return self.drop_otp or MASKED_OTP
            return MASKED_OTP
        if self.reservation_status is ReservationStatus.PICKUP_PENDING:
            return self.pickup_otp or MASKED_OTP
        return MASKED_OTP

    def with_location_fallback(self, location_name: str | None) -> Reservation:
        """Fill ``location_name`` from the cached location when absent."""
        if self.location_name or not location_name:
            return self
        return self.model_copy(update={"location_name": location_name})
