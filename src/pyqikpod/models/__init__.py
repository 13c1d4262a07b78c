"""Data models for QikPod API records and form input."""

from pyqikpod.models._base import PLACEHOLDER, QikpodBaseModel, QikpodEnum, display
from pyqikpod.models.door import FreeDoor, FreeDoorResult
from pyqikpod.models.envelope import ApiEnvelope
from pyqikpod.models.location import Location, UserLocation
from pyqikpod.models.otp import OtpValidation
from pyqikpod.models.pod import Pod
from pyqikpod.models.requests import (
    CreateReservationRequest,
    NewUserRequest,
    OtpCodeRequest,
    PhoneRequest,
    ProfileUpdate,
    RegistrationRequest,
    is_valid_phone,
    validate_form,
)
from pyqikpod.models.reservation import (
    CUSTOMER_STATUSES,
    HISTORY_STATUSES,
    PENDING_STATUSES,
    Reservation,
    ReservationStatus,
)
from pyqikpod.models.user import User, UserRole

__all__ = [
    "ApiEnvelope",
    "CUSTOMER_STATUSES",
    "CreateReservationRequest",
    "FreeDoor",
    "FreeDoorResult",
    "HISTORY_STATUSES",
    "Location",
    "NewUserRequest",
    "OtpCodeRequest",
    "OtpValidation",
    "PENDING_STATUSES",
    "PLACEHOLDER",
    "PhoneRequest",
    "Pod",
    "ProfileUpdate",
    "QikpodBaseModel",
    "QikpodEnum",
    "RegistrationRequest",
    "Reservation",
    "ReservationStatus",
    "User",
    "UserLocation",
    "UserRole",
    "display",
    "is_valid_phone",
    "validate_form",
]
