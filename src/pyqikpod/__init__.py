"""pyqikpod - Async Python client and portal for the QikPod parcel locker service."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyqikpod")
except PackageNotFoundError:
    __version__ = "0+local"
from pyqikpod.client import QikpodClient
from pyqikpod.config import QikpodConfig, base_url_from_domain
from pyqikpod.dashboards import (
    CustomerDashboard,
    Listing,
    ReservationDetail,
    SiteAdminDashboard,
    SiteSecurityDashboard,
    dashboard_for,
)
from pyqikpod.exceptions import (
    QikpodApiError,
    QikpodAuthenticationError,
    QikpodConfigError,
    QikpodError,
    QikpodNotFoundError,
    QikpodPermissionError,
    QikpodResponseError,
    QikpodTransportError,
    QikpodValidationError,
)
from pyqikpod.location_selection import LocationSelector
from pyqikpod.login import LoginOutcome, LoginResult, LoginStep, OtpLogin
from pyqikpod.models import (
    Location,
    Pod,
    Reservation,
    ReservationStatus,
    User,
    UserLocation,
    UserRole,
)
from pyqikpod.navigation import Route, enter, require_role, resolve_entry, route_for
from pyqikpod.pagination import Page, paginate, search_reservations, search_users
from pyqikpod.profile import ProfileEditor, register
from pyqikpod.session import AuthToken, PortalContext
from pyqikpod.storage import JsonFileStorage, MemoryStorage, Storage

__all__ = [
    "__version__",
    "AuthToken",
    "CustomerDashboard",
    "JsonFileStorage",
    "Listing",
    "Location",
    "LocationSelector",
    "LoginOutcome",
    "LoginResult",
    "LoginStep",
    "MemoryStorage",
    "OtpLogin",
    "Page",
    "Pod",
    "PortalContext",
    "ProfileEditor",
    "QikpodApiError",
    "QikpodAuthenticationError",
    "QikpodClient",
    "QikpodConfig",
    "QikpodConfigError",
    "QikpodError",
    "QikpodNotFoundError",
    "QikpodPermissionError",
    "QikpodResponseError",
    "QikpodTransportError",
    "QikpodValidationError",
    "Reservation",
    "ReservationDetail",
    "ReservationStatus",
    "Route",
    "SiteAdminDashboard",
    "SiteSecurityDashboard",
    "Storage",
    "User",
    "UserLocation",
    "UserRole",
    "base_url_from_domain",
    "dashboard_for",
    "enter",
    "paginate",
    "register",
    "require_role",
    "resolve_entry",
    "route_for",
    "search_reservations",
    "search_users",
]
