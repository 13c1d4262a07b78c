"""Role-based navigation.

One place decides where a session lands: :func:`route_for` maps a user to
their dashboard and :func:`resolve_entry` applies the start-up checks
(API configured, token still valid, someone signed in).
"""

from __future__ import annotations

import enum
import logging

from pyqikpod.client import QikpodClient
from pyqikpod.exceptions import QikpodError, QikpodPermissionError
from pyqikpod.models.user import User, UserRole
from pyqikpod.session import PortalContext

_logger = logging.getLogger(__name__)


class Route(enum.StrEnum):
    CONFIGURE_API = "configure-api"
    LOGIN = "/login"
    REGISTRATION = "/registration"
    CUSTOMER_DASHBOARD = "/customer-dashboard"
    SITE_ADMIN_DASHBOARD = "/site-admin-dashboard"
    SITE_SECURITY_DASHBOARD = "/site-security-dashboard"


_DASHBOARDS: dict[UserRole, Route] = {
    UserRole.SITE_ADMIN: Route.SITE_ADMIN_DASHBOARD,
    UserRole.CUSTOMER: Route.CUSTOMER_DASHBOARD,
    UserRole.SITE_SECURITY: Route.SITE_SECURITY_DASHBOARD,
}


def route_for(user: User | None) -> Route:
    """Dashboard for *user*'s role; unknown roles go back to login."""
    if user is None:
        return Route.LOGIN
    return _DASHBOARDS.get(user.role, Route.LOGIN)


def resolve_entry(context: PortalContext, *, now_ms: int | None = None) -> Route:
    """Where a fresh start should land, given only cached state."""
    if not context.has_api_base_url:
        return Route.CONFIGURE_API
    if context.token is not None and not context.is_token_valid(now_ms=now_ms):
        return Route.LOGIN
    return route_for(context.user)


async def enter(client: QikpodClient, entry_url: str | None = None) -> Route:
    """Start-up sequence: remember the pod from *entry_url*, then route.

    A failed pod lookup is logged and does not block navigation.
    """
    context = client.context
    if not context.has_api_base_url:
        return Route.CONFIGURE_API
    pod_name = context.remember_entry_url(entry_url) if entry_url else None
    if pod_name:
        try:
            pod = await client.get_pod(pod_name)
            _logger.debug("Entry pod %s is at location %s", pod.pod_name, pod.location_id)
        except QikpodError as exc:
            _logger.warning("Failed to fetch pod info for %s: %s", pod_name, exc)
    return resolve_entry(context)


def require_role(context: PortalContext, *roles: UserRole) -> User:
    """Return the signed-in user if their role is one of *roles*."""
    user = context.user
    if user is None:
        raise QikpodPermissionError("Not signed in")
    if user.role not in roles:
        allowed = ", ".join(role.value for role in roles)
        raise QikpodPermissionError(f"Access denied for role {user.role.value}; requires {allowed}")
    return user
