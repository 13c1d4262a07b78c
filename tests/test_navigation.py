from __future__ import annotations

import pytest

from pyqikpod import _constants as c
from pyqikpod.client import QikpodClient
from pyqikpod.config import QikpodConfig
from pyqikpod.exceptions import QikpodPermissionError
from pyqikpod.models.user import User, UserRole
from pyqikpod.navigation import Route, enter, require_role, resolve_entry, route_for
from pyqikpod.session import PortalContext
from pyqikpod.storage import MemoryStorage

from .conftest import ADMIN, CUSTOMER, SECURITY, STAFF, FakeQikpodBackend, sign_in


@pytest.mark.parametrize(
    ("user", "route"),
    [
        (CUSTOMER, Route.CUSTOMER_DASHBOARD),
        (ADMIN, Route.SITE_ADMIN_DASHBOARD),
        (STAFF, Route.SITE_ADMIN_DASHBOARD),
        (SECURITY, Route.SITE_SECURITY_DASHBOARD),
        ({"id": 9, "user_type": "Courier"}, Route.LOGIN),
    ],
)
def test_route_for_role(user: dict[str, object], route: Route) -> None:
    assert route_for(User.model_validate(user)) is route


def test_route_values_match_portal_paths() -> None:
    assert Route.CUSTOMER_DASHBOARD.value == "/customer-dashboard"
    assert Route.SITE_ADMIN_DASHBOARD.value == "/site-admin-dashboard"
    assert Route.SITE_SECURITY_DASHBOARD.value == "/site-security-dashboard"
    assert route_for(None) is Route.LOGIN


def test_no_api_domain_prompts_for_configuration() -> None:
    context = PortalContext(QikpodConfig(), MemoryStorage()).init()
    assert resolve_entry(context) is Route.CONFIGURE_API

    context.configure_domain("abc")
    assert resolve_entry(context) is Route.LOGIN


def test_cached_customer_goes_straight_to_dashboard(context: PortalContext) -> None:
    sign_in(context, CUSTOMER)
    assert resolve_entry(context) is Route.CUSTOMER_DASHBOARD


def test_expired_token_sends_back_to_login(context: PortalContext, storage: MemoryStorage) -> None:
    context.store_token("tok", now_ms=0)
    context.set_user(User.model_validate(CUSTOMER))

    assert resolve_entry(context, now_ms=8 * 24 * 60 * 60 * 1000) is Route.LOGIN
    assert storage.get(c.KEY_USER) is None


def test_require_role_accepts_qpstaff_as_site_admin(context: PortalContext) -> None:
    sign_in(context, STAFF)
    user = require_role(context, UserRole.SITE_ADMIN)
    assert user.role is UserRole.SITE_ADMIN


def test_require_role_rejects_other_roles(context: PortalContext) -> None:
    with pytest.raises(QikpodPermissionError, match="Not signed in"):
        require_role(context, UserRole.CUSTOMER)

    sign_in(context, CUSTOMER)
    with pytest.raises(QikpodPermissionError, match="Customer"):
        require_role(context, UserRole.SITE_ADMIN, UserRole.SITE_SECURITY)


@pytest.mark.asyncio
async def test_enter_caches_pod_and_its_location(
    config: QikpodConfig,
    context: PortalContext,
    backend: FakeQikpodBackend,
) -> None:
    async with QikpodClient(config, context=context) as client:
        route = await enter(client, "https://portal.example.com/?id=POD-LV01")

    assert route is Route.LOGIN
    assert context.pod_name == "LV01"
    assert context.location_id == 11
    assert backend.tokens_for("/pods/") == [c.PUBLIC_TOKEN]


@pytest.mark.asyncio
async def test_enter_ignores_unknown_pod(
    config: QikpodConfig,
    context: PortalContext,
    backend: FakeQikpodBackend,
) -> None:
    sign_in(context, CUSTOMER, location_id=None)
    async with QikpodClient(config, context=context) as client:
        route = await enter(client, "https://portal.example.com/?id=POD-NOPE")

    assert route is Route.CUSTOMER_DASHBOARD
    assert context.pod_name == "NOPE"
    assert context.location_id is None
