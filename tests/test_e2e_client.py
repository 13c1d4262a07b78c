from __future__ import annotations

import pytest

from pyqikpod.client import QikpodClient
from pyqikpod.config import QikpodConfig
from pyqikpod.dashboards import CustomerDashboard, SiteAdminDashboard, dashboard_for
from pyqikpod.exceptions import QikpodAuthenticationError
from pyqikpod.location_selection import LocationSelector
from pyqikpod.login import LoginOutcome, OtpLogin
from pyqikpod.models.reservation import ReservationStatus
from pyqikpod.navigation import Route, enter
from pyqikpod.session import PortalContext

from .conftest import ADMIN, CUSTOMER, FakeQikpodBackend


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_pod_entry_login_reserve_and_cancel(
    config: QikpodConfig,
    context: PortalContext,
    backend: FakeQikpodBackend,
) -> None:
    backend.free_doors = [{"pod_id": 31, "door_number": 4}]

    async with QikpodClient(config, context=context) as client:
        assert await enter(client, "https://portal.example.com/?id=POD-LV01") is Route.LOGIN
        assert context.pod_name == "LV01"

        flow = OtpLogin(client)
        sent = await flow.send_otp(CUSTOMER["user_phone"])
        assert sent.outcome is LoginOutcome.OTP_SENT
        result = await flow.verify_otp("123456")
        assert result.outcome is LoginOutcome.DETECT_LOCATION
        assert result.user is not None
        await LocationSelector(client).confirm_detected(result.user.id, 11)

        assert await enter(client) is Route.CUSTOMER_DASHBOARD
        dashboard = dashboard_for(client)
        assert isinstance(dashboard, CustomerDashboard)
        await dashboard.open()

        pod_id = await dashboard.start_reservation()
        assert pod_id == 31
        reservation_id = await dashboard.create_reservation(
            pod_id=pod_id,
            reservation_awbno="AWB-E2E",
            drop_by_phone=CUSTOMER["user_phone"],
        )

        lists = await dashboard.load()
        assert [r.id for r in lists[ReservationStatus.DROP_PENDING].items] == [reservation_id]

        detail = await dashboard.reservation(reservation_id)
        assert detail.location_name == "Lake View"
        await detail.resend_drop_otp()
        cancelled = await detail.cancel()
        assert cancelled.reservation_status is ReservationStatus.DROP_CANCELLED

        history = await dashboard.history(ReservationStatus.DROP_CANCELLED)
        assert [r.id for r in history.items] == [reservation_id]

    assert context.location_id == 11
    assert any(m["user_id"] == CUSTOMER["id"] and m["location_id"] == 11 for m in backend.user_locations)
    assert backend.tokens_for("/reservations/create") == ["user-token-1"]
    assert backend.count("PATCH", f"/reservations/cancel/{reservation_id}") == 1


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_expired_session_is_sent_back_to_login(
    config: QikpodConfig,
    context: PortalContext,
    backend: FakeQikpodBackend,
) -> None:
    backend.user_locations = [{"id": 91, "user_id": 2, "location_id": 11, "location_name": "Lake View"}]

    async with QikpodClient(config, context=context) as client:
        flow = OtpLogin(client)
        await flow.send_otp(ADMIN["user_phone"])
        result = await flow.verify_otp("123456")
        assert result.route is Route.SITE_ADMIN_DASHBOARD

        dashboard = dashboard_for(client)
        assert isinstance(dashboard, SiteAdminDashboard)
        backend.fail["/users/locations/"] = 401
        with pytest.raises(QikpodAuthenticationError):
            await dashboard.users()

        assert await enter(client) is Route.LOGIN
