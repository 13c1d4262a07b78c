from __future__ import annotations

import pytest

from pyqikpod._constants import MASKED_OTP, RECORDS_NOT_FOUND
from pyqikpod.client import QikpodClient
from pyqikpod.config import QikpodConfig
from pyqikpod.dashboards import (
    CustomerDashboard,
    SiteAdminDashboard,
    SiteSecurityDashboard,
    dashboard_for,
)
from pyqikpod.exceptions import QikpodAuthenticationError, QikpodPermissionError, QikpodValidationError
from pyqikpod.models.reservation import ReservationStatus
from pyqikpod.session import PortalContext

from .conftest import ADMIN, CUSTOMER, SECURITY, STAFF, FakeQikpodBackend, sign_in


def _reservation(rid: int, status: str, **extra: object) -> dict[str, object]:
    return {
        "id": rid,
        "reservation_status": status,
        "location_id": 11,
        "created_by_phone": CUSTOMER["user_phone"],
        "user_name": "Asha Rao",
        "user_phone": CUSTOMER["user_phone"],
        "reservation_awbno": f"AWB{rid}",
        "drop_otp": "111111",
        "pickup_otp": "222222",
        **extra,
    }


@pytest.fixture
def populated(backend: FakeQikpodBackend) -> FakeQikpodBackend:
    backend.reservations = [
        _reservation(1, "DropPending"),
        _reservation(2, "PickupPending"),
        _reservation(3, "PickupCompleted"),
        _reservation(4, "DropCancelled"),
        _reservation(5, "RTOPending", rto_otp="333333", drop_by_phone="9555555555"),
    ]
    backend.user_locations = [
        {
            "id": 91,
            "user_id": 7,
            "location_id": 11,
            "user_name": "Asha Rao",
            "user_phone": "9876543210",
            "user_email": "asha@example.com",
            "user_flatno": "B-204",
            "user_type": "Customer",
        },
        {
            "id": 92,
            "user_id": 3,
            "location_id": 11,
            "user_name": "Gate Security",
            "user_phone": "9000000003",
            "user_type": "SiteSecurity",
        },
    ]
    backend.free_doors = [{"pod_id": 31, "door_number": 4}, {"pod_id": 32, "door_number": 1}]
    return backend


@pytest.mark.asyncio
async def test_customer_dashboard_loads_four_statuses(
    config: QikpodConfig,
    context: PortalContext,
    populated: FakeQikpodBackend,
) -> None:
    sign_in(context, CUSTOMER)
    async with QikpodClient(config, context=context) as client:
        dashboard = CustomerDashboard(client)
        lists = await dashboard.load()

    assert {status: [r.id for r in listing.items] for status, listing in lists.items()} == {
        ReservationStatus.DROP_PENDING: ["1"],
        ReservationStatus.PICKUP_PENDING: ["2"],
        ReservationStatus.PICKUP_COMPLETED: ["3"],
        ReservationStatus.DROP_CANCELLED: ["4"],
    }
    assert populated.count("GET", "/reservations/") == 4


@pytest.mark.asyncio
async def test_customer_dashboard_without_location_is_empty(
    config: QikpodConfig,
    context: PortalContext,
    populated: FakeQikpodBackend,
) -> None:
    sign_in(context, CUSTOMER, location_id=None)
    async with QikpodClient(config, context=context) as client:
        lists = await CustomerDashboard(client).load()

    assert all(listing.items == [] for listing in lists.values())
    assert all(listing.message == RECORDS_NOT_FOUND for listing in lists.values())
    assert populated.count("GET", "/reservations/") == 0


@pytest.mark.asyncio
async def test_empty_history_shows_empty_state_not_error(
    config: QikpodConfig,
    context: PortalContext,
    backend: FakeQikpodBackend,
) -> None:
    sign_in(context, CUSTOMER)
    async with QikpodClient(config, context=context) as client:
        listing = await CustomerDashboard(client).history(ReservationStatus.DROP_CANCELLED)

    assert listing.items == []
    assert listing.error is None
    assert listing.message == RECORDS_NOT_FOUND


@pytest.mark.asyncio
async def test_failed_fetch_becomes_notice(
    config: QikpodConfig,
    context: PortalContext,
    backend: FakeQikpodBackend,
) -> None:
    sign_in(context, ADMIN)
    backend.fail["/reservations/"] = 500
    async with QikpodClient(config, context=context) as client:
        listing = await SiteAdminDashboard(client).reservations(ReservationStatus.DROP_PENDING)

    assert listing.items == []
    assert listing.message == "Failed to load reservations"


@pytest.mark.asyncio
async def test_rejected_token_propagates_and_signs_out(
    config: QikpodConfig,
    context: PortalContext,
    backend: FakeQikpodBackend,
) -> None:
    sign_in(context, ADMIN)
    backend.fail["/users/locations/"] = 401
    async with QikpodClient(config, context=context) as client:
        dashboard = SiteAdminDashboard(client)
        with pytest.raises(QikpodAuthenticationError):
            await dashboard.users()

    assert context.user is None


def test_dashboards_check_roles(config: QikpodConfig, context: PortalContext) -> None:
    client = QikpodClient(config, context=context)
    sign_in(context, CUSTOMER)
    with pytest.raises(QikpodPermissionError):
        SiteAdminDashboard(client)
    with pytest.raises(QikpodPermissionError):
        SiteSecurityDashboard(client)
    assert isinstance(dashboard_for(client), CustomerDashboard)

    sign_in(context, SECURITY)
    with pytest.raises(QikpodPermissionError):
        CustomerDashboard(client)
    assert type(dashboard_for(client)) is SiteSecurityDashboard

    sign_in(context, STAFF)
    assert isinstance(dashboard_for(client), SiteAdminDashboard)


@pytest.mark.asyncio
async def test_admin_users_are_customers_matching_search(
    config: QikpodConfig,
    context: PortalContext,
    populated: FakeQikpodBackend,
) -> None:
    sign_in(context, ADMIN)
    async with QikpodClient(config, context=context) as client:
        dashboard = SiteAdminDashboard(client)
        everyone = await dashboard.users()
        matching = await dashboard.users("b-204")
        none = await dashboard.users("zzz")

    assert [u.user_id for u in everyone.items] == [7]
    assert [u.user_id for u in matching.items] == [7]
    assert none.items == []
    assert none.message == RECORDS_NOT_FOUND


@pytest.mark.asyncio
async def test_admin_add_user_registers_and_attaches(
    config: QikpodConfig,
    context: PortalContext,
    populated: FakeQikpodBackend,
) -> None:
    sign_in(context, ADMIN)
    async with QikpodClient(config, context=context) as client:
        dashboard = SiteAdminDashboard(client)
        user_id = await dashboard.add_user(
            user_name="New Person",
            user_phone="9222222222",
            user_email="new@example.com",
        )

    assert user_id == 501
    created = next(u for u in populated.users if u["id"] == 501)
    assert created["user_type"] == "Customer"
    attached = [body for endpoint, body in populated.bodies if endpoint == "/podcore/users/locations/"]
    assert attached == [{"user_id": 501, "location_id": 11}]


@pytest.mark.asyncio
async def test_admin_add_user_validates_before_sending(
    config: QikpodConfig,
    context: PortalContext,
    populated: FakeQikpodBackend,
) -> None:
    sign_in(context, ADMIN)
    async with QikpodClient(config, context=context) as client:
        with pytest.raises(QikpodValidationError) as excinfo:
            await SiteAdminDashboard(client).add_user(user_name="", user_phone="12", user_email="")

    assert set(excinfo.value.errors) == {"user_name", "user_phone", "user_email"}
    assert populated.calls == []


@pytest.mark.asyncio
async def test_admin_remove_user_deletes_account(
    config: QikpodConfig,
    context: PortalContext,
    populated: FakeQikpodBackend,
) -> None:
    sign_in(context, ADMIN)
    async with QikpodClient(config, context=context) as client:
        dashboard = SiteAdminDashboard(client)
        users = await dashboard.users()
        await dashboard.remove_user(users.items[0])

    assert populated.count("DELETE", "/users/7") == 1
    assert all(u["id"] != 7 for u in populated.users)


@pytest.mark.asyncio
async def test_admin_reservation_tabs_history_and_rto(
    config: QikpodConfig,
    context: PortalContext,
    populated: FakeQikpodBackend,
) -> None:
    sign_in(context, ADMIN)
    async with QikpodClient(config, context=context) as client:
        dashboard = SiteAdminDashboard(client)
        pickup = await dashboard.reservations()
        drop = await dashboard.reservations(ReservationStatus.DROP_PENDING, "awb1")
        history = await dashboard.all_history()
        rto = await dashboard.rto()
        with pytest.raises(ValueError):
            await dashboard.reservations(ReservationStatus.PICKUP_COMPLETED)

    assert [r.id for r in pickup.items] == ["2"]
    assert [r.id for r in drop.items] == ["1"]
    assert sorted(r.id for r in history.items) == ["3", "4"]
    assert [(r.id, r.rto_otp, r.drop_by_phone) for r in rto.items] == [("5", "333333", "9555555555")]


@pytest.mark.asyncio
async def test_start_reservation_takes_first_free_pod(
    config: QikpodConfig,
    context: PortalContext,
    populated: FakeQikpodBackend,
) -> None:
    sign_in(context, ADMIN)
    async with QikpodClient(config, context=context) as client:
        dashboard = SiteAdminDashboard(client)
        users = await dashboard.users()
        pod_id = await dashboard.start_reservation(users.items[0])
        assert pod_id == 31
        reservation_id = await dashboard.create_reservation_for(7, pod_id=pod_id, reservation_awbno="AWB77")

    created = next(r for r in populated.reservations if str(r["id"]) == reservation_id)
    assert created["created_by_phone"] == ADMIN["user_phone"]
    assert created["drop_by_phone"] == ADMIN["user_phone"]
    assert created["pickup_by_phone"] == CUSTOMER["user_phone"]
    assert created["pod_id"] == "31"


@pytest.mark.asyncio
async def test_no_free_door(config: QikpodConfig, context: PortalContext, backend: FakeQikpodBackend) -> None:
    sign_in(context, CUSTOMER)
    async with QikpodClient(config, context=context) as client:
        assert await CustomerDashboard(client).start_reservation() is None


@pytest.mark.asyncio
async def test_security_masks_phones_and_has_no_rto(
    config: QikpodConfig,
    context: PortalContext,
    populated: FakeQikpodBackend,
) -> None:
    sign_in(context, SECURITY)
    async with QikpodClient(config, context=context) as client:
        dashboard = dashboard_for(client)
        assert isinstance(dashboard, SiteSecurityDashboard)
        users = await dashboard.users()

    assert dashboard.display_phone(users.items[0].user_phone) == "******3210"
    assert not hasattr(dashboard, "rto")
    assert not hasattr(dashboard, "remove_user")


@pytest.mark.asyncio
async def test_reservation_detail_actions(
    config: QikpodConfig,
    context: PortalContext,
    populated: FakeQikpodBackend,
) -> None:
    sign_in(context, CUSTOMER)
    async with QikpodClient(config, context=context) as client:
        dashboard = CustomerDashboard(client)
        drop_pending = await dashboard.reservation("1")
        assert drop_pending.otp("drop") == "111111"
        assert drop_pending.otp("pickup") == MASKED_OTP
        assert drop_pending.location_name == "Lake View"
        await drop_pending.resend_drop_otp()

        pickup_pending = await dashboard.reservation("2")
        assert pickup_pending.otp("drop") == MASKED_OTP
        assert pickup_pending.otp("pickup") == "222222"
        with pytest.raises(QikpodValidationError):
            await pickup_pending.resend_drop_otp()

        cancelled = await pickup_pending.cancel()
        assert cancelled.reservation_status is ReservationStatus.DROP_CANCELLED

        completed = await dashboard.reservation("3")
        assert completed.otp("pickup") == MASKED_OTP
        with pytest.raises(QikpodValidationError):
            await completed.cancel()

    assert populated.count("GET", "/reservations/resend_otp/") == 1
    assert populated.count("PATCH", "/reservations/cancel/2") == 1
