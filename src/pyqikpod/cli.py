"""``qikpod`` command-line portal.

Usage
-----
Point the portal at a service domain once, then sign in::

    qikpod configure mysite
    qikpod login 9876543210
    qikpod reservations --status PickupPending
    qikpod configure --reset

State (API domain, token, user, location) is kept in the JSON file named by
``QIKPOD_STATE_PATH`` (default ``~/.config/qikpod/state.json``).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from pyqikpod.client import QikpodClient
from pyqikpod.config import QikpodConfig
from pyqikpod.dashboards import (
    CustomerDashboard,
    Listing,
    SiteAdminDashboard,
    SiteSecurityDashboard,
    dashboard_for,
)
from pyqikpod.exceptions import QikpodConfigError, QikpodError, QikpodPermissionError, QikpodValidationError
from pyqikpod.location_selection import LocationSelector
from pyqikpod.login import LoginOutcome, OtpLogin
from pyqikpod.models import PLACEHOLDER, Reservation, ReservationStatus, display
from pyqikpod.navigation import Route, enter
from pyqikpod.pagination import Page
from pyqikpod.profile import available_credit, register
from pyqikpod.session import PortalContext
from pyqikpod.storage import JsonFileStorage

_logger = logging.getLogger(__name__)

Handler = Callable[[QikpodClient, argparse.Namespace], Awaitable[int]]

_STATUSES = [s.value for s in ReservationStatus if s is not ReservationStatus.UNKNOWN]


# ── output helpers ───────────────────────────────────────────


def _print_page(page: Page[Any], render: Callable[[Any], str]) -> None:
    for item in page.items:
        print(render(item))
    if page.total_items:
        print(
            f"Showing {page.start_item} to {page.end_item} of {page.total_items} items "
            f"(page {page.page}/{page.total_pages})"
        )


def _print_listing(listing: Listing[Any], page: int, page_size: int, render: Callable[[Any], str]) -> None:
    if listing.message:
        print(listing.message)
    if listing.items:
        _print_page(listing.page(page, page_size), render)


def _reservation_line(phone: Callable[[str], str]) -> Callable[[Reservation], str]:
    def render(r: Reservation) -> str:
        return (
            f"{r.id:>8}  {r.reservation_status.value:<16} "
            f"awb={display(r.reservation_awbno)}  "
            f"to={display(r.user_name or r.created_by_name)} {display(phone(r.user_phone))}  "
            f"pod={display(r.pod_name)}  {display(r.created_at)}"
        )

    return render


def _prompt(label: str, default: str | None = None) -> str:
    suffix = f" [{default}]" if default else ""
    value = input(f"{label}{suffix}: ").strip()
    return value or (default or "")


def _print_errors(exc: QikpodValidationError) -> None:
    for field, message in exc.errors.items():
        print(f"  {field}: {message}", file=sys.stderr)


# ── commands ─────────────────────────────────────────────────


async def _cmd_logout(client: QikpodClient, args: argparse.Namespace) -> int:
    client.logout()
    print("Signed out")
    return 0


async def _cmd_whoami(client: QikpodClient, args: argparse.Namespace) -> int:
    context = client.context
    route = await enter(client)
    user = context.user
    if user is None or route is Route.LOGIN:
        print("Not signed in")
        return 1
    print(f"{user.user_name} ({user.role.value}) id={user.id} phone={user.user_phone}")
    print(f"  email:    {display(user.user_email)}")
    print(f"  flat no:  {display(user.user_flatno)}")
    print(f"  credit:   {available_credit(user)}")
    print(f"  location: {display(context.location_name or context.location_id)}")
    print(f"  session:  {context.remaining_token_time() / 3600:.1f} h left")
    print(f"  home:     {route.value}")
    return 0


async def _choose_location(client: QikpodClient, user_id: int) -> None:
    selector = LocationSelector(client)
    locations = await selector.available_locations()
    if not locations:
        print("No locations available; ask your site admin.")
        return
    print("Select your location:")
    for location in locations:
        print(f"  {location.id:>5}  {location.location_name}  {display(location.city, '')}")
    choice = _prompt("Location id")
    if choice.isdigit():
        chosen = await selector.confirm_by_id(user_id, int(choice))
        print(f"Location set to {chosen.location_name}")


async def _cmd_login(client: QikpodClient, args: argparse.Namespace) -> int:
    flow = OtpLogin(client)
    phone = args.phone or _prompt("Phone number")
    if not flow.can_send_otp(phone):
        print("Please enter a valid 10-digit phone number", file=sys.stderr)
        return 1
    result = await flow.send_otp(phone)
    if result.outcome is LoginOutcome.REGISTER:
        print(f"No account for {phone}. Run 'qikpod register' first.")
        return 1
    print(f"Code sent to {phone}")

    while True:
        code = _prompt("OTP (empty to resend)")
        if code:
            break
        if not flow.can_resend:
            print(f"Resend available in {flow.resend_in}s")
            continue
        await flow.resend_otp()
        print("Code resent")
    if not flow.can_verify(code):
        print("Please enter the 6-digit verification code", file=sys.stderr)
        return 1

    result = await flow.verify_otp(code)
    if result.outcome is LoginOutcome.LOGIN:
        print("Session rejected, please sign in again", file=sys.stderr)
        return 1
    assert result.user is not None
    if result.outcome is LoginOutcome.DETECT_LOCATION and result.location_id is not None:
        answer = _prompt(f"Add location {result.location_id} to your locations? (y/n)", "y")
        if answer.lower().startswith("y"):
            await LocationSelector(client).confirm_detected(result.user.id, result.location_id)
    elif result.outcome is LoginOutcome.SELECT_LOCATION:
        await _choose_location(client, result.user.id)
    print(f"Welcome {result.user.user_name}")
    return 0


async def _cmd_register(client: QikpodClient, args: argparse.Namespace) -> int:
    fields = {
        "user_phone": args.phone or _prompt("Phone number"),
        "user_name": _prompt("Name"),
        "user_email": _prompt("Email"),
        "user_flatno": _prompt("Flat No / Emp ID"),
        "user_address": _prompt("Address"),
    }
    await register(client, **fields)
    print("Registration successful. Sign in with 'qikpod login'.")
    return 0


async def _cmd_locations(client: QikpodClient, args: argparse.Namespace) -> int:
    context = client.context
    if args.all:
        for location in await client.get_locations():
            print(f"{location.id:>5}  {location.location_name}  {display(location.address, '')}")
        return 0
    user = context.user
    if user is None:
        raise QikpodPermissionError("Not signed in")
    for mapping in await client.get_user_locations(user.id):
        marker = "*" if mapping.location_id == context.location_id else " "
        print(f"{marker}{mapping.location_id:>5}  {display(mapping.location_name)}  {display(mapping.status, '')}")
    return 0


async def _cmd_select_location(client: QikpodClient, args: argparse.Namespace) -> int:
    user = client.context.user
    if user is None:
        raise QikpodPermissionError("Not signed in")
    location = await LocationSelector(client).confirm_by_id(user.id, args.location_id)
    print(f"Location set to {location.location_name}")
    return 0


async def _cmd_reservations(client: QikpodClient, args: argparse.Namespace) -> int:
    dashboard = dashboard_for(client)
    status = ReservationStatus(args.status)
    if isinstance(dashboard, CustomerDashboard):
        await dashboard.open()
        listing = await dashboard.reservations(status)
        phone: Callable[[str], str] = str
    elif status is ReservationStatus.RTO_PENDING:
        if not isinstance(dashboard, SiteAdminDashboard):
            raise QikpodPermissionError("The RTO list is for site admins only")
        listing = await dashboard.rto(args.search)
        phone = dashboard.display_phone
    elif status in (ReservationStatus.PICKUP_COMPLETED, ReservationStatus.DROP_CANCELLED):
        listing = await dashboard.history(status, args.search)
        phone = dashboard.display_phone
    else:
        listing = await dashboard.reservations(status, args.search)
        phone = dashboard.display_phone
    _print_listing(listing, args.page, client.config.page_size, _reservation_line(phone))
    return 0


async def _cmd_reservation(client: QikpodClient, args: argparse.Namespace) -> int:
    detail = await dashboard_for(client).reservation(args.reservation_id)
    r = detail.reservation
    rows: Iterable[tuple[str, Any]] = (
        ("Reservation", r.id),
        ("Status", r.reservation_status.value),
        ("Location", detail.location_name),
        ("Pod", r.pod_name),
        ("AWB number", r.reservation_awbno),
        ("Created by", r.created_by_name),
        ("Created at", r.created_at),
        ("Drop phone", r.drop_by_phone),
        ("Pickup phone", r.pickup_by_phone),
        ("Drop OTP", detail.otp("drop")),
        ("Pickup OTP", detail.otp("pickup")),
    )
    for label, value in rows:
        print(f"{label + ':':<14}{display(value)}")
    actions = [name for name, ok in (("cancel", r.can_cancel), ("resend-otp", r.can_resend_drop_otp)) if ok]
    print(f"{'Actions:':<14}{', '.join(actions) or PLACEHOLDER}")
    return 0


async def _cmd_cancel(client: QikpodClient, args: argparse.Namespace) -> int:
    detail = await dashboard_for(client).reservation(args.reservation_id)
    updated = await detail.cancel()
    print(f"Reservation {updated.id} is now {updated.reservation_status.value}")
    return 0


async def _cmd_resend_otp(client: QikpodClient, args: argparse.Namespace) -> int:
    detail = await dashboard_for(client).reservation(args.reservation_id)
    await detail.resend_drop_otp()
    print("Drop OTP resent")
    return 0


async def _cmd_reserve(client: QikpodClient, args: argparse.Namespace) -> int:
    dashboard = dashboard_for(client)
    pod_id = await dashboard.find_free_pod()
    if pod_id is None:
        print("No free doors available at this location", file=sys.stderr)
        return 1
    if args.user_id is not None:
        if not isinstance(dashboard, SiteSecurityDashboard):
            raise QikpodPermissionError("Only site staff can reserve for another user")
        reservation_id = await dashboard.create_reservation_for(
            args.user_id,
            pod_id=pod_id,
            reservation_awbno=args.awb,
            drop_by_phone=args.drop_phone,
        )
    else:
        reservation_id = await dashboard.create_reservation(
            pod_id=pod_id,
            reservation_awbno=args.awb,
            drop_by_phone=args.drop_phone or dashboard.user.user_phone,
        )
    print(f"Reservation created: {reservation_id}")
    return 0


def _staff_dashboard(client: QikpodClient) -> SiteSecurityDashboard:
    dashboard = dashboard_for(client)
    if not isinstance(dashboard, SiteSecurityDashboard):
        raise QikpodPermissionError("This view is for site staff only")
    return dashboard


async def _cmd_users(client: QikpodClient, args: argparse.Namespace) -> int:
    dashboard = _staff_dashboard(client)
    listing = await dashboard.users(args.search)

    def render(u: Any) -> str:
        return (
            f"{u.user_id:>6}  {display(u.user_name):<24} {display(dashboard.display_phone(u.user_phone))}  "
            f"{display(u.user_email)}  flat={display(u.user_flatno)}"
        )

    _print_listing(listing, args.page, client.config.page_size, render)
    return 0


async def _cmd_rto(client: QikpodClient, args: argparse.Namespace) -> int:
    dashboard = _staff_dashboard(client)
    if not isinstance(dashboard, SiteAdminDashboard):
        raise QikpodPermissionError("The RTO list is for site admins only")
    listing = await dashboard.rto(args.search)

    def render(r: Reservation) -> str:
        return (
            f"{r.id:>8}  awb={display(r.reservation_awbno)}  "
            f"drop={display(r.drop_by_phone)}  rto_otp={display(r.rto_otp)}"
        )

    _print_listing(listing, args.page, client.config.page_size, render)
    return 0


_HANDLERS: dict[str, Handler] = {
    "logout": _cmd_logout,
    "whoami": _cmd_whoami,
    "login": _cmd_login,
    "register": _cmd_register,
    "locations": _cmd_locations,
    "select-location": _cmd_select_location,
    "reservations": _cmd_reservations,
    "reservation": _cmd_reservation,
    "cancel": _cmd_cancel,
    "resend-otp": _cmd_resend_otp,
    "reserve": _cmd_reserve,
    "users": _cmd_users,
    "rto": _cmd_rto,
}


# ── main ─────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qikpod", description="QikPod parcel locker portal")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--entry-url", help="Entry URL carrying a pod id (?id=POD-<name>)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("configure", help="Set the API domain (builds https://DOMAIN.com/podcore)")
    p.add_argument("domain", nargs="?")
    p.add_argument("--reset", action="store_true", help="Forget the stored API domain")

    p = sub.add_parser("login", help="Sign in with a one-time code")
    p.add_argument("phone", nargs="?")
    sub.add_parser("logout", help="Clear the cached session")
    sub.add_parser("whoami", help="Show the signed-in user")

    p = sub.add_parser("register", help="Create a customer account")
    p.add_argument("phone", nargs="?")

    p = sub.add_parser("locations", help="List your locations")
    p.add_argument("--all", action="store_true", help="List every location")
    p = sub.add_parser("select-location", help="Attach to a location and make it current")
    p.add_argument("location_id", type=int)

    p = sub.add_parser("reservations", help="List reservations by status")
    p.add_argument("--status", choices=_STATUSES, default=ReservationStatus.PICKUP_PENDING.value)
    p.add_argument("--search", default="", help="Filter by name, phone or AWB number")
    p.add_argument("--page", type=int, default=1)

    for name, help_text in (
        ("reservation", "Show one reservation"),
        ("cancel", "Cancel a pending reservation"),
        ("resend-otp", "Resend the drop OTP"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("reservation_id")

    p = sub.add_parser("reserve", help="Book a free door at the current location")
    p.add_argument("--awb", required=True, help="AWB number of the parcel")
    p.add_argument("--drop-phone", help="Phone of the person dropping the parcel")
    p.add_argument("--user-id", type=int, help="Book on behalf of this user (site staff)")

    p = sub.add_parser("users", help="List customers at the current location")
    p.add_argument("--search", default="")
    p.add_argument("--page", type=int, default=1)

    p = sub.add_parser("rto", help="List parcels pending return to origin")
    p.add_argument("--search", default="")
    p.add_argument("--page", type=int, default=1)
    return parser


def _configure(config: QikpodConfig, domain: str | None, *, reset: bool = False) -> int:
    context = PortalContext(config, JsonFileStorage(config.state_path)).init()
    if reset:
        context.clear_api_base_url()
        print("Stored API domain cleared")
        return 0
    if not domain:
        raise QikpodConfigError("Give a DOMAIN or --reset")
    url = context.configure_domain(domain)
    print(f"API base URL set to {url}")
    return 0


async def _run(config: QikpodConfig, args: argparse.Namespace) -> int:
    async with QikpodClient(config) as client:
        if args.entry_url:
            await enter(client, args.entry_url)
        if not client.context.has_api_base_url:
            print("API Base URL is not configured. Run 'qikpod configure DOMAIN' first.", file=sys.stderr)
            return 1
        return await _HANDLERS[args.command](client, args)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        config = QikpodConfig.from_env()
        if args.command == "configure":
            return _configure(config, args.domain, reset=args.reset)
        return asyncio.run(_run(config, args))
    except QikpodValidationError as exc:
        print("Error: please fix the following fields", file=sys.stderr)
        _print_errors(exc)
        return 1
    except QikpodError as exc:
        _logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
