"""Role-scoped dashboard services.

Each dashboard checks the signed-in role when it is built and then offers
the lists and actions of the matching screen. Lists follow one rule: a
failed fetch is logged and shows up as an empty :class:`Listing` carrying
a notice, except for a rejected token, which propagates so the caller can
send the user back to login.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

from pyqikpod._constants import RECORDS_NOT_FOUND
from pyqikpod._redact import mask_phone
from pyqikpod.client import QikpodClient
from pyqikpod.exceptions import QikpodAuthenticationError, QikpodError, QikpodValidationError
from pyqikpod.models.location import UserLocation
from pyqikpod.models.requests import CreateReservationRequest, NewUserRequest, validate_form
from pyqikpod.models.reservation import (
    CUSTOMER_STATUSES,
    HISTORY_STATUSES,
    PENDING_STATUSES,
    Reservation,
    ReservationStatus,
)
from pyqikpod.models.user import User, UserRole
from pyqikpod.navigation import require_role
from pyqikpod.pagination import Page, paginate, search_reservations, search_users

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Listing(Generic[T]):
    """Items of one list view plus the notice to show instead of an error."""

    items: list[T]
    error: str | None = None

    @property
    def message(self) -> str | None:
        if self.error:
            return self.error
        if not self.items:
            return RECORDS_NOT_FOUND
        return None

    def page(self, page: int, page_size: int) -> Page[T]:
        return paginate(self.items, page, page_size)


async def _listing(fetch: Callable[[], Awaitable[list[T]]], failure: str) -> Listing[T]:
    try:
        return Listing(await fetch())
    except QikpodAuthenticationError:
        raise
    except QikpodError as exc:
        _logger.warning("%s: %s", failure, exc)
        return Listing([], error=failure)


def _combine(listings: Sequence[Listing[Reservation]]) -> Listing[Reservation]:
    items = [item for listing in listings for item in listing.items]
    errors = [listing.error for listing in listings if listing.error]
    return Listing(items, error=errors[0] if errors else None)


class _Dashboard:
    roles: tuple[UserRole, ...] = ()

    def __init__(self, client: QikpodClient) -> None:
        self._client = client
        self.user: User = require_role(client.context, *self.roles)

    @property
    def location_id(self) -> int | None:
        return self._client.context.location_id

    @property
    def page_size(self) -> int:
        return self._client.config.page_size

    def _require_location(self) -> int:
        location_id = self.location_id
        if location_id is None:
            raise QikpodValidationError({"location_id": "No location selected"})
        return location_id

    async def reservation(self, reservation_id: str) -> ReservationDetail:
        detail = await self._client.get_reservation(reservation_id)
        return ReservationDetail(self._client, detail)

    async def find_free_pod(self) -> int | None:
        """Pod id of the first free door at the current location.

        ``None`` when every door is taken.
        """
        location_id = self._require_location()
        result = await self._client.find_free_door(location_id)
        pod_id = result.first_pod_id if result is not None else None
        if pod_id is None:
            _logger.info("No free doors available at location %s", location_id)
        return pod_id

    async def create_reservation(
        self,
        *,
        pod_id: int | str,
        reservation_awbno: str,
        drop_by_phone: str,
        pickup_by_phone: str | None = None,
    ) -> str:
        """Book a door in *pod_id* and return the new reservation id.

        The signed-in user is the creator; without *pickup_by_phone* the
        parcel is for them too.
        """
        form = validate_form(
            CreateReservationRequest,
            created_by_phone=self.user.user_phone,
            drop_by_phone=drop_by_phone,
            pickup_by_phone=pickup_by_phone or self.user.user_phone,
            pod_id=pod_id,
            reservation_awbno=reservation_awbno,
        )
        reservation_id = await self._client.create_reservation(form)
        _logger.info("Created reservation %s in pod %s", reservation_id, form.pod_id)
        return reservation_id


class CustomerDashboard(_Dashboard):
    """Reservations created by the signed-in customer."""

    roles = (UserRole.CUSTOMER,)

    async def open(self) -> None:
        """Refresh the cached location from the entry pod, if any."""
        context = self._client.context
        if not context.pod_name:
            return
        try:
            await self._client.get_pod(context.pod_name)
            if context.location_id is not None:
                await self._client.get_location(context.location_id)
        except QikpodAuthenticationError:
            raise
        except QikpodError as exc:
            _logger.warning("Failed to load initial data: %s", exc)

    async def _fetch(self, status: ReservationStatus) -> Listing[Reservation]:
        if self.location_id is None:
            return Listing([])
        return await _listing(
            lambda: self._client.get_reservations(self.user.user_phone, status),
            "Failed to load reservations",
        )

    async def load(self) -> dict[ReservationStatus, Listing[Reservation]]:
        """All four status lists, fetched concurrently."""
        listings = await asyncio.gather(*(self._fetch(status) for status in CUSTOMER_STATUSES))
        return dict(zip(CUSTOMER_STATUSES, listings, strict=True))

    async def reservations(self, status: ReservationStatus) -> Listing[Reservation]:
        return await self._fetch(status)

    async def history(self, status: ReservationStatus = ReservationStatus.PICKUP_COMPLETED) -> Listing[Reservation]:
        if status not in HISTORY_STATUSES:
            raise ValueError(f"Not a history status: {status}")
        return await self._fetch(status)

    async def start_reservation(self) -> int | None:
        return await self.find_free_pod()


class SiteSecurityDashboard(_Dashboard):
    """Users and reservations of the current location for security staff.

    Phone numbers are shown masked.
    """

    roles = (UserRole.SITE_SECURITY,)
    mask_phones = True

    async def users(self, query: str = "") -> Listing[UserLocation]:
        """Customers attached to the current location matching *query*."""
        if self.location_id is None:
            return Listing([])
        location_id = self.location_id
        listing = await _listing(
            lambda: self._client.get_location_users(location_id),
            "Failed to load users",
        )
        return Listing(search_users(listing.items, query), error=listing.error)

    async def _location_reservations(self, status: ReservationStatus, query: str, failure: str) -> Listing[Reservation]:
        if self.location_id is None:
            return Listing([])
        location_id = self.location_id
        listing = await _listing(
            lambda: self._client.get_location_reservations(location_id, status),
            failure,
        )
        return Listing(search_reservations(listing.items, query), error=listing.error)

    async def reservations(
        self,
        status: ReservationStatus = ReservationStatus.PICKUP_PENDING,
        query: str = "",
    ) -> Listing[Reservation]:
        """Pending reservations of one sub-tab."""
        if status not in PENDING_STATUSES:
            raise ValueError(f"Not a pending status: {status}")
        return await self._location_reservations(status, query, "Failed to load reservations")

    async def history(
        self,
        status: ReservationStatus = ReservationStatus.PICKUP_COMPLETED,
        query: str = "",
    ) -> Listing[Reservation]:
        if status not in HISTORY_STATUSES:
            raise ValueError(f"Not a history status: {status}")
        return await self._location_reservations(status, query, "Failed to load history")

    async def all_history(self, query: str = "") -> Listing[Reservation]:
        listings = await asyncio.gather(*(self.history(status, query) for status in HISTORY_STATUSES))
        return _combine(listings)

    def display_phone(self, phone: str) -> str:
        return mask_phone(phone) if self.mask_phones else phone

    async def start_reservation(self, customer: UserLocation) -> int | None:
        """Check for a free door before booking one for *customer*."""
        _logger.debug("Starting reservation for user %s", customer.user_id)
        return await self.find_free_pod()

    async def create_reservation_for(
        self,
        customer_id: int,
        *,
        pod_id: int | str,
        reservation_awbno: str,
        drop_by_phone: str | None = None,
    ) -> str:
        """Book a door for another user; they receive the pickup code."""
        customer = await self._client.get_user(customer_id)
        if customer is None:
            raise QikpodValidationError({"user_id": "User information not found"})
        return await self.create_reservation(
            pod_id=pod_id,
            reservation_awbno=reservation_awbno,
            drop_by_phone=drop_by_phone or self.user.user_phone,
            pickup_by_phone=customer.user_phone,
        )


class SiteAdminDashboard(SiteSecurityDashboard):
    """Site security views plus user management and the RTO list."""

    roles = (UserRole.SITE_ADMIN,)
    mask_phones = False

    async def add_user(
        self,
        *,
        user_name: str,
        user_phone: str,
        user_email: str,
        user_flatno: str = "",
        user_address: str = "",
    ) -> int:
        """Create a customer and attach them to the current location."""
        location_id = self._require_location()
        form = validate_form(
            NewUserRequest,
            user_name=user_name,
            user_phone=user_phone,
            user_email=user_email,
            user_flatno=user_flatno,
            user_address=user_address,
        )
        user_id = await self._client.register_user(form)
        await self._client.add_user_location(user_id, location_id)
        _logger.info("Added user %s to location %s", user_id, location_id)
        return user_id

    async def remove_user(self, user: UserLocation) -> None:
        """Delete the account behind a location user row."""
        await self._client.remove_user(user.user_id)
        _logger.info("Removed user %s", user.user_id)

    async def rto(self, query: str = "") -> Listing[Reservation]:
        """Parcels waiting to be returned to the sender."""
        listing = await self._location_reservations(
            ReservationStatus.RTO_PENDING, query, "Failed to load RTO reservations"
        )
        items = [r for r in listing.items if r.reservation_status is ReservationStatus.RTO_PENDING]
        return Listing(items, error=listing.error)


class ReservationDetail:
    """Detail view of one reservation and the actions it allows."""

    def __init__(self, client: QikpodClient, reservation: Reservation) -> None:
        self._client = client
        self.reservation = reservation

    @property
    def location_name(self) -> str:
        return self.reservation.location_name or self._client.context.location_name or ""

    def otp(self, otp_type: Literal["drop", "pickup"]) -> str:
        return self.reservation.otp_display(otp_type)

    async def refresh(self) -> Reservation:
        self.reservation = await self._client.get_reservation(self.reservation.id)
        return self.reservation

    async def resend_drop_otp(self) -> None:
        if not self.reservation.can_resend_drop_otp:
            raise QikpodValidationError({"reservation_status": "Drop OTP can only be resent while drop is pending"})
        await self._client.resend_drop_otp(self.reservation.id)
        _logger.info("Drop OTP resent for reservation %s", self.reservation.id)

    async def cancel(self) -> Reservation:
        if not self.reservation.can_cancel:
            raise QikpodValidationError({"reservation_status": "Only pending reservations can be cancelled"})
        await self._client.cancel_reservation(self.reservation.id)
        _logger.info("Cancelled reservation %s", self.reservation.id)
        return await self.refresh()


def dashboard_for(client: QikpodClient) -> CustomerDashboard | SiteSecurityDashboard:
    """Dashboard matching the signed-in user's role."""
    user = client.context.user
    role = user.role if user is not None else UserRole.UNKNOWN
    if role is UserRole.SITE_ADMIN:
        return SiteAdminDashboard(client)
    if role is UserRole.SITE_SECURITY:
        return SiteSecurityDashboard(client)
    return CustomerDashboard(client)
