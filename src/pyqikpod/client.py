"""High-level async client for the QikPod locker service."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiohttp

from pyqikpod._api import doors as _doors_api
from pyqikpod._api import locations as _locations_api
from pyqikpod._api import otp as _otp_api
from pyqikpod._api import pods as _pods_api
from pyqikpod._api import reservations as _reservations_api
from pyqikpod._api import users as _users_api
from pyqikpod._transport import HttpTransport, Transport
from pyqikpod.config import QikpodConfig
from pyqikpod.exceptions import QikpodAuthenticationError, QikpodError
from pyqikpod.models.door import FreeDoorResult
from pyqikpod.models.location import Location, UserLocation
from pyqikpod.models.pod import Pod
from pyqikpod.models.requests import CreateReservationRequest, NewUserRequest, RegistrationRequest
from pyqikpod.models.reservation import Reservation, ReservationStatus
from pyqikpod.models.user import User
from pyqikpod.session import PortalContext
from pyqikpod.storage import JsonFileStorage

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class QikpodClient:
    """Async client for the QikPod REST service.

    Usage::

        async with QikpodClient(config) as client:
            await client.generate_otp("9876543210")
            user = await client.validate_otp("9876543210", "123456")
            locations = await client.get_user_locations(user.id)

    The client owns no business state; everything that must survive a
    restart lives in :attr:`context`.
    """

    def __init__(
        self,
        config: QikpodConfig,
        *,
        context: PortalContext | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        if context is None:
            context = PortalContext(config, JsonFileStorage(config.state_path)).init()
        self._context = context
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> QikpodClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(
            self._context,
            self._http_session,
            timeout=self._config.request_timeout,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    @property
    def config(self) -> QikpodConfig:
        return self._config

    @property
    def context(self) -> PortalContext:
        return self._context

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise QikpodError("Client not initialized. Use 'async with QikpodClient(...) as client:'")
        return self._transport

    async def _call(self, fn: Callable[[Transport], Awaitable[T]]) -> T:
        """Run an API call; a rejected token signs the session out."""
        transport = self._require_transport()
        try:
            return await fn(transport)
        except QikpodAuthenticationError:
            _logger.warning("Session rejected by the service; signing out")
            self._context.clear_auth()
            raise

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def generate_otp(self, user_phone: str) -> dict[str, Any]:
        """Send a login code to *user_phone*."""
        return await self._call(lambda t: _otp_api.generate_otp(self._context, t, user_phone))

    async def validate_otp(self, user_phone: str, otp_text: str) -> User:
        """Validate a login code, then persist the token and user snapshot."""
        result = await self._call(lambda t: _otp_api.validate_otp(self._context, t, user_phone, otp_text))
        if result.access_token:
            self._context.store_token(result.access_token)
        user = self._context.set_user(result.user)
        _logger.info("Signed in user %s as %s", user.id, user.role.value)
        return user

    def logout(self) -> None:
        self._context.clear()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_user_by_phone(self, user_phone: str) -> User | None:
        return await self._call(lambda t: _users_api.get_user_by_phone(self._context, t, user_phone))

    async def get_user(self, user_id: int) -> User | None:
        return await self._call(lambda t: _users_api.get_user(self._context, t, user_id))

    async def register_user(self, form: RegistrationRequest | NewUserRequest) -> int:
        """Create a Customer account and return its id."""
        return await self._call(lambda t: _users_api.register_user(self._context, t, form))

    async def update_user(self, user_id: int, changes: dict[str, str]) -> Any:
        return await self._call(lambda t: _users_api.update_user(self._context, t, user_id, changes))

    async def remove_user(self, user_id: int) -> None:
        await self._call(lambda t: _users_api.remove_user(self._context, t, user_id))

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------

    async def get_user_locations(
        self,
        user_id: int,
        *,
        order_by_field: str | None = None,
        order_by_type: str | None = None,
    ) -> list[UserLocation]:
        return await self._call(
            lambda t: _locations_api.get_user_locations(
                self._context,
                t,
                user_id,
                order_by_field=order_by_field,
                order_by_type=order_by_type,
            )
        )

    async def get_location_users(self, location_id: int) -> list[UserLocation]:
        return await self._call(lambda t: _locations_api.get_location_users(self._context, t, location_id))

    async def get_user_location_mapping(self, user_id: int, location_id: int) -> UserLocation | None:
        return await self._call(
            lambda t: _locations_api.get_user_location_mapping(self._context, t, user_id, location_id)
        )

    async def user_has_location(self, user_id: int, location_id: int) -> bool:
        return await self._call(lambda t: _locations_api.user_has_location(self._context, t, user_id, location_id))

    async def add_user_location(self, user_id: int, location_id: int) -> None:
        await self._call(lambda t: _locations_api.add_user_location(self._context, t, user_id, location_id))

    async def remove_user_location(self, mapping_id: int) -> None:
        await self._call(lambda t: _locations_api.remove_user_location(self._context, t, mapping_id))

    async def get_locations(self) -> list[Location]:
        return await self._call(lambda t: _locations_api.get_locations(self._context, t))

    async def get_location(self, location_id: int) -> Location:
        """Fetch a location and cache its name as the current one."""
        location = await self._call(lambda t: _locations_api.get_location(self._context, t, location_id))
        self._context.set_location_name(location.location_name)
        return location

    async def get_pod(self, pod_name: str) -> Pod:
        """Fetch a pod and cache its location as the current one."""
        pod = await self._call(lambda t: _pods_api.get_pod(self._context, t, pod_name))
        self._context.set_location(pod.location_id)
        return pod

    async def find_free_door(self, location_id: int) -> FreeDoorResult | None:
        return await self._call(lambda t: _doors_api.find_free_door(self._context, t, location_id))

    # ------------------------------------------------------------------
    # Reservations
    # ------------------------------------------------------------------

    async def get_reservations(self, created_by_phone: str, status: ReservationStatus) -> list[Reservation]:
        return await self._call(
            lambda t: _reservations_api.get_reservations(self._context, t, created_by_phone, status)
        )

    async def get_location_reservations(self, location_id: int, status: ReservationStatus) -> list[Reservation]:
        return await self._call(
            lambda t: _reservations_api.get_location_reservations(self._context, t, location_id, status)
        )

    async def get_reservation(self, reservation_id: str) -> Reservation:
        return await self._call(lambda t: _reservations_api.get_reservation(self._context, t, reservation_id))

    async def create_reservation(self, request: CreateReservationRequest) -> str:
        return await self._call(lambda t: _reservations_api.create_reservation(self._context, t, request))

    async def cancel_reservation(self, reservation_id: str) -> Any:
        return await self._call(lambda t: _reservations_api.cancel_reservation(self._context, t, reservation_id))

    async def resend_drop_otp(self, reservation_id: str) -> Any:
        return await self._call(lambda t: _reservations_api.resend_drop_otp(self._context, t, reservation_id))
