"""Mandatory location selection and pod-based location detection.

A signed-in user must be attached to at least one real location before a
dashboard makes sense. :class:`LocationSelector` answers whether that is
the case, lists the locations to choose from and records the choice both
on the service and in the cached session.
"""

from __future__ import annotations

import logging

from pyqikpod.client import QikpodClient
from pyqikpod.exceptions import QikpodAuthenticationError, QikpodError, QikpodNotFoundError
from pyqikpod.models.location import Location, UserLocation

_logger = logging.getLogger(__name__)


class LocationSelector:
    def __init__(self, client: QikpodClient) -> None:
        self._client = client

    async def needs_selection(self, user_id: int) -> bool:
        """Whether *user_id* has no usable location yet.

        A lookup failure counts as "no location"; a rejected token does not
        and propagates so the caller can send the user back to login.
        """
        try:
            locations = await self._client.get_user_locations(user_id)
        except QikpodAuthenticationError:
            raise
        except QikpodError as exc:
            _logger.info("User location check for %s: %s", user_id, exc)
            return True
        return not any(loc.is_valid for loc in locations)

    async def auto_assign(self, user_id: int) -> UserLocation | None:
        """Make the user's oldest location the current one.

        Returns ``None`` when the user has no location.
        """
        try:
            locations = await self._client.get_user_locations(
                user_id,
                order_by_field="updated_at",
                order_by_type="ASC",
            )
        except QikpodNotFoundError:
            return None
        valid = [loc for loc in locations if loc.is_valid]
        if not valid:
            return None
        first = valid[0]
        self._client.context.set_location(first.location_id, first.location_name or None)
        _logger.info("Auto-assigned first location: %s", first.location_name or first.location_id)
        return first

    async def available_locations(self) -> list[Location]:
        return await self._client.get_locations()

    async def confirm(self, user_id: int, location: Location) -> None:
        """Attach *user_id* to *location* and make it current."""
        await self._client.add_user_location(user_id, location.id)
        self._client.context.set_location(location.id, location.location_name)

    async def confirm_by_id(self, user_id: int, location_id: int) -> Location:
        """Like :meth:`confirm` for a location known only by id."""
        locations = await self.available_locations()
        for location in locations:
            if location.id == location_id:
                await self.confirm(user_id, location)
                return location
        raise QikpodNotFoundError(f"Location {location_id} not found", status_code=404, endpoint="/locations/")

    async def confirm_detected(self, user_id: int, location_id: int) -> None:
        """Add the location detected from the entry pod to the user's list."""
        await self._client.add_user_location(user_id, location_id)
        self._client.context.set_location(location_id)

    async def detected_location(self, user_id: int) -> int | None:
        """Location of the cached entry pod if *user_id* is not attached to it."""
        context = self._client.context
        pod_name = context.pod_name
        if not pod_name:
            return None
        pod = await self._client.get_pod(pod_name)
        if await self._client.user_has_location(user_id, pod.location_id):
            return None
        return pod.location_id
