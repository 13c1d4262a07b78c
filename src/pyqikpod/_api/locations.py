"""Location and user-location endpoints.

Endpoints:
  - /locations/
  - /users/locations/
  - /podcore/users/locations/  (attach; the service mounts it under podcore)
"""

from __future__ import annotations

from pyqikpod._api._common import decode_records, first_record, request_json
from pyqikpod._transport import Transport
from pyqikpod.exceptions import QikpodNotFoundError
from pyqikpod.models.location import Location, UserLocation
from pyqikpod.session import PortalContext

LOCATIONS_ENDPOINT = "/locations/"
USER_LOCATIONS_ENDPOINT = "/users/locations/"
ATTACH_ENDPOINT = "/podcore/users/locations/"


async def get_user_locations(
    context: PortalContext,
    transport: Transport,
    user_id: int,
    *,
    order_by_field: str | None = None,
    order_by_type: str | None = None,
) -> list[UserLocation]:
    """Locations *user_id* is attached to.

    Raises :class:`QikpodNotFoundError` when the user has none.
    """
    body = await request_json(
        transport,
        "GET",
        USER_LOCATIONS_ENDPOINT,
        token=context.bearer_token,
        params={
            "user_id": user_id,
            "order_by_field": order_by_field,
            "order_by_type": order_by_type,
        },
        failure="Failed to get user locations",
    )
    return decode_records(UserLocation, body, endpoint=USER_LOCATIONS_ENDPOINT)


async def get_location_users(context: PortalContext, transport: Transport, location_id: int) -> list[UserLocation]:
    try:
        body = await request_json(
            transport,
            "GET",
            USER_LOCATIONS_ENDPOINT,
            token=context.bearer_token,
            params={"location_id": location_id},
            failure="Failed to fetch location users",
        )
    except QikpodNotFoundError:
        return []
    return decode_records(UserLocation, body, endpoint=USER_LOCATIONS_ENDPOINT)


async def get_user_location_mapping(
    context: PortalContext,
    transport: Transport,
    user_id: int,
    location_id: int,
) -> UserLocation | None:
    try:
        body = await request_json(
            transport,
            "GET",
            USER_LOCATIONS_ENDPOINT,
            token=context.bearer_token,
            params={"user_id": user_id, "location_id": location_id},
            failure="Failed to fetch user-location mapping",
        )
    except QikpodNotFoundError:
        return None
    return first_record(UserLocation, body, endpoint=USER_LOCATIONS_ENDPOINT)


async def user_has_location(context: PortalContext, transport: Transport, user_id: int, location_id: int) -> bool:
    """Whether *user_id* is attached to *location_id*; any failure reads as no."""
    response = await transport.request(
        "GET",
        USER_LOCATIONS_ENDPOINT,
        token=context.bearer_token,
        params={"user_id": user_id, "location_id": location_id},
    )
    if not response.ok or not isinstance(response.body, dict):
        return False
    records = response.body.get("records")
    return isinstance(records, list) and len(records) > 0


async def add_user_location(context: PortalContext, transport: Transport, user_id: int, location_id: int) -> None:
    await request_json(
        transport,
        "POST",
        ATTACH_ENDPOINT,
        token=context.bearer_token,
        json_body={"user_id": user_id, "location_id": location_id},
        failure="Failed to add user location",
    )


async def remove_user_location(context: PortalContext, transport: Transport, mapping_id: int) -> None:
    await request_json(
        transport,
        "DELETE",
        f"{USER_LOCATIONS_ENDPOINT}{mapping_id}",
        token=context.bearer_token,
        failure="Failed to remove user from location",
    )


async def get_locations(context: PortalContext, transport: Transport) -> list[Location]:
    try:
        body = await request_json(
            transport,
            "GET",
            LOCATIONS_ENDPOINT,
            token=context.bearer_token,
            failure="Failed to fetch locations",
        )
    except QikpodNotFoundError:
        return []
    return decode_records(Location, body, endpoint=LOCATIONS_ENDPOINT)


async def get_location(context: PortalContext, transport: Transport, location_id: int) -> Location:
    body = await request_json(
        transport,
        "GET",
        LOCATIONS_ENDPOINT,
        token=context.bearer_token,
        params={"record_id": location_id},
        failure="Failed to fetch location info",
    )
    location = first_record(Location, body, endpoint=LOCATIONS_ENDPOINT)
    if location is None:
        raise QikpodNotFoundError("Location not found", status_code=404, endpoint=LOCATIONS_ENDPOINT)
    return location
