"""Reservation endpoints.

Endpoints:
  - /reservations/
  - /reservations/create
  - /reservations/cancel/{id}
  - /reservations/resend_otp/
"""

from __future__ import annotations

from typing import Any

from pyqikpod._api._common import decode_records, first_record, request_json
from pyqikpod._transport import Transport
from pyqikpod.exceptions import QikpodNotFoundError, QikpodResponseError
from pyqikpod.models.requests import CreateReservationRequest
from pyqikpod.models.reservation import Reservation, ReservationStatus
from pyqikpod.session import PortalContext

ENDPOINT = "/reservations/"
CREATE_ENDPOINT = "/reservations/create"
CANCEL_ENDPOINT = "/reservations/cancel/"
RESEND_OTP_ENDPOINT = "/reservations/resend_otp/"


async def get_reservations(
    context: PortalContext,
    transport: Transport,
    created_by_phone: str,
    status: ReservationStatus,
) -> list[Reservation]:
    """Reservations created by *created_by_phone* in *status*.

    "Records not found" is an empty list, not an error. Rows without a
    location name take the cached one.
    """
    try:
        body = await request_json(
            transport,
            "GET",
            ENDPOINT,
            token=context.public_token,
            params={"reservation_status": status.value, "createdby_phone": created_by_phone},
            failure="Failed to fetch reservations",
        )
    except QikpodNotFoundError:
        return []
    fallback = context.location_name
    return [r.with_location_fallback(fallback) for r in decode_records(Reservation, body, endpoint=ENDPOINT)]


async def get_location_reservations(
    context: PortalContext,
    transport: Transport,
    location_id: int,
    status: ReservationStatus,
) -> list[Reservation]:
    try:
        body = await request_json(
            transport,
            "GET",
            ENDPOINT,
            token=context.bearer_token,
            params={"location_id": location_id, "reservation_status": status.value},
            failure="Failed to fetch reservations",
        )
    except QikpodNotFoundError:
        return []
    return decode_records(Reservation, body, endpoint=ENDPOINT)


async def get_reservation(context: PortalContext, transport: Transport, reservation_id: str) -> Reservation:
    body = await request_json(
        transport,
        "GET",
        ENDPOINT,
        token=context.bearer_token,
        params={"record_id": reservation_id},
        failure="Failed to fetch reservation details",
    )
    reservation = first_record(Reservation, body, endpoint=ENDPOINT)
    if reservation is None:
        raise QikpodNotFoundError("Reservation not found", status_code=404, endpoint=ENDPOINT)
    return reservation


async def create_reservation(
    context: PortalContext,
    transport: Transport,
    request: CreateReservationRequest,
) -> str:
    """Create a reservation and return its id."""
    body = await request_json(
        transport,
        "POST",
        CREATE_ENDPOINT,
        token=context.bearer_token,
        json_body=request.model_dump(),
        failure="Failed to create reservation",
    )
    reservation_id = None
    if isinstance(body, dict):
        reservation_id = body.get("reservation_id") or body.get("id")
    if reservation_id in (None, ""):
        raise QikpodResponseError("Create response carries no reservation id", endpoint=CREATE_ENDPOINT)
    return str(reservation_id)


async def cancel_reservation(context: PortalContext, transport: Transport, reservation_id: str) -> Any:
    return await request_json(
        transport,
        "PATCH",
        f"{CANCEL_ENDPOINT}{reservation_id}",
        token=context.bearer_token,
        failure="Failed to cancel reservation",
    )


async def resend_drop_otp(context: PortalContext, transport: Transport, reservation_id: str) -> Any:
    return await request_json(
        transport,
        "GET",
        RESEND_OTP_ENDPOINT,
        token=context.bearer_token,
        params={"reservation_id": reservation_id, "otp_type": "drop_otp"},
        failure="Failed to resend drop OTP",
    )
