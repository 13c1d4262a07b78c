"""User endpoints: /users/."""

from __future__ import annotations

from typing import Any

from pyqikpod._api._common import first_record, request_json
from pyqikpod._transport import Transport
from pyqikpod.exceptions import QikpodNotFoundError, QikpodResponseError
from pyqikpod.models.requests import NewUserRequest, RegistrationRequest
from pyqikpod.models.user import User, UserRole
from pyqikpod.session import PortalContext

ENDPOINT = "/users/"


async def get_user_by_phone(context: PortalContext, transport: Transport, user_phone: str) -> User | None:
    """Look up an account before sending an OTP; ``None`` if unregistered."""
    try:
        body = await request_json(
            transport,
            "GET",
            ENDPOINT,
            token=context.public_token,
            params={"user_phone": user_phone},
            failure="Failed to fetch user",
        )
    except QikpodNotFoundError:
        return None
    return first_record(User, body, endpoint=ENDPOINT)


async def get_user(context: PortalContext, transport: Transport, user_id: int) -> User | None:
    body = await request_json(
        transport,
        "GET",
        ENDPOINT,
        token=context.bearer_token,
        params={"record_id": user_id},
        failure="Failed to fetch user details",
    )
    return first_record(User, body, endpoint=ENDPOINT)


async def register_user(
    context: PortalContext,
    transport: Transport,
    form: RegistrationRequest | NewUserRequest,
) -> int:
    """Create a Customer account and return its id."""
    payload: dict[str, Any] = form.model_dump()
    payload["user_type"] = UserRole.CUSTOMER.value
    body = await request_json(
        transport,
        "POST",
        ENDPOINT,
        token=context.public_token,
        json_body=payload,
        failure="Failed to register user",
    )
    user_id = None
    if isinstance(body, dict):
        user_id = body.get("id", body.get("user_id"))
        records = body.get("records")
        if user_id is None and isinstance(records, list) and records and isinstance(records[0], dict):
            user_id = records[0].get("id")
    try:
        return int(user_id)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise QikpodResponseError("Registration response carries no user id", endpoint=ENDPOINT) from exc


async def update_user(
    context: PortalContext,
    transport: Transport,
    user_id: int,
    changes: dict[str, str],
) -> Any:
    endpoint = f"{ENDPOINT}{user_id}"
    return await request_json(
        transport,
        "PATCH",
        endpoint,
        token=context.bearer_token,
        json_body=changes,
        failure="Failed to update profile",
    )


async def remove_user(context: PortalContext, transport: Transport, user_id: int) -> None:
    await request_json(
        transport,
        "DELETE",
        f"{ENDPOINT}{user_id}",
        token=context.bearer_token,
        failure="Failed to remove user",
    )
