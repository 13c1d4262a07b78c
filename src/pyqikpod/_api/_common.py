"""Shared helpers for QikPod endpoint modules.

This module centralizes the most repeated patterns:
- sending a request and mapping HTTP status to exceptions
- treating "Records not found." bodies as 404
- validating ``records`` against a model in one place

It is internal to pyqikpod and may change at any time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from pyqikpod._transport import ApiResponse, Transport
from pyqikpod.exceptions import (
    QikpodApiError,
    QikpodAuthenticationError,
    QikpodNotFoundError,
    QikpodResponseError,
)
from pyqikpod.models.envelope import ApiEnvelope

TModel = TypeVar("TModel", bound=BaseModel)


def _error_message(body: Any, default: str) -> str:
    if isinstance(body, dict):
        for key in ("message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return default


def is_records_not_found(body: Any) -> bool:
    if not isinstance(body, dict):
        return False
    try:
        return ApiEnvelope.model_validate(body).is_records_not_found
    except ValidationError:
        return False


def raise_for_status(endpoint: str, response: ApiResponse, *, failure: str) -> None:
    """Raise the exception matching a failed *response*."""
    message = _error_message(response.body, failure)
    if response.status == 401:
        raise QikpodAuthenticationError(
            f"{endpoint}: 401 Unauthorized",
            status_code=401,
            endpoint=endpoint,
        )
    if response.status == 404 or is_records_not_found(response.body):
        raise QikpodNotFoundError(message, status_code=response.status, endpoint=endpoint)
    raise QikpodApiError(message, status_code=response.status, endpoint=endpoint)


async def request_json(
    transport: Transport,
    method: str,
    endpoint: str,
    *,
    token: str,
    params: Mapping[str, Any] | None = None,
    json_body: Mapping[str, Any] | None = None,
    failure: str = "Request failed",
) -> Any:
    """Send a request and return its JSON body, raising on failure."""
    response = await transport.request(method, endpoint, token=token, params=params, json_body=json_body)
    if not response.ok or is_records_not_found(response.body):
        raise_for_status(endpoint, response, failure=failure)
    return response.body


def decode_records(model: type[TModel], body: Any, *, endpoint: str) -> list[TModel]:
    """Validate the ``records`` list of an envelope against *model*."""
    if not isinstance(body, dict):
        raise QikpodResponseError(f"{endpoint} returned {type(body).__name__}, expected an object", endpoint=endpoint)
    records = body.get("records")
    if records is None:
        return []
    if not isinstance(records, list):
        raise QikpodResponseError(f"{endpoint} 'records' is not a list", endpoint=endpoint)
    return [decode_record(model, item, endpoint=endpoint) for item in records]


def decode_record(model: type[TModel], item: Any, *, endpoint: str) -> TModel:
    try:
        return model.model_validate(item)
    except ValidationError as exc:
        raise QikpodResponseError(
            f"{endpoint} returned an unexpected {model.__name__} record: {exc.error_count()} error(s)",
            endpoint=endpoint,
        ) from exc


def first_record(model: type[TModel], body: Any, *, endpoint: str) -> TModel | None:
    records = decode_records(model, body, endpoint=endpoint)
    return records[0] if records else None
