"""Helpers for safe debug logging.

Responses carry bearer tokens, one-time codes and phone numbers. This
module redacts codes and masks phones before they reach DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "access_token",
        "auth_token",
        "authorization",
        "token",
        "cookie",
        # One-time codes
        "otp_text",
        "user_otp",
        "drop_otp",
        "pickup_otp",
        "rto_otp",
        "drop_code",
        "pickup_code",
        "user_dropcode",
        "user_pickupcode",
    }
)

_PHONE_KEYS: frozenset[str] = frozenset(
    {
        "user_phone",
        "createdby_phone",
        "created_by_phone",
        "drop_by_phone",
        "pickup_by_phone",
    }
)

_MAX_DEPTH = 20


def mask_phone(phone: str) -> str:
    """Keep the last four digits of *phone*."""
    return f"******{phone[-4:]}" if phone else ""


def _redact_value(key: str, value: Any, max_string: int, depth: int) -> Any:
    lowered = key.lower()
    if lowered in _SENSITIVE_VALUE_KEYS:
        return "<redacted>"
    if lowered in _PHONE_KEYS and isinstance(value, (str, int)):
        return mask_phone(str(value))
    return redact_for_log(value, max_string=max_string, _depth=depth + 1)


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a copy of *value* with secrets removed and phones masked.

    Strings longer than *max_string* are truncated. Values that are not
    JSON-like are logged by ``repr``.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (int, float, bool)):
        return value
    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, Mapping):
        return {str(k): _redact_value(str(k), v, max_string, _depth) for k, v in value.items()}
    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]
    return repr(value)
