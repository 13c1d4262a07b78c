"""OTP endpoints.

Endpoints:
  - /otp/generate_otp/
  - /otp/validate_otp/
"""

from __future__ import annotations

import logging
from typing import Any

from pyqikpod._api._common import decode_record, request_json
from pyqikpod._redact import redact_for_log
from pyqikpod._transport import Transport
from pyqikpod.exceptions import QikpodResponseError
from pyqikpod.models.otp import OtpValidation
from pyqikpod.session import PortalContext

_logger = logging.getLogger(__name__)

GENERATE_ENDPOINT = "/otp/generate_otp/"
VALIDATE_ENDPOINT = "/otp/validate_otp/"


async def generate_otp(context: PortalContext, transport: Transport, user_phone: str) -> dict[str, Any]:
    """Ask the service to text a login code to *user_phone*."""
    body = await request_json(
        transport,
        "GET",
        GENERATE_ENDPOINT,
        token=context.public_token,
        params={"user_phone": user_phone},
        failure="Failed to generate OTP",
    )
    return body if isinstance(body, dict) else {}


async def validate_otp(
    context: PortalContext,
    transport: Transport,
    user_phone: str,
    otp_text: str,
) -> OtpValidation:
    """Exchange a login code for the user record and an access token."""
    body = await request_json(
        transport,
        "GET",
        VALIDATE_ENDPOINT,
        token=context.public_token,
        params={"user_phone": user_phone, "otp_text": otp_text},
        failure="Failed to validate OTP",
    )
    _logger.debug("OTP validation decoded=%s", redact_for_log(body))
    if not isinstance(body, dict):
        raise QikpodResponseError("OTP validation returned no object", endpoint=VALIDATE_ENDPOINT)
    return decode_record(OtpValidation, body, endpoint=VALIDATE_ENDPOINT)
