"""Door availability endpoint: /doors/free_door/."""

from __future__ import annotations

import logging

from pyqikpod._api._common import decode_record
from pyqikpod._transport import Transport
from pyqikpod.models.door import FreeDoorResult
from pyqikpod.session import PortalContext

_logger = logging.getLogger(__name__)

ENDPOINT = "/doors/free_door/"


async def find_free_door(context: PortalContext, transport: Transport, location_id: int) -> FreeDoorResult | None:
    """Return free doors at *location_id*, or ``None`` if none can be had."""
    response = await transport.request(
        "GET",
        ENDPOINT,
        token=context.bearer_token,
        params={"location_id": location_id},
    )
    if not response.ok or not isinstance(response.body, dict):
        _logger.debug("No free door at location %s (HTTP %d)", location_id, response.status)
        return None
    result = decode_record(FreeDoorResult, response.body, endpoint=ENDPOINT)
    return result if result.statusbool else None
