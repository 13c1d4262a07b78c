"""Pod lookup endpoint: /pods/."""

from __future__ import annotations

from pyqikpod._api._common import first_record, request_json
from pyqikpod._transport import Transport
from pyqikpod.exceptions import QikpodNotFoundError
from pyqikpod.models.pod import Pod
from pyqikpod.session import PortalContext

ENDPOINT = "/pods/"


async def get_pod(context: PortalContext, transport: Transport, pod_name: str) -> Pod:
    body = await request_json(
        transport,
        "GET",
        ENDPOINT,
        token=context.public_token,
        params={"pod_name": pod_name},
        failure="Failed to fetch pod info",
    )
    pod = first_record(Pod, body, endpoint=ENDPOINT)
    if pod is None:
        raise QikpodNotFoundError("Pod not found", status_code=404, endpoint=ENDPOINT)
    return pod
