"""HTTP transport with bearer authentication and JSON decoding."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from pyqikpod._constants import USER_AGENT
from pyqikpod._redact import redact_for_log
from pyqikpod.exceptions import QikpodTransportError
from pyqikpod.session import PortalContext

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApiResponse:
    """Status and decoded JSON body of one HTTP exchange.

    ``body`` is ``None`` when a non-2xx response carried no JSON.
    """

    status: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        token: str,
        params: Mapping[str, Any] | None = None,
        json_body: Mapping[str, Any] | None = None,
    ) -> ApiResponse:
        ...


class HttpTransport:
    """aiohttp transport against the configured API base URL."""

    def __init__(
        self,
        context: PortalContext,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = 30.0,
    ) -> None:
        self._context = context
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        token: str,
        params: Mapping[str, Any] | None = None,
        json_body: Mapping[str, Any] | None = None,
    ) -> ApiResponse:
        """Send one request and decode the JSON reply.

        HTTP error statuses are returned, not raised; endpoint modules
        decide what a 401 or 404 means for them.
        """
        url = f"{self._context.require_api_base_url()}{endpoint}"
        headers: dict[str, str] = {
            "accept": "application/json",
            "authorization": f"Bearer {token}",
            "user-agent": USER_AGENT,
        }
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}

        _logger.debug("%s %s params=%s", method, url, redact_for_log(query))

        try:
            async with self._http.request(
                method,
                url,
                params=query or None,
                json=dict(json_body) if json_body is not None else None,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise QikpodTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        body: Any = None
        if text.strip():
            try:
                body = json.loads(text)
            except json.JSONDecodeError as exc:
                if 200 <= status < 300:
                    raise QikpodTransportError(
                        f"Invalid JSON from {endpoint}: {text[:200]}",
                        status_code=status,
                        endpoint=endpoint,
                    ) from exc
                body = None

        _logger.debug("%s %s -> %d %s", method, endpoint, status, redact_for_log(body))
        return ApiResponse(status=status, body=body)
