"""JSON-over-HTTP transport for the farm-connect REST API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyfarmconnect._constants import USER_AGENT
from pyfarmconnect._redact import redact_for_log
from pyfarmconnect.config import FarmConnectConfig
from pyfarmconnect.exceptions import FarmConnectTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Endpoint modules only depend on this protocol, so tests can pass a
    fake backend while production code uses :class:`HttpTransport`.
    """

    async def get_json(self, endpoint: str) -> dict[str, Any]:
        ...

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        ...


class HttpTransport:
    """aiohttp transport returning decoded JSON objects.

    Raises :class:`FarmConnectTransportError` for network failures,
    non-200 responses and bodies that are not a JSON object.
    """

    def __init__(self, config: FarmConnectConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def get_json(self, endpoint: str) -> dict[str, Any]:
        return await self._request("GET", endpoint)

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("POST", endpoint, payload)

    async def _request(
        self,
        method: str,
        endpoint: str,
        payload: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._config.base_url}{endpoint}"
        headers = {"accept": "application/json", "user-agent": USER_AGENT}
        body: str | None = None
        if payload is not None:
            headers["content-type"] = "application/json"
            body = json.dumps(dict(payload))

        _logger.debug("%s %s", method, url)
        if self._config.api_trace_enabled and payload is not None:
            _logger.debug("%s %s body=%s", method, endpoint, redact_for_log(dict(payload)))

        try:
            async with self._http.request(method, url, data=body, headers=headers) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise FarmConnectTransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except FarmConnectTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise FarmConnectTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise FarmConnectTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=200,
                endpoint=endpoint,
            ) from exc

        if not isinstance(decoded, dict):
            raise FarmConnectTransportError(
                f"Expected a JSON object from {endpoint}, got {type(decoded).__name__}",
                status_code=200,
                endpoint=endpoint,
            )

        if self._config.api_trace_enabled:
            _logger.debug("%s %s response=%s", method, endpoint, redact_for_log(decoded))
        return decoded
