from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any

import aiohttp
import pytest


@dataclass
class FakeTransport:
    """In-memory :class:`~pyfarmconnect._transport.Transport`.

    ``responses`` maps an endpoint to a JSON dict or to an exception to raise.
    """

    responses: dict[str, Any] = field(default_factory=dict)
    calls: list[tuple[str, str, dict[str, Any] | None]] = field(default_factory=list)

    def _respond(self, endpoint: str) -> dict[str, Any]:
        if endpoint not in self.responses:
            raise AssertionError(f"Unexpected endpoint in fake transport: {endpoint}")
        response = self.responses[endpoint]
        if isinstance(response, Exception):
            raise response
        return response

    async def get_json(self, endpoint: str) -> dict[str, Any]:
        self.calls.append(("GET", endpoint, None))
        return self._respond(endpoint)

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        self.calls.append(("POST", endpoint, dict(payload)))
        return self._respond(endpoint)


class FakeWebSocket:
    """Async-iterable stand-in for ``aiohttp.ClientWebSocketResponse``."""

    def __init__(self, url: str = "") -> None:
        self.url = url
        self._frames: asyncio.Queue[Any] = asyncio.Queue()
        self.closed = False

    def feed(self, text: str) -> None:
        self._frames.put_nowait(SimpleNamespace(type=aiohttp.WSMsgType.TEXT, data=text))

    def feed_error(self) -> None:
        self._frames.put_nowait(SimpleNamespace(type=aiohttp.WSMsgType.ERROR, data="boom"))

    def drop(self) -> None:
        """Simulate the server closing the connection."""
        self._frames.put_nowait(None)

    def __aiter__(self) -> FakeWebSocket:
        return self

    async def __anext__(self) -> Any:
        frame = await self._frames.get()
        if frame is None:
            raise StopAsyncIteration
        return frame

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._frames.put_nowait(None)


@dataclass
class FakeWsSession:
    """Stand-in for the ``ws_connect`` part of ``aiohttp.ClientSession``."""

    fail_next: int = 0
    urls: list[str] = field(default_factory=list)
    sockets: list[FakeWebSocket] = field(default_factory=list)

    async def ws_connect(self, url: str) -> FakeWebSocket:
        self.urls.append(url)
        if self.fail_next > 0:
            self.fail_next -= 1
            raise aiohttp.ClientConnectionError("connection refused")
        ws = FakeWebSocket(url)
        self.sockets.append(ws)
        return ws

    def sockets_for(self, suffix: str) -> list[FakeWebSocket]:
        return [ws for ws in self.sockets if ws.url.endswith(suffix)]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def ws_session() -> FakeWsSession:
    return FakeWsSession()
