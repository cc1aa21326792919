"""Internal websocket event stream runtime.

One :class:`EventStreamClient` per channel. The client keeps a single
connection open, reconnects with capped exponential backoff and only
forwards messages addressed to the current staff member.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import json
import logging
from collections.abc import Callable, Iterable
from enum import StrEnum
from typing import Any

import aiohttp

from pyfarmconnect._constants import RECONNECT_BASE_DELAY, RECONNECT_MAX_ATTEMPT, RECONNECT_MAX_DELAY
from pyfarmconnect.ingestion.normalize import safe_str


def build_stream_url(base_url: str, path: str) -> str:
    """Derive the websocket URL for *path* from the REST base URL."""
    base = base_url.strip().rstrip("/")
    if not path.startswith("/"):
        path = f"/{path}"
    url = f"{base}{path}"
    if url.startswith(("ws://", "wss://")):
        return url
    if url.startswith("https://"):
        return "wss://" + url[len("https://") :]
    if url.startswith("http://"):
        return "ws://" + url[len("http://") :]
    return "wss://" + url.lstrip("/")


class ConnectionState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    BACKOFF = "backoff"


@dataclasses.dataclass
class ReconnectPolicy:
    """Connection lifecycle and backoff bookkeeping.

    Plain state transitions with no timers or sockets; the stream client
    asks it what to do and schedules the actual reconnect itself.
    """

    base_delay: float = RECONNECT_BASE_DELAY
    max_delay: float = RECONNECT_MAX_DELAY
    max_attempt: int = RECONNECT_MAX_ATTEMPT
    state: ConnectionState = ConnectionState.IDLE
    attempt: int = 0

    def delay_for(self, attempt: int) -> float:
        return min(self.max_delay, self.base_delay * (2**attempt))

    def begin_connect(self) -> bool:
        """Enter CONNECTING; False if a connection is already open or pending."""
        if self.state in (ConnectionState.CONNECTING, ConnectionState.OPEN):
            return False
        self.state = ConnectionState.CONNECTING
        return True

    def opened(self) -> None:
        self.state = ConnectionState.OPEN
        self.attempt = 0

    def closed(self, identity: str) -> float | None:
        """Record an unexpected close and return the reconnect delay.

        Returns ``None`` (and goes IDLE) when there is no identity to
        reconnect for.
        """
        if not (identity or "").strip():
            self.state = ConnectionState.IDLE
            return None
        delay = self.delay_for(self.attempt)
        self.attempt = min(self.attempt + 1, self.max_attempt)
        self.state = ConnectionState.BACKOFF
        return delay

    def teardown(self) -> None:
        self.state = ConnectionState.IDLE
        self.attempt = 0


@dataclasses.dataclass(frozen=True)
class StreamMessage:
    """An accepted stream message."""

    channel: str
    event: str
    data: dict[str, Any]
    raw: dict[str, Any]


class EventStreamClient:
    """Auto-reconnecting websocket listener for one channel.

    Expected failures (connection errors, unparseable or foreign messages,
    callback errors) are logged at DEBUG and never raised.
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        url: str,
        *,
        identity: Callable[[], str],
        accepted_events: Iterable[str],
        on_message: Callable[[StreamMessage], None],
        policy: ReconnectPolicy | None = None,
        on_open: Callable[[], None] | None = None,
        name: str = "stream",
        logger: logging.Logger | None = None,
    ) -> None:
        self._http = http_session
        self._url = url
        self._identity = identity
        self._accepted = frozenset(accepted_events)
        self._on_message = on_message
        self._on_open = on_open
        self._policy = policy or ReconnectPolicy()
        self._name = name
        self._logger = logger or logging.getLogger(__name__)
        self._task: asyncio.Task[None] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._closing = False

    @property
    def url(self) -> str:
        return self._url

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> ConnectionState:
        return self._policy.state

    @property
    def policy(self) -> ReconnectPolicy:
        return self._policy

    @property
    def reconnect_pending(self) -> bool:
        return self._timer is not None

    def connect(self) -> bool:
        """Open the connection in the background.

        Idempotent: returns False without doing anything if a connection
        is already open or being opened, or if there is no identity.
        Must be called from the event loop.
        """
        self._closing = False
        if not (self._identity() or "").strip():
            self._logger.debug("%s stream not started: no staff identity", self._name)
            if self._policy.state is ConnectionState.BACKOFF:
                self._policy.teardown()
            return False
        if not self._policy.begin_connect():
            return False
        self._cancel_timer()
        self._task = asyncio.get_running_loop().create_task(self._run(), name=f"pyfarmconnect-{self._name}")
        return True

    async def close(self) -> None:
        """Tear down: cancel any reconnect, close the socket, stop the task."""
        self._closing = True
        self._cancel_timer()
        ws = self._ws
        task = self._task
        self._task = None
        if ws is not None:
            await ws.close()
        if task is not None and not task.done():
            if ws is None:
                task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._ws = None
        self._policy.teardown()
        self._logger.debug("%s stream closed", self._name)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _run(self) -> None:
        self._logger.debug("%s stream connecting url=%s", self._name, self._url)
        try:
            ws = await self._http.ws_connect(self._url)
        except (aiohttp.ClientError, OSError, TimeoutError):
            self._logger.debug("%s stream connect failed", self._name, exc_info=True)
            self._schedule_reconnect()
            return

        self._ws = ws
        self._policy.opened()
        self._logger.debug("%s stream open", self._name)
        if self._on_open is not None:
            try:
                self._on_open()
            except Exception:
                self._logger.debug("%s stream on_open callback failed", self._name, exc_info=True)

        try:
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._handle_text(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    self._logger.debug("%s stream error frame: %s", self._name, msg.data)
                    break
        except (aiohttp.ClientError, OSError):
            self._logger.debug("%s stream receive failed", self._name, exc_info=True)
        finally:
            self._ws = None
            await ws.close()

        self._logger.debug("%s stream disconnected", self._name)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._closing:
            self._policy.teardown()
            return
        delay = self._policy.closed(self._identity())
        if delay is None:
            self._logger.debug("%s stream not reconnecting: no staff identity", self._name)
            return
        self._logger.debug("%s stream reconnect in %.1fs (attempt %d)", self._name, delay, self._policy.attempt)
        self._timer = asyncio.get_running_loop().call_later(delay, self._reconnect)

    def _reconnect(self) -> None:
        self._timer = None
        if self._closing:
            return
        self.connect()

    def _handle_text(self, text: Any) -> None:
        try:
            payload = json.loads(text)
        except (TypeError, ValueError):
            self._logger.debug("%s stream message is not JSON: %r", self._name, text)
            return
        if not isinstance(payload, dict):
            self._logger.debug("%s stream message is not an object: %r", self._name, payload)
            return

        event = safe_str(payload.get("event")) or ""
        if event not in self._accepted:
            self._logger.debug("%s stream ignoring event=%s", self._name, event)
            return

        data = payload.get("data")
        if not isinstance(data, dict):
            data = {}
        incoming = safe_str(data.get("staff_id")) or ""
        current = (self._identity() or "").strip()
        if not incoming or not current or incoming != current:
            self._logger.debug("%s stream dropping event=%s for another staff member", self._name, event)
            return

        message = StreamMessage(channel=self._name, event=event, data=data, raw=payload)
        try:
            self._on_message(message)
        except Exception:
            self._logger.debug("%s stream message callback failed", self._name, exc_info=True)
