"""High-level async client for the farm-connect driver API."""

from __future__ import annotations

import asyncio
import dataclasses
import datetime
import functools
import logging
from typing import Any

import aiohttp

from pyfarmconnect._api import login as _login_api
from pyfarmconnect._api import requests as _requests_api
from pyfarmconnect._api import status as _status_api
from pyfarmconnect._api.requests import SubmitResult
from pyfarmconnect._api.status import MutationResult
from pyfarmconnect._constants import (
    CHECKIN_REQUEST_ID_KEY,
    FUEL_REQUEST_UPDATED,
    FUEL_STREAM_PATH,
    LOGISTICS_REQUEST_CREATED,
    LOGISTICS_STREAM_PATH,
)
from pyfarmconnect._stream import EventStreamClient, ReconnectPolicy, StreamMessage, build_stream_url
from pyfarmconnect._transport import HttpTransport
from pyfarmconnect.config import FarmConnectConfig
from pyfarmconnect.exceptions import (
    FarmConnectError,
    FarmConnectMissingDataError,
    FarmConnectNotAuthenticatedError,
    FarmConnectStorageError,
)
from pyfarmconnect.identity import StaffIdentityResolver
from pyfarmconnect.ingestion import snapshot as _snapshot
from pyfarmconnect.ingestion.snapshot import SnapshotResult, SnapshotScope
from pyfarmconnect.ingestion.stream import map_fuel_update, map_logistics_created
from pyfarmconnect.models.queue import OutgoingQueueEntry
from pyfarmconnect.models.request import Request
from pyfarmconnect.outgoing import FlushReport, OutgoingQueue
from pyfarmconnect.session import Session
from pyfarmconnect.state.events import PendingCompletion
from pyfarmconnect.state.merge import RequestCollection
from pyfarmconnect.state.store import ChangeListener, NotificationListener, RequestStore
from pyfarmconnect.storage import KeyValueStore, open_store

_logger = logging.getLogger(__name__)


class FarmConnectClient:
    """Async client that keeps a driver's request list in sync.

    Usage::

        async with FarmConnectClient(config) as client:
            await client.login("driver", "secret")
            await client.sync()
            client.start_streams()
    """

    def __init__(
        self,
        config: FarmConnectConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        storage: KeyValueStore | None = None,
        on_change: ChangeListener | None = None,
        on_notification: NotificationListener | None = None,
    ) -> None:
        self._config = config or FarmConnectConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport: HttpTransport | None = None
        self._storage = storage if storage is not None else open_store(self._config.storage_path)
        self._session: Session | None = None
        self._identity = StaffIdentityResolver(
            self._storage,
            session_staff_id=lambda: self._session.staff_id if self._session else None,
            override=self._config.staff_id,
        )
        self._store = RequestStore(on_change=on_change, on_notification=on_notification)
        self._queue = OutgoingQueue(self._storage)
        self._streams: list[EventStreamClient] = []
        self._background: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FarmConnectClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop_streams()
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> HttpTransport:
        if self._transport is None:
            raise FarmConnectError("Client not initialized. Use 'async with FarmConnectClient(...) as client:'")
        return self._transport

    def _require_http_session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            raise FarmConnectError("Client not initialized. Use 'async with FarmConnectClient(...) as client:'")
        return self._http_session

    def _spawn(self, coro: Any) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def config(self) -> FarmConnectConfig:
        return self._config

    def resolve_staff_id(self) -> str:
        """Current staff id, or ``""`` when nobody is authenticated."""
        return self._identity.resolve()

    async def login(self, user_name: str, password: str) -> Session:
        """Authenticate a driver and remember their staff id.

        Raises
        ------
        FarmConnectAuthenticationError
            If the backend rejects the credentials.
        FarmConnectTransportError
            On network or HTTP failure.
        """
        transport = self._require_transport()
        session = await _login_api.login(transport, user_name, password)
        self._session = session
        self._identity.remember(session.staff_id)
        _logger.debug("Logged in as staff_id=%s", session.staff_id)
        return session

    async def logout(self) -> None:
        """Stop streams and drop the session, stored identity and requests."""
        await self.stop_streams()
        self._session = None
        self._identity.forget()
        self._store.clear()

    # ------------------------------------------------------------------
    # Request collection
    # ------------------------------------------------------------------

    @property
    def store(self) -> RequestStore:
        return self._store

    @property
    def requests(self) -> RequestCollection:
        """Merged requests, most recent first."""
        return self._store.requests

    def get_request(self, request_id: str) -> Request | None:
        return self._store.get(request_id)

    def pending_completions(self) -> tuple[PendingCompletion, ...]:
        return self._store.pending_completions()

    async def fetch_pending(self, scope: SnapshotScope = SnapshotScope.LOGISTICS) -> SnapshotResult:
        """Fetch pending tasks without touching the collection."""
        return await _snapshot.fetch_pending(self._require_transport(), self.resolve_staff_id(), scope=scope)

    async def sync(self, scope: SnapshotScope = SnapshotScope.LOGISTICS) -> SnapshotResult:
        """Fetch pending tasks and fold them into the collection."""
        result = await self.fetch_pending(scope)
        if result.ok:
            self._store.reconcile(result.requests)
        return result

    async def fetch_outgoing(self) -> SnapshotResult:
        """Fetch the requests this driver created."""
        return await _snapshot.fetch_outgoing(self._require_transport(), self.resolve_staff_id())

    # ------------------------------------------------------------------
    # Live streams
    # ------------------------------------------------------------------

    def _build_streams(self) -> list[EventStreamClient]:
        http_session = self._require_http_session()
        channels = (
            ("logistics", LOGISTICS_STREAM_PATH, LOGISTICS_REQUEST_CREATED),
            ("fuel_requests", FUEL_STREAM_PATH, FUEL_REQUEST_UPDATED),
        )
        return [
            EventStreamClient(
                http_session,
                build_stream_url(self._config.base_url, path),
                identity=self.resolve_staff_id,
                accepted_events=(event,),
                on_message=self._on_stream_message,
                on_open=self._on_stream_open,
                policy=ReconnectPolicy(
                    base_delay=self._config.reconnect_base_delay,
                    max_delay=self._config.reconnect_max_delay,
                    max_attempt=self._config.reconnect_max_attempt,
                ),
                name=name,
            )
            for name, path, event in channels
        ]

    @property
    def streams(self) -> tuple[EventStreamClient, ...]:
        return tuple(self._streams)

    def start_streams(self) -> bool:
        """Connect both event streams; no-op if disabled or unauthenticated.

        Must be called from the event loop. Returns True if a connection
        attempt was started.
        """
        if not self._config.stream_enabled:
            return False
        if not self.resolve_staff_id():
            _logger.debug("Streams not started: no staff identity")
            return False
        if not self._streams:
            self._streams = self._build_streams()
        started = [stream.connect() for stream in self._streams]
        return any(started)

    async def stop_streams(self) -> None:
        """Close both streams and cancel pending reconnects."""
        for stream in self._streams:
            await stream.close()

    def _on_stream_message(self, message: StreamMessage) -> None:
        if message.event == LOGISTICS_REQUEST_CREATED:
            request = map_logistics_created(message.raw)
            if request is not None:
                self._store.apply_created(request)
        elif message.event == FUEL_REQUEST_UPDATED:
            request = map_fuel_update(message.raw)
            if request is not None:
                self._store.apply_update(request)

    def _on_stream_open(self) -> None:
        if not self._config.flush_queue_on_connect:
            return
        if any(not entry.is_confirmed for entry in self._queue.peek_all()):
            self._spawn(self.flush_outgoing())

    # ------------------------------------------------------------------
    # Acknowledgment of terminal updates
    # ------------------------------------------------------------------

    def acknowledge(self, request_id: str) -> Request | None:
        """Commit a held ``done`` update and clear the matching check-in reference."""
        stored = self._store.acknowledge(request_id)
        if stored is None:
            return None
        try:
            checkin = self._storage.get_item(CHECKIN_REQUEST_ID_KEY)
            if checkin and stored.request_id and checkin.strip() == stored.request_id:
                self._storage.remove_item(CHECKIN_REQUEST_ID_KEY)
        except FarmConnectStorageError:
            _logger.warning("Failed to clear check-in reference for %s", request_id, exc_info=True)
        return stored

    def dismiss(self, request_id: str) -> bool:
        return self._store.dismiss(request_id)

    def remember_checkin_request(self, request_id: str) -> None:
        """Store the request id tied to the active vehicle check-in."""
        try:
            self._storage.set_item(CHECKIN_REQUEST_ID_KEY, str(request_id).strip())
        except FarmConnectStorageError:
            _logger.warning("Failed to persist check-in reference", exc_info=True)

    def checkin_request_id(self) -> str | None:
        try:
            return self._storage.get_item(CHECKIN_REQUEST_ID_KEY)
        except FarmConnectStorageError:
            _logger.debug("Check-in reference unreadable", exc_info=True)
            return None

    # ------------------------------------------------------------------
    # Status mutation
    # ------------------------------------------------------------------

    async def mark_delivered(self, request: Request | str) -> MutationResult:
        """Mark a logistics request delivered.

        The local status changes to ``done`` only after the backend
        confirms; on failure the collection is left untouched.
        """
        if isinstance(request, str):
            found = self._store.get(request)
            if found is None:
                return MutationResult(success=False, error=FarmConnectMissingDataError(f"Unknown request {request}"))
            request = found

        result = await _status_api.mark_delivered(self._require_transport(), request)
        if result:
            self._store.complete(request)
        return result

    # ------------------------------------------------------------------
    # Outgoing requests
    # ------------------------------------------------------------------

    @property
    def outgoing_queue(self) -> OutgoingQueue:
        return self._queue

    def outgoing(self) -> tuple[OutgoingQueueEntry, ...]:
        return self._queue.peek_all()

    async def make_request(
        self,
        note: str,
        request_location: str,
        *,
        date: str | None = None,
    ) -> SubmitResult:
        """Create a request and record it in the outgoing queue.

        The queue entry carries the server id when the backend confirmed
        the request. A failed submission is still queued so a later
        :meth:`flush_outgoing` can resend it.
        """
        staff_id = self.resolve_staff_id()
        when = date if date is not None else datetime.date.today().isoformat()
        result = await _requests_api.submit_request(self._require_transport(), staff_id, note, request_location, when)
        if isinstance(result.error, (FarmConnectNotAuthenticatedError, FarmConnectMissingDataError)):
            return result

        payload = _requests_api.build_request_payload(staff_id, note, request_location, when)
        entry = self._queue.enqueue(payload, result.request_ref, confirmed=result.success)
        return dataclasses.replace(result, entry=entry)

    async def flush_outgoing(self) -> FlushReport:
        """Resend unconfirmed queued requests and prune confirmed ones."""
        submit = functools.partial(_requests_api.post_request, self._require_transport())
        return await self._queue.flush(submit)
