"""Outgoing request queue.

Requests the driver creates are recorded here whether or not the backend
confirmed them. The queue lives in local storage as a JSON array under
``OUTGOING_REQUEST_QUEUE`` and is never shown in the merged request list.

Every change is a read-modify-write of the whole array. Flushes are
serialized per queue, but separate processes sharing one storage file are
not guarded against.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from pyfarmconnect._constants import OUTGOING_QUEUE_KEY
from pyfarmconnect.exceptions import FarmConnectError, FarmConnectStorageError
from pyfarmconnect.models.queue import OutgoingQueueEntry
from pyfarmconnect.storage import KeyValueStore

_logger = logging.getLogger(__name__)

Submitter = Callable[[Mapping[str, Any]], Awaitable[str | None]]
"""Resubmits a queued payload; returns the server id (possibly ``""``), or ``None`` on failure."""


@dataclasses.dataclass(frozen=True)
class FlushReport:
    submitted: int = 0
    """Entries confirmed by this flush and removed."""
    failed: int = 0
    """Entries that stay queued for the next flush."""
    dropped: int = 0
    """Entries already confirmed earlier and removed without a call."""


class OutgoingQueue:
    """Durable FIFO of locally created requests.

    Storage failures never propagate: reads fall back to the last known
    in-memory copy and writes are logged and skipped.
    """

    def __init__(self, storage: KeyValueStore, *, clock: Callable[[], float] = time.time) -> None:
        self._storage = storage
        self._clock = clock
        self._memory: tuple[OutgoingQueueEntry, ...] = ()
        self._flush_lock = asyncio.Lock()

    def _read(self) -> tuple[OutgoingQueueEntry, ...]:
        try:
            text = self._storage.get_item(OUTGOING_QUEUE_KEY)
        except FarmConnectStorageError:
            _logger.debug("Outgoing queue unreadable, using in-memory copy", exc_info=True)
            return self._memory
        if not text:
            return self._memory

        try:
            items = json.loads(text)
        except json.JSONDecodeError:
            _logger.debug("Outgoing queue holds invalid JSON, using in-memory copy", exc_info=True)
            return self._memory
        if not isinstance(items, list):
            return ()

        entries: list[OutgoingQueueEntry] = []
        for item in items:
            try:
                entries.append(OutgoingQueueEntry.model_validate(item))
            except ValidationError:
                _logger.debug("Skipping invalid outgoing queue entry: %r", item)
        return tuple(entries)

    def _write(self, entries: tuple[OutgoingQueueEntry, ...]) -> None:
        self._memory = entries
        text = json.dumps([entry.model_dump(mode="json") for entry in entries])
        try:
            self._storage.set_item(OUTGOING_QUEUE_KEY, text)
        except FarmConnectStorageError:
            _logger.warning("Failed to persist outgoing queue (%d entries)", len(entries), exc_info=True)

    def _next_local_id(self, entries: tuple[OutgoingQueueEntry, ...]) -> int:
        now_ms = int(self._clock() * 1000)
        last = max((entry.local_id for entry in entries), default=0)
        return max(now_ms, last + 1)

    def enqueue(
        self,
        payload: Mapping[str, Any],
        created_req_id: str | None = None,
        *,
        confirmed: bool | None = None,
    ) -> OutgoingQueueEntry:
        """Append an entry and persist the whole queue.

        *confirmed* defaults to whether a server id is known.
        """
        entries = self._read()
        entry = OutgoingQueueEntry(
            local_id=self._next_local_id(entries),
            payload=dict(payload),
            created_req_id=created_req_id or None,
            confirmed=bool(created_req_id) if confirmed is None else confirmed,
        )
        self._write((*entries, entry))
        return entry

    def peek_all(self) -> tuple[OutgoingQueueEntry, ...]:
        """Return the queue as stored, oldest first."""
        return self._read()

    def remove(self, local_ids: Iterable[int]) -> int:
        """Remove entries by ``local_id``; returns how many were removed."""
        doomed = set(local_ids)
        entries = self._read()
        kept = tuple(entry for entry in entries if entry.local_id not in doomed)
        removed = len(entries) - len(kept)
        if removed:
            self._write(kept)
        return removed

    async def flush(self, submit: Submitter) -> FlushReport:
        """Resubmit unconfirmed entries and prune the queue.

        Entries the backend already confirmed are dropped without a call.
        The others go through *submit* one by one, oldest first; confirmed
        ones are removed and failures stay queued.

        Only one flush runs at a time; a concurrent call waits and then
        sees the queue the previous flush left behind.
        """
        submitted = failed = dropped = 0
        done: set[int] = set()

        async with self._flush_lock:
            for entry in self._read():
                if entry.is_confirmed:
                    dropped += 1
                    done.add(entry.local_id)
                    continue
                try:
                    server_id = await submit(entry.payload)
                except FarmConnectError:
                    _logger.debug("Resubmitting outgoing entry %s failed", entry.local_id, exc_info=True)
                    server_id = None
                if server_id is not None:
                    submitted += 1
                    done.add(entry.local_id)
                else:
                    failed += 1

            if done:
                # Re-read so entries enqueued while submitting survive.
                self.remove(done)
        report = FlushReport(submitted=submitted, failed=failed, dropped=dropped)
        _logger.debug("Outgoing queue flushed: %s", report)
        return report
