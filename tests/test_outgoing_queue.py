from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any

import pytest

from pyfarmconnect.exceptions import FarmConnectApiError, FarmConnectStorageError
from pyfarmconnect.outgoing import OutgoingQueue
from pyfarmconnect.storage import MemoryStore

KEY = "OUTGOING_REQUEST_QUEUE"


class _FlakyStore(MemoryStore):
    def __init__(self, *, fail_reads: bool = False, fail_writes: bool = False) -> None:
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    def get_item(self, key: str) -> str | None:
        if self.fail_reads:
            raise FarmConnectStorageError("disk unavailable")
        return super().get_item(key)

    def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise FarmConnectStorageError("disk full")
        super().set_item(key, value)


def _payload(note: str) -> dict[str, str]:
    return {"staff_id": "S1", "date": "2024-05-01", "note": note, "request_location": "Shed"}


def test_enqueue_persists_full_list_as_json() -> None:
    storage = MemoryStore()
    queue = OutgoingQueue(storage, clock=lambda: 1000.0)

    first = queue.enqueue(_payload("a"))
    second = queue.enqueue(_payload("b"), "R2")

    stored = json.loads(storage.get_item(KEY) or "[]")
    assert [item["payload"]["note"] for item in stored] == ["a", "b"]
    assert stored[1]["created_req_id"] == "R2"
    assert first.local_id == 1_000_000
    assert second.local_id == 1_000_001
    assert not first.is_confirmed
    assert second.is_confirmed


def test_peek_all_returns_entries_oldest_first_and_unchanged() -> None:
    queue = OutgoingQueue(MemoryStore())
    queue.enqueue(_payload("a"))
    queue.enqueue(_payload("b"))

    first_look = queue.peek_all()
    second_look = queue.peek_all()

    assert [entry.payload["note"] for entry in first_look] == ["a", "b"]
    assert first_look == second_look


def test_invalid_entries_are_skipped() -> None:
    storage = MemoryStore({KEY: json.dumps([{"local_id": 1, "payload": {"note": "ok"}}, {"nope": True}, 5])})

    entries = OutgoingQueue(storage).peek_all()

    assert [entry.local_id for entry in entries] == [1]


def test_write_failure_keeps_entry_in_memory(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="pyfarmconnect.outgoing")
    queue = OutgoingQueue(_FlakyStore(fail_writes=True))

    entry = queue.enqueue(_payload("a"))

    assert queue.peek_all() == (entry,)
    assert "Failed to persist outgoing queue" in caplog.text


def test_unreadable_storage_falls_back_to_memory() -> None:
    storage = _FlakyStore()
    queue = OutgoingQueue(storage)
    entry = queue.enqueue(_payload("a"))

    storage.fail_reads = True

    assert queue.peek_all() == (entry,)


def test_remove_by_local_id() -> None:
    queue = OutgoingQueue(MemoryStore())
    first = queue.enqueue(_payload("a"))
    queue.enqueue(_payload("b"))

    assert queue.remove([first.local_id]) == 1
    assert queue.remove([first.local_id]) == 0
    assert [entry.payload["note"] for entry in queue.peek_all()] == ["b"]


@pytest.mark.asyncio
async def test_flush_resubmits_unconfirmed_and_drops_confirmed() -> None:
    queue = OutgoingQueue(MemoryStore())
    queue.enqueue(_payload("confirmed"), "R1")
    queue.enqueue(_payload("offline-1"))
    queue.enqueue(_payload("offline-2"))
    submitted: list[str] = []

    async def submit(payload: Mapping[str, Any]) -> str | None:
        submitted.append(payload["note"])
        if payload["note"] == "offline-2":
            raise FarmConnectApiError("rejected")
        return "R2"

    report = await queue.flush(submit)

    assert submitted == ["offline-1", "offline-2"]
    assert (report.submitted, report.failed, report.dropped) == (1, 1, 1)
    assert [entry.payload["note"] for entry in queue.peek_all()] == ["offline-2"]


@pytest.mark.asyncio
async def test_flush_counts_confirmation_without_server_id() -> None:
    queue = OutgoingQueue(MemoryStore())
    queue.enqueue(_payload("a"))
    queue.enqueue(_payload("b"))

    async def submit(payload: Mapping[str, Any]) -> str | None:
        return "" if payload["note"] == "a" else None

    report = await queue.flush(submit)

    assert (report.submitted, report.failed, report.dropped) == (1, 1, 0)
    assert [entry.payload["note"] for entry in queue.peek_all()] == ["b"]


@pytest.mark.asyncio
async def test_concurrent_flushes_submit_each_entry_once() -> None:
    queue = OutgoingQueue(MemoryStore())
    queue.enqueue(_payload("a"))
    submitted: list[str] = []

    async def submit(payload: Mapping[str, Any]) -> str | None:
        submitted.append(payload["note"])
        await asyncio.sleep(0.01)
        return "R1"

    first, second = await asyncio.gather(queue.flush(submit), queue.flush(submit))

    assert submitted == ["a"]
    assert first.submitted + second.submitted == 1
    assert queue.peek_all() == ()
