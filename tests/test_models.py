from __future__ import annotations

from datetime import datetime

import pytest
from pydantic import ValidationError

from pyfarmconnect.models.backend import (
    LoginResponse,
    MakeRequestResponse,
    OutgoingRequestsResponse,
    PendingTask,
    TaskListResponse,
)
from pyfarmconnect.models.queue import OutgoingQueueEntry
from pyfarmconnect.models.request import Request, RequestKind, RequestStatus
from pyfarmconnect.session import Session


def test_request_requires_non_empty_id() -> None:
    with pytest.raises(ValidationError):
        Request(id="   ", kind=RequestKind.FUEL)


def test_request_is_frozen_and_strips_strings() -> None:
    request = Request(id=" P1 ", kind="logistics", note="  oil filter ")

    assert request.id == "P1"
    assert request.kind is RequestKind.LOGISTICS
    assert request.status is RequestStatus.PENDING
    assert request.note == "oil filter"
    with pytest.raises(ValidationError):
        request.note = "changed"  # type: ignore[misc]


def test_request_defined_fields_skip_unknown_values() -> None:
    request = Request(id="P1", kind=RequestKind.LOGISTICS, note="x")

    assert request.defined_fields() == {
        "id": "P1",
        "kind": RequestKind.LOGISTICS,
        "status": RequestStatus.PENDING,
        "note": "x",
    }


def test_pending_task_coerces_ids_and_drops_sentinels() -> None:
    task = PendingTask.model_validate(
        {"plan_id": 101, "request_id": 55.0, "farm_id": "", "status": "null", "vehicle_id": " 7 ", "extra": 1}
    )

    assert task.plan_id == "101"
    assert task.request_id == "55"
    assert task.farm_id is None
    assert task.status is None
    assert task.vehicle_id == "7"
    assert task.raw["extra"] == 1


def test_task_list_tolerates_wrong_shapes() -> None:
    assert TaskListResponse.model_validate({"pending_tasks": "oops"}).pending_tasks == []
    assert TaskListResponse.model_validate({}).pending_tasks == []
    parsed = TaskListResponse.model_validate({"pending_tasks": [{"plan_id": "A"}, "junk", None]})
    assert [task.plan_id for task in parsed.pending_tasks] == ["A"]


def test_outgoing_requests_keep_only_record_values() -> None:
    parsed = OutgoingRequestsResponse.model_validate(
        {"outgoing_requests": {"R1": {"status": "approved", "request": "Diesel"}, "R2": "junk"}}
    )

    assert list(parsed.outgoing_requests) == ["R1"]
    assert parsed.outgoing_requests["R1"].request == "Diesel"


@pytest.mark.parametrize("key", ["plan_id", "id", "reqId"])
def test_make_request_response_accepts_any_id_key(key: str) -> None:
    parsed = MakeRequestResponse.model_validate({"success": True, key: 77})

    assert parsed.success is True
    assert parsed.request_ref == "77"


def test_flags_accept_string_and_numeric_values() -> None:
    assert LoginResponse.model_validate({"success": "true", "staff_id": 12}).success is True
    assert LoginResponse.model_validate({"success": 0}).success is False
    assert LoginResponse.model_validate({}).staff_id is None


def test_queue_entry_confirmation_and_timezone() -> None:
    entry = OutgoingQueueEntry(local_id=1, payload={"note": "x"}, created_at=datetime(2026, 1, 1))

    assert entry.created_at.tzinfo is not None
    assert not entry.is_confirmed
    assert OutgoingQueueEntry(local_id=2, created_req_id="R1").is_confirmed
    assert OutgoingQueueEntry(local_id=3, confirmed=True).is_confirmed


def test_session_requires_staff_id() -> None:
    with pytest.raises(ValidationError):
        Session(staff_id=" ")
    assert Session(staff_id=" S1 ").staff_id == "S1"
