from __future__ import annotations

from typing import Any

from pyfarmconnect.ingestion.stream import map_fuel_update, map_logistics_created
from pyfarmconnect.models.request import RequestKind, RequestStatus


def _created(**data: Any) -> dict[str, Any]:
    base: dict[str, Any] = {
        "staff_id": "S1",
        "date": "2024-05-03",
        "vehicle_id": 3,
        "farm_id": "Depot -> East",
        "plan_entry": {
            "status": "pending",
            "requested_location": "Barn -> Silo 2",
            "staff_name": "Asha",
            "staff_contact": 98450,
            "request": "Move sacks",
        },
    }
    base.update(data)
    return {"event": "LOGISTICS_REQUEST_CREATED", "data": base}


def test_created_message_maps_to_logistics_request() -> None:
    payload = _created()
    payload["plan_id"] = "P9"

    request = map_logistics_created(payload)

    assert request is not None
    assert request.id == "P9"
    assert request.request_ref == "P9"
    assert request.kind is RequestKind.LOGISTICS
    assert request.status is RequestStatus.PENDING
    assert request.location == "Silo 2"
    assert request.note == "Name: Asha\nContact: 98450\nRequest: Move sacks"
    assert request.vehicle_id == "3"


def test_created_message_plan_id_may_live_in_data() -> None:
    request = map_logistics_created(_created(plan_id="P10"))

    assert request is not None
    assert request.id == "P10"


def test_created_message_without_plan_id_gets_composite_id() -> None:
    request = map_logistics_created(_created())

    assert request is not None
    assert request.id == "3_2024-05-03_Barn -> Silo 2"
    assert request.request_ref is None


def test_created_message_falls_back_to_farm_id_and_data_status() -> None:
    request = map_logistics_created(_created(plan_entry={}, status="approved"))

    assert request is not None
    assert request.location == "East"
    assert request.status is RequestStatus.APPROVED
    assert request.note is None


def test_malformed_created_message_is_dropped() -> None:
    assert map_logistics_created({"event": "LOGISTICS_REQUEST_CREATED", "data": "oops"}) is None


def test_fuel_update_maps_to_status_patch() -> None:
    request = map_fuel_update(
        {
            "event": "fuel_request_updated",
            "data": {"staff_id": "S1", "request_id": 42, "new_status": "Approved", "vehicle_number": "KA-02"},
        }
    )

    assert request is not None
    assert request.id == "42"
    assert request.request_id == "42"
    assert request.kind is RequestKind.FUEL
    assert request.status is RequestStatus.APPROVED
    assert request.vehicle_number == "KA-02"
    assert request.note is None


def test_fuel_update_without_request_id_is_dropped() -> None:
    assert map_fuel_update({"event": "fuel_request_updated", "data": {"staff_id": "S1"}}) is None
