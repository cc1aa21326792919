from __future__ import annotations

import pytest

from pyfarmconnect._api.requests import post_request, submit_request
from pyfarmconnect._api.status import mark_delivered
from pyfarmconnect.exceptions import (
    FarmConnectApiError,
    FarmConnectMissingDataError,
    FarmConnectNotAuthenticatedError,
    FarmConnectTransportError,
    FarmConnectUnsupportedOperationError,
)
from pyfarmconnect.models.request import Request, RequestKind, RequestStatus

STATUS = "/admin_vehicles/update_request_status"
MAKE = "/admin_ops_requests/make_request"


def _logistics(**overrides: object) -> Request:
    fields: dict[str, object] = {
        "id": "P1",
        "kind": RequestKind.LOGISTICS,
        "request_ref": "P1",
        "request_id": "55",
    }
    fields.update(overrides)
    return Request(**fields)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_fuel_requests_cannot_be_marked_delivered(transport) -> None:
    result = await mark_delivered(transport, Request(id="F1", kind=RequestKind.FUEL, request_ref="F1", request_id="F1"))

    assert not result
    assert isinstance(result.error, FarmConnectUnsupportedOperationError)
    assert transport.calls == []


@pytest.mark.asyncio
async def test_missing_identifiers_skip_the_network(transport) -> None:
    result = await mark_delivered(transport, _logistics(request_id=None))

    assert not result
    assert isinstance(result.error, FarmConnectMissingDataError)
    assert "request_id" in str(result.error)
    assert transport.calls == []


@pytest.mark.asyncio
async def test_mark_delivered_sends_expected_payload(transport) -> None:
    transport.responses[STATUS] = {"success": "true"}

    result = await mark_delivered(transport, _logistics())

    assert result
    assert result.error is None
    assert transport.calls == [
        ("POST", STATUS, {"plan_id": "P1", "date": "", "activity": "Logistics Request", "request_id": "55"}),
    ]


@pytest.mark.asyncio
async def test_mark_delivered_echoes_known_activity_and_date(transport) -> None:
    transport.responses[STATUS] = {"success": True}

    await mark_delivered(transport, _logistics(activity="Logistics", date="2024-05-01", status=RequestStatus.APPROVED))

    assert transport.calls[0][2] == {"plan_id": "P1", "date": "2024-05-01", "activity": "Logistics", "request_id": "55"}


@pytest.mark.asyncio
async def test_mark_delivered_rejected_by_backend(transport) -> None:
    transport.responses[STATUS] = {"success": False, "message": "already closed"}

    result = await mark_delivered(transport, _logistics())

    assert not result
    assert isinstance(result.error, FarmConnectApiError)
    assert "already closed" in str(result.error)


@pytest.mark.asyncio
async def test_mark_delivered_transport_failure_is_returned(transport) -> None:
    transport.responses[STATUS] = FarmConnectTransportError("HTTP 500", status_code=500, endpoint=STATUS)

    result = await mark_delivered(transport, _logistics())

    assert not result
    assert isinstance(result.error, FarmConnectTransportError)
    assert result.error.status_code == 500


@pytest.mark.asyncio
async def test_submit_request_returns_server_id(transport) -> None:
    transport.responses[MAKE] = {"success": 1, "reqId": 77}

    result = await submit_request(transport, " S1 ", " Need diesel ", "Shed 4", "2024-05-01")

    assert result
    assert result.request_ref == "77"
    assert transport.calls == [
        ("POST", MAKE, {"staff_id": "S1", "date": "2024-05-01", "note": "Need diesel", "request_location": "Shed 4"}),
    ]


@pytest.mark.asyncio
async def test_submit_request_success_without_id(transport) -> None:
    transport.responses[MAKE] = {"success": True}

    result = await submit_request(transport, "S1", "note", "Shed", "2024-05-01")

    assert result
    assert result.request_ref is None


@pytest.mark.asyncio
async def test_submit_request_rejected(transport) -> None:
    transport.responses[MAKE] = {"success": False}

    result = await submit_request(transport, "S1", "note", "Shed", "2024-05-01")

    assert not result
    assert isinstance(result.error, FarmConnectApiError)


@pytest.mark.asyncio
async def test_submit_request_preconditions(transport) -> None:
    no_staff = await submit_request(transport, "  ", "note", "Shed", "2024-05-01")
    no_note = await submit_request(transport, "S1", " ", "Shed", "2024-05-01")

    assert isinstance(no_staff.error, FarmConnectNotAuthenticatedError)
    assert isinstance(no_note.error, FarmConnectMissingDataError)
    assert transport.calls == []


@pytest.mark.asyncio
async def test_post_request_prefers_plan_id(transport) -> None:
    transport.responses[MAKE] = {"success": True, "plan_id": "P9", "id": 3}

    assert await post_request(transport, {"note": "x"}) == "P9"


@pytest.mark.asyncio
async def test_post_request_raises_when_not_accepted(transport) -> None:
    transport.responses[MAKE] = {"success": "no"}

    with pytest.raises(FarmConnectApiError):
        await post_request(transport, {"note": "x"})
