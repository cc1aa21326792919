"""Pending-task and outgoing-request snapshot ingestion.

The snapshot endpoints return every open record for a staff member. Each
fetch is a full view, but records are only ever *added to or merged into*
the local collection, never removed by a later fetch.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
from urllib.parse import quote

from pydantic import ValidationError

from pyfarmconnect._constants import ALL_TASKS_ENDPOINT, OUTGOING_REQUESTS_ENDPOINT
from pyfarmconnect._transport import Transport
from pyfarmconnect.exceptions import (
    FarmConnectError,
    FarmConnectNotAuthenticatedError,
    FarmConnectTransportError,
)
from pyfarmconnect.ingestion.normalize import (
    is_fuel_activity,
    is_logistics_activity,
    parse_logistics_location,
    synthesize_request_id,
)
from pyfarmconnect.models.backend import (
    OutgoingRequestRecord,
    OutgoingRequestsResponse,
    PendingTask,
    TaskListResponse,
)
from pyfarmconnect.models.request import Request, RequestKind, RequestStatus

_logger = logging.getLogger(__name__)


class SnapshotScope(enum.StrEnum):
    """Which pending tasks a snapshot keeps."""

    LOGISTICS = "logistics"
    """Task-list view: logistics records only."""
    REQUESTS = "requests"
    """Request view: every record, non-fuel records count as logistics."""


@dataclasses.dataclass(frozen=True)
class SnapshotResult:
    """Outcome of a snapshot fetch.

    ``requests`` is empty whenever ``error`` is set.
    """

    requests: tuple[Request, ...] = ()
    error: FarmConnectError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def map_pending_task(task: PendingTask, *, scope: SnapshotScope = SnapshotScope.LOGISTICS) -> Request | None:
    """Map one pending task to a normalized request.

    Returns ``None`` for records the *scope* excludes.
    """
    if is_fuel_activity(task.activity):
        if scope is SnapshotScope.LOGISTICS:
            return None
        kind = RequestKind.FUEL
    elif is_logistics_activity(task.activity) or scope is SnapshotScope.REQUESTS:
        kind = RequestKind.LOGISTICS
    else:
        return None

    return Request(
        id=synthesize_request_id(task.plan_id, task.vehicle_id, task.date, task.farm_id),
        kind=kind,
        status=RequestStatus.normalize(task.status),
        title=task.activity,
        activity=task.activity,
        request_ref=task.plan_id,
        request_id=task.request_id,
        note=task.farm_id,
        location=parse_logistics_location(task.farm_id),
        date=task.date,
        vehicle_id=task.vehicle_id,
        vehicle_number=task.vehicle_number,
    )


def map_pending_tasks(
    payload: dict,
    *,
    scope: SnapshotScope = SnapshotScope.LOGISTICS,
) -> tuple[Request, ...]:
    """Map a raw ``get_all_task`` response, keeping backend order."""
    try:
        response = TaskListResponse.model_validate(payload)
    except ValidationError:
        _logger.debug("Unparseable task list payload", exc_info=True)
        return ()

    mapped = (map_pending_task(task, scope=scope) for task in response.pending_tasks)
    return tuple(request for request in mapped if request is not None)


async def fetch_pending(
    transport: Transport,
    staff_id: str,
    *,
    scope: SnapshotScope = SnapshotScope.LOGISTICS,
) -> SnapshotResult:
    """Fetch and normalize pending tasks for *staff_id*.

    Never raises for expected failures; the error is returned on the
    result and the request tuple is empty.
    """
    staff_id = (staff_id or "").strip()
    if not staff_id:
        return SnapshotResult(error=FarmConnectNotAuthenticatedError("No staff id available"))

    endpoint = ALL_TASKS_ENDPOINT.format(staff_id=quote(staff_id, safe=""))
    try:
        payload = await transport.get_json(endpoint)
    except FarmConnectError as exc:
        _logger.debug("Pending task fetch failed: %s", exc)
        return SnapshotResult(error=exc)

    if not isinstance(payload.get("pending_tasks"), list):
        _logger.debug("Task list response without pending_tasks list from %s", endpoint)
    return SnapshotResult(requests=map_pending_tasks(payload, scope=scope))


def map_outgoing_record(key: str, record: OutgoingRequestRecord) -> Request:
    """Map one ``outgoing_requests`` entry to a logistics request."""
    return Request(
        id=key,
        kind=RequestKind.LOGISTICS,
        status=RequestStatus.normalize(record.status),
        title=record.request,
        request_ref=key,
        note=record.request,
        location=parse_logistics_location(record.request_location),
        date=record.date,
    )


async def fetch_outgoing(transport: Transport, staff_id: str) -> SnapshotResult:
    """Fetch requests this staff member created, keyed by server id."""
    staff_id = (staff_id or "").strip()
    if not staff_id:
        return SnapshotResult(error=FarmConnectNotAuthenticatedError("No staff id available"))

    endpoint = OUTGOING_REQUESTS_ENDPOINT.format(staff_id=quote(staff_id, safe=""))
    try:
        payload = await transport.get_json(endpoint)
        response = OutgoingRequestsResponse.model_validate(payload)
    except FarmConnectError as exc:
        _logger.debug("Outgoing request fetch failed: %s", exc)
        return SnapshotResult(error=exc)
    except ValidationError as exc:
        return SnapshotResult(
            error=FarmConnectTransportError(f"Malformed outgoing requests payload: {exc}", endpoint=endpoint)
        )

    requests: list[Request] = []
    for key, record in response.outgoing_requests.items():
        if not key.strip():
            continue
        requests.append(map_outgoing_record(key, record))
    return SnapshotResult(requests=tuple(requests))
