"""Request status transition endpoint.

Endpoint:
  - /admin_vehicles/update_request_status

Only logistics requests can be marked delivered from the driver side.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

from pydantic import ValidationError

from pyfarmconnect._constants import DEFAULT_LOGISTICS_ACTIVITY, UPDATE_REQUEST_STATUS_ENDPOINT
from pyfarmconnect._transport import Transport
from pyfarmconnect.exceptions import (
    FarmConnectApiError,
    FarmConnectError,
    FarmConnectMissingDataError,
    FarmConnectUnsupportedOperationError,
)
from pyfarmconnect.models.backend import StatusUpdateResponse
from pyfarmconnect.models.request import Request, RequestKind

_logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class MutationResult:
    """Outcome of a status transition; truthy on confirmed success."""

    success: bool
    error: FarmConnectError | None = None

    def __bool__(self) -> bool:
        return self.success


def build_mark_delivered_payload(request: Request) -> dict[str, Any]:
    return {
        "plan_id": request.request_ref,
        "date": request.date or "",
        "activity": request.activity or DEFAULT_LOGISTICS_ACTIVITY,
        "request_id": request.request_id,
    }


def check_mark_delivered(request: Request) -> FarmConnectError | None:
    """Return the precondition failure for *request*, if any."""
    if request.kind is RequestKind.FUEL:
        return FarmConnectUnsupportedOperationError(f"Fuel request {request.id} cannot be marked delivered")
    missing = [name for name in ("request_ref", "request_id") if not getattr(request, name)]
    if missing:
        return FarmConnectMissingDataError(f"Request {request.id} is missing {', '.join(missing)}")
    return None


async def mark_delivered(transport: Transport, request: Request) -> MutationResult:
    """Ask the backend to move *request* to ``done``.

    Success requires HTTP 200 and a truthy ``success`` flag. Failed
    preconditions return immediately without a network call. The caller
    applies the local transition only when the result is successful.
    """
    error = check_mark_delivered(request)
    if error is not None:
        return MutationResult(success=False, error=error)

    try:
        response = await transport.post_json(UPDATE_REQUEST_STATUS_ENDPOINT, build_mark_delivered_payload(request))
        parsed = StatusUpdateResponse.model_validate(response)
    except FarmConnectError as exc:
        _logger.debug("Mark delivered failed for %s: %s", request.id, exc)
        return MutationResult(success=False, error=exc)
    except ValidationError as exc:
        return MutationResult(
            success=False,
            error=FarmConnectApiError(f"Malformed status response: {exc}", endpoint=UPDATE_REQUEST_STATUS_ENDPOINT),
        )

    if not parsed.success:
        message = parsed.message or "backend did not confirm the update"
        return MutationResult(
            success=False,
            error=FarmConnectApiError(f"Mark delivered rejected: {message}", endpoint=UPDATE_REQUEST_STATUS_ENDPOINT),
        )
    return MutationResult(success=True)
