"""Request creation endpoint.

Endpoint:
  - /admin_ops_requests/make_request
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from pyfarmconnect._constants import MAKE_REQUEST_ENDPOINT
from pyfarmconnect._transport import Transport
from pyfarmconnect.exceptions import (
    FarmConnectApiError,
    FarmConnectError,
    FarmConnectMissingDataError,
    FarmConnectNotAuthenticatedError,
)
from pyfarmconnect.models.backend import MakeRequestResponse
from pyfarmconnect.models.queue import OutgoingQueueEntry

_logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class SubmitResult:
    """Outcome of creating a request.

    ``entry`` is the outgoing queue record written for this submission,
    confirmed or not.
    """

    success: bool
    entry: OutgoingQueueEntry | None = None
    request_ref: str | None = None
    error: FarmConnectError | None = None

    def __bool__(self) -> bool:
        return self.success


def build_request_payload(
    staff_id: str,
    note: str,
    request_location: str,
    date: str,
) -> dict[str, Any]:
    return {
        "staff_id": staff_id.strip(),
        "date": date.strip(),
        "note": note.strip(),
        "request_location": request_location.strip(),
    }


async def post_request(transport: Transport, payload: Mapping[str, Any]) -> str:
    """Post an already built payload; returns the server id.

    Raises
    ------
    FarmConnectApiError
        If the backend did not report success.
    FarmConnectTransportError
        On network or HTTP failure.
    """
    response = await transport.post_json(MAKE_REQUEST_ENDPOINT, payload)
    try:
        parsed = MakeRequestResponse.model_validate(response)
    except ValidationError as exc:
        raise FarmConnectApiError(f"Malformed make_request response: {exc}", endpoint=MAKE_REQUEST_ENDPOINT) from exc
    if not parsed.success:
        raise FarmConnectApiError("Request was not accepted", endpoint=MAKE_REQUEST_ENDPOINT)
    # Some backend versions confirm without echoing an id.
    return parsed.request_ref or ""


async def submit_request(
    transport: Transport,
    staff_id: str,
    note: str,
    request_location: str,
    date: str,
) -> SubmitResult:
    """Create a request; never raises for expected failures."""
    if not (staff_id or "").strip():
        return SubmitResult(success=False, error=FarmConnectNotAuthenticatedError("No staff id available"))
    if not note.strip() or not request_location.strip():
        return SubmitResult(success=False, error=FarmConnectMissingDataError("note and request_location are required"))

    payload = build_request_payload(staff_id, note, request_location, date)
    try:
        request_ref = await post_request(transport, payload)
    except FarmConnectError as exc:
        _logger.debug("Request submission failed: %s", exc)
        return SubmitResult(success=False, error=exc)
    return SubmitResult(success=True, request_ref=request_ref or None)
