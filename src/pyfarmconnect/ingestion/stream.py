"""Event stream ingestion helpers.

Translates accepted websocket messages into normalized requests. The
stream client has already checked the event name and staff id; these
functions only reshape the payload.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from pyfarmconnect.ingestion.normalize import (
    compose_note,
    parse_logistics_location,
    safe_str,
    synthesize_request_id,
)
from pyfarmconnect.models.request import Request, RequestKind, RequestStatus
from pyfarmconnect.models.stream import FuelRequestUpdatedMessage, LogisticsCreatedMessage

_logger = logging.getLogger(__name__)


def map_logistics_created(payload: dict[str, Any]) -> Request | None:
    """Build a logistics request from a ``LOGISTICS_REQUEST_CREATED`` message.

    Returns ``None`` if the payload does not fit the message shape.
    """
    try:
        message = LogisticsCreatedMessage.model_validate(payload)
    except ValidationError:
        _logger.debug("Unparseable logistics stream message", exc_info=True)
        return None

    data = message.data
    entry = data.plan_entry
    plan_id = message.plan_id or data.plan_id

    return Request(
        id=synthesize_request_id(plan_id, data.vehicle_id, data.date, entry.requested_location),
        kind=RequestKind.LOGISTICS,
        status=RequestStatus.normalize(entry.status or data.status),
        request_ref=plan_id,
        note=compose_note(Name=entry.staff_name, Contact=entry.staff_contact, Request=entry.request),
        location=parse_logistics_location(entry.requested_location or data.farm_id),
        date=data.date,
        vehicle_id=data.vehicle_id,
    )


def map_fuel_update(payload: dict[str, Any]) -> Request | None:
    """Build a fuel request patch from a ``fuel_request_updated`` message.

    The patch only carries what the message states; every other field of
    the existing record survives the merge.
    """
    try:
        message = FuelRequestUpdatedMessage.model_validate(payload)
    except ValidationError:
        _logger.debug("Unparseable fuel stream message", exc_info=True)
        return None

    data = message.data
    request_id = safe_str(data.request_id)
    if request_id is None:
        _logger.debug("Fuel stream message without request_id: %s", message.raw)
        return None

    return Request(
        id=request_id,
        kind=RequestKind.FUEL,
        status=RequestStatus.normalize(data.new_status),
        request_id=request_id,
        vehicle_id=data.vehicle_id,
        vehicle_number=data.vehicle_number,
    )
