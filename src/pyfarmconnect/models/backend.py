"""Schemas for farm-connect REST responses.

One model per backend shape. They are deliberately lenient about value
types (ids arrive as numbers or strings) but strict about structure, so a
payload that does not fit fails here rather than deep inside the mapping
code.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import AliasChoices, BeforeValidator, Field, field_validator

from pyfarmconnect.ingestion.normalize import safe_flag
from pyfarmconnect.models._base import FarmBaseModel, LooseStr

Flag = Annotated[bool, BeforeValidator(safe_flag)]


class PendingTask(FarmBaseModel):
    """A record from ``pending_tasks`` of ``/admin_vehicles/get_all_task``."""

    plan_id: LooseStr = None
    date: LooseStr = None
    activity: LooseStr = None
    farm_id: LooseStr = None
    """Free text; for logistics records a ``"Pickup -> Delivery"`` route."""
    status: LooseStr = None
    vehicle_number: LooseStr = None
    request_id: LooseStr = None
    vehicle_id: LooseStr = None


class TaskListResponse(FarmBaseModel):
    pending_tasks: list[PendingTask] = Field(default_factory=list)

    @field_validator("pending_tasks", mode="before")
    @classmethod
    def _only_records(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]


class OutgoingRequestRecord(FarmBaseModel):
    """A value of the ``outgoing_requests`` mapping."""

    status: LooseStr = None
    request: LooseStr = None
    request_location: LooseStr = None
    date: LooseStr = None


class OutgoingRequestsResponse(FarmBaseModel):
    outgoing_requests: dict[str, OutgoingRequestRecord] = Field(default_factory=dict)

    @field_validator("outgoing_requests", mode="before")
    @classmethod
    def _only_records(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return {}
        return {str(key): item for key, item in value.items() if isinstance(item, dict)}


class MakeRequestResponse(FarmBaseModel):
    success: Flag = False
    request_ref: LooseStr = Field(default=None, validation_alias=AliasChoices("plan_id", "id", "reqId"))
    """Server id of the created request, whichever key the backend used."""


class StatusUpdateResponse(FarmBaseModel):
    success: Flag = False
    message: LooseStr = None


class LoginResponse(FarmBaseModel):
    success: Flag = False
    staff_id: LooseStr = None
